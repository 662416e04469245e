# comicgen/lib/openai_client.py
from typing import Optional
from openai import AsyncOpenAI
from comicgen.config import Config

# Backends are OpenAI-compatible; base_url picks the provider (HF router, OpenAI, ...)
DEFAULT_TIMEOUT = 120.0

def _make_client(api_key: str, base_url: str, timeout: float = DEFAULT_TIMEOUT) -> AsyncOpenAI:
    # SDK-level retries off: the services own their retry policy
    return AsyncOpenAI(api_key=api_key, base_url=base_url or None, timeout=timeout, max_retries=0)

def make_text_client(cfg: Config) -> AsyncOpenAI:
    return _make_client(cfg.text_api_key, cfg.text_base_url)

def make_image_client(cfg: Config, *, fallback: bool = False) -> AsyncOpenAI:
    base_url = (cfg.image_fallback_base_url or cfg.image_base_url) if fallback else cfg.image_base_url
    return _make_client(cfg.image_api_key, base_url, timeout=180.0)

def make_vision_client(cfg: Config) -> Optional[AsyncOpenAI]:
    if not cfg.vision_api_key:
        return None
    return _make_client(cfg.vision_api_key, cfg.vision_base_url, timeout=60.0)
