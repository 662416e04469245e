# comicgen/features/panels/service.py
from __future__ import annotations

import asyncio
import base64
from dataclasses import dataclass
from typing import Optional

import openai
import requests

from comicgen.deps import ComicServices, ImageBackend
from comicgen.errors import ImageGenerationError
from comicgen.features.characters.schemas import CharacterContext
from comicgen.lib.imaging import sniff_mime, to_data_url
from comicgen.lib.storage import ImageStore
from comicgen.logger import get_logger
from .prompt import build_panel_prompt

log = get_logger(__name__)


@dataclass(frozen=True)
class PanelImage:
    src: str          # store reference, or an inline data: URI when the store refused the bytes
    data: bytes
    mime: str
    backend: str
    stored: bool


class _UndersizedImage(Exception):
    def __init__(self, size: int, minimum: int):
        super().__init__(f"image too small ({size} bytes < {minimum}); treating as corrupt")
        self.size = size


_ATTEMPT_ERRORS = (openai.APIError, requests.RequestException, ValueError, _UndersizedImage)


def _download(url: str) -> bytes:
    r = requests.get(url, timeout=60)
    r.raise_for_status()
    return r.content

async def _request_image(backend: ImageBackend, prompt: str, size: str) -> bytes:
    resp = await backend.client.images.generate(
        model=backend.model,
        prompt=prompt,
        size=size,
        n=1,
    )
    if not resp.data:
        raise ValueError("image response carried no data")
    item = resp.data[0]
    b64 = getattr(item, "b64_json", None)
    if b64:
        return base64.b64decode(b64)
    url = getattr(item, "url", None)
    if url:
        return await asyncio.to_thread(_download, url)
    raise ValueError("image response carried neither b64_json nor url")

async def _attempt(backend: ImageBackend, prompt: str, size: str, min_bytes: int) -> bytes:
    data = await _request_image(backend, prompt, size)
    if len(data) < min_bytes:
        raise _UndersizedImage(len(data), min_bytes)
    return data


async def generate_image_bytes(prompt: str, *, services: ComicServices) -> tuple[bytes, str]:
    """
    Primary backend up to `image_attempts` times with a fixed delay, then one
    fallback attempt with the relaxed size threshold.
    Returns (bytes, backend name); raises ImageGenerationError when both are exhausted.
    """
    s = services.settings
    primary, fallback = services.image_backends
    attempts = max(1, s.image_attempts)
    errors: list[str] = []

    for attempt in range(1, attempts + 1):
        try:
            data = await _attempt(primary, prompt, s.image_size, s.min_image_bytes)
            log.info(f"[image] {primary.model} ok on attempt {attempt}/{attempts} ({len(data)} bytes)")
            return data, primary.name
        except _ATTEMPT_ERRORS as e:
            errors.append(f"{primary.model} #{attempt}: {e}")
            log.warning(f"[image] {primary.model} attempt {attempt}/{attempts} failed: {e}")
            if attempt < attempts:
                await asyncio.sleep(s.image_retry_delay)

    if fallback is None:
        raise ImageGenerationError(f"Image generation failed ({primary.model}): {errors[-1]}")

    log.info(f"[image] switching to fallback model {fallback.model}")
    try:
        data = await _attempt(fallback, prompt, s.image_size, s.fallback_min_image_bytes)
        log.info(f"[image] fallback {fallback.model} ok ({len(data)} bytes)")
        return data, fallback.name
    except _ATTEMPT_ERRORS as e:
        errors.append(f"{fallback.model}: {e}")
        log.error(f"[image] fallback {fallback.model} failed: {e}")
        raise ImageGenerationError(
            f"Image generation failed on {primary.model} and fallback {fallback.model}. " + " | ".join(errors)
        ) from e


async def commit_image(data: bytes, mime: str, store: ImageStore) -> tuple[str, bool]:
    """Persist to the image store; on any store failure return the bytes inline instead."""
    try:
        ref = await asyncio.to_thread(store.save, data, mime)
        return ref, True
    except Exception as e:
        log.warning(f"[image] store commit failed, embedding inline: {e}")
        return to_data_url(data, mime), False


async def render_panel(
    scene: str,
    style: str,
    context: Optional[CharacterContext] = None,
    *,
    services: ComicServices,
) -> PanelImage:
    prompt = build_panel_prompt(scene, style, context, max_scene_words=services.settings.max_scene_words)
    log.debug(f"[image] prompt: {prompt}")

    data, backend = await generate_image_bytes(prompt, services=services)
    mime = sniff_mime(data)
    src, stored = await commit_image(data, mime, services.get_store())
    return PanelImage(src=src, data=data, mime=mime, backend=backend, stored=stored)
