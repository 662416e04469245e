# tests/conftest.py
import base64
import dataclasses
import io
import json
import types

import httpx
import openai
import pytest
from PIL import Image

from comicgen.config import config
from comicgen.deps import ComicServices, ImageBackend


# -------- Utilities --------
def png_bytes(size: int) -> bytes:
    """PNG signature padded to `size` bytes; enough for sniffing and size checks."""
    sig = b"\x89PNG\r\n\x1a\n"
    return sig + b"\0" * max(0, size - len(sig))

def real_png(side: int = 128) -> bytes:
    # noise keeps the encoded file well above the size thresholds
    im = Image.effect_noise((side, side), 64).convert("RGB")
    buf = io.BytesIO()
    im.save(buf, format="PNG")
    return buf.getvalue()

def connection_error() -> openai.APIConnectionError:
    return openai.APIConnectionError(request=httpx.Request("POST", "https://backend.test/v1"))

def script_json(panel_count: int, *, title: str = "Mocked Comic", characters=None, split: bool = True) -> str:
    panels = [
        {"scene": f"Scene {i + 1}: the hero in action", "narration": f"Narration {i + 1}", "dialogue": f"Line {i + 1}"}
        for i in range(panel_count)
    ]
    half = (panel_count + 1) // 2 if split else panel_count
    return json.dumps({
        "title": title,
        "characters": characters or [],
        "spreads": [{"rightPanels": panels[:half], "leftPanels": panels[half:]}],
    })


# -------- Fakes shaped like the openai SDK --------
def _chat_response(content):
    message = types.SimpleNamespace(content=content)
    return types.SimpleNamespace(choices=[types.SimpleNamespace(message=message)])

class FakeChatClient:
    """
    `chat.completions.create` replays `responses` in order (the last one
    repeats). An Exception instance in the list is raised instead.
    """

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []
        self.chat = types.SimpleNamespace(completions=types.SimpleNamespace(create=self._create))

    async def _create(self, **kwargs):
        self.calls.append(kwargs)
        item = self.responses[min(len(self.calls), len(self.responses)) - 1]
        if isinstance(item, Exception):
            raise item
        return _chat_response(item)

class FakeImagesClient:
    """`images.generate` replays bytes / exceptions like FakeChatClient, as b64_json."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []
        self.images = types.SimpleNamespace(generate=self._generate)

    async def _generate(self, **kwargs):
        self.calls.append(kwargs)
        item = self.outcomes[min(len(self.calls), len(self.outcomes)) - 1]
        if isinstance(item, Exception):
            raise item
        b64 = base64.b64encode(item).decode("ascii")
        return types.SimpleNamespace(data=[types.SimpleNamespace(b64_json=b64, url=None)])

class MemoryStore:
    def __init__(self):
        self.saved = []

    def save(self, data: bytes, mime: str) -> str:
        self.saved.append((data, mime))
        return f"mem://panel-{len(self.saved)}"

class BrokenStore:
    def save(self, data: bytes, mime: str) -> str:
        raise OSError("disk full")


# -------- Fixtures --------
@pytest.fixture
def settings(tmp_path):
    return dataclasses.replace(
        config,
        text_api_key="test-text-key",
        image_api_key="test-image-key",
        vision_api_key="",
        analyze_first_panel=False,
        image_fallback_model="",
        image_attempts=3,
        image_retry_delay=0,
        panel_delay=0,
        min_image_bytes=1000,
        fallback_min_image_bytes=400,
        script_max_retries=2,
        image_store="local",
        base_output_dir=tmp_path,
    )

@pytest.fixture
def make_services(settings):
    def _make(*, chat=None, images=None, fallback=None, vision=None, store=None, **overrides):
        s = dataclasses.replace(settings, **overrides) if overrides else settings
        return ComicServices(
            settings=s,
            text_client=chat,
            vision_client=vision,
            store=store if store is not None else MemoryStore(),
            primary_image=ImageBackend("primary", images or FakeImagesClient([png_bytes(2000)]), "img-primary"),
            fallback_image=ImageBackend("fallback", fallback, "img-fallback") if fallback is not None else None,
        )
    return _make
