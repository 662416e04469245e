# comicgen/deps.py
from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Optional

from comicgen.config import Config, config
from comicgen.lib.openai_client import make_image_client, make_text_client, make_vision_client
from comicgen.lib.storage import ImageStore, make_image_store


@dataclass(frozen=True)
class ImageBackend:
    """One image-generation endpoint: a client plus the model it is asked for."""
    name: str
    client: Any
    model: str
    base_url: str = ""

    @property
    def identity(self) -> tuple[str, str]:
        return (self.model, self.base_url)


@dataclass
class ComicServices:
    """
    Request collaborators resolved from one Config.

    Clients are created on first use so a missing credential surfaces as a
    ConfigurationError from `settings.require_*` before anything is built.
    Tests pass ready-made fakes through the constructor instead.
    """
    settings: Config
    text_client: Any = None
    vision_client: Any = None
    store: Optional[ImageStore] = None
    primary_image: Optional[ImageBackend] = None
    fallback_image: Optional[ImageBackend] = field(default=None)

    def get_text_client(self):
        if self.text_client is None:
            self.settings.require_text_backend()
            self.text_client = make_text_client(self.settings)
        return self.text_client

    def get_vision_client(self):
        if self.vision_client is None and self.settings.vision_enabled:
            self.vision_client = make_vision_client(self.settings)
        return self.vision_client

    def get_store(self) -> ImageStore:
        if self.store is None:
            self.store = make_image_store(self.settings)
        return self.store

    @cached_property
    def image_backends(self) -> tuple[ImageBackend, Optional[ImageBackend]]:
        s = self.settings
        primary = self.primary_image
        if primary is None:
            s.require_image_backend()
            primary = ImageBackend("primary", make_image_client(s), s.image_model, s.image_base_url)
        fallback = self.fallback_image
        if fallback is None and s.image_fallback_model:
            fallback_url = s.image_fallback_base_url or s.image_base_url
            if (s.image_fallback_model, fallback_url) != primary.identity:
                fallback = ImageBackend(
                    "fallback", make_image_client(s, fallback=True), s.image_fallback_model, fallback_url
                )
        if fallback is not None and fallback.identity == primary.identity:
            fallback = None
        return primary, fallback


_services: Optional[ComicServices] = None

def get_services() -> ComicServices:
    """FastAPI dependency: one process-wide container built from `config`."""
    global _services
    if _services is None:
        _services = ComicServices(settings=config)
    return _services
