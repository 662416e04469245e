from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import openai

from comicgen.deps import ComicServices
from comicgen.errors import CharacterAnalysisError, ComicError
from comicgen.features.panels.service import PanelImage, render_panel
from comicgen.features.script.schemas import ScriptDocument
from comicgen.lib.imaging import thumbnail_for_analysis, to_data_url
from comicgen.lib.json_tools import strip_reasoning
from comicgen.logger import get_logger
from .prompt import CHARACTER_TRAITS_INSTRUCTION
from .schemas import CharacterContext

log = get_logger(__name__)

MAX_TAGS = 7


@dataclass(frozen=True)
class ContinuityResult:
    context: CharacterContext
    first_panel: Optional[PanelImage] = None  # early render of panel 0, reused by the assembler


def parse_trait_tags(raw: str) -> str:
    """Normalize a vision answer into at most MAX_TAGS comma-separated tags."""
    text = strip_reasoning(raw or "")
    first_line = next((ln for ln in text.splitlines() if ln.strip()), "")
    tags = [t.strip(" .-*\t\"'") for t in first_line.split(",")]
    tags = [t for t in tags if t]
    return ", ".join(tags[:MAX_TAGS])


async def analyze_character_traits(image: PanelImage, *, client: Any, model: str) -> str:
    thumb, thumb_mime = thumbnail_for_analysis(image.data)
    image_url = to_data_url(thumb, thumb_mime)
    try:
        resp = await client.chat.completions.create(
            model=model,
            messages=[{
                "role": "user",
                "content": [
                    {"type": "text", "text": CHARACTER_TRAITS_INSTRUCTION},
                    {"type": "image_url", "image_url": {"url": image_url}},
                ],
            }],
            max_tokens=120,
            temperature=0.2,
        )
    except openai.APIError as e:
        raise CharacterAnalysisError(f"vision analysis failed: {e}") from e

    if not resp.choices:
        raise CharacterAnalysisError("vision analysis returned no choices")
    tags = parse_trait_tags(resp.choices[0].message.content or "")
    if not tags:
        raise CharacterAnalysisError("vision analysis returned no tags")
    return tags


async def resolve_character_context(
    document: ScriptDocument,
    style: str,
    *,
    services: ComicServices,
) -> ContinuityResult:
    """
    Roster from the script wins. Without one, render the first panel early
    and derive trait tags from it. Never raises: every failure degrades to
    an empty context.
    """
    if document.characters:
        log.info(f"[continuity] using script roster: {', '.join(c.name for c in document.characters)}")
        return ContinuityResult(CharacterContext(roster=document.characters))

    first = document.first_panel()
    if first is None:
        return ContinuityResult(CharacterContext())

    vision = services.get_vision_client()
    if vision is None:
        log.info("[continuity] no roster and vision analysis disabled; continuing without hint")
        return ContinuityResult(CharacterContext())

    try:
        image = await render_panel(first.scene, style, None, services=services)
    except ComicError as e:
        log.warning(f"[continuity] early render of panel 1 failed: {e}")
        return ContinuityResult(CharacterContext())

    try:
        traits = await analyze_character_traits(image, client=vision, model=services.settings.vision_model)
    except CharacterAnalysisError as e:
        log.warning(f"[continuity] {e}; continuing without hint")
        return ContinuityResult(CharacterContext(), first_panel=image)

    log.info(f"[continuity] derived traits: {traits}")
    return ContinuityResult(CharacterContext(traits=traits), first_panel=image)
