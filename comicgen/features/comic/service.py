from __future__ import annotations

import asyncio
from typing import List, Optional

from comicgen.deps import ComicServices
from comicgen.errors import BadRequestError, ImageGenerationError
from comicgen.features.characters.service import ContinuityResult, resolve_character_context
from comicgen.features.characters.schemas import CharacterContext
from comicgen.features.panels.service import render_panel
from comicgen.features.script.schemas import PanelScript, ScriptDocument
from comicgen.features.script.service import generate_script
from comicgen.lib.imaging import placeholder_svg_data_url
from comicgen.logger import get_logger
from .schemas import (
    BLANK_LAYOUT,
    SLIDE_LAYOUT,
    ComicGenerateRequest,
    ComicResponse,
    RenderedPanel,
    Spread,
    StoryRequest,
    canvas_layout,
)

log = get_logger(__name__)


def _to_rendered(panel: PanelScript, src: str, request: StoryRequest) -> RenderedPanel:
    # disabled text is left unset so it is omitted from the JSON, not blanked
    return RenderedPanel(
        src=src,
        narration=panel.narration if request.want_narration else None,
        dialogue=panel.dialogue if request.want_dialogue else None,
    )


async def _render_or_placeholder(
    panel: PanelScript,
    number: int,
    request: StoryRequest,
    context: CharacterContext,
    services: ComicServices,
) -> str:
    try:
        image = await render_panel(panel.scene, request.style, context, services=services)
        return image.src
    except ImageGenerationError as e:
        log.error(f"[assemble] panel {number} failed, using placeholder: {e}")
        return placeholder_svg_data_url(panel.scene, str(e))


async def assemble_comic(
    request: StoryRequest,
    document: ScriptDocument,
    *,
    services: ComicServices,
    continuity: Optional[ContinuityResult] = None,
) -> ComicResponse:
    """
    Render every panel strictly one after another, in page order, waiting
    `panel_delay` seconds between image requests. A panel that cannot be
    rendered becomes a placeholder; the other panels are unaffected.
    """
    continuity = continuity or ContinuityResult(CharacterContext())
    delay = services.settings.panel_delay
    layout = canvas_layout(request.layout_id)

    number = 0
    waited_request = continuity.first_panel is not None
    spreads: List[Spread] = []

    for group in document.spreads:
        sides: List[List[RenderedPanel]] = []
        for side in (group.primary, group.secondary):
            rendered: List[RenderedPanel] = []
            for panel in side:
                number += 1
                if number == 1 and continuity.first_panel is not None:
                    log.info("[assemble] panel 1 reused from continuity render")
                    src = continuity.first_panel.src
                else:
                    if waited_request and delay > 0:
                        await asyncio.sleep(delay)
                    log.info(f"[assemble] rendering panel {number}/{document.panel_count}")
                    src = await _render_or_placeholder(panel, number, request, continuity.context, services)
                    waited_request = True
                rendered.append(_to_rendered(panel, src, request))
            sides.append(rendered)

        spreads.append(Spread(
            primary_panels=sides[0],
            secondary_panels=sides[1],
            primary_layout=layout,
            secondary_layout=BLANK_LAYOUT,
        ))

    return ComicResponse(title=document.title, spreads=spreads)


async def regenerate_panel(req: ComicGenerateRequest, *, services: ComicServices) -> ComicResponse:
    """
    Re-render one existing panel from the request's story text. Every other
    entry is returned untouched; the target keeps its narration and caption.
    """
    panels = list(req.existing_panels or [])
    index = req.selected_panel_index
    if index is None or not 0 <= index < len(panels):
        raise BadRequestError(f"selectedPanelIndex {index} is out of range for {len(panels)} existing panel(s).")

    log.info(f"[regenerate] panel {index + 1} of {len(panels)}")
    image = await render_panel(req.story.strip(), req.style.strip(), None, services=services)
    panels[index] = panels[index].model_copy(update={"src": image.src})

    return ComicResponse(
        title=req.title or "Regenerated Panel",
        spreads=[Spread(
            primary_panels=panels,
            secondary_panels=[],
            primary_layout=canvas_layout(req.layout_id),
            secondary_layout=BLANK_LAYOUT,
        )],
    )


async def generate_slide(req: ComicGenerateRequest, *, services: ComicServices) -> ComicResponse:
    story = req.story.strip()
    image = await render_panel(story, req.style.strip(), None, services=services)
    return ComicResponse(
        title="Single Slide",
        spreads=[Spread(
            primary_panels=[RenderedPanel(src=image.src, dialogue=story)],
            secondary_panels=[],
            primary_layout=SLIDE_LAYOUT,
            secondary_layout=BLANK_LAYOUT,
        )],
    )


async def generate_comic(req: ComicGenerateRequest, *, services: ComicServices) -> ComicResponse:
    """Entry point for one HTTP request: dispatch on mode, then run the pipeline."""
    if not req.story.strip():
        raise BadRequestError("A story description is required.")

    settings = services.settings
    if req.is_panel_regeneration:
        settings.require_image_backend()
        return await regenerate_panel(req, services=services)

    if req.is_slide:
        settings.require_image_backend()
        return await generate_slide(req, services=services)

    settings.require_text_backend()
    settings.require_image_backend()

    request = req.to_story_request()
    document = await generate_script(
        request.story,
        request.style,
        request.panel_count,
        client=services.get_text_client(),
        settings=settings,
    )
    continuity = await resolve_character_context(document, request.style, services=services)
    response = await assemble_comic(request, document, services=services, continuity=continuity)
    log.info(f"[comic] '{response.title}' assembled: {document.panel_count} panel(s) in {len(response.spreads)} spread(s)")
    return response
