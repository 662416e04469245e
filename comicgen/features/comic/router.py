from fastapi import APIRouter, Depends

from comicgen.deps import ComicServices, get_services
from comicgen.logger import get_logger
from .schemas import ComicGenerateRequest, ComicResponse
from .service import generate_comic

log = get_logger(__name__)
router = APIRouter(prefix="/api/v1", tags=["comic"])

@router.post(
    "/generate/comic",
    response_model=ComicResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
async def generate_comic_endpoint(
    req: ComicGenerateRequest,
    services: ComicServices = Depends(get_services),
):
    mode = "regenerate" if req.is_panel_regeneration else ("slide" if req.is_slide else "comic")
    log.info(f"[comic] request mode={mode} layout={req.layout_id} story={req.story[:60]!r}")
    return await generate_comic(req, services=services)
