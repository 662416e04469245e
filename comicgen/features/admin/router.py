from fastapi import APIRouter, Depends

from comicgen.deps import ComicServices, get_services
from comicgen.lib.cleanup import sweep_stored_images

router = APIRouter(prefix="/api/v1", tags=["admin"])

@router.get("/health")
async def health(services: ComicServices = Depends(get_services)):
    s = services.settings
    return {
        "status": "ok",
        "text_backend": bool(s.text_api_key),
        "image_backend": bool(s.image_api_key),
        "vision_analysis": s.vision_enabled,
        "image_store": s.image_store,
    }

@router.post("/admin/sweep")
async def sweep(services: ComicServices = Depends(get_services)):
    s = services.settings
    base = str(s.generated_dir)
    removed = sweep_stored_images(base, ttl_hours=s.sweep_ttl_hours)
    return {"removed": removed, "base_dir": base}
