from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from comicgen.config import config
from comicgen.errors import ComicError
from comicgen.features.admin.router import router as admin_router
from comicgen.features.comic.router import router as comic_router
from comicgen.lib.cleanup import sweep_stored_images
from comicgen.lib.storage import LOCAL_URL_PREFIX
from comicgen.logger import get_logger

log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if config.sweep_on_startup:
        sweep_stored_images(str(config.generated_dir), ttl_hours=config.sweep_ttl_hours)
    yield


app = FastAPI(title="Comic Generator API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins,
    allow_credentials="*" not in config.allowed_origins,  # browsers reject credentials with a wildcard
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(comic_router)
app.include_router(admin_router)

# local image store; GCS-backed deployments hand out signed URLs instead
app.mount(LOCAL_URL_PREFIX, StaticFiles(directory=str(config.generated_dir)), name="generated")


@app.exception_handler(ComicError)
async def comic_error_handler(request: Request, exc: ComicError):
    if exc.status_code >= 500:
        log.error(f"{request.url.path} failed: {exc}")
    else:
        log.info(f"{request.url.path} rejected: {exc}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
    )
    return JSONResponse(status_code=422, content={"error": f"Invalid request: {details}"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log.exception(f"{request.url.path} crashed")
    return JSONResponse(status_code=500, content={"error": f"Internal error: {exc}"})
