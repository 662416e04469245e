# comicgen/config.py
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List

from comicgen.errors import ConfigurationError

def _env_bool(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "on"}

def _env_csv(name: str, default: str = "*") -> List[str]:
    raw = os.getenv(name, default)
    return [x.strip() for x in raw.split(",") if x.strip()]

def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)

def _env_first(*names: str, default: str = "") -> str:
    for name in names:
        val = os.getenv(name)
        if val:
            return val
    return default

@dataclass(frozen=True)
class Config:
    # Text generation (OpenAI-compatible chat endpoint)
    text_api_key: str
    text_base_url: str
    text_model: str
    text_max_tokens: int
    text_temperature: float
    script_max_retries: int
    # Image generation
    image_api_key: str
    image_base_url: str
    image_model: str
    image_fallback_model: str
    image_fallback_base_url: str
    image_size: str
    image_attempts: int
    image_retry_delay: float     # seconds between primary attempts
    panel_delay: float           # seconds between panels (backend rate limit)
    min_image_bytes: int
    fallback_min_image_bytes: int
    max_scene_words: int
    # Vision analysis (first-panel character traits)
    vision_api_key: str
    vision_base_url: str
    vision_model: str
    analyze_first_panel: bool
    # Image store
    image_store: str             # "local" | "gcs"
    base_output_dir: Path
    public_base_url: str
    gcs_bucket: str
    gcs_signing_service_account: str  # impersonated for URL signing when runtime creds cannot sign
    signed_url_ttl: int
    # API / CORS
    allowed_origins: List[str]
    # Housekeeping
    sweep_on_startup: bool
    sweep_ttl_hours: int
    # Logging
    log_level: str

    @property
    def generated_dir(self) -> Path:
        return self.base_output_dir / "generated"

    def require_text_backend(self) -> None:
        if not self.text_api_key:
            raise ConfigurationError(
                "Missing text-generation credentials. Please configure TEXT_API_KEY or HF_TOKEN."
            )

    def require_image_backend(self) -> None:
        if not self.image_api_key:
            raise ConfigurationError(
                "Missing image-generation credentials. Please configure IMAGE_API_KEY or OPENAI_API_KEY."
            )
        if self.image_store == "gcs" and not self.gcs_bucket:
            raise ConfigurationError("IMAGE_STORE=gcs requires GCS_BUCKET.")

    @property
    def vision_enabled(self) -> bool:
        return self.analyze_first_panel and bool(self.vision_api_key)

def load_config() -> Config:
    return Config(
        text_api_key = _env_first("TEXT_API_KEY", "HF_TOKEN"),
        text_base_url = os.getenv("TEXT_BASE_URL", "https://router.huggingface.co/v1"),
        text_model = os.getenv("TEXT_MODEL", "deepseek-ai/DeepSeek-R1-0528-Qwen3-8B:featherless-ai"),
        text_max_tokens = int(os.getenv("TEXT_MAX_TOKENS", "4000")),
        text_temperature = _env_float("TEXT_TEMPERATURE", 0.6),
        script_max_retries = int(os.getenv("SCRIPT_MAX_RETRIES", "2")),
        image_api_key = _env_first("IMAGE_API_KEY", "OPENAI_API_KEY"),
        image_base_url = os.getenv("IMAGE_BASE_URL", ""),
        image_model = os.getenv("IMAGE_MODEL", "gpt-image-1"),
        image_fallback_model = os.getenv("IMAGE_FALLBACK_MODEL", "gpt-image-1-mini"),
        image_fallback_base_url = os.getenv("IMAGE_FALLBACK_BASE_URL", ""),
        image_size = os.getenv("IMAGE_SIZE", "1024x1024"),
        image_attempts = int(os.getenv("IMAGE_ATTEMPTS", "3")),
        image_retry_delay = _env_float("IMAGE_RETRY_DELAY", 2.0),
        panel_delay = _env_float("PANEL_DELAY", 1.0),
        min_image_bytes = int(os.getenv("MIN_IMAGE_BYTES", "10000")),
        fallback_min_image_bytes = int(os.getenv("FALLBACK_MIN_IMAGE_BYTES", "4000")),
        max_scene_words = int(os.getenv("MAX_SCENE_WORDS", "120")),
        vision_api_key = _env_first("VISION_API_KEY", "OPENAI_API_KEY"),
        vision_base_url = os.getenv("VISION_BASE_URL", ""),
        vision_model = os.getenv("VISION_MODEL", "gpt-4o-mini"),
        analyze_first_panel = _env_bool("ANALYZE_FIRST_PANEL", True),
        image_store = os.getenv("IMAGE_STORE", "local").strip().lower(),
        base_output_dir = Path(os.getenv("OUTPUT_DIR", str(Path(__file__).resolve().parent / "output"))),
        public_base_url = os.getenv("PUBLIC_BASE_URL", "").rstrip("/"),
        gcs_bucket = os.getenv("GCS_BUCKET", ""),
        gcs_signing_service_account = os.getenv("GCS_SIGNING_SERVICE_ACCOUNT", ""),
        signed_url_ttl = int(os.getenv("GCS_SIGNED_URL_TTL", "3600")),
        allowed_origins = _env_csv("ALLOWED_ORIGINS", "*"),
        sweep_on_startup = _env_bool("SWEEP_ON_STARTUP", False),
        sweep_ttl_hours = int(os.getenv("SWEEP_TTL_HOURS", "24")),
        log_level = os.getenv("LOG_LEVEL", "INFO"),
    )

# Load once and ensure the local image directory exists
config = load_config()
config.generated_dir.mkdir(parents=True, exist_ok=True)
