# comicgen/lib/paths.py
from __future__ import annotations
import secrets
from datetime import datetime, timezone
from pathlib import Path

def ensure_dir(path: str | Path) -> str:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return str(p)

def make_image_name(ext: str) -> str:
    """
    Store key for one generated image: <UTC timestamp>-<random hex><ext>.
    The random suffix keeps concurrent requests from ever sharing a key.
    """
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S-%f")
    return f"{stamp}-{secrets.token_hex(4)}{ext}"
