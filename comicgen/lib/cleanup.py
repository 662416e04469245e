import time
from pathlib import Path

from comicgen import logger

log = logger.get_logger(__name__)

def sweep_stored_images(base_dir: str, *, ttl_hours: int) -> int:
    """
    Delete generated image files older than ttl_hours.
    Returns how many files were removed.
    """
    now = time.time()
    removed = 0
    base = Path(base_dir)
    if not base.exists():
        return 0

    for entry in base.iterdir():
        if not entry.is_file():
            continue
        try:
            age_hours = (now - entry.stat().st_mtime) / 3600.0
            if age_hours >= ttl_hours:
                entry.unlink()
                removed += 1
        except OSError as e:
            # best-effort; a concurrent sweep may have removed it
            log.warning(f"could not sweep {entry}: {e}")
            continue
    log.info(f"swept {removed} stored image(s) older than {ttl_hours}h from {base}")
    return removed
