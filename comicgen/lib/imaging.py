from __future__ import annotations
import base64
import io
import random
import re
from typing import Optional

from PIL import Image, UnidentifiedImageError

from comicgen import logger

log = logger.get_logger(__name__)

_UNSAFE_SVG_CHARS = re.compile(r"[<>&\"']")

PLACEHOLDER_COLORS = ["#e63946", "#457b9d", "#2a9d8f", "#e9c46a", "#f4a261", "#264653"]

_EXT_BY_MIME = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/svg+xml": ".svg",
}

def sniff_mime(data: bytes) -> str:
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if data.startswith(b"\xff\xd8"):
        return "image/jpeg"
    if data.startswith(b"GIF87a") or data.startswith(b"GIF89a"):
        return "image/gif"
    # WEBP: RIFF....WEBP
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return "application/octet-stream"

def ext_for_mime(mime: str) -> str:
    return _EXT_BY_MIME.get(mime, ".bin")

def to_data_url(data: bytes, mime: Optional[str] = None) -> str:
    mime = mime or sniff_mime(data)
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"

def thumbnail_for_analysis(data: bytes, max_side: int = 512) -> tuple[bytes, str]:
    """
    Downscale a rendered panel before sending it to the vision model.
    Returns (bytes, mime): a JPEG thumbnail, or the original bytes with
    their sniffed type when Pillow cannot read them.
    """
    try:
        with Image.open(io.BytesIO(data)) as im:
            im = im.convert("RGB")
            im.thumbnail((max_side, max_side))
            buf = io.BytesIO()
            im.save(buf, format="JPEG", quality=85)
            return buf.getvalue(), "image/jpeg"
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        log.warning(f"could not downscale image for analysis: {e}")
        return data, sniff_mime(data)

def _svg_safe(s: str) -> str:
    return _UNSAFE_SVG_CHARS.sub("", s)

def placeholder_svg_data_url(text: str, error_detail: str = "") -> str:
    """
    Simple SVG shown in place of a panel whose image could not be generated.
    Embeds the start of the intended scene and two short lines of the error.
    """
    color = random.choice(PLACEHOLDER_COLORS)
    label = _svg_safe((text or "")[:50])
    raw_error = error_detail or ""
    err1 = _svg_safe(raw_error[:45])
    err2 = _svg_safe(raw_error[45:90])

    svg = f"""<svg xmlns="http://www.w3.org/2000/svg" width="512" height="512" viewBox="0 0 512 512">
    <rect width="512" height="512" fill="{color}"/>
    <text x="256" y="220" text-anchor="middle" fill="white" font-size="16" font-family="sans-serif" font-weight="bold">{label}...</text>
    <text x="256" y="260" text-anchor="middle" fill="white" font-size="14" font-family="sans-serif">[Image Unavailable]</text>
    <text x="256" y="290" text-anchor="middle" fill="#ffcccc" font-size="12" font-family="monospace">Error: {err1}</text>
    <text x="256" y="310" text-anchor="middle" fill="#ffcccc" font-size="12" font-family="monospace">{err2}</text>
  </svg>"""
    return to_data_url(svg.encode("utf-8"), "image/svg+xml")
