# tests/test_imaging.py
import base64

from comicgen.lib.imaging import (
    placeholder_svg_data_url,
    sniff_mime,
    thumbnail_for_analysis,
    to_data_url,
)
from conftest import png_bytes, real_png


def test_sniff_mime():
    assert sniff_mime(png_bytes(20)) == "image/png"
    assert sniff_mime(b"\xff\xd8\xff\xe0rest") == "image/jpeg"
    assert sniff_mime(b"RIFF\0\0\0\0WEBPVP8 ") == "image/webp"
    assert sniff_mime(b"plain") == "application/octet-stream"

def test_to_data_url_sniffs_mime():
    assert to_data_url(png_bytes(30)).startswith("data:image/png;base64,")
    assert to_data_url(b"<svg/>", "image/svg+xml") == "data:image/svg+xml;base64," + base64.b64encode(b"<svg/>").decode()

def test_thumbnail_downscales_to_jpeg():
    out, mime = thumbnail_for_analysis(real_png(1024), max_side=256)
    assert mime == "image/jpeg"
    assert out.startswith(b"\xff\xd8")

def test_thumbnail_keeps_unreadable_bytes_with_their_type():
    assert thumbnail_for_analysis(b"garbage") == (b"garbage", "application/octet-stream")
    # a PNG signature Pillow cannot decode stays labelled as PNG
    assert thumbnail_for_analysis(png_bytes(64)) == (png_bytes(64), "image/png")

def test_placeholder_embeds_scene_and_error():
    url = placeholder_svg_data_url("Ninja cat <leaps> over the skyline at dawn, chased by drones", "HTTP 500: " + "x" * 100)
    assert url.startswith("data:image/svg+xml;base64,")
    svg = base64.b64decode(url.split(",", 1)[1]).decode("utf-8")
    assert "Ninja cat leaps over the skyline" in svg
    assert "<leaps>" not in svg
    assert "[Image Unavailable]" in svg
    assert "Error: HTTP 500" in svg
    assert "x" * 60 not in svg
