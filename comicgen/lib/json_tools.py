# comicgen/lib/json_tools.py
import re
from typing import Optional

_THINK_RE = re.compile(r"<think>[\s\S]*?</think>", flags=re.IGNORECASE)
_UNCLOSED_THINK_RE = re.compile(r"^[\s\S]*?</think>", flags=re.IGNORECASE)
_FENCE_RE = re.compile(r"```(?:json)?\s*", flags=re.IGNORECASE)
_TRAILING_OBJ_COMMA_RE = re.compile(r",\s*}")
_TRAILING_ARR_COMMA_RE = re.compile(r",\s*]")
_DASH_RE = re.compile("[—–]")


def strip_reasoning(text: str) -> str:
    """Drop ``<think>...</think>`` blocks emitted by reasoning models."""
    s = _THINK_RE.sub("", text or "")
    # some providers strip the opening tag and only leave the closing one
    if "</think>" in s.lower():
        s = _UNCLOSED_THINK_RE.sub("", s)
    return s.strip()


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text or "").strip()


def extract_first_json(text: str) -> Optional[str]:
    """
    Return the first balanced top-level ``{...}`` span in `text`, or None.

    Braces inside string literals are ignored (backslash escapes honoured).
    A truncated object, where the text ends before depth returns to zero,
    is reported as not found rather than partially recovered.
    """
    if not text:
        return None
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escape = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def repair_trailing_commas(s: str) -> str:
    s = _TRAILING_OBJ_COMMA_RE.sub("}", s)
    return _TRAILING_ARR_COMMA_RE.sub("]", s)


def normalize_dashes(text: Optional[str], replacement: str = " - ") -> Optional[str]:
    """Replace em and en dashes; downstream renderers may not support them."""
    if text is None:
        return None
    return _DASH_RE.sub(replacement, text)
