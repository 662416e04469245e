"""
Map the top-level JSON shapes models actually return onto the canonical
script shape ``{"title", "characters", "spreads": [{"rightPanels", "leftPanels"}]}``.

Accepted variants (see ``ScriptShape``):

* ``{"spreads": [group, ...]}``  canonical
* ``{"pages": [group, ...]}``    pages used as a synonym for spreads
* ``{"panels": [panel, ...]}``   a flat panel list, becomes one spread
* ``[group, ...]``               a bare array of spreads
* ``[panel, ...]``               a bare array of panels, becomes one spread

A *group* is an object carrying ``rightPanels`` / ``leftPanels`` (or a
``panels`` list); a *panel* is an object with a scene, or a bare string.
"""
from enum import Enum
from typing import Any, Dict, List, Optional

from comicgen.logger import get_logger

log = get_logger(__name__)

DEFAULT_TITLE = "Generated Comic"

_GROUP_KEYS = ("rightPanels", "leftPanels", "primary", "secondary", "panels")


class ScriptShape(str, Enum):
    SPREADS = "spreads"
    PAGES = "pages"
    PANELS = "panels"
    GROUP_ARRAY = "group_array"
    PANEL_ARRAY = "panel_array"
    UNKNOWN = "unknown"


def _is_group(item: Any) -> bool:
    return isinstance(item, dict) and any(isinstance(item.get(k), list) for k in _GROUP_KEYS)


def classify_payload(parsed: Any) -> ScriptShape:
    if isinstance(parsed, list):
        if any(_is_group(x) for x in parsed):
            return ScriptShape.GROUP_ARRAY
        return ScriptShape.PANEL_ARRAY
    if not isinstance(parsed, dict):
        return ScriptShape.UNKNOWN
    if isinstance(parsed.get("spreads"), list):
        return ScriptShape.SPREADS
    if isinstance(parsed.get("pages"), list):
        return ScriptShape.PAGES
    if isinstance(parsed.get("panels"), list):
        return ScriptShape.PANELS
    return ScriptShape.UNKNOWN


def _panel(item: Any) -> Optional[Dict[str, Any]]:
    if isinstance(item, str):
        return {"scene": item} if item.strip() else None
    if isinstance(item, dict):
        return item
    return None


def _panels(items: Any) -> List[Dict[str, Any]]:
    if not isinstance(items, list):
        return []
    return [p for p in (_panel(x) for x in items) if p is not None]


def _group(item: Dict[str, Any]) -> Dict[str, Any]:
    right = item.get("rightPanels", item.get("primary"))
    left = item.get("leftPanels", item.get("secondary"))
    if right is None and left is None:
        right = item.get("panels")
    return {"rightPanels": _panels(right), "leftPanels": _panels(left)}


def _groups(items: List[Any]) -> List[Dict[str, Any]]:
    if items and not any(_is_group(x) for x in items):
        # a list of panels where groups were expected
        return [{"rightPanels": _panels(items), "leftPanels": []}]
    out = []
    for x in items:
        if _is_group(x):
            out.append(_group(x))
        else:
            log.warning(f"dropping non-group entry from spreads: {str(x)[:80]}")
    return out


_DESCRIPTION_KEYS = ("description", "visualDescription", "visual_description", "appearance")


def _text(value: Any) -> str:
    """Flatten a roster value models sometimes nest ({"fur": "black"}, ["tall", "red cape"])."""
    if value is None:
        return ""
    if isinstance(value, dict):
        parts = []
        for k, v in value.items():
            v_text = _text(v)
            parts.append(f"{k}: {v_text}" if v_text else str(k))
        return ", ".join(parts)
    if isinstance(value, (list, tuple)):
        return ", ".join(t for t in (_text(v) for v in value) if t)
    return str(value).strip()


def _character(name: Any, description: Any) -> Optional[Dict[str, str]]:
    name_text = _text(name)
    if not name_text:
        return None
    return {"name": name_text, "description": _text(description)}


def _characters(raw: Any) -> List[Dict[str, str]]:
    """
    Roster as a list of {name, description}; accepts a list or a name → description map.
    Entries without a usable name are dropped.
    """
    entries: List[Optional[Dict[str, str]]] = []
    if isinstance(raw, dict):
        entries = [_character(name, desc) for name, desc in raw.items()]
    elif isinstance(raw, list):
        for c in raw:
            if isinstance(c, dict):
                desc = next((c[k] for k in _DESCRIPTION_KEYS if c.get(k) is not None), None)
                entries.append(_character(c.get("name"), desc))
            elif isinstance(c, str):
                name, _, desc = c.partition(":")
                entries.append(_character(name, desc))
            else:
                entries.append(None)
    elif raw is not None:
        log.warning(f"ignoring roster of unexpected type {type(raw).__name__}")

    out = [e for e in entries if e is not None]
    if len(out) < len(entries):
        log.warning(f"dropped {len(entries) - len(out)} roster entries without a usable name")
    return out


def normalize_payload(parsed: Any) -> Optional[Dict[str, Any]]:
    """
    Return the canonical script dict, or None when no panel-group array
    can be found in `parsed`.
    """
    shape = classify_payload(parsed)
    meta: Dict[str, Any] = parsed if isinstance(parsed, dict) else {}

    if shape == ScriptShape.SPREADS:
        spreads = _groups(parsed["spreads"])
    elif shape == ScriptShape.PAGES:
        spreads = _groups(parsed["pages"])
    elif shape == ScriptShape.PANELS:
        spreads = [{"rightPanels": _panels(parsed["panels"]), "leftPanels": []}]
    elif shape == ScriptShape.GROUP_ARRAY:
        spreads = _groups(parsed)
    elif shape == ScriptShape.PANEL_ARRAY:
        spreads = [{"rightPanels": _panels(parsed), "leftPanels": []}]
    else:
        return None

    if shape != ScriptShape.SPREADS:
        log.info(f"normalized script shape '{shape.value}' to spreads")

    title = meta.get("title")
    return {
        "title": title.strip() if isinstance(title, str) and title.strip() else DEFAULT_TITLE,
        "characters": _characters(meta.get("characters")),
        "spreads": spreads,
    }
