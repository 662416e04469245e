import json
from typing import Any, Dict, List

import openai
from pydantic import ValidationError

from comicgen.config import Config
from comicgen.errors import ScriptCountMismatch, ScriptStructureError, TextBackendError
from comicgen.lib.json_tools import (
    extract_first_json,
    normalize_dashes,
    repair_trailing_commas,
    strip_code_fences,
    strip_reasoning,
)
from comicgen.logger import get_logger
from .normalize import normalize_payload
from .prompt import (
    INVALID_JSON_CORRECTION,
    MISSING_SPREADS_CORRECTION,
    NO_JSON_CORRECTION,
    build_script_system_prompt,
    build_script_user_prompt,
    panel_count_correction,
)
from .schemas import Character, PanelGroup, PanelScript, ScriptDocument

log = get_logger(__name__)


class Conversation:
    """
    Ordered chat log sent on every attempt. Corrections are appended as an
    assistant turn (the rejected output) followed by a user turn (the fix
    request), so the model sees its own mistake on the next attempt.
    """

    def __init__(self, system: str, user: str):
        self.messages: List[Dict[str, str]] = [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ]

    def add_correction(self, rejected_output: str, instruction: str) -> None:
        self.messages.append({"role": "assistant", "content": rejected_output or "(empty response)"})
        self.messages.append({"role": "user", "content": instruction})

    def as_messages(self) -> List[Dict[str, str]]:
        return [dict(m) for m in self.messages]

    def __len__(self) -> int:
        return len(self.messages)


class _ScriptDefect(Exception):
    """A structurally unusable response: carries the corrective turn to send back."""

    def __init__(self, correction: str, reason: str):
        super().__init__(reason)
        self.correction = correction
        self.reason = reason


# -------- backend call --------

def _describe_backend_error(e: openai.APIError) -> str:
    if isinstance(e, openai.APIStatusError):
        body = (e.response.text or "")[:300] if e.response is not None else ""
        return f"Text API Error: {e.status_code} - {body or e.message}"
    return f"Text API Error: {e.message}"

async def _complete(client: Any, conversation: Conversation, settings: Config) -> str:
    try:
        resp = await client.chat.completions.create(
            model=settings.text_model,
            messages=conversation.as_messages(),
            max_tokens=settings.text_max_tokens,
            temperature=settings.text_temperature,
        )
    except openai.APIError as e:
        raise TextBackendError(_describe_backend_error(e)) from e
    return (resp.choices[0].message.content or "").strip()


# -------- parsing --------

def _parse_script(text: str) -> ScriptDocument:
    span = extract_first_json(text)
    if span is None:
        raise _ScriptDefect(NO_JSON_CORRECTION, "model did not return a JSON object")

    try:
        parsed = json.loads(repair_trailing_commas(span))
    except json.JSONDecodeError as e:
        raise _ScriptDefect(INVALID_JSON_CORRECTION.format(error=e.msg), f"invalid JSON: {e}")

    normalized = normalize_payload(parsed)
    if normalized is None:
        raise _ScriptDefect(MISSING_SPREADS_CORRECTION, "JSON missing 'spreads' array")

    try:
        return ScriptDocument.model_validate(normalized)
    except ValidationError as e:
        raise _ScriptDefect(MISSING_SPREADS_CORRECTION, f"script failed validation: {e.error_count()} error(s)")


def _clean_panel(p: PanelScript) -> PanelScript:
    return PanelScript(
        scene=normalize_dashes(p.scene, "-"),
        narration=normalize_dashes(p.narration),
        dialogue=normalize_dashes(p.dialogue),
    )

def normalize_document_dashes(doc: ScriptDocument) -> ScriptDocument:
    """Copy of `doc` without em/en dashes in any title, roster, scene, narration or dialogue text."""
    return ScriptDocument(
        title=normalize_dashes(doc.title),
        characters=[Character(name=normalize_dashes(c.name), description=normalize_dashes(c.description)) for c in doc.characters],
        spreads=[
            PanelGroup(
                primary=[_clean_panel(p) for p in g.primary],
                secondary=[_clean_panel(p) for p in g.secondary],
            )
            for g in doc.spreads
        ],
    )


# -------- public entry --------

async def generate_script(
    story: str,
    style: str,
    panel_count: int,
    *,
    client: Any,
    settings: Config,
) -> ScriptDocument:
    """
    Ask the text model for a script with exactly `panel_count` panels.

    Structural failures are corrected in-context and retried up to
    `settings.script_max_retries` times, then raise ScriptStructureError.
    A panel-count mismatch on the final attempt is accepted and logged.
    """
    conversation = Conversation(
        build_script_system_prompt(story=story, style=style, panel_count=panel_count),
        build_script_user_prompt(panel_count),
    )
    max_retries = max(0, settings.script_max_retries)
    total = max_retries + 1

    for attempt in range(total):
        last = attempt == max_retries
        log.info(f"[script] attempt {attempt + 1}/{total} for {panel_count} panels")

        try:
            raw = await _complete(client, conversation, settings)
        except TextBackendError as e:
            log.error(f"[script] attempt {attempt + 1} failed: {e}")
            if last:
                raise
            continue

        text = strip_code_fences(strip_reasoning(raw))
        try:
            document = _parse_script(text)
        except _ScriptDefect as defect:
            log.warning(f"[script] attempt {attempt + 1} rejected: {defect.reason}. Content: {text[:200]!r}")
            if last:
                raise ScriptStructureError(f"Failed to generate comic script: {defect.reason}.")
            conversation.add_correction(text, defect.correction)
            continue

        actual = document.panel_count
        if actual != panel_count:
            if not last:
                log.warning(f"[script] mismatch! requested {panel_count}, got {actual}. Retrying...")
                conversation.add_correction(text, panel_count_correction(panel_count, actual))
                continue
            log.error(f"[script] {ScriptCountMismatch(panel_count, actual)}")

        log.info(f"[script] accepted '{document.title}' with {actual} panels, {len(document.characters)} character(s)")
        return normalize_document_dashes(document)

    raise ScriptStructureError("Script generation exhausted its attempts.")
