from __future__ import annotations
from typing import Any, Dict, Optional
import json
import logging
import re

from convocue.errors import MalformedResponseError
from convocue.models import SuggestionResult

log = logging.getLogger(__name__)

INTENT_LABELS = ("social", "professional", "conflict", "empathy", "positive", "general")
FALLBACK_SUGGESTION = "Continue conversation"

_SUGGESTION_FIELD_RE = re.compile(r'"(?:suggestion|suggestionText|suggestion_text)"\s*:\s*"([^"]*)')


def try_parse_json(text: str) -> Dict[str, Any]:
    """
    Best-effort JSON extraction (handles occasional extra text around JSON).

    Raises:
        MalformedResponseError: no JSON object could be decoded
    """
    if text is None:
        raise MalformedResponseError("Empty response")
    s = text.strip()
    if not s:
        raise MalformedResponseError("Empty response")

    # small models sometimes stop before the closing brace
    if s.startswith("{") and not s.endswith("}"):
        last = s.rfind("}")
        s = s[:last + 1] if last != -1 else s + "}"

    candidates = [s]
    start = s.find("{")
    end = s.rfind("}")
    if start != -1 and end != -1 and end > start:
        candidates.append(s[start:end + 1])

    for candidate in candidates:
        try:
            obj = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(obj, dict):
            return obj
    raise MalformedResponseError("No JSON object found", raw=text[:800])


def extract_suggestion_text(text: str) -> str:
    """
    Salvage a suggestion from unparseable output: the "suggestion" field if it
    is visible, else the first comma-separated fragment with braces removed.
    """
    s = (text or "").strip()
    m = _SUGGESTION_FIELD_RE.search(s)
    if m and m.group(1).strip():
        return m.group(1).strip()
    fragment = re.sub(r"[{}]", "", s).split(",")[0].strip().strip('"').strip()
    return fragment or FALLBACK_SUGGESTION


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


def normalize_suggestion(obj: Dict[str, Any], provider: str, fallback_intent: Optional[str] = None) -> SuggestionResult:
    """
    Ensure a stable shape so the session never depends on provider-specific formatting.
    """
    text = ""
    for key in ("suggestion", "suggestionText", "suggestion_text"):
        if obj.get(key):
            text = str(obj[key]).strip()
            break

    intent = str(obj.get("intent") or obj.get("intentLabel") or "").strip().lower()
    if intent not in INTENT_LABELS:
        intent = (fallback_intent or "general").lower()

    return SuggestionResult(
        suggestion_text=text or FALLBACK_SUGGESTION,
        intent_label=intent,
        speaker_toggle_hint=_as_bool(obj.get("speakerToggle", obj.get("speakerToggleHint", False))),
        provider=provider,
    )


def parse_suggestion_response(text: str, provider: str, fallback_intent: Optional[str] = None) -> SuggestionResult:
    """Parse a raw completion. Malformed output degrades to text extraction, never raises."""
    try:
        obj = try_parse_json(text)
    except MalformedResponseError as e:
        log.info("[SCHEMA] %s from %s, falling back to text extraction", e, provider)
        return SuggestionResult(
            suggestion_text=extract_suggestion_text(text),
            intent_label=(fallback_intent or "general").lower(),
            provider=provider,
        )
    return normalize_suggestion(obj, provider, fallback_intent)
