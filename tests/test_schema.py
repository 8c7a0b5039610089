"""Tests for LLM response parsing."""

import pytest

from convocue.errors import MalformedResponseError
from convocue.schema import (
    FALLBACK_SUGGESTION,
    extract_suggestion_text,
    parse_suggestion_response,
    try_parse_json,
)


def test_plain_json():
    result = parse_suggestion_response(
        '{"intent": "conflict", "suggestion": "Find common ground", "speakerToggle": false}',
        provider="ollama",
    )
    assert result.suggestion_text == "Find common ground"
    assert result.intent_label == "conflict"
    assert result.speaker_toggle_hint is False
    assert result.provider == "ollama"


def test_json_wrapped_in_prose():
    obj = try_parse_json('Sure! Here you go:\n{"suggestion": "Ask about weekend"}\nHope it helps.')
    assert obj == {"suggestion": "Ask about weekend"}


def test_missing_closing_brace_repaired():
    obj = try_parse_json('{"intent": "social", "suggestion": "Ask about weekend"')
    assert obj["suggestion"] == "Ask about weekend"


@pytest.mark.parametrize("text", [None, "", "   ", "no json here", "[1, 2, 3]"])
def test_unparseable_raises(text):
    with pytest.raises(MalformedResponseError):
        try_parse_json(text)


def test_string_toggle_and_unknown_intent():
    result = parse_suggestion_response(
        '{"intent": "Sarcasm", "suggestion": "Answer directly", "speakerToggle": "true"}',
        provider="gemini",
        fallback_intent="PROFESSIONAL",
    )
    assert result.intent_label == "professional"
    assert result.speaker_toggle_hint is True


def test_empty_suggestion_uses_fallback():
    result = parse_suggestion_response('{"intent": "social"}', provider="ollama")
    assert result.suggestion_text == FALLBACK_SUGGESTION


def test_malformed_output_degrades_to_text():
    result = parse_suggestion_response(
        'intent: conflict, "suggestion": "Stay calm" and more',
        provider="ollama",
        fallback_intent="conflict",
    )
    assert result.suggestion_text == "Stay calm"
    assert result.intent_label == "conflict"


def test_extract_first_fragment():
    assert extract_suggestion_text("Ask about their trip, then share yours") == "Ask about their trip"
    assert extract_suggestion_text("") == FALLBACK_SUGGESTION
