"""
intent.py

Deterministic intent classification for transcribed utterances.

Each intent label owns a list of keywords/phrases (case-insensitive,
word-boundary matched). A match adds the label's weight; multi-word phrases
add 1.5x. Nuance rules then adjust several labels at once (hedging,
"sorry but", negated complaints, intensifiers), followed by fixed bonuses for
first-person reflection and questions.

All tables are compiled once into an immutable IntentTables value. Pass a
different IntentTables to IntentClassifier to swap the weights.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Sequence, Tuple

from convocue.config import INTENT_THRESHOLD


GENERAL = "general"
PHRASE_MULTIPLIER = 1.5
REFLECTION_BONUS = 1.0
QUESTION_BONUS = 0.8
# Mixed sentiment damping (applied when both are positive)
MIXED_POSITIVE_SCALE = 0.7
MIXED_CONFLICT_SCALE = 0.8


DEFAULT_KEYWORDS: Dict[str, Tuple[float, Sequence[str]]] = {
    "social": (1.0, [
        "hello", "hi", "how are you", "nice to meet", "weather", "party", "weekend",
        "name", "thanks", "cool", "awesome", "fun", "plans", "hobbies", "family",
        "vacation", "trip", "recommend", "favorite", "dinner", "lunch", "drink",
    ]),
    "professional": (1.2, [
        "project", "meeting", "deadline", "report", "client", "strategy", "goal",
        "agenda", "update", "feedback", "workflow", "resource", "budget", "roadmap",
        "stakeholder", "quarterly", "deliverable", "action item", "sync", "call",
        "colleague", "manager", "director", "presentation",
    ]),
    "conflict": (1.5, [
        "disagree", "wrong", "mistake", "fail", "issue", "problem", "not true",
        "actually", "unacceptable", "frustrated", "no way", "impossible",
        "refuse", "blame", "error", "delay", "broken", "unfair", "uncomfortable",
        "nonsense", "ridiculous", "offended", "annoyed", "hate", "stupid", "stop",
    ]),
    "empathy": (1.3, [
        "understand", "feel", "difficult", "hard", "support", "help", "sorry to hear",
        "bummer", "that sucks", "tough", "exhausting", "sorry", "apologize",
        "listen", "there for you", "hear you", "valid", "mean a lot", "appreciate",
        "supportive", "kind", "brave", "tired", "drained", "burned out", "rough",
    ]),
    "positive": (0.8, [
        "great", "awesome", "excellent", "wonderful", "cool", "love", "happy",
        "excited", "good", "perfect", "nice", "thanks", "thank you", "appreciate",
        "fantastic", "brilliant", "glad", "celebrate", "success", "win",
    ]),
}


@dataclass(frozen=True)
class NuanceRule:
    """A regex that adds to and/or scales several intent scores at once.

    `scale` entries keyed by "*" apply to every label.
    """
    name: str
    pattern: re.Pattern
    add: Mapping[str, float]
    scale: Mapping[str, float]


def _rule(name: str, regex: str, add: Optional[Dict[str, float]] = None,
          scale: Optional[Dict[str, float]] = None) -> NuanceRule:
    return NuanceRule(
        name=name,
        pattern=re.compile(regex, re.IGNORECASE),
        add=MappingProxyType(dict(add or {})),
        scale=MappingProxyType(dict(scale or {})),
    )


DEFAULT_NUANCES: Tuple[NuanceRule, ...] = (
    _rule("hedging", r"\b(not sure|maybe|perhaps|i guess|kind of|sort of)\b",
          add={"social": 0.5}, scale={"conflict": 0.8}),
    _rule("apology_but", r"\b(sorry,? but|i hear you,? but)\b",
          add={"conflict": 2.5, "empathy": -1.0}),
    _rule("negated_complaint",
          r"\b(not a problem|no problem|no issue|not wrong|not an issue|"
          r"(?:don't|do not) hate|not (?:upset|annoyed|frustrated))\b",
          add={"conflict": -1.5, "positive": 1.0, "empathy": 0.5}),
    _rule("intensifier", r"\b(really|very|so|extremely|totally|absolutely)\b",
          scale={"*": 1.2}),
)

_REFLECTION_RE = re.compile(r"\bi (feel|think|believe)\b", re.IGNORECASE)


@dataclass(frozen=True)
class IntentTables:
    """Compiled keyword patterns and nuance rules."""
    keywords: Mapping[str, Tuple[Tuple[re.Pattern, float], ...]]
    nuances: Tuple[NuanceRule, ...]
    threshold: float = INTENT_THRESHOLD

    @property
    def labels(self) -> Tuple[str, ...]:
        return tuple(self.keywords.keys())


def build_tables(
    keywords: Mapping[str, Tuple[float, Sequence[str]]] = DEFAULT_KEYWORDS,
    nuances: Sequence[NuanceRule] = DEFAULT_NUANCES,
    threshold: float = INTENT_THRESHOLD,
) -> IntentTables:
    """Compile keyword lists into (pattern, weight) pairs, once."""
    compiled = {}
    for label, (weight, words) in keywords.items():
        entries = []
        for kw in words:
            multiplier = PHRASE_MULTIPLIER if " " in kw.strip() else 1.0
            pattern = re.compile(r"\b" + re.escape(kw.strip()) + r"\b", re.IGNORECASE)
            entries.append((pattern, weight * multiplier))
        compiled[label] = tuple(entries)
    return IntentTables(
        keywords=MappingProxyType(compiled),
        nuances=tuple(nuances),
        threshold=threshold,
    )


DEFAULT_TABLES = build_tables()


@dataclass(frozen=True)
class IntentResult:
    label: str
    score: float
    scores: Mapping[str, float]


class IntentClassifier:
    """Pure keyword + nuance classifier. Same text and tables, same result."""

    def __init__(self, tables: IntentTables = DEFAULT_TABLES):
        self.tables = tables

    def score(self, text: str) -> Dict[str, float]:
        """Return the per-label score vector for one utterance."""
        scores = {label: 0.0 for label in self.tables.labels}
        if not text:
            return scores

        for label, entries in self.tables.keywords.items():
            for pattern, weight in entries:
                if pattern.search(text):
                    scores[label] += weight

        for rule in self.tables.nuances:
            if not rule.pattern.search(text):
                continue
            for label, delta in rule.add.items():
                if label in scores:
                    scores[label] += delta
            for label, factor in rule.scale.items():
                targets = scores.keys() if label == "*" else [label]
                for target in targets:
                    if target in scores:
                        scores[target] *= factor

        # Mixed sentiment is ambiguous
        if scores.get("positive", 0.0) > 0 and scores.get("conflict", 0.0) > 0:
            scores["positive"] *= MIXED_POSITIVE_SCALE
            scores["conflict"] *= MIXED_CONFLICT_SCALE

        if "empathy" in scores and _REFLECTION_RE.search(text):
            scores["empathy"] += REFLECTION_BONUS

        if "social" in scores and "?" in text:
            scores["social"] += QUESTION_BONUS

        return scores

    def classify(self, text: str) -> IntentResult:
        scores = self.score(text)
        best_label = GENERAL
        best_score = self.tables.threshold
        tied = False
        for label, value in scores.items():
            if value > best_score:
                best_label, best_score, tied = label, value, False
            elif value == best_score and best_label != GENERAL:
                tied = True

        if tied:
            return IntentResult(GENERAL, best_score, MappingProxyType(scores))
        return IntentResult(best_label, best_score, MappingProxyType(scores))


_DEFAULT_CLASSIFIER = IntentClassifier()


def detect_intent(text: str) -> str:
    """Classify with the default tables and return just the label."""
    return _DEFAULT_CLASSIFIER.classify(text).label


# ---------------------------------------------------------------------------
# Suggestion eligibility
# ---------------------------------------------------------------------------

# Acknowledgments only; refusals ("no", "nope") carry intent and stay eligible
BACKCHANNELS = frozenset({
    "yeah", "yes", "yep", "yup", "ok", "okay", "sure", "alright", "cool",
    "got it", "gotcha", "mhm", "mm-hm", "uh huh", "hmm", "i see",
})

_TERMINAL_PUNCT = ".,!?;:… \t\n"


def _clean(text: str) -> str:
    return (text or "").strip().rstrip(_TERMINAL_PUNCT).strip().lower()


def should_generate_suggestion(text: str) -> bool:
    """Decide whether an utterance is worth a suggestion at all."""
    if not text:
        return False
    if "?" in text:
        return True

    cleaned = _clean(text)
    if len(cleaned) < 3:
        return False
    if cleaned in BACKCHANNELS:
        return False

    words = cleaned.split()
    if len(words) < 3 and words[0].strip(",.!") in BACKCHANNELS:
        return False
    return True


# Canned replies for the most common openers; shown without an LLM call
PRECOMPUTED_SUGGESTIONS: Mapping[str, Tuple[str, str]] = MappingProxyType({
    "hello": ("social", "Hi there! How are you doing today?"),
    "hi": ("social", "Hello! Nice to meet you."),
    "hey": ("social", "Hey! Good to see you."),
    "how are you": ("social", "I'm doing well, thank you! How about yourself?"),
    "nice to meet you": ("social", "Nice to meet you too! What brings you here?"),
})


def precomputed_suggestion(text: str) -> Optional[Tuple[str, str]]:
    """Return (intent, suggestion) for a known opener, else None."""
    return PRECOMPUTED_SUGGESTIONS.get(_clean(text))
