"""Tests for the keyword/nuance intent classifier and suggestion eligibility."""

import pytest

from convocue.intent import (
    DEFAULT_TABLES,
    IntentClassifier,
    build_tables,
    detect_intent,
    precomputed_suggestion,
    should_generate_suggestion,
)


@pytest.fixture
def classifier():
    return IntentClassifier()


class TestClassify:

    def test_question_is_social(self, classifier):
        result = classifier.classify("How are you?")
        # "how are you" phrase (1.0 * 1.5) plus question bonus
        assert result.scores["social"] == pytest.approx(1.5 + 0.8)
        assert result.label == "social"

    def test_disagreement_is_conflict(self, classifier):
        result = classifier.classify("I disagree, that's wrong")
        assert result.scores["conflict"] == pytest.approx(3.0)
        assert result.label == "conflict"

    def test_deterministic(self, classifier):
        text = "Honestly I think the project deadline is really unfair, sorry but no way."
        first = classifier.classify(text)
        for _ in range(5):
            again = classifier.classify(text)
            assert again.label == first.label
            assert dict(again.scores) == dict(first.scores)
        other = IntentClassifier(DEFAULT_TABLES).classify(text)
        assert other.label == first.label
        assert dict(other.scores) == dict(first.scores)

    def test_word_boundaries(self, classifier):
        # "hi" must not match inside "this", "call" not inside "recall"
        scores = classifier.score("this is what i recall")
        assert scores["social"] == 0
        assert scores["professional"] == 0

    def test_case_insensitive(self, classifier):
        assert classifier.classify("THE CLIENT MEETING DEADLINE").label == "professional"

    def test_below_threshold_is_general(self, classifier):
        assert classifier.classify("we went to the store").label == "general"
        assert classifier.classify("").label == "general"

    def test_tie_defaults_to_general(self):
        tables = build_tables(keywords={"a": (1.0, ["apple"]), "b": (1.0, ["banana"])}, nuances=())
        result = IntentClassifier(tables).classify("apple banana")
        assert result.label == "general"

    def test_reflection_bonus(self, classifier):
        scores = classifier.score("I believe we can go")
        assert scores["empathy"] == pytest.approx(1.0)
        assert classifier.classify("I believe we can go").label == "empathy"

    def test_apology_but_shifts_to_conflict(self, classifier):
        scores = classifier.score("sorry but that will not happen")
        # "sorry" keyword 1.3 minus 1.0, conflict +2.5
        assert scores["empathy"] == pytest.approx(0.3)
        assert scores["conflict"] == pytest.approx(2.5)

    def test_negated_complaint(self, classifier):
        scores = classifier.score("no problem at all")
        # "problem" 1.5 - 1.5; positive gets +1.0
        assert scores["conflict"] == pytest.approx(0.0)
        assert scores["positive"] == pytest.approx(1.0)
        assert classifier.classify("no problem at all").label == "positive"

    def test_mixed_sentiment_damping(self, classifier):
        scores = classifier.score("great job but the report is wrong")
        assert scores["positive"] == pytest.approx(0.8 * 0.7)
        assert scores["conflict"] == pytest.approx(1.5 * 0.8)

    def test_intensifier_scales_all(self, classifier):
        plain = classifier.score("the budget")
        loud = classifier.score("the budget extremely")
        assert loud["professional"] == pytest.approx(plain["professional"] * 1.2)

    def test_hedging_softens(self, classifier):
        scores = classifier.score("maybe the plan is wrong")
        assert scores["social"] == pytest.approx(0.5)
        assert scores["conflict"] == pytest.approx(1.5 * 0.8)

    def test_detect_intent_helper(self):
        assert detect_intent("I disagree, that's wrong") == "conflict"


class TestShouldGenerateSuggestion:

    @pytest.mark.parametrize("text", ["", "a", "ok", "hm.", "no!", "  .", "yo"])
    def test_short_text_is_filtered(self, text):
        assert should_generate_suggestion(text) is False

    def test_question_always_eligible(self):
        assert should_generate_suggestion("?") is True
        assert should_generate_suggestion("ok?") is True

    @pytest.mark.parametrize("text", ["yeah", "Okay.", "Got it!", "uh huh"])
    def test_backchannel_filtered(self, text):
        assert should_generate_suggestion(text) is False

    def test_short_backchannel_led_filtered(self):
        assert should_generate_suggestion("yeah sure") is False
        assert should_generate_suggestion("yeah, that's a fair point") is True

    @pytest.mark.parametrize("text", ["No way.", "Totally unacceptable.", "No, stop.", "Right, whatever"])
    def test_short_pushback_is_eligible(self, text):
        assert should_generate_suggestion(text) is True

    def test_short_refusal_classified_as_conflict(self, classifier):
        assert classifier.classify("No way.").label == "conflict"
        assert should_generate_suggestion("No way.") is True

    def test_regular_sentence(self):
        assert should_generate_suggestion("The client moved the deadline again") is True


def test_precomputed_openers():
    assert precomputed_suggestion("Hello!") == ("social", "Hi there! How are you doing today?")
    assert precomputed_suggestion("hello world") is None
