"""Tests for the volume-based speaker heuristic."""

import pytest

from conftest import ScriptedRandom
from convocue.speaker import SpeakerAttribution


def test_guess_uses_closest_average():
    heuristic = SpeakerAttribution(rng=ScriptedRandom(0.99))
    assert heuristic.guess(0.2) == "me"
    assert heuristic.guess(0.04) == "them"


def test_defers_to_guess_before_three_manual_toggles():
    heuristic = SpeakerAttribution(rng=ScriptedRandom(0.99))
    assert heuristic.current == "them"
    assert heuristic.observe(0.3) == "me"
    assert heuristic.manual_toggles == 0


def test_after_three_toggles_override_is_probabilistic():
    heuristic = SpeakerAttribution(rng=ScriptedRandom(0.5, 0.1))
    for _ in range(3):
        heuristic.toggle()
    assert heuristic.current == "me"  # them -> me -> them -> me
    assert heuristic.manual_toggles == 3

    # guess "them" rejected with draw 0.5 >= 0.3
    assert heuristic.observe(0.0) == "me"
    # accepted with draw 0.1 < 0.3
    assert heuristic.observe(0.0) == "them"


def test_average_updated_only_on_agreement():
    heuristic = SpeakerAttribution(rng=ScriptedRandom(0.99))
    for _ in range(3):
        heuristic.toggle()
    before = dict(heuristic.averages)

    heuristic.observe(0.0)  # guess them, active stays me: no update
    assert heuristic.averages == before

    heuristic.observe(0.25)  # guess me, matches
    assert heuristic.averages["me"] == pytest.approx(0.15 * 0.9 + 0.25 * 0.1)
    assert heuristic.averages["them"] == before["them"]


def test_override_probability_configurable():
    heuristic = SpeakerAttribution(rng=ScriptedRandom(0.5), free_toggles=0, override_probability=0.6)
    assert heuristic.observe(0.3) == "me"


def test_heuristic_flip_does_not_count_as_manual():
    heuristic = SpeakerAttribution(rng=ScriptedRandom(0.99))
    heuristic.observe(0.3)
    heuristic.assign("them")
    heuristic.toggle(manual=False)
    assert heuristic.manual_toggles == 0


def test_reset():
    heuristic = SpeakerAttribution(rng=ScriptedRandom(0.0))
    heuristic.toggle()
    heuristic.observe(0.5)
    heuristic.reset()
    assert heuristic.current == "them"
    assert heuristic.manual_toggles == 0
    assert heuristic.averages == {"me": 0.15, "them": 0.05}
