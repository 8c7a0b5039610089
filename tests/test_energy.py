"""Tests for the social energy model."""

import math
import random

import pytest

from convocue.energy import SocialEnergyModel
from convocue.personas import get_persona


@pytest.fixture
def persona():
    return get_persona("professional")  # drain multiplier 1.0


def test_initial_state():
    energy = SocialEnergyModel()
    assert energy.value == 100
    assert energy.is_exhausted is False
    assert energy.last_drain_amount == 0


def test_deduct_formula(persona):
    energy = SocialEnergyModel(base_rate=2.0)
    value = energy.deduct("that's wrong", "conflict", persona)
    # 2.0 * conflict 2.0 * persona 1.0 * sensitivity 1.0
    assert energy.last_drain_amount == pytest.approx(4.0)
    assert value == pytest.approx(96.0)


def test_persona_and_sensitivity_multiply():
    energy = SocialEnergyModel(base_rate=1.0)
    energy.set_sensitivity("high")
    energy.deduct("hey", "social", get_persona("anxiety"))
    assert energy.last_drain_amount == pytest.approx(1.0 * 0.8 * 1.5 * 1.5)


def test_unknown_intent_uses_general(persona):
    energy = SocialEnergyModel(base_rate=1.0)
    energy.deduct("?", "mystery", persona)
    assert energy.last_drain_amount == pytest.approx(1.0)


def test_unknown_sensitivity_rejected():
    with pytest.raises(ValueError):
        SocialEnergyModel().set_sensitivity("extreme")


def test_clamped_at_zero(persona):
    energy = SocialEnergyModel(base_rate=60.0)
    energy.deduct("a", "conflict", persona)
    assert energy.value == 0
    assert energy.is_exhausted is True


def test_recharge_clamped(persona):
    energy = SocialEnergyModel(base_rate=10.0)
    energy.deduct("a", "general", persona)
    assert energy.recharge(50) == 100
    assert energy.recharge(-20) == 100
    assert energy.recharge(float("nan")) == 100


def test_pause_only_suppresses_passive(persona):
    energy = SocialEnergyModel(base_rate=1.0)
    energy.pause()
    assert energy.deduct_passive("general", persona) is None
    assert energy.value == 100
    energy.deduct("still counts", "general", persona)
    assert energy.value == pytest.approx(99.0)
    energy.resume()
    assert energy.deduct_passive("general", persona) == pytest.approx(98.0)


def test_reset_restores_full(persona):
    energy = SocialEnergyModel(base_rate=30.0)
    energy.set_sensitivity("low")
    energy.deduct("a", "conflict", persona)
    energy.reset()
    assert energy.value == 100
    assert energy.sensitivity == 0.5


def test_value_always_within_bounds(persona):
    rng = random.Random(1234)
    energy = SocialEnergyModel(base_rate=5.0)
    intents = ["social", "professional", "conflict", "empathy", "positive", "general", "??"]
    for _ in range(2000):
        if rng.random() < 0.6:
            energy.deduct("x", rng.choice(intents), persona)
        else:
            energy.recharge(rng.choice([rng.uniform(-50, 150), math.inf, -math.inf, 0.0]))
        assert 0.0 <= energy.value <= 100.0


def test_negative_base_rate_never_raises_value(persona):
    energy = SocialEnergyModel(base_rate=-5.0)
    energy.set_value(50)
    energy.deduct("x", "conflict", persona)
    assert energy.value == 50
