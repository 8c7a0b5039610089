"""Social energy ("battery") simulation."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Mapping, Optional

from convocue import config
from convocue.models import Persona

log = logging.getLogger(__name__)


def _clamp(value: float) -> float:
    return max(0.0, min(config.INITIAL_ENERGY, value))


@dataclass
class SocialEnergyState:
    value: float = config.INITIAL_ENERGY
    sensitivity: float = config.SENSITIVITY_LEVELS[config.DEFAULT_SENSITIVITY]
    paused: bool = False
    last_drain_amount: float = 0.0


class SocialEnergyModel:
    """A single value in [0, 100] drained by utterances and recharged on demand.

    Usage:
        energy = SocialEnergyModel()
        energy.deduct("that's wrong", "conflict", persona)
        if energy.is_exhausted: ...
    """

    def __init__(
        self,
        base_rate: float = config.ENERGY_BASE_RATE,
        intent_multipliers: Optional[Mapping[str, float]] = None,
        exhausted_threshold: float = config.EXHAUSTED_THRESHOLD,
    ):
        self.base_rate = base_rate
        self.intent_multipliers = dict(intent_multipliers or config.INTENT_DRAIN_MULTIPLIERS)
        self.exhausted_threshold = exhausted_threshold
        self.state = SocialEnergyState()

    @property
    def value(self) -> float:
        return self.state.value

    @property
    def sensitivity(self) -> float:
        return self.state.sensitivity

    @property
    def paused(self) -> bool:
        return self.state.paused

    @property
    def last_drain_amount(self) -> float:
        return self.state.last_drain_amount

    @property
    def is_exhausted(self) -> bool:
        return self.state.value < self.exhausted_threshold

    def set_sensitivity(self, level: str) -> float:
        """Set sensitivity by level name ("low", "normal", "high").

        Raises:
            ValueError: If level is not recognized
        """
        try:
            self.state.sensitivity = config.SENSITIVITY_LEVELS[level.lower()]
        except KeyError:
            raise ValueError(
                f"Unknown sensitivity '{level}'. Valid: {', '.join(config.SENSITIVITY_LEVELS)}"
            ) from None
        return self.state.sensitivity

    def drain_amount(self, intent: str, persona: Persona) -> float:
        multiplier = self.intent_multipliers.get(intent, self.intent_multipliers.get("general", 1.0))
        amount = self.base_rate * multiplier * persona.drain_rate_multiplier * self.state.sensitivity
        if not math.isfinite(amount) or amount < 0:
            return 0.0
        return amount

    def deduct(self, text: str, intent: str, persona: Persona) -> float:
        """Drain energy for one utterance and return the new value.

        Applies while paused: only passive/silence drains are suppressed.
        """
        amount = self.drain_amount(intent, persona)
        self.state.value = _clamp(self.state.value - amount)
        self.state.last_drain_amount = amount
        log.debug("[ENERGY] -%.3f for %s (%d chars) -> %.2f", amount, intent, len(text or ""), self.state.value)
        return self.state.value

    def deduct_passive(self, intent: str, persona: Persona) -> Optional[float]:
        """Silence-triggered drain. Returns None when suppressed by pause."""
        if self.state.paused:
            return None
        return self.deduct("...", intent, persona)

    def recharge(self, amount: float) -> float:
        if not math.isfinite(amount) or amount <= 0:
            return self.state.value
        self.state.value = _clamp(self.state.value + amount)
        return self.state.value

    def pause(self) -> None:
        self.state.paused = True

    def resume(self) -> None:
        self.state.paused = False

    def toggle_pause(self) -> bool:
        self.state.paused = not self.state.paused
        return self.state.paused

    def set_value(self, value: float) -> float:
        if math.isfinite(value):
            self.state.value = _clamp(value)
        return self.state.value

    def reset(self) -> None:
        """Restore full energy. Sensitivity and pause are operator settings and survive."""
        self.state.value = config.INITIAL_ENERGY
        self.state.last_drain_amount = 0.0
