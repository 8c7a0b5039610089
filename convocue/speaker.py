"""Volume-based speaker attribution."""

from __future__ import annotations

import random
from typing import Optional

from convocue import config
from convocue.models import Speaker


class SpeakerAttribution:
    """Guesses who is talking from chunk loudness.

    Keeps one exponential moving average per speaker. The closer average is
    the guess. A differing guess flips the active speaker unconditionally for
    the first `free_toggles` manual toggles, then only with
    `override_probability`. Only the active speaker's average is updated, and
    only when the guess agrees with it.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        initial_speaker: Speaker = "them",
        me_volume: float = config.INITIAL_ME_VOLUME,
        them_volume: float = config.INITIAL_THEM_VOLUME,
        ema_weight: float = config.VOLUME_EMA_WEIGHT,
        free_toggles: int = config.FREE_OVERRIDE_TOGGLES,
        override_probability: float = config.GUESS_OVERRIDE_PROBABILITY,
    ):
        self._rng = rng or random.Random()
        self._initial = (initial_speaker, me_volume, them_volume)
        self.ema_weight = ema_weight
        self.free_toggles = free_toggles
        self.override_probability = override_probability
        self.current: Speaker = initial_speaker
        self.averages = {"me": me_volume, "them": them_volume}
        self.manual_toggles = 0

    def guess(self, rms: float) -> Speaker:
        dist_me = abs(rms - self.averages["me"])
        dist_them = abs(rms - self.averages["them"])
        return "me" if dist_me < dist_them else "them"

    def observe(self, rms: float) -> Speaker:
        """Feed one loudness sample and return the (possibly new) active speaker."""
        guessed = self.guess(rms)
        if guessed != self.current:
            if self.manual_toggles < self.free_toggles or self._rng.random() < self.override_probability:
                self.current = guessed

        if guessed == self.current:
            w = self.ema_weight
            self.averages[self.current] = self.averages[self.current] * (1 - w) + rms * w
        return self.current

    def toggle(self, manual: bool = True) -> Speaker:
        """Flip the active speaker. Manual toggles count toward the override budget."""
        self.current = "me" if self.current == "them" else "them"
        if manual:
            self.manual_toggles += 1
        return self.current

    def assign(self, speaker: Speaker) -> Speaker:
        """Set the active speaker without counting a manual toggle."""
        self.current = speaker
        return self.current

    def reset(self) -> None:
        speaker, me_volume, them_volume = self._initial
        self.current = speaker
        self.averages = {"me": me_volume, "them": them_volume}
        self.manual_toggles = 0
