"""Shared fakes for ConvoCue tests."""

import asyncio
from typing import List

import numpy as np
import pytest

from convocue.errors import ServiceLoadError
from convocue.models import SuggestionResult
from convocue.providers.base import LLMService, STTService


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedRandom:
    """random.Random stand-in returning a fixed value (or a script of values)."""

    def __init__(self, *values: float):
        self.values = list(values) or [0.0]
        self.calls = 0

    def random(self) -> float:
        value = self.values[min(self.calls, len(self.values) - 1)]
        self.calls += 1
        return value

    def choice(self, seq):
        return seq[0]


class FakeSTT(STTService):
    name = "fake-stt"

    def __init__(self, text: str = "hello there", fail_load: bool = False):
        self.text = text
        self.fail_load = fail_load
        self.requests: List[np.ndarray] = []

    async def load(self):
        if self.fail_load:
            raise ServiceLoadError("stt model missing")

    async def transcribe(self, samples):
        self.requests.append(samples)
        return self.text


class ParkedSTT(STTService):
    """Each transcription parks on a future the test resolves explicitly."""

    name = "parked-stt"

    def __init__(self):
        self._pending: List[asyncio.Future] = []

    async def transcribe(self, samples):
        fut = asyncio.get_running_loop().create_future()
        self._pending.append(fut)
        return await fut

    def respond(self, index: int, text: str) -> None:
        self._pending[index].set_result(text)


class FakeLLM(LLMService):
    """Each call parks on a future the test resolves explicitly."""

    name = "fake-llm"

    def __init__(self, fail_load: bool = False):
        self.fail_load = fail_load
        self.suggest_calls = []
        self.summary_calls = []
        self._pending: List[asyncio.Future] = []

    async def load(self):
        if self.fail_load:
            raise ServiceLoadError("llm model missing")

    async def suggest(self, messages, context, instruction):
        fut = asyncio.get_running_loop().create_future()
        self.suggest_calls.append((messages, context, instruction))
        self._pending.append(fut)
        return await fut

    async def summarize(self, transcript, stats):
        fut = asyncio.get_running_loop().create_future()
        self.summary_calls.append((transcript, stats))
        self._pending.append(fut)
        return await fut

    def respond(self, index: int, value) -> None:
        if isinstance(value, str):
            value = SuggestionResult(suggestion_text=value, provider=self.name)
        self._pending[index].set_result(value)

    def respond_summary(self, index: int, text: str) -> None:
        self._pending[index].set_result(text)

    def fail(self, index: int, error: Exception) -> None:
        self._pending[index].set_exception(error)


async def settle(rounds: int = 5) -> None:
    """Let scheduled tasks and callbacks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def clock():
    return FakeClock()
