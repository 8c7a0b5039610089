"""Tests for the audio buffer flush policy."""

import asyncio

import numpy as np
import pytest

from convocue.audio_buffer import AudioBuffer


def test_flush_when_threshold_exceeded():
    flushed = []

    async def scenario():
        buf = AudioBuffer(flushed.append, threshold_samples=100, idle_seconds=10)
        buf.append(np.zeros(60, dtype=np.float32))
        assert flushed == []
        buf.append(np.ones(50, dtype=np.float32))
        assert buf.buffered_samples == 0
        assert buf.idle_timer_armed is False

    asyncio.run(scenario())

    assert len(flushed) == 1
    assert flushed[0].dtype == np.float32
    assert flushed[0].size == 110
    assert flushed[0][-1] == 1.0


def test_exactly_threshold_does_not_flush():
    flushed = []

    async def scenario():
        buf = AudioBuffer(flushed.append, threshold_samples=100, idle_seconds=10)
        buf.append([0.0] * 100)
        assert flushed == []
        buf.clear()

    asyncio.run(scenario())


def test_idle_flush():
    flushed = []

    async def scenario():
        buf = AudioBuffer(flushed.append, threshold_samples=10_000, idle_seconds=0.05)
        buf.append([0.1, 0.2, 0.3])
        await asyncio.sleep(0.02)
        buf.append([0.4])  # resets the idle timer
        await asyncio.sleep(0.03)
        assert flushed == []
        await asyncio.sleep(0.1)

    asyncio.run(scenario())

    assert len(flushed) == 1
    np.testing.assert_allclose(flushed[0], [0.1, 0.2, 0.3, 0.4], rtol=1e-6)


def test_each_batch_flushed_once():
    flushed = []

    async def scenario():
        buf = AudioBuffer(flushed.append, threshold_samples=4, idle_seconds=0.02)
        buf.append([0.0, 0.0, 0.0])
        buf.append([0.0, 0.0])  # size flush
        await asyncio.sleep(0.06)  # a stale idle timer must not re-flush
        assert buf.flush() is None
        assert buf.generation == 1

    asyncio.run(scenario())
    assert len(flushed) == 1


def test_clear_drops_samples_and_timer():
    flushed = []

    async def scenario():
        buf = AudioBuffer(flushed.append, threshold_samples=1000, idle_seconds=0.02)
        buf.append([0.5] * 10)
        buf.clear()
        assert buf.idle_timer_armed is False
        await asyncio.sleep(0.05)

    asyncio.run(scenario())
    assert flushed == []


def test_empty_chunk_does_not_arm_timer():
    async def scenario():
        buf = AudioBuffer(lambda s: None, threshold_samples=10, idle_seconds=0.02)
        assert buf.append([]) == 0
        assert buf.idle_timer_armed is False

    asyncio.run(scenario())


def test_threshold_must_be_positive():
    with pytest.raises(ValueError):
        AudioBuffer(lambda s: None, threshold_samples=0)
