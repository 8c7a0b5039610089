"""Audio chunk accumulation with size/idle flush policy. Float32 mono."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, List, Optional, Sequence, Union

import numpy as np

from convocue import config

log = logging.getLogger(__name__)

Chunk = Union[np.ndarray, Sequence[float]]


class AudioBuffer:
    """
    Collects audio chunks and hands the concatenation to `on_flush`.

    A flush happens when either
    - the buffered sample count exceeds `threshold_samples`, or
    - no chunk arrives for `idle_seconds`.

    Every flush (and every clear) starts a new generation; an idle timer
    scheduled in an older generation is ignored, so one batch of samples is
    flushed exactly once.

    Must be used from within a running asyncio loop (idle timers use
    `loop.call_later`).
    """

    def __init__(
        self,
        on_flush: Callable[[np.ndarray], Any],
        threshold_samples: int = config.FLUSH_SAMPLE_THRESHOLD,
        idle_seconds: float = config.FLUSH_IDLE_SECONDS,
    ) -> None:
        if threshold_samples <= 0:
            raise ValueError(f"threshold_samples must be > 0, got {threshold_samples}")
        self._on_flush = on_flush
        self.threshold_samples = int(threshold_samples)
        self.idle_seconds = float(idle_seconds)
        self._chunks: List[np.ndarray] = []
        self._count = 0
        self._idle_handle: Optional[asyncio.TimerHandle] = None
        self.generation = 0
        self.flush_count = 0

    @property
    def buffered_samples(self) -> int:
        return self._count

    @property
    def idle_timer_armed(self) -> bool:
        return self._idle_handle is not None

    def append(self, chunk: Chunk) -> int:
        """Add one chunk. Returns the number of samples appended."""
        arr = np.asarray(chunk, dtype=np.float32).reshape(-1)
        if arr.size:
            self._chunks.append(arr)
            self._count += int(arr.size)

        self._cancel_idle()
        if self._count > self.threshold_samples:
            self.flush()
        elif self._count:
            loop = asyncio.get_running_loop()
            self._idle_handle = loop.call_later(self.idle_seconds, self._on_idle, self.generation)
        return int(arr.size)

    def _on_idle(self, generation: int) -> None:
        self._idle_handle = None
        if generation != self.generation:
            return
        self.flush()

    def flush(self) -> Optional[np.ndarray]:
        """Concatenate, clear and forward the buffered samples. No-op when empty."""
        self._cancel_idle()
        if not self._chunks:
            return None

        combined = np.concatenate(self._chunks)
        self._chunks = []
        self._count = 0
        self.generation += 1
        self.flush_count += 1
        log.debug("[AUDIO] flush #%d: %d samples", self.flush_count, combined.size)
        self._on_flush(combined)
        return combined

    def clear(self) -> None:
        """Drop everything without flushing."""
        self._cancel_idle()
        self._chunks = []
        self._count = 0
        self.generation += 1

    def _cancel_idle(self) -> None:
        if self._idle_handle is not None:
            self._idle_handle.cancel()
            self._idle_handle = None
