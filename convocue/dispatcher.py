"""Async task dispatcher for STT and LLM requests.

Issues requests as asyncio tasks, tracks their state, and enforces the
ordering policy: for each task kind only the response to the most recently
issued request may touch visible state. Older responses are marked stale and
dropped without error. A reset advances the generation counter, which makes
every outstanding response stale.

Kinds listed in `settle_order_kinds` (STT by default) are ordered by
resolution instead: a response is stale only once a newer task of the same
kind has already settled, so in-order responses are all kept.

There is no hard abort of an in-flight request. The soft timeout only fires a
placeholder callback; the request stays live and may still resolve.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Iterable, Optional

from convocue import config
from convocue.errors import RequestFailureError, RequestTimeoutError
from convocue.models import Task, TaskKind, TaskStatus

log = logging.getLogger(__name__)

ResultCallback = Callable[[Task, Any], None]
ErrorCallback = Callable[[Task, Exception], None]
TimeoutCallback = Callable[[Task, RequestTimeoutError], None]


class TaskDispatcher:
    """Owns the task id counter, soft-timeout timers and the generation counter.

    Usage:
        dispatcher = TaskDispatcher()
        task = dispatcher.dispatch(
            TaskKind.LLM_SUGGEST,
            lambda: llm.suggest(messages, context, instruction),
            on_result=show_suggestion,
            on_error=clear_suggestion,
            on_soft_timeout=show_placeholder,
        )
    """

    def __init__(
        self,
        soft_timeout: float = config.SOFT_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        settle_order_kinds: Iterable[TaskKind] = (TaskKind.STT,),
    ):
        self.soft_timeout = soft_timeout
        self._clock = clock
        self._next_id: int = 1
        self._latest: dict[TaskKind, int] = {}
        self._settled: dict[TaskKind, int] = {}
        self.settle_order_kinds = frozenset(settle_order_kinds)
        self._generation: int = 0
        self._tasks: dict[int, Task] = {}
        self._timers: dict[int, asyncio.TimerHandle] = {}
        self._active: set[asyncio.Task] = set()

    @property
    def generation(self) -> int:
        return self._generation

    def dispatch(
        self,
        kind: TaskKind,
        request: Callable[[], Awaitable[Any]],
        on_result: ResultCallback,
        on_error: Optional[ErrorCallback] = None,
        on_soft_timeout: Optional[TimeoutCallback] = None,
    ) -> Task:
        """Issue a request and return its Task (status PENDING).

        Must be called from within a running event loop.
        """
        loop = asyncio.get_running_loop()

        task = Task(
            id=self._next_id,
            kind=kind,
            generation=self._generation,
            issued_at=self._clock(),
        )
        self._next_id += 1
        self._latest[kind] = task.id
        self._tasks[task.id] = task

        # Strong reference so the task is not garbage collected mid-flight
        asyncio_task = loop.create_task(
            self._run(task, request, on_result, on_error),
            name=f"convocue-{kind.value}-{task.id}",
        )
        self._active.add(asyncio_task)
        asyncio_task.add_done_callback(self._active.discard)

        if on_soft_timeout is not None and self.soft_timeout > 0:
            self._timers[task.id] = loop.call_later(
                self.soft_timeout, self._fire_soft_timeout, task, on_soft_timeout
            )

        log.debug("[DISPATCH] %s task %d issued (gen %d)", kind.value, task.id, task.generation)
        return task

    def is_stale(self, task: Task) -> bool:
        if task.generation != self._generation:
            return True
        if task.kind in self.settle_order_kinds:
            return task.id < self._settled.get(task.kind, 0)
        return task.id < self._latest.get(task.kind, 0)

    async def _run(
        self,
        task: Task,
        request: Callable[[], Awaitable[Any]],
        on_result: ResultCallback,
        on_error: Optional[ErrorCallback],
    ) -> None:
        try:
            result = await request()
        except asyncio.CancelledError:
            self._clear_timer(task.id)
            self._tasks.pop(task.id, None)
            if task.is_open:
                task.status = TaskStatus.STALE
            raise
        except Exception as e:
            self._settle(task, error=e, on_error=on_error)
        else:
            self._settle(task, result=result, on_result=on_result)

    def _settle(
        self,
        task: Task,
        result: Any = None,
        error: Optional[Exception] = None,
        on_result: Optional[ResultCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._clear_timer(task.id)
        self._tasks.pop(task.id, None)

        if self.is_stale(task):
            task.status = TaskStatus.STALE
            log.debug("[DISPATCH] %s task %d stale, discarded", task.kind.value, task.id)
            return
        self._settled[task.kind] = task.id

        if error is not None:
            task.status = TaskStatus.FAILED
            task.error = str(error) or type(error).__name__
            log.warning("[DISPATCH] %s task %d failed: %s", task.kind.value, task.id, task.error)
            if on_error is not None:
                if not isinstance(error, RequestFailureError):
                    error = RequestFailureError(task.error)
                self._invoke(on_error, task, error)
            return

        task.status = TaskStatus.RESOLVED
        duration = self._clock() - task.issued_at
        log.debug("[DISPATCH] %s task %d resolved in %.2fs", task.kind.value, task.id, duration)
        self._invoke(on_result, task, result)

    def _fire_soft_timeout(self, task: Task, callback: TimeoutCallback) -> None:
        self._timers.pop(task.id, None)
        if task.status != TaskStatus.PENDING or self.is_stale(task):
            return
        task.status = TaskStatus.TIMED_OUT
        err = RequestTimeoutError(
            f"{task.kind.value} task {task.id} still pending after {self.soft_timeout:.1f}s"
        )
        log.info("[DISPATCH] %s", err)
        self._invoke(callback, task, err)

    def _invoke(self, callback: Callable, *args) -> None:
        """Run a callback; a bad callback never breaks the dispatcher."""
        try:
            callback(*args)
        except Exception:
            log.exception("[DISPATCH] callback error")

    def _clear_timer(self, task_id: int) -> None:
        handle = self._timers.pop(task_id, None)
        if handle is not None:
            handle.cancel()

    # -- Query methods --

    def pending(self, kind: Optional[TaskKind] = None) -> list[Task]:
        """Open tasks, oldest first."""
        return [
            t for t in sorted(self._tasks.values(), key=lambda t: t.id)
            if t.is_open and (kind is None or t.kind == kind)
        ]

    @property
    def timer_count(self) -> int:
        return len(self._timers)

    # -- Cleanup --

    def reset(self) -> None:
        """Invalidate everything outstanding. In-flight requests keep running
        but their responses will be discarded."""
        for task_id in list(self._timers):
            self._clear_timer(task_id)
        for task in self._tasks.values():
            if task.is_open:
                task.status = TaskStatus.STALE
        self._tasks.clear()
        self._generation += 1
        log.info("[DISPATCH] reset, generation %d", self._generation)

    async def shutdown(self) -> None:
        """Reset and cancel the underlying asyncio tasks."""
        self.reset()
        active = list(self._active)
        for t in active:
            t.cancel()
        if active:
            await asyncio.gather(*active, return_exceptions=True)
