"""
Sliding window request scheduler.

Admits at most ``max_per_window`` tasks in any trailing window of
``window_seconds``, queuing the rest in FIFO order. A single drain loop
per scheduler owns the admission timestamps; submissions made while it
runs simply extend its queue.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar, Union

from squadstats.core.config.models import AdmissionMode
from squadstats.core.errors import QueueFullError, SchedulerClosedError
from squadstats.core.logging import get_logger

logger = get_logger("scheduler")

T = TypeVar("T")

Operation = Callable[[], Union[Awaitable[T], T]]


@dataclass
class ScheduledTask:
    """A deferred operation and the future that receives its outcome."""

    operation: Operation[Any]
    future: asyncio.Future[Any]
    label: str | None
    submitted_at: float
    admitted_at: float | None = None


class WindowedScheduler:
    """Sliding window admission control for outbound requests.

    Unlike a fixed per-second bucket, the sliding window never lets
    ``2 * max_per_window`` requests through around a bucket boundary.

    In ``SEQUENTIAL`` mode the drain loop waits for each admitted task to
    finish before admitting the next, so throughput is also bounded by
    task latency. In ``CONCURRENT`` mode admitted tasks run side by side
    and only the window limits how fast they start.

    Usage:
        scheduler = WindowedScheduler(max_per_window=3, window_seconds=1.0)
        result = await scheduler.submit(lambda: client.fetch_player("x"))
    """

    def __init__(
        self,
        max_per_window: int = 3,
        window_seconds: float = 1.0,
        safety_margin: float = 0.01,
        mode: AdmissionMode = AdmissionMode.SEQUENTIAL,
        max_queue_size: int | None = None,
        clock: Callable[[], float] = time.monotonic,
        on_admit: Callable[[ScheduledTask], None] | None = None,
    ):
        """Initialize scheduler.

        Args:
            max_per_window: Max admissions in any trailing window
            window_seconds: Window length in seconds
            safety_margin: Seconds added to every window wait
            mode: Sequential or concurrent execution of admitted tasks
            max_queue_size: Pending task bound; None means unbounded
            clock: Monotonic time source in seconds
            on_admit: Called with each task at the moment it is admitted
        """
        if max_per_window < 1:
            raise ValueError("max_per_window must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if max_queue_size is not None and max_queue_size < 1:
            raise ValueError("max_queue_size must be >= 1")

        self.max_per_window = max_per_window
        self.window_seconds = window_seconds
        self.safety_margin = safety_margin
        self.mode = AdmissionMode(mode)
        self.max_queue_size = max_queue_size
        self._clock = clock
        self._on_admit = on_admit

        self._queue: deque[ScheduledTask] = deque()
        self._admitted: deque[float] = deque()
        self._drain_task: asyncio.Task[None] | None = None
        self._running: set[asyncio.Task[None]] = set()
        self._idle = asyncio.Event()
        self._idle.set()
        self._closed = False

        self._admitted_total = 0
        self._failed_total = 0
        self._window_waits = 0

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def submit(self, operation: Operation[T], label: str | None = None) -> asyncio.Future[T]:
        """Queue an operation and return a future for its outcome.

        The operation never runs inside this call, even when the queue is
        empty; the drain loop is the only place tasks are admitted.

        Args:
            operation: Zero-argument callable returning a value or awaitable
            label: Name used in log records (e.g. the cache key)

        Returns:
            Future resolved with the result or the raised exception

        Raises:
            SchedulerClosedError: If the scheduler was closed
            QueueFullError: If the pending queue is at max_queue_size
        """
        if self._closed:
            raise SchedulerClosedError("Scheduler is closed")
        if self.max_queue_size is not None and len(self._queue) >= self.max_queue_size:
            raise QueueFullError(
                f"Request queue is full ({self.max_queue_size} pending)",
                max_queue_size=self.max_queue_size,
            )

        loop = asyncio.get_running_loop()
        future: asyncio.Future[T] = loop.create_future()
        self._queue.append(
            ScheduledTask(
                operation=operation,
                future=future,
                label=label,
                submitted_at=self._clock(),
            )
        )
        self._idle.clear()

        if self._drain_task is None or self._drain_task.done():
            self._drain_task = loop.create_task(self._drain(), name="scheduler-drain")

        return future

    @property
    def queue_length(self) -> int:
        """Number of tasks waiting for admission."""
        return len(self._queue)

    @property
    def in_flight(self) -> int:
        """Number of admitted tasks that have not finished."""
        return len(self._running)

    @property
    def is_draining(self) -> bool:
        return self._drain_task is not None and not self._drain_task.done()

    @property
    def closed(self) -> bool:
        return self._closed

    async def join(self) -> None:
        """Wait until the queue is empty, no task is in flight and the drain
        loop has exited."""
        while True:
            await self._idle.wait()
            drain = self._drain_task
            if drain is None or drain.done():
                return
            try:
                await asyncio.shield(drain)
            except asyncio.CancelledError:
                if not drain.cancelled():
                    raise

    async def aclose(self) -> None:
        """Stop admitting work.

        Queued tasks fail with SchedulerClosedError. Tasks already admitted
        are awaited, never cancelled.
        """
        self._closed = True

        drain, self._drain_task = self._drain_task, None
        if drain is not None and not drain.done():
            drain.cancel()
            try:
                await drain
            except asyncio.CancelledError:
                pass

        while self._queue:
            task = self._queue.popleft()
            if not task.future.done():
                task.future.set_exception(SchedulerClosedError("Scheduler closed before admission"))

        if self._running:
            await asyncio.gather(*list(self._running), return_exceptions=True)

        self._update_idle()

    async def __aenter__(self) -> "WindowedScheduler":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    def stats(self) -> dict[str, Any]:
        """Get scheduler statistics."""
        return {
            "mode": self.mode.value,
            "max_per_window": self.max_per_window,
            "window_seconds": self.window_seconds,
            "queue_length": self.queue_length,
            "in_flight": self.in_flight,
            "admissions_in_window": len(self._admitted),
            "admitted_total": self._admitted_total,
            "failed_total": self._failed_total,
            "window_waits": self._window_waits,
        }

    # -------------------------------------------------------------------------
    # Drain loop
    # -------------------------------------------------------------------------

    async def _drain(self) -> None:
        try:
            while self._queue:
                now = self._clock()

                while self._admitted and now - self._admitted[0] >= self.window_seconds:
                    self._admitted.popleft()

                if len(self._admitted) >= self.max_per_window:
                    wait_time = self.window_seconds - (now - self._admitted[0])
                    self._window_waits += 1
                    logger.debug(
                        "Window full, waiting %.3fs (%d queued)",
                        wait_time,
                        len(self._queue),
                        extra={"wait_seconds": wait_time},
                    )
                    await asyncio.sleep(wait_time + self.safety_margin)
                    continue

                task = self._queue.popleft()
                self._admitted.append(now)
                task.admitted_at = now
                self._admitted_total += 1
                if self._on_admit is not None:
                    try:
                        self._on_admit(task)
                    except Exception as exc:
                        logger.warning(
                            "Admission hook failed: %s",
                            exc,
                            extra={"label": task.label} if task.label else None,
                        )

                runner = asyncio.get_running_loop().create_task(self._run(task))
                self._running.add(runner)
                runner.add_done_callback(self._task_done)

                if self.mode is AdmissionMode.SEQUENTIAL:
                    # shield: closing the drain must not cancel an admitted task
                    try:
                        await asyncio.shield(runner)
                    except asyncio.CancelledError:
                        if not runner.cancelled():
                            raise
        finally:
            self._update_idle()

    async def _run(self, task: ScheduledTask) -> None:
        try:
            result = task.operation()
            if inspect.isawaitable(result):
                result = await result
        except asyncio.CancelledError:
            if not task.future.done():
                task.future.cancel()
            raise
        except Exception as exc:
            self._failed_total += 1
            logger.debug(
                "Scheduled operation failed: %s",
                exc,
                extra={"label": task.label} if task.label else None,
            )
            if not task.future.done():
                task.future.set_exception(exc)
        else:
            if not task.future.done():
                task.future.set_result(result)

    def _task_done(self, runner: asyncio.Task[None]) -> None:
        self._running.discard(runner)
        self._update_idle()

    def _update_idle(self) -> None:
        if not self._queue and not self._running:
            self._idle.set()
