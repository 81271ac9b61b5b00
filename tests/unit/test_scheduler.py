"""Unit tests for the sliding window scheduler."""

import asyncio
import time

import pytest

from squadstats.core.config.models import AdmissionMode
from squadstats.core.errors import QueueFullError, SchedulerClosedError
from squadstats.core.fetch.scheduler import ScheduledTask, WindowedScheduler

WINDOW = 0.2


@pytest.fixture
def admissions():
    return []


def make_scheduler(admissions, **kwargs) -> WindowedScheduler:
    kwargs.setdefault("max_per_window", 3)
    kwargs.setdefault("window_seconds", WINDOW)
    kwargs.setdefault("safety_margin", 0.005)

    def record(task: ScheduledTask) -> None:
        admissions.append((task.label, task.admitted_at))

    return WindowedScheduler(on_admit=record, **kwargs)


async def noop():
    return None


class TestAdmissionWindow:
    @pytest.mark.asyncio
    async def test_six_tasks_three_per_window(self, admissions):
        scheduler = make_scheduler(admissions)

        futures = [scheduler.submit(noop, label=str(i)) for i in range(6)]
        await asyncio.gather(*futures)

        times = [t for _, t in admissions]
        assert len(times) == 6
        # first three start right away
        assert times[2] - times[0] < WINDOW / 2
        # the rest only once the first admissions have left the window
        for i in range(3, 6):
            assert times[i] - times[0] >= WINDOW

    @pytest.mark.asyncio
    async def test_no_trailing_window_exceeds_cap(self, admissions):
        scheduler = make_scheduler(admissions, max_per_window=2)

        await asyncio.gather(*(scheduler.submit(noop) for _ in range(7)))

        times = [t for _, t in admissions]
        for i in range(len(times) - 2):
            assert times[i + 2] - times[i] >= WINDOW

    @pytest.mark.asyncio
    async def test_safety_margin_added_to_wait(self, admissions):
        scheduler = make_scheduler(admissions, max_per_window=1, safety_margin=0.05)

        await asyncio.gather(scheduler.submit(noop), scheduler.submit(noop))

        times = [t for _, t in admissions]
        assert times[1] - times[0] >= WINDOW + 0.04
        assert scheduler.stats()["window_waits"] >= 1

    @pytest.mark.asyncio
    async def test_admits_in_submission_order(self, admissions):
        scheduler = make_scheduler(admissions, max_per_window=2)
        started = []

        def op(i):
            async def run():
                started.append(i)
                return i
            return run

        results = await asyncio.gather(*(scheduler.submit(op(i), label=str(i)) for i in range(5)))

        assert started == [0, 1, 2, 3, 4]
        assert results == [0, 1, 2, 3, 4]
        assert [label for label, _ in admissions] == ["0", "1", "2", "3", "4"]


class TestSubmit:
    @pytest.mark.asyncio
    async def test_submit_never_runs_synchronously(self, admissions):
        scheduler = make_scheduler(admissions)
        calls = []

        async def op():
            calls.append(1)
            return "done"

        future = scheduler.submit(op)
        assert calls == []
        assert scheduler.queue_length == 1

        assert await future == "done"
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_accepts_plain_callables(self, admissions):
        scheduler = make_scheduler(admissions)
        assert await scheduler.submit(lambda: 7) == 7

    @pytest.mark.asyncio
    async def test_failure_is_forwarded_and_isolated(self, admissions):
        scheduler = make_scheduler(admissions)

        async def boom():
            raise ValueError("boom")

        async def ok():
            return "ok"

        f1 = scheduler.submit(ok)
        f2 = scheduler.submit(boom)
        f3 = scheduler.submit(ok)

        results = await asyncio.gather(f1, f2, f3, return_exceptions=True)

        assert results[0] == "ok"
        assert isinstance(results[1], ValueError)
        assert results[2] == "ok"
        assert scheduler.stats()["failed_total"] == 1
        assert scheduler.stats()["admitted_total"] == 3

    @pytest.mark.asyncio
    async def test_failing_admit_hook_does_not_stall_queue(self):
        def broken_hook(task: ScheduledTask) -> None:
            raise RuntimeError("hook exploded")

        scheduler = WindowedScheduler(
            max_per_window=2,
            window_seconds=WINDOW,
            safety_margin=0.005,
            on_admit=broken_hook,
        )

        futures = [scheduler.submit(lambda i=i: i, label=str(i)) for i in range(3)]
        results = await asyncio.wait_for(asyncio.gather(*futures), timeout=2)

        assert results == [0, 1, 2]
        assert scheduler.stats()["admitted_total"] == 3
        await scheduler.join()
        assert not scheduler.is_draining

    @pytest.mark.asyncio
    async def test_single_drain_extended_by_later_submissions(self, admissions):
        scheduler = make_scheduler(admissions, max_per_window=1)

        first = scheduler.submit(noop)
        second = scheduler.submit(noop)
        drain = scheduler._drain_task
        assert drain is not None

        await asyncio.sleep(0.01)
        # first admitted, drain now waiting for the window to open
        assert scheduler.is_draining
        third = scheduler.submit(noop)
        assert scheduler._drain_task is drain

        await asyncio.gather(first, second, third)
        assert scheduler._drain_task is drain
        assert len(admissions) == 3

    @pytest.mark.asyncio
    async def test_drain_restarts_after_idle(self, admissions):
        scheduler = make_scheduler(admissions)

        await scheduler.submit(noop)
        await scheduler.join()
        assert not scheduler.is_draining

        assert await scheduler.submit(lambda: "again") == "again"

    @pytest.mark.asyncio
    async def test_join_waits_for_drain_in_concurrent_mode(self, admissions):
        scheduler = make_scheduler(admissions, mode=AdmissionMode.CONCURRENT)

        futures = [scheduler.submit(noop) for _ in range(3)]
        await scheduler.join()

        assert all(f.done() for f in futures)
        assert not scheduler.is_draining
        assert scheduler.in_flight == 0

    @pytest.mark.asyncio
    async def test_queue_bound_signals_backpressure(self, admissions):
        scheduler = make_scheduler(admissions, max_queue_size=2)

        f1 = scheduler.submit(noop)
        f2 = scheduler.submit(noop)
        with pytest.raises(QueueFullError) as exc_info:
            scheduler.submit(noop)

        assert exc_info.value.max_queue_size == 2
        await asyncio.gather(f1, f2)

    @pytest.mark.asyncio
    async def test_unbounded_queue_is_observable(self, admissions):
        scheduler = make_scheduler(admissions, max_per_window=1, window_seconds=10)

        futures = [scheduler.submit(noop) for _ in range(50)]
        assert scheduler.queue_length == 50

        await asyncio.sleep(0.01)
        assert scheduler.queue_length == 49

        await scheduler.aclose()
        await asyncio.gather(*futures, return_exceptions=True)

    def test_rejects_invalid_limits(self):
        with pytest.raises(ValueError):
            WindowedScheduler(max_per_window=0)
        with pytest.raises(ValueError):
            WindowedScheduler(window_seconds=0)
        with pytest.raises(ValueError):
            WindowedScheduler(max_queue_size=0)


class TestAdmissionModes:
    @staticmethod
    async def _run_three_slow_tasks(mode: AdmissionMode) -> tuple[float, int]:
        scheduler = WindowedScheduler(max_per_window=3, window_seconds=1.0, mode=mode)
        active = 0
        peak = 0

        async def slow():
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.1)
            active -= 1

        start = time.monotonic()
        await asyncio.gather(*(scheduler.submit(slow) for _ in range(3)))
        return time.monotonic() - start, peak

    @pytest.mark.asyncio
    async def test_sequential_awaits_each_task(self):
        elapsed, peak = await self._run_three_slow_tasks(AdmissionMode.SEQUENTIAL)

        assert peak == 1
        assert elapsed >= 0.29

    @pytest.mark.asyncio
    async def test_concurrent_runs_admitted_tasks_together(self):
        elapsed, peak = await self._run_three_slow_tasks(AdmissionMode.CONCURRENT)

        assert peak == 3
        assert elapsed < 0.25

    @pytest.mark.asyncio
    async def test_concurrent_mode_still_respects_window(self, admissions):
        scheduler = make_scheduler(admissions, mode=AdmissionMode.CONCURRENT)

        async def slow():
            await asyncio.sleep(0.05)

        await asyncio.gather(*(scheduler.submit(slow) for _ in range(6)))
        await scheduler.join()

        times = [t for _, t in admissions]
        for i in range(3, 6):
            assert times[i] - times[i - 3] >= WINDOW
        assert scheduler.in_flight == 0


class TestShutdown:
    @pytest.mark.asyncio
    async def test_close_fails_queued_tasks(self, admissions):
        scheduler = make_scheduler(admissions, max_per_window=1, window_seconds=10)

        first = scheduler.submit(lambda: "first")
        pending = [scheduler.submit(noop) for _ in range(2)]
        assert await first == "first"

        await scheduler.aclose()

        for future in pending:
            with pytest.raises(SchedulerClosedError):
                await future
        assert scheduler.queue_length == 0

    @pytest.mark.asyncio
    async def test_submit_after_close_raises(self, admissions):
        scheduler = make_scheduler(admissions)
        await scheduler.aclose()

        assert scheduler.closed
        with pytest.raises(SchedulerClosedError):
            scheduler.submit(noop)

    @pytest.mark.asyncio
    async def test_close_lets_admitted_task_finish(self, admissions):
        scheduler = make_scheduler(admissions)
        release = asyncio.Event()

        async def slow():
            await release.wait()
            return "finished"

        future = scheduler.submit(slow)
        await asyncio.sleep(0.01)
        assert scheduler.in_flight == 1

        asyncio.get_running_loop().call_later(0.05, release.set)
        await scheduler.aclose()

        assert future.done()
        assert future.result() == "finished"

    @pytest.mark.asyncio
    async def test_async_context_manager_closes(self, admissions):
        async with make_scheduler(admissions) as scheduler:
            assert await scheduler.submit(lambda: 1) == 1
        assert scheduler.closed

    @pytest.mark.asyncio
    async def test_join_waits_for_all_work(self, admissions):
        scheduler = make_scheduler(admissions, max_per_window=2)
        futures = [scheduler.submit(noop) for _ in range(4)]

        await scheduler.join()

        assert all(f.done() for f in futures)
        assert scheduler.queue_length == 0
        assert scheduler.in_flight == 0
