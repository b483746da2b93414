# src/sms_scheduler/tasks/task_scheduler.py

from __future__ import annotations

"""
Task scheduler.

A fixed-cadence loop that, on every tick:
- captures one "now",
- selects due tasks (pending, due_at <= now),
- drives each through the delivery executor (sequentially or under a semaphore),
- logs per-task store faults and keeps going.

Only one tick runs at a time. A firing that comes due while a tick is still
running is skipped, not queued, so the same task is never selected twice
concurrently. Stopping lets the in-flight tick finish its sends.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from ..core.errors import StoreFault
from ..core.ports import Sender, TaskRepo
from .task_executor import DeliveryExecutor
from .task_models import Task, TaskStatus
from .task_selector import select_due_tasks

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(slots=True)
class TickReport:
    started_at: float
    selected: int = 0
    sent: int = 0
    failed: int = 0
    faults: int = 0
    error: str | None = None
    task_ids: list[str] = field(default_factory=list)


class TaskScheduler:
    def __init__(
            self,
            repo: TaskRepo,
            sender: Sender,
            *,
            interval_seconds: float = 60.0,
            max_concurrency: int = 1,
            batch_limit: int | None = None,
            clock: Clock = time.time,
    ) -> None:
        self._repo = repo
        self._executor = DeliveryExecutor(repo, sender)
        self._interval = max(0.01, float(interval_seconds))
        self._max_concurrency = max(1, int(max_concurrency))
        self._batch_limit = batch_limit if batch_limit and batch_limit > 0 else None
        self._clock = clock

        self._tick_in_progress = False
        self._stop: asyncio.Event | None = None
        self._stop_requested = False

        self.ticks_run = 0
        self.ticks_skipped = 0
        self.last_report: TickReport | None = None

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def tick_in_progress(self) -> bool:
        return self._tick_in_progress

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    def request_stop(self) -> None:
        """Ask run() to return after the in-flight tick (if any) completes."""
        self._stop_requested = True
        if self._stop is not None:
            self._stop.set()

    # ---- one tick ----

    async def tick(self) -> TickReport | None:
        """
        Run one discovery-and-delivery cycle.

        Returns None (and runs nothing) if another tick is still in progress.
        Never raises for store or sender errors.
        """
        if self._tick_in_progress:
            self.ticks_skipped += 1
            logger.warning("Tick skipped: previous tick still running (skipped=%d)", self.ticks_skipped)
            return None

        self._tick_in_progress = True
        try:
            report = await self._run_tick()
        finally:
            self._tick_in_progress = False

        self.ticks_run += 1
        self.last_report = report
        return report

    async def _run_tick(self) -> TickReport:
        now_ts = float(self._clock())
        report = TickReport(started_at=now_ts)

        try:
            tasks = await asyncio.to_thread(select_due_tasks, self._repo, now_ts, limit=self._batch_limit)
        except Exception as e:
            logger.exception("Due-task selection failed; tick aborted")
            report.error = str(e) or type(e).__name__
            return report

        report.selected = len(tasks)
        report.task_ids = [t.id for t in tasks]
        if not tasks:
            logger.debug("Tick at %.3f: nothing due", now_ts)
            return report

        logger.info("Tick at %.3f: %d task(s) due", now_ts, len(tasks))

        if self._max_concurrency == 1:
            outcomes = [await self._execute_one(t) for t in tasks]
        else:
            sem = asyncio.Semaphore(self._max_concurrency)

            async def bounded(task: Task) -> TaskStatus | None:
                async with sem:
                    return await self._execute_one(task)

            outcomes = await asyncio.gather(*(bounded(t) for t in tasks))

        for outcome in outcomes:
            if outcome is TaskStatus.SENT:
                report.sent += 1
            elif outcome is TaskStatus.FAILED:
                report.failed += 1
            else:
                report.faults += 1

        logger.info(
            "Tick done: selected=%d sent=%d failed=%d faults=%d",
            report.selected,
            report.sent,
            report.failed,
            report.faults,
        )
        return report

    async def _execute_one(self, task: Task) -> TaskStatus | None:
        try:
            return await self._executor.execute(task)
        except StoreFault:
            logger.exception("Store fault while delivering task_id=%s", task.id)
        except Exception:
            logger.exception("Unexpected error while delivering task_id=%s", task.id)
        return None

    # ---- loop ----

    async def _wait(self, timeout: float) -> None:
        assert self._stop is not None
        if timeout <= 0:
            return
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            pass

    async def run(self) -> None:
        """
        Tick forever on a fixed cadence until request_stop().

        Cancelling the coroutine also works; the in-flight tick is still
        allowed to finish before the cancellation propagates.
        """
        self._stop = asyncio.Event()
        if self._stop_requested:
            self._stop.set()

        logger.info(
            "Scheduler started interval=%.1fs concurrency=%d batch_limit=%s",
            self._interval,
            self._max_concurrency,
            self._batch_limit,
        )

        next_fire = time.monotonic()
        try:
            while not self._stop.is_set():
                current = asyncio.ensure_future(self.tick())
                try:
                    await asyncio.shield(current)
                except asyncio.CancelledError:
                    logger.info("Scheduler cancelled; waiting for in-flight tick")
                    await current
                    raise

                next_fire += self._interval
                now = time.monotonic()
                if now >= next_fire:
                    missed = int((now - next_fire) // self._interval) + 1
                    next_fire += missed * self._interval
                    self.ticks_skipped += missed
                    logger.warning("Tick overran the interval; skipped %d firing(s)", missed)

                await self._wait(next_fire - now)
        finally:
            logger.info("Scheduler stopped (ticks=%d skipped=%d)", self.ticks_run, self.ticks_skipped)


async def run_task_scheduler(
        task_store: TaskRepo,
        sender: Sender,
        *,
        interval_seconds: float = 60.0,
        max_concurrency: int = 1,
        batch_limit: int | None = None,
) -> None:
    """
    Convenience wrapper: build a TaskScheduler and run it.

    To stop the scheduler, cancel the coroutine/task.
    """
    scheduler = TaskScheduler(
        task_store,
        sender,
        interval_seconds=interval_seconds,
        max_concurrency=max_concurrency,
        batch_limit=batch_limit,
    )
    await scheduler.run()
