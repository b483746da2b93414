# src/sms_scheduler/cli/scheduler_runner.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from dataclasses import dataclass

from ..core.state import AppState
from ..tasks.task_scheduler import TaskScheduler, TickReport

logger = logging.getLogger(__name__)


@dataclass
class SchedulerBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    scheduler: TaskScheduler

    def stop(self) -> None:
        """Request a graceful stop: the in-flight tick finishes, no new tick starts."""
        try:
            self.loop.call_soon_threadsafe(self.scheduler.request_stop)
        except Exception:
            logger.debug("Failed to signal scheduler stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)

    def trigger_tick(self, timeout: float | None = 60.0) -> TickReport | None:
        """
        Run one tick now on the scheduler's loop (from another thread).

        Returns None if a tick was already in progress.
        """
        fut = asyncio.run_coroutine_threadsafe(self.scheduler.tick(), self.loop)
        return fut.result(timeout=timeout)


def build_scheduler(state: AppState) -> TaskScheduler:
    settings = state.settings
    return TaskScheduler(
        state.task_store,
        state.sender,
        interval_seconds=float(getattr(settings, "tick_interval_seconds", 60.0)),
        max_concurrency=int(getattr(settings, "max_concurrency", 1)),
        batch_limit=int(getattr(settings, "batch_limit", 0)) or None,
    )


def start_scheduler_in_background(state: AppState) -> SchedulerBackgroundRunner | None:
    """
    Start the task scheduler in a background thread (so console REPL can run in parallel).

    The console REPL is blocking (input()), the scheduler is async and wants its own event loop.
    """
    if not getattr(state.settings, "scheduler_enabled", True):
        logger.info("Scheduler disabled, not starting.")
        return None

    scheduler = build_scheduler(state)
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        holder["loop"] = loop
        ready.set()

        try:
            loop.run_until_complete(scheduler.run())
        except Exception:
            logger.exception("Scheduler loop crashed.")
        finally:
            with contextlib.suppress(Exception):
                loop.run_until_complete(loop.shutdown_default_executor())
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="sms-scheduler", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    if not isinstance(loop, asyncio.AbstractEventLoop):
        logger.error("Scheduler thread did not initialize properly.")
        return None

    logger.info("Scheduler background thread started.")
    runner_handle = SchedulerBackgroundRunner(thread=t, loop=loop, scheduler=scheduler)
    state.scheduler_runner = runner_handle
    return runner_handle
