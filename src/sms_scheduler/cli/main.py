# src/sms_scheduler/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then starts:
- the task scheduler in a background thread (optional),
- the console REPL in the main thread (optional).
"""

from __future__ import annotations

import logging
import signal
import threading

from ..cli.bootstrap import create_initial_state
from ..cli.scheduler_runner import start_scheduler_in_background
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)

# Long enough for an in-flight tick to finish its sends.
SHUTDOWN_JOIN_TIMEOUT_S = 60.0


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/sms_scheduler")
    setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s...", getattr(settings, "app_name", "sms-scheduler"))

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings)

    runner = start_scheduler_in_background(state)

    # Use an Event so main can wait without a busy while-loop.
    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        signal.signal(signal.SIGINT, _handle_signal)
        signal.signal(signal.SIGTERM, _handle_signal)
    except (ValueError, OSError, AttributeError):
        # Not in the main thread, or the platform lacks SIGTERM.
        logger.debug("Signal handlers not installed.", exc_info=True)

    try:
        if settings.console_enabled:
            run_console_loop(state)
            stop_main.set()
        else:
            logger.info("Console disabled. Running scheduler only. Press Ctrl+C to stop.")
            stop_main.wait()

    finally:
        if runner is not None:
            runner.stop()
            runner.join(timeout=SHUTDOWN_JOIN_TIMEOUT_S)
            if runner.thread.is_alive():
                logger.warning("Scheduler thread did not stop within %.0fs.", SHUTDOWN_JOIN_TIMEOUT_S)

        state.task_store.close()
        logger.info("Bye.")


if __name__ == "__main__":
    main()
