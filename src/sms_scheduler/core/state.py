# src/sms_scheduler/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .ports import Sender

if TYPE_CHECKING:
    from ..cli.scheduler_runner import SchedulerBackgroundRunner
    from ..tasks.task_store import TaskStore


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    task_store: TaskStore
    sender: Sender

    # Set by the CLI once the background scheduler is running.
    scheduler_runner: SchedulerBackgroundRunner | None = None
