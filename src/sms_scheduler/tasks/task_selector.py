# src/sms_scheduler/tasks/task_selector.py

from __future__ import annotations

import logging

from ..core.ports import TaskRepo
from .task_models import Task, TaskStatus

logger = logging.getLogger(__name__)


def is_due(task: Task, now_ts: float) -> bool:
    """A task is due when it is still pending and its due time has passed."""
    return task.status is TaskStatus.PENDING and task.due_at <= now_ts


def select_due_tasks(repo: TaskRepo, now_ts: float, *, limit: int | None = None) -> list[Task]:
    """
    Return the tasks eligible for a delivery attempt at `now_ts`.

    The same `now_ts` is used for the store query and the re-check below, so
    tasks sharing a due time are treated identically within one tick.
    """
    rows = repo.list_due_tasks(now_ts=now_ts, limit=limit)
    due = [t for t in rows if is_due(t, now_ts)]
    if len(due) != len(rows):
        logger.warning("Store returned %d non-due rows; ignoring them", len(rows) - len(due))
    return due
