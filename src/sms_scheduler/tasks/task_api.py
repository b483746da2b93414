# src/sms_scheduler/tasks/task_api.py

from __future__ import annotations

import logging
import time

from ..core.errors import NotFoundError, ValidationError
from ..core.state import AppState
from .task_models import Task, TaskView
from .task_stats import DeliveryStats, compute_stats

logger = logging.getLogger(__name__)

MAX_CONTENT_WORDS = 20


def count_words(text: str) -> int:
    return len((text or "").split())


def validate_content(content: str) -> str:
    text = (content or "").strip()
    if not text:
        raise ValidationError("content is required")
    words = count_words(text)
    if words > MAX_CONTENT_WORDS:
        raise ValidationError(
            f"content exceeds {MAX_CONTENT_WORDS} words",
            details={"words": words, "max_words": MAX_CONTENT_WORDS},
        )
    return text


def schedule_message(
    state: AppState,
    *,
    destination_id: str,
    content: str,
    due_at: float | None = None,
    run_after_minutes: int = 0,
    sender_device_id: str | None = None,
) -> Task:
    """
    Accept a scheduling request and persist it as a pending task.

    Rejected requests raise ValidationError and never reach the store.
    If due_at is not given, the task is due run_after_minutes from now.
    """
    text = validate_content(content)

    if not destination_id:
        raise ValidationError("destination_id is required")
    store = state.task_store
    if store.get_contact(destination_id) is None:
        raise ValidationError(f"unknown destination contact {destination_id}")
    if sender_device_id and store.get_device(sender_device_id) is None:
        raise ValidationError(f"unknown sender device {sender_device_id}")

    if due_at is None:
        due_at = time.time() + max(0, int(run_after_minutes)) * 60

    task = store.create_task(
        destination_id=destination_id,
        content=text,
        due_at=float(due_at),
        sender_device_id=sender_device_id or None,
    )
    logger.info("Scheduled task id=%s contact=%s due_at=%.0f", task.id, destination_id, task.due_at)
    return task


def get_task(state: AppState, task_id: str) -> Task:
    task = state.task_store.get_task(task_id)
    if task is None:
        raise NotFoundError(f"task {task_id} not found")
    return task


def list_tasks(state: AppState, *, limit: int | None = None) -> list[TaskView]:
    """All tasks, newest first, with destination/device display data."""
    return state.task_store.list_tasks(limit=limit)


def get_stats(state: AppState) -> DeliveryStats:
    return compute_stats(state.task_store)
