# tests/test_task_api.py

from __future__ import annotations

import time

import pytest

from sms_scheduler.core.errors import NotFoundError, ValidationError
from sms_scheduler.tasks.task_api import (
    MAX_CONTENT_WORDS,
    count_words,
    get_stats,
    get_task,
    list_tasks,
    schedule_message,
)
from sms_scheduler.tasks.task_models import TaskStatus


def test_count_words_splits_on_any_whitespace() -> None:
    assert count_words("") == 0
    assert count_words("   ") == 0
    assert count_words("hello") == 1
    assert count_words(" one\ttwo\nthree  ") == 3


def test_content_with_21_words_is_rejected_and_not_persisted(state, contact) -> None:
    content = " ".join(f"w{i}" for i in range(MAX_CONTENT_WORDS + 1))
    with pytest.raises(ValidationError) as exc_info:
        schedule_message(state, destination_id=contact.id, content=content)
    assert exc_info.value.code == "validation_error"
    assert state.task_store.count_tasks() == 0


def test_content_with_20_words_is_accepted(state, contact) -> None:
    content = " ".join(f"w{i}" for i in range(MAX_CONTENT_WORDS))
    task = schedule_message(state, destination_id=contact.id, content=content)
    assert task.status is TaskStatus.PENDING
    assert state.task_store.count_tasks() == 1


def test_empty_content_is_rejected(state, contact) -> None:
    with pytest.raises(ValidationError):
        schedule_message(state, destination_id=contact.id, content="   ")


def test_unknown_destination_and_device_are_rejected(state, contact) -> None:
    with pytest.raises(ValidationError):
        schedule_message(state, destination_id="", content="hi")
    with pytest.raises(ValidationError):
        schedule_message(state, destination_id="nobody", content="hi")
    with pytest.raises(ValidationError):
        schedule_message(state, destination_id=contact.id, content="hi", sender_device_id="ghost")
    assert state.task_store.count_tasks() == 0


def test_due_time_from_delay_minutes(state, contact) -> None:
    before = time.time()
    task = schedule_message(state, destination_id=contact.id, content="later", run_after_minutes=5)
    assert before + 300 <= task.due_at <= time.time() + 300

    clamped = schedule_message(state, destination_id=contact.id, content="now", run_after_minutes=-3)
    assert clamped.due_at <= time.time()


def test_explicit_due_at_wins(state, contact) -> None:
    task = schedule_message(state, destination_id=contact.id, content="hi", due_at=1234.0, run_after_minutes=60)
    assert task.due_at == 1234.0


def test_schedule_with_device(state, contact) -> None:
    device = state.task_store.register_device(device_id="phone-1", name="Pixel")
    task = schedule_message(state, destination_id=contact.id, content="hi", sender_device_id=device.id)
    assert task.sender_device_id == device.id


def test_get_task_not_found(state) -> None:
    with pytest.raises(NotFoundError):
        get_task(state, "missing")


def test_future_task_counts_as_pending(state, contact) -> None:
    task = schedule_message(state, destination_id=contact.id, content="in an hour", due_at=time.time() + 3600)

    assert state.task_store.list_due_tasks(now_ts=time.time()) == []
    stats = get_stats(state)
    assert stats.total_pending == 1
    assert stats.total_scheduled == 1
    assert stats.total_contacts == 1
    assert [v.task.id for v in list_tasks(state)] == [task.id]
