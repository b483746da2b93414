# tests/test_task_executor.py

from __future__ import annotations

import pytest

from sms_scheduler.core.errors import SendFailure, StoreFault
from sms_scheduler.core.ports import SendResult
from sms_scheduler.tasks.task_executor import MISSING_DESTINATION_REASON, DeliveryExecutor
from sms_scheduler.tasks.task_models import TaskStatus

from .fakes import FakeSender, FakeTaskRepo, make_contact, make_task

PHONE = "+15550001"


def _setup(outcome=None):
    task = make_task("t1", due_at=0.0, content="hello", sender_device_id="dev-1")
    repo = FakeTaskRepo([task], contacts=[make_contact("c1", PHONE)])
    sender = FakeSender(outcomes={PHONE: outcome} if outcome is not None else {})
    return task, repo, sender


@pytest.mark.asyncio
async def test_success_marks_task_sent() -> None:
    task, repo, sender = _setup()

    status = await DeliveryExecutor(repo, sender).execute(task)

    assert status is TaskStatus.SENT
    assert repo.tasks["t1"].status is TaskStatus.SENT
    assert repo.tasks["t1"].error is None
    assert len(sender.calls) == 1
    call = sender.calls[0]
    assert (call.content, call.destination, call.sender_device_id) == ("hello", PHONE, "dev-1")


@pytest.mark.asyncio
async def test_failure_result_marks_task_failed_with_reason() -> None:
    task, repo, sender = _setup(SendResult.failure("network error"))

    status = await DeliveryExecutor(repo, sender).execute(task)

    assert status is TaskStatus.FAILED
    assert repo.tasks["t1"].status is TaskStatus.FAILED
    assert repo.tasks["t1"].error == "network error"
    assert len(sender.calls) == 1


@pytest.mark.asyncio
async def test_sender_exception_is_absorbed_as_failure() -> None:
    task, repo, sender = _setup(ConnectionError("carrier unreachable"))

    status = await DeliveryExecutor(repo, sender).execute(task)

    assert status is TaskStatus.FAILED
    assert repo.tasks["t1"].error == "carrier unreachable"


@pytest.mark.asyncio
async def test_exception_without_message_uses_class_name() -> None:
    task, repo, sender = _setup(TimeoutError())

    await DeliveryExecutor(repo, sender).execute(task)

    assert repo.tasks["t1"].error == "TimeoutError"


@pytest.mark.asyncio
async def test_send_failure_exception_reason_is_recorded() -> None:
    task, repo, sender = _setup(SendFailure("number blocked"))

    await DeliveryExecutor(repo, sender).execute(task)

    assert repo.tasks["t1"].error == "number blocked"


@pytest.mark.asyncio
async def test_failure_without_reason_gets_generic_reason() -> None:
    task, repo, sender = _setup(SendResult(ok=False))

    await DeliveryExecutor(repo, sender).execute(task)

    assert repo.tasks["t1"].error == "send failed"


@pytest.mark.asyncio
async def test_missing_contact_fails_without_calling_sender() -> None:
    task = make_task("t1", due_at=0.0, destination_id="gone")
    repo = FakeTaskRepo([task], contacts=[])
    sender = FakeSender()

    status = await DeliveryExecutor(repo, sender).execute(task)

    assert status is TaskStatus.FAILED
    assert repo.tasks["t1"].error == MISSING_DESTINATION_REASON
    assert sender.calls == []


@pytest.mark.asyncio
async def test_store_write_error_raises_store_fault() -> None:
    task, repo, sender = _setup()
    repo.failing_update_ids.add("t1")

    with pytest.raises(StoreFault):
        await DeliveryExecutor(repo, sender).execute(task)

    assert repo.tasks["t1"].status is TaskStatus.PENDING
    assert len(sender.calls) == 1
