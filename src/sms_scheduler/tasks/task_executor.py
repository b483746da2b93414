# src/sms_scheduler/tasks/task_executor.py

from __future__ import annotations

"""
Delivery executor.

One invocation = one delivery attempt for one due task:
- resolve the destination phone number,
- call the Sender exactly once,
- write exactly one terminal status (sent, or failed with the reason).

Sender errors never escape: they become the task's `failed` status.
Store errors are raised as StoreFault so the scheduler can contain them per task.
"""

import asyncio
import logging

from ..core.errors import SendFailure, StoreFault
from ..core.ports import Sender, SendResult, TaskRepo
from .task_models import Task, TaskStatus

logger = logging.getLogger(__name__)

MISSING_DESTINATION_REASON = "destination contact not found"


def _reason_from_exception(exc: BaseException) -> str:
    if isinstance(exc, SendFailure):
        return exc.reason or "send failed"
    text = str(exc).strip()
    return text or type(exc).__name__


class DeliveryExecutor:
    def __init__(self, repo: TaskRepo, sender: Sender) -> None:
        self._repo = repo
        self._sender = sender

    async def _resolve_destination(self, task: Task) -> str | None:
        try:
            contact = await asyncio.to_thread(self._repo.get_contact, task.destination_id)
        except Exception as e:
            raise StoreFault(f"failed to resolve contact for task {task.id}") from e
        if contact is None:
            return None
        phone = (getattr(contact, "phone_number", "") or "").strip()
        return phone or None

    async def _attempt(self, task: Task, destination: str) -> SendResult:
        try:
            result = await self._sender.send(
                content=task.content,
                destination=destination,
                sender_device_id=task.sender_device_id,
            )
        except Exception as e:
            logger.warning("Sender raised for task_id=%s: %r", task.id, e)
            return SendResult.failure(_reason_from_exception(e))

        if not isinstance(result, SendResult):
            logger.warning("Sender returned %r for task_id=%s; treating as failure", result, task.id)
            return SendResult.failure(f"invalid sender result: {result!r}")
        if not result.ok and not (result.reason or "").strip():
            return SendResult.failure("send failed")
        return result

    async def execute(self, task: Task) -> TaskStatus:
        """
        Attempt delivery of `task` and record the outcome.

        Returns the terminal status that was written.
        """
        destination = await self._resolve_destination(task)
        if destination is None:
            result = SendResult.failure(MISSING_DESTINATION_REASON)
        else:
            result = await self._attempt(task, destination)

        status = TaskStatus.SENT if result.ok else TaskStatus.FAILED
        error = None if result.ok else result.reason

        try:
            applied = await asyncio.to_thread(self._repo.update_task_status, task.id, status, error)
        except Exception as e:
            raise StoreFault(f"failed to record {status.value} for task {task.id}") from e

        if applied is False:
            logger.warning("Task %s outcome %s not recorded (already terminal)", task.id, status.value)
        elif status is TaskStatus.SENT:
            logger.info("Task %s -> sent", task.id)
        else:
            logger.info("Task %s -> failed (%s)", task.id, error)
        return status
