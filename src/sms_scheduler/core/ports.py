# src/sms_scheduler/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the store and the delivery transport swappable and makes testing easier
(tests plug an in-memory repo and a scripted sender).
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Protocol


@dataclass(slots=True, frozen=True)
class SendResult:
    """Outcome reported by a Sender: success, or failure with a reason."""

    ok: bool
    reason: str | None = None

    @classmethod
    def success(cls) -> SendResult:
        return cls(ok=True)

    @classmethod
    def failure(cls, reason: str) -> SendResult:
        return cls(ok=False, reason=reason)


class Sender(Protocol):
    """
    Delivery capability: how the executor hands one message to a transport.

    Implementations may return a failure result or raise; the executor
    treats both the same way (terminal `failed` with the reason).
    """

    def send(
            self,
            *,
            content: str,
            destination: str,
            sender_device_id: str | None = None,
    ) -> Awaitable[SendResult]: ...


class TaskRepo(Protocol):
    # Scheduler API
    def list_due_tasks(self, *, now_ts: float, limit: int | None = None) -> list[Any]: ...
    def update_task_status(self, task_id: str, new_status: Any, error: str | None = None) -> bool: ...
    def get_contact(self, contact_id: str) -> Any | None: ...

    # Scheduling requests / reporting
    def create_task(
            self,
            *,
            destination_id: str,
            content: str,
            due_at: float,
            sender_device_id: str | None = None,
    ) -> Any: ...
    def get_task(self, task_id: str) -> Any | None: ...
    def list_tasks(self, *, limit: int | None = None) -> list[Any]: ...
    def get_device(self, device_pk: str) -> Any | None: ...

    # Stats
    def count_tasks_by_status(self) -> dict[Any, int]: ...
    def count_contacts(self) -> int: ...
