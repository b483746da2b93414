# src/sms_scheduler/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    pending -> sent | failed, written exactly once. Terminal statuses never change.
    """

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not TaskStatus.PENDING

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        if not raw:
            raise ValueError("empty task status")
        return cls(raw)


@dataclass(slots=True)
class Task:
    id: str
    destination_id: str
    sender_device_id: str | None
    content: str
    due_at: float
    status: TaskStatus
    error: str | None
    created_at: float
    updated_at: float


@dataclass(slots=True)
class Contact:
    id: str
    phone_number: str
    name: str | None
    created_at: float

    @property
    def display_name(self) -> str:
        return self.name or self.phone_number


@dataclass(slots=True)
class Device:
    id: str
    device_id: str
    name: str
    status: str
    last_seen: float
    created_at: float


@dataclass(slots=True)
class TaskView:
    """A task joined with its destination and device, for listings and export."""

    task: Task
    contact: Contact | None
    device: Device | None
