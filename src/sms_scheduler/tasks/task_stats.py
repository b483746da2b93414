# src/sms_scheduler/tasks/task_stats.py

from __future__ import annotations

from dataclasses import dataclass

from ..core.ports import TaskRepo
from .task_models import TaskStatus


@dataclass(slots=True, frozen=True)
class DeliveryStats:
    total_contacts: int
    total_scheduled: int
    total_sent: int
    total_failed: int
    total_pending: int

    def as_dict(self) -> dict[str, int]:
        return {
            "totalContacts": self.total_contacts,
            "totalScheduled": self.total_scheduled,
            "totalSent": self.total_sent,
            "totalFailed": self.total_failed,
            "totalPending": self.total_pending,
        }


def compute_stats(repo: TaskRepo) -> DeliveryStats:
    """
    Count tasks per status (and contacts) at call time.

    total_scheduled is derived from the same grouped counts, so it always
    equals sent + failed + pending.
    """
    by_status = repo.count_tasks_by_status()
    sent = int(by_status.get(TaskStatus.SENT, 0))
    failed = int(by_status.get(TaskStatus.FAILED, 0))
    pending = int(by_status.get(TaskStatus.PENDING, 0))
    return DeliveryStats(
        total_contacts=int(repo.count_contacts()),
        total_scheduled=sent + failed + pending,
        total_sent=sent,
        total_failed=failed,
        total_pending=pending,
    )
