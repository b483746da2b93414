# tests/test_task_selector.py

from __future__ import annotations

from sms_scheduler.tasks.task_models import TaskStatus
from sms_scheduler.tasks.task_selector import is_due, select_due_tasks

from .fakes import make_task


def test_is_due_boundaries() -> None:
    now = 1000.0
    assert is_due(make_task("a", due_at=999.0), now)
    assert is_due(make_task("b", due_at=1000.0), now)
    assert not is_due(make_task("c", due_at=1000.5), now)
    assert not is_due(make_task("d", due_at=10.0, status=TaskStatus.SENT), now)
    assert not is_due(make_task("e", due_at=10.0, status=TaskStatus.FAILED), now)


class _SloppyRepo:
    """Returns everything regardless of the predicate."""

    def __init__(self, tasks) -> None:
        self.tasks = tasks
        self.seen_now: list[float] = []

    def list_due_tasks(self, *, now_ts: float, limit: int | None = None):
        self.seen_now.append(now_ts)
        return list(self.tasks)


def test_select_due_tasks_reapplies_predicate_with_same_now() -> None:
    tasks = [
        make_task("same-1", due_at=500.0),
        make_task("same-2", due_at=500.0),
        make_task("future", due_at=501.0),
        make_task("sent", due_at=1.0, status=TaskStatus.SENT),
    ]
    repo = _SloppyRepo(tasks)

    due = select_due_tasks(repo, 500.0)

    assert {t.id for t in due} == {"same-1", "same-2"}
    assert repo.seen_now == [500.0]
