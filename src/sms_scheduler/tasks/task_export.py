# src/sms_scheduler/tasks/task_export.py

from __future__ import annotations

import csv
import logging
import os
from datetime import UTC, datetime
from pathlib import Path
from typing import TextIO

from ..core.ports import TaskRepo
from .task_models import TaskView

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = (
    "id",
    "destination_name",
    "destination_phone",
    "device_name",
    "content",
    "due_at",
    "status",
    "error",
    "created_at",
)


def _iso(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=UTC).isoformat(timespec="seconds")


def export_rows(views: list[TaskView]) -> list[dict[str, str]]:
    """Flatten joined tasks into export rows (same order as given)."""
    rows: list[dict[str, str]] = []
    for v in views:
        t = v.task
        rows.append(
            {
                "id": t.id,
                "destination_name": v.contact.display_name if v.contact else "",
                "destination_phone": v.contact.phone_number if v.contact else "",
                "device_name": v.device.name if v.device else "",
                "content": t.content,
                "due_at": _iso(t.due_at),
                "status": t.status.value,
                "error": t.error or "",
                "created_at": _iso(t.created_at),
            }
        )
    return rows


def write_tasks_csv(repo: TaskRepo, fp: TextIO) -> int:
    """Write every task (newest first) as CSV into `fp`. Returns the row count."""
    rows = export_rows(repo.list_tasks())
    writer = csv.DictWriter(fp, fieldnames=list(EXPORT_COLUMNS))
    writer.writeheader()
    writer.writerows(rows)
    return len(rows)


def export_tasks_csv(repo: TaskRepo, path: str | Path) -> int:
    """Export all tasks to a CSV file (written to a temp file, then replaced)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8", newline="") as fp:
        n = write_tasks_csv(repo, fp)
    os.replace(tmp, path)
    logger.info("Exported %d task(s) to %s", n, path)
    return n
