# tests/test_task_export.py

from __future__ import annotations

import csv
import io
from pathlib import Path

from sms_scheduler.tasks.task_export import EXPORT_COLUMNS, export_rows, export_tasks_csv, write_tasks_csv
from sms_scheduler.tasks.task_models import TaskStatus


def test_export_rows_project_joined_fields(store, contact) -> None:
    device = store.register_device(device_id="phone-1", name="Pixel")
    t = store.create_task(destination_id=contact.id, content="hello", due_at=0, sender_device_id=device.id)
    store.update_task_status(t.id, TaskStatus.FAILED, error="network error")

    rows = export_rows(store.list_tasks())

    assert rows == [
        {
            "id": t.id,
            "destination_name": "Alice",
            "destination_phone": "+15550001",
            "device_name": "Pixel",
            "content": "hello",
            "due_at": "1970-01-01T00:00:00+00:00",
            "status": "failed",
            "error": "network error",
            "created_at": rows[0]["created_at"],
        }
    ]


def test_write_tasks_csv_is_read_only(store, contact) -> None:
    for i in range(3):
        store.create_task(destination_id=contact.id, content=f"msg, with comma {i}", due_at=0)
    before = store.count_tasks_by_status()

    buf = io.StringIO()
    n = write_tasks_csv(store, buf)

    assert n == 3
    buf.seek(0)
    reader = csv.DictReader(buf)
    assert tuple(reader.fieldnames or ()) == EXPORT_COLUMNS
    rows = list(reader)
    assert [r["content"] for r in rows] == ["msg, with comma 2", "msg, with comma 1", "msg, with comma 0"]
    assert all(r["status"] == "pending" and r["error"] == "" for r in rows)
    assert store.count_tasks_by_status() == before


def test_export_tasks_csv_writes_file(store, contact, tmp_path: Path) -> None:
    store.create_task(destination_id=contact.id, content="hi", due_at=0)
    out = tmp_path / "exports" / "tasks.csv"

    assert export_tasks_csv(store, out) == 1
    lines = out.read_text("utf-8").splitlines()
    assert lines[0] == ",".join(EXPORT_COLUMNS)
    assert len(lines) == 2
    assert not out.with_suffix(".csv.tmp").exists()
