# src/sms_scheduler/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import time
import uuid
from collections.abc import Iterable
from pathlib import Path

from ..core.errors import NotFoundError, ValidationError
from .task_models import Contact, Device, Task, TaskStatus, TaskView

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


def _limit(limit: int | None) -> int:
    # SQLite treats a negative LIMIT as "no limit".
    return -1 if limit is None or int(limit) <= 0 else int(limit)


class TaskStore:
    """
    SQLite store for SMS tasks, plus the contacts and devices they reference.

    The schema is intentionally simple and migration-safe:
    - create tables if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each method opens its own SQLite connection, so the scheduler can call
      the store from worker threads while connectors read/write concurrently
    - a status write is a single conditional UPDATE (atomic per row)
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except Exception:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")
        # Destination/device references are enforced by the database.
        conn.execute("PRAGMA foreign_keys=ON")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS contacts (
                    id TEXT PRIMARY KEY,
                    phone_number TEXT NOT NULL UNIQUE,
                    name TEXT,
                    created_at REAL NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS devices (
                    id TEXT PRIMARY KEY,
                    device_id TEXT NOT NULL UNIQUE,
                    name TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'online',
                    last_seen REAL NOT NULL,
                    created_at REAL NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS sms_tasks (
                    id TEXT PRIMARY KEY,
                    device_id TEXT REFERENCES devices(id),
                    contact_id TEXT NOT NULL REFERENCES contacts(id),
                    content TEXT NOT NULL,
                    due_at REAL NOT NULL,
                    status TEXT NOT NULL DEFAULT 'pending'
                        CHECK (status IN ('pending', 'sent', 'failed')),
                    error TEXT,
                    created_at REAL NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(sms_tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE sms_tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            add_col("error", "TEXT")
            add_col("updated_at", "REAL NOT NULL DEFAULT 0")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_sms_tasks_status_due ON sms_tasks(status, due_at)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_sms_tasks_created ON sms_tasks(created_at)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=str(row["id"]),
            destination_id=str(row["contact_id"]),
            sender_device_id=row["device_id"],
            content=str(row["content"] or ""),
            due_at=float(row["due_at"]),
            status=TaskStatus.from_db(row["status"]),
            error=row["error"],
            created_at=float(row["created_at"] or 0.0),
            updated_at=float(row["updated_at"] or 0.0),
        )

    @staticmethod
    def _row_to_contact(row: sqlite3.Row, prefix: str = "") -> Contact | None:
        if row[f"{prefix}id"] is None:
            return None
        return Contact(
            id=str(row[f"{prefix}id"]),
            phone_number=str(row[f"{prefix}phone_number"]),
            name=row[f"{prefix}name"],
            created_at=float(row[f"{prefix}created_at"] or 0.0),
        )

    @staticmethod
    def _row_to_device(row: sqlite3.Row, prefix: str = "") -> Device | None:
        if row[f"{prefix}id"] is None:
            return None
        return Device(
            id=str(row[f"{prefix}id"]),
            device_id=str(row[f"{prefix}device_id"]),
            name=str(row[f"{prefix}name"] or ""),
            status=str(row[f"{prefix}status"] or "online"),
            last_seen=float(row[f"{prefix}last_seen"] or 0.0),
            created_at=float(row[f"{prefix}created_at"] or 0.0),
        )

    # ---- tasks ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM sms_tasks")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    def create_task(
        self,
        *,
        destination_id: str,
        content: str,
        due_at: float,
        sender_device_id: str | None = None,
    ) -> Task:
        """
        Persist a new pending task.

        Content is not re-validated here (the scheduling request layer does that).
        Unknown destination/device ids are rejected by the foreign keys.
        """
        if not destination_id:
            raise ValidationError("destination_id is required")

        now = time.time()
        task = Task(
            id=_new_id(),
            destination_id=destination_id,
            sender_device_id=sender_device_id or None,
            content=content,
            due_at=float(due_at),
            status=TaskStatus.PENDING,
            error=None,
            created_at=now,
            updated_at=now,
        )

        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO sms_tasks(
                    id, device_id, contact_id, content, due_at,
                    status, error, created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, NULL, ?, ?)
                """,
                (
                    task.id,
                    task.sender_device_id,
                    task.destination_id,
                    task.content,
                    task.due_at,
                    task.status.value,
                    task.created_at,
                    task.updated_at,
                ),
            )
            conn.commit()
        except sqlite3.IntegrityError as e:
            raise ValidationError(
                "unknown destination or sender device",
                details={"destination_id": destination_id, "sender_device_id": sender_device_id},
            ) from e
        finally:
            conn.close()

        logger.debug(
            "Task created id=%s contact=%s device=%s due_at=%s",
            task.id,
            task.destination_id,
            task.sender_device_id,
            task.due_at,
        )
        return task

    def get_task(self, task_id: str) -> Task | None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM sms_tasks WHERE id = ?", (str(task_id),))
            row = cur.fetchone()
            return self._row_to_task(row) if row else None
        finally:
            conn.close()

    def list_tasks(self, *, limit: int | None = None) -> list[TaskView]:
        """Snapshot of all tasks, newest first, joined with contact and device."""
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT t.*,
                       c.id AS c_id, c.phone_number AS c_phone_number,
                       c.name AS c_name, c.created_at AS c_created_at,
                       d.id AS d_id, d.device_id AS d_device_id, d.name AS d_name,
                       d.status AS d_status, d.last_seen AS d_last_seen,
                       d.created_at AS d_created_at
                FROM sms_tasks t
                LEFT JOIN contacts c ON c.id = t.contact_id
                LEFT JOIN devices d ON d.id = t.device_id
                ORDER BY t.created_at DESC, t.rowid DESC
                    LIMIT ?
                """,
                (_limit(limit),),
            )
            return [
                TaskView(
                    task=self._row_to_task(r),
                    contact=self._row_to_contact(r, "c_"),
                    device=self._row_to_device(r, "d_"),
                )
                for r in cur.fetchall()
            ]
        finally:
            conn.close()

    def list_due_tasks(self, *, now_ts: float, limit: int | None = None) -> list[Task]:
        """
        Return pending tasks whose due time has passed (due_at <= now_ts).

        Callers get no ordering guarantee; rows are ordered by due_at only so
        that a limited batch takes the longest-waiting tasks first.
        """
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT *
                FROM sms_tasks
                WHERE status = 'pending'
                  AND due_at <= ?
                ORDER BY due_at ASC
                    LIMIT ?
                """,
                (float(now_ts), _limit(limit)),
            )
            return [self._row_to_task(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def update_task_status(
        self,
        task_id: str,
        new_status: TaskStatus,
        error: str | None = None,
    ) -> bool:
        """
        Record the outcome of a delivery attempt.

        Atomically transitions:
          status = pending -> status = new_status (sent | failed)

        `error` is kept only for failed tasks. Returns False if the task had
        already left pending (the write is dropped), raises NotFoundError for
        an unknown id.
        """
        status = TaskStatus(new_status)
        if not status.is_terminal:
            raise ValueError(f"update_task_status expects a terminal status, got {status.value!r}")

        err: str | None = None
        if status is TaskStatus.FAILED:
            err = (error or "").strip() or "unknown error"

        now = time.time()
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                UPDATE sms_tasks
                SET status = ?, error = ?, updated_at = ?
                WHERE id = ?
                  AND status = 'pending'
                """,
                (status.value, err, now, str(task_id)),
            )
            conn.commit()
            if cur.rowcount == 1:
                return True

            cur.execute("SELECT status FROM sms_tasks WHERE id = ?", (str(task_id),))
            row = cur.fetchone()
            if row is None:
                raise NotFoundError(f"task {task_id} not found")
            logger.warning(
                "Task %s already %s; dropping %s write",
                task_id,
                row["status"],
                status.value,
            )
            return False
        finally:
            conn.close()

    def count_tasks_by_status(self) -> dict[TaskStatus, int]:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT status, COUNT(*) AS n FROM sms_tasks GROUP BY status")
            counts = {s: 0 for s in TaskStatus}
            for row in cur.fetchall():
                counts[TaskStatus.from_db(row["status"])] = int(row["n"])
            return counts
        finally:
            conn.close()

    # ---- contacts ----

    def add_contact(self, *, phone_number: str, name: str | None = None) -> Contact:
        phone = (phone_number or "").strip()
        if not phone:
            raise ValidationError("phone_number is required")

        contact = Contact(
            id=_new_id(),
            phone_number=phone,
            name=(name or "").strip() or None,
            created_at=time.time(),
        )
        conn = self._get_conn()
        try:
            conn.execute(
                "INSERT INTO contacts(id, phone_number, name, created_at) VALUES (?, ?, ?, ?)",
                (contact.id, contact.phone_number, contact.name, contact.created_at),
            )
            conn.commit()
        except sqlite3.IntegrityError as e:
            raise ValidationError(f"contact with phone {phone} already exists") from e
        finally:
            conn.close()
        return contact

    def add_contacts(self, items: Iterable[tuple[str, str | None]]) -> list[Contact]:
        """Bulk insert (phone_number, name) pairs; duplicates are skipped."""
        created: list[Contact] = []
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            for phone_number, name in items:
                phone = (phone_number or "").strip()
                if not phone:
                    continue
                contact = Contact(
                    id=_new_id(),
                    phone_number=phone,
                    name=(name or "").strip() or None,
                    created_at=time.time(),
                )
                cur.execute(
                    "INSERT OR IGNORE INTO contacts(id, phone_number, name, created_at) VALUES (?, ?, ?, ?)",
                    (contact.id, contact.phone_number, contact.name, contact.created_at),
                )
                if cur.rowcount == 1:
                    created.append(contact)
            conn.commit()
        finally:
            conn.close()
        logger.info("Contacts imported: %d new", len(created))
        return created

    def get_contact(self, contact_id: str) -> Contact | None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM contacts WHERE id = ?", (str(contact_id),))
            row = cur.fetchone()
            return self._row_to_contact(row) if row else None
        finally:
            conn.close()

    def find_contact_by_phone(self, phone_number: str) -> Contact | None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM contacts WHERE phone_number = ?", ((phone_number or "").strip(),))
            row = cur.fetchone()
            return self._row_to_contact(row) if row else None
        finally:
            conn.close()

    def list_contacts(self) -> list[Contact]:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM contacts ORDER BY created_at DESC, rowid DESC")
            return [c for c in (self._row_to_contact(r) for r in cur.fetchall()) if c is not None]
        finally:
            conn.close()

    def count_contacts(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM contacts")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    # ---- devices ----

    def register_device(self, *, device_id: str, name: str, status: str = "online") -> Device:
        """
        Register a sending device, or refresh it if device_id is already known.
        """
        ext_id = (device_id or "").strip()
        if not ext_id:
            raise ValidationError("device_id is required")
        label = (name or "").strip() or ext_id

        now = time.time()
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                "UPDATE devices SET name = ?, status = ?, last_seen = ? WHERE device_id = ?",
                (label, status, now, ext_id),
            )
            if cur.rowcount == 0:
                cur.execute(
                    """
                    INSERT INTO devices(id, device_id, name, status, last_seen, created_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (_new_id(), ext_id, label, status, now, now),
                )
                logger.info("Device registered device_id=%s name=%s", ext_id, label)
            conn.commit()

            cur.execute("SELECT * FROM devices WHERE device_id = ?", (ext_id,))
            device = self._row_to_device(cur.fetchone())
            if device is None:
                raise RuntimeError("SQLite did not return the registered device")
            return device
        finally:
            conn.close()

    def get_device(self, device_pk: str) -> Device | None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM devices WHERE id = ?", (str(device_pk),))
            row = cur.fetchone()
            return self._row_to_device(row) if row else None
        finally:
            conn.close()

    def find_device(self, device_id: str) -> Device | None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM devices WHERE device_id = ?", ((device_id or "").strip(),))
            row = cur.fetchone()
            return self._row_to_device(row) if row else None
        finally:
            conn.close()

    def list_devices(self) -> list[Device]:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM devices ORDER BY created_at DESC, rowid DESC")
            return [d for d in (self._row_to_device(r) for r in cur.fetchall()) if d is not None]
        finally:
            conn.close()

    def touch_device(self, device_pk: str) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("UPDATE devices SET last_seen = ? WHERE id = ?", (time.time(), str(device_pk)))
            conn.commit()
            if cur.rowcount == 0:
                raise NotFoundError(f"device {device_pk} not found")
        finally:
            conn.close()
