# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from sms_scheduler.core.state import AppState
from sms_scheduler.tasks.task_models import Contact
from sms_scheduler.tasks.task_store import TaskStore

from .fakes import FakeSender


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI helpers.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="sms-scheduler-test",
        log_level="DEBUG",
        console_enabled=False,
        scheduler_enabled=True,
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        tick_interval_seconds=0.05,
        max_concurrency=2,
        batch_limit=0,
        gateway_url=None,
        gateway_token=None,
        gateway_timeout_seconds=1.0,
    )


@pytest.fixture()
def store(settings: SimpleNamespace) -> TaskStore:
    """Real SQLite store: its query/update semantics are part of what we test."""
    return TaskStore(settings.tasks_db_path)


@pytest.fixture()
def sender() -> FakeSender:
    return FakeSender()


@pytest.fixture()
def state(settings: SimpleNamespace, store: TaskStore, sender: FakeSender) -> AppState:
    return AppState(settings=settings, task_store=store, sender=sender)


@pytest.fixture()
def contact(store: TaskStore) -> Contact:
    return store.add_contact(phone_number="+15550001", name="Alice")
