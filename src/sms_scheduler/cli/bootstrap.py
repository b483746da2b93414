# src/sms_scheduler/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (task store, sender).
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import Sender
from ..core.state import AppState
from ..senders.http_gateway import HttpGatewaySender
from ..senders.offline import OfflineSender
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def build_sender(settings) -> Sender:
    """HTTP gateway when configured, otherwise the offline demo sender."""
    gateway_url = (getattr(settings, "gateway_url", None) or "").strip()
    if not gateway_url:
        logger.info("No SMS gateway configured; using offline sender.")
        return OfflineSender()

    logger.info("Using SMS gateway at %s", gateway_url)
    return HttpGatewaySender(
        gateway_url,
        token=getattr(settings, "gateway_token", None),
        timeout_seconds=float(getattr(settings, "gateway_timeout_seconds", 10.0)),
    )


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    return AppState(
        settings=settings,
        task_store=TaskStore(settings.tasks_db_path),
        sender=build_sender(settings),
    )
