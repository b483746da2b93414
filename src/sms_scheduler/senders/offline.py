# src/sms_scheduler/senders/offline.py

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..core.ports import SendResult

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class OutboxEntry:
    content: str
    destination: str
    sender_device_id: str | None


class OfflineSender:
    """
    Offline deterministic sender used for demos when no gateway is configured.

    Behavior:
    - every message "succeeds" and is logged
    - delivered messages are kept in `outbox` for inspection
    """

    def __init__(self) -> None:
        self.outbox: list[OutboxEntry] = []

    async def send(
        self,
        *,
        content: str,
        destination: str,
        sender_device_id: str | None = None,
    ) -> SendResult:
        self.outbox.append(
            OutboxEntry(content=content, destination=destination, sender_device_id=sender_device_id)
        )
        logger.info(
            "Offline send to=%s device=%s: %s",
            destination,
            sender_device_id or "-",
            content,
        )
        return SendResult.success()
