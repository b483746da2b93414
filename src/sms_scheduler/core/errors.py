# src/sms_scheduler/core/errors.py

from __future__ import annotations

from typing import Any


class SchedulerError(Exception):
    """Base error for the scheduler: carries a machine-readable code."""

    def __init__(self, message: str, code: str = "internal_error", details: Any | None = None) -> None:
        self.message = message
        self.code = code
        self.details = details
        super().__init__(self.message)


class ValidationError(SchedulerError):
    """Rejected scheduling request (content too long, unknown destination, ...)."""

    def __init__(self, message: str = "Validation error", details: Any | None = None) -> None:
        super().__init__(message, code="validation_error", details=details)


class NotFoundError(SchedulerError):
    """Referenced task/contact/device id does not exist."""

    def __init__(self, message: str = "Not found", details: Any | None = None) -> None:
        super().__init__(message, code="not_found", details=details)


class SendFailure(SchedulerError):
    """
    Raised by a Sender that could not deliver.

    The executor absorbs it into a terminal `failed` status; it never reaches a caller.
    """

    def __init__(self, reason: str = "send failed", details: Any | None = None) -> None:
        self.reason = reason
        super().__init__(reason, code="send_failure", details=details)


class StoreFault(SchedulerError):
    """Persistence failure during a scheduler tick (contained to that task or tick)."""

    def __init__(self, message: str = "Store fault", details: Any | None = None) -> None:
        super().__init__(message, code="store_fault", details=details)
