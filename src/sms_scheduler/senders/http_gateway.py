# src/sms_scheduler/senders/http_gateway.py

"""
HTTP SMS gateway sender.

Hands each message to an SMS gateway (typically an app running on the
registered phone) with a JSON POST:

    POST {gateway_url}/send
    {"to": "+15550001", "message": "...", "device_id": "..." | null}

2xx means accepted; anything else is reported as a failure with a short
reason that ends up in the task's `error` column.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..core.ports import SendResult

logger = logging.getLogger(__name__)


class HttpGatewaySender:
    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not (base_url or "").strip():
            raise ValueError("gateway base_url is required")
        self._url = base_url.rstrip("/") + "/send"
        self._token = (token or "").strip() or None
        self._timeout = float(timeout_seconds)
        # Injected clients are owned by the caller (tests use httpx.MockTransport).
        self._client = client

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(self._url, json=payload, headers=self._headers())
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.post(self._url, json=payload, headers=self._headers())

    async def send(
        self,
        *,
        content: str,
        destination: str,
        sender_device_id: str | None = None,
    ) -> SendResult:
        payload = {"to": destination, "message": content, "device_id": sender_device_id}

        try:
            response = await self._post(payload)
        except httpx.TimeoutException:
            logger.error("SMS gateway timeout to=%s", destination)
            return SendResult.failure("gateway timeout")
        except httpx.HTTPError as e:
            logger.error("SMS gateway request failed to=%s: %r", destination, e)
            return SendResult.failure(str(e) or type(e).__name__)

        if 200 <= response.status_code < 300:
            logger.debug("SMS gateway accepted to=%s status=%s", destination, response.status_code)
            return SendResult.success()

        logger.error(
            "SMS gateway error to=%s: %s - %s",
            destination,
            response.status_code,
            response.text[:200],
        )
        return SendResult.failure(f"gateway returned status {response.status_code}")
