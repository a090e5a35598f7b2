"""Notification service client for fire-once due reminders"""

import asyncio
from datetime import datetime
from typing import Any, Dict

import httpx

from spendmart_core.config import settings
from spendmart_core.domain.exceptions import SchedulingError
from spendmart_core.infrastructure.observability.metrics import reminder_latency_histogram


class NotificationClient:
    """Client for the local-reminder scheduling service"""

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self.base_url = base_url or settings.notification_api_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_retries = settings.notification_max_retries
        self.backoff_base = settings.notification_backoff_base

    async def schedule(self, reminder_id: str, title: str, body: str, at: datetime) -> None:
        """
        Register a reminder to fire once at the given local time.

        Re-scheduling an existing id replaces it.

        Raises:
            SchedulingError: After all retries fail
        """
        await self._send(
            "PUT",
            f"{self.base_url}/notifications/{reminder_id}",
            {"title": title, "body": body, "fire_at": at.isoformat()},
        )

    async def cancel(self, reminder_id: str) -> None:
        """Remove a pending reminder. Cancelling an unknown id succeeds."""
        await self._send("DELETE", f"{self.base_url}/notifications/{reminder_id}", None)

    async def _send(self, method: str, url: str, payload: Dict[str, Any] | None) -> None:
        """
        Retry strategy:
        - Exponential backoff: base, 2x base, 4x base ...
        - Retries on 5xx errors and network failures; 4xx fails at once
        - 404 on DELETE counts as success
        """
        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            while True:
                try:
                    with reminder_latency_histogram.time():
                        response = await client.request(method, url, json=payload)
                    if method == "DELETE" and response.status_code == 404:
                        return
                    response.raise_for_status()
                    return

                except httpx.HTTPStatusError as e:
                    if e.response.status_code < 500:
                        raise SchedulingError(f"Notification service rejected request: {e.response.status_code}") from e
                    error: Exception = e
                except httpx.RequestError as e:
                    error = e

                attempt += 1
                if attempt >= self.max_retries:
                    raise SchedulingError(f"Notification service unavailable after {attempt} attempts: {error}") from error

                backoff = self.backoff_base * (2 ** (attempt - 1))
                await asyncio.sleep(backoff)
