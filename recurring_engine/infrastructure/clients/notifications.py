"""Notification service HTTP client for recurring reminders"""

import httpx
import uuid
from recurring_engine.config import settings
from recurring_engine.domain.exceptions import NotificationError
from recurring_engine.infrastructure.observability.metrics import notification_failure_counter


class NotificationClient:
    """Client for raising and retracting reminder notifications"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.notification_api_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    async def raise_reminder(
        self,
        rule_id: uuid.UUID,
        title: str,
        formatted_amount: str,
        days_before: int,
        due_at_millis: int,
    ) -> None:
        """
        Ask the notification service to show a reminder.

        The service keys reminders by rule id, so raising again replaces
        the previous notification instead of stacking a new one.

        Raises:
            NotificationError: On timeout, HTTP errors, or network failures
        """
        payload = {
            "rule_id": str(rule_id),
            "title": title,
            "formatted_amount": formatted_amount,
            "days_before": days_before,
            "due_at_millis": due_at_millis,
        }
        async with self._client() as client:
            try:
                response = await client.post("/notifications/reminders", json=payload)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                notification_failure_counter.labels(operation="raise").inc()
                raise NotificationError(f"Notification API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                notification_failure_counter.labels(operation="raise").inc()
                raise NotificationError(f"Notification API unavailable: {e}") from e

    async def retract_reminder(self, rule_id: uuid.UUID) -> None:
        """Cancel the reminder for a rule; 404 means there was nothing to cancel"""
        async with self._client() as client:
            try:
                response = await client.delete(f"/notifications/reminders/{rule_id}")
                if response.status_code == 404:
                    return
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                notification_failure_counter.labels(operation="retract").inc()
                raise NotificationError(f"Notification API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                notification_failure_counter.labels(operation="retract").inc()
                raise NotificationError(f"Notification API unavailable: {e}") from e

    async def notifications_enabled(self) -> bool:
        """Whether the user currently allows reminder notifications"""
        async with self._client() as client:
            try:
                response = await client.get("/notifications/status")
                response.raise_for_status()
                return bool(response.json()["enabled"])
            except httpx.HTTPStatusError as e:
                notification_failure_counter.labels(operation="status").inc()
                raise NotificationError(f"Notification API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                notification_failure_counter.labels(operation="status").inc()
                raise NotificationError(f"Notification API unavailable: {e}") from e
            except (KeyError, ValueError, TypeError) as e:
                raise NotificationError(f"Invalid notification status response: {e}") from e
