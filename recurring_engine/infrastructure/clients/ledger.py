"""Remote ledger client with exponential backoff retry logic"""

import httpx
import asyncio
import uuid
from typing import Any, Dict, Optional
from recurring_engine.config import settings
from recurring_engine.domain.exceptions import LedgerError
from recurring_engine.domain.models import TransactionKind
from recurring_engine.infrastructure.observability.metrics import webhook_latency_histogram, webhook_failure_counter


class LedgerClient:
    """Client for recording materialized transactions in the ledger service"""

    def __init__(
        self,
        base_url: str | None = None,
        max_retries: int | None = None,
        backoff_base: float | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.ledger_api_base
        self.max_retries = max_retries if max_retries is not None else settings.webhook_max_retries
        self.backoff_base = backoff_base if backoff_base is not None else settings.webhook_backoff_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def record_transaction(
        self,
        kind: TransactionKind,
        amount_minor_units: int,
        category: str,
        description: str,
        occurrence_millis: int,
        recurring_rule_id: Optional[uuid.UUID] = None,
    ) -> str:
        """
        Record one transaction in the ledger and return its id.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s, 8s (base * 2^attempt)
        - Retries on 5xx errors and network failures; 4xx fails immediately
        - Tracks latency histogram and failure counter

        Raises:
            LedgerError: After the final failed attempt or on an invalid response
        """
        payload = {
            "kind": kind.value,
            "amount_cents": amount_minor_units,
            "category": category,
            "description": description,
            "occurrence_millis": occurrence_millis,
            "recurring_rule_id": str(recurring_rule_id) if recurring_rule_id else None,
        }
        data = await self._post_with_retry("/ledger/transactions", payload)

        try:
            return str(data["transaction_id"])
        except (KeyError, TypeError) as e:
            raise LedgerError(f"Invalid ledger response: {e}") from e

    async def _post_with_retry(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        attempt = 0
        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
            while True:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(path, json=payload)
                        response.raise_for_status()
                        return response.json()

                except httpx.HTTPStatusError as e:
                    attempt += 1
                    webhook_failure_counter.inc()

                    if e.response.status_code < 500 or attempt >= self.max_retries:
                        raise LedgerError(f"Ledger API error: {e.response.status_code}") from e

                except httpx.RequestError as e:
                    attempt += 1
                    webhook_failure_counter.inc()

                    if attempt >= self.max_retries:
                        raise LedgerError(f"Ledger unreachable after {attempt} attempts: {e}") from e

                # Exponential backoff: 1s, 2s, 4s, 8s
                backoff = self.backoff_base * (2 ** (attempt - 1))
                await asyncio.sleep(backoff)
