"""Collaborator contracts the scheduling jobs depend on"""

import uuid
from typing import List, Optional, Protocol

from recurring_engine.domain.models import RecurringRule, TransactionKind


class Ledger(Protocol):
    async def record_transaction(
        self,
        kind: TransactionKind,
        amount_minor_units: int,
        category: str,
        description: str,
        occurrence_millis: int,
        recurring_rule_id: Optional[uuid.UUID] = None,
    ) -> str:
        """Persist one transaction and return its ledger id"""
        ...


class RuleStore(Protocol):
    def load_active_rules(self) -> List[RecurringRule]: ...

    def load_rule_by_id(self, rule_id: uuid.UUID) -> Optional[RecurringRule]: ...

    def save_rule(self, rule: RecurringRule) -> None: ...

    def delete_rule(self, rule_id: uuid.UUID) -> None: ...


class Notifier(Protocol):
    async def raise_reminder(
        self,
        rule_id: uuid.UUID,
        title: str,
        formatted_amount: str,
        days_before: int,
        due_at_millis: int,
    ) -> None: ...

    async def retract_reminder(self, rule_id: uuid.UUID) -> None:
        """Must be a no-op for reminders that were never raised or already retracted"""
        ...

    async def notifications_enabled(self) -> bool: ...


class SentReminderLog(Protocol):
    """Remembers which occurrence of a rule already produced a reminder"""

    def was_sent(self, rule_id: uuid.UUID, occurrence_millis: int) -> bool: ...

    def mark_sent(self, rule_id: uuid.UUID, occurrence_millis: int, sent_at_millis: int) -> None: ...
