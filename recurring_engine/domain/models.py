"""Domain models - pure Python dataclasses representing business entities"""

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from recurring_engine.domain.exceptions import InvalidRuleError


class Frequency(str, Enum):
    """How often a recurring rule materializes a transaction"""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"

    @classmethod
    def parse(cls, token: "str | Frequency") -> "Frequency":
        """
        Case-insensitive parse of an external frequency token.

        Unrecognized tokens fall back to MONTHLY so that both the next
        occurrence and the monthly estimate behave as a once-a-month rule.
        """
        if isinstance(token, cls):
            return token
        try:
            return cls(str(token).strip().upper())
        except ValueError:
            logging.warning("Unrecognized frequency token, defaulting to MONTHLY", extra={"token": token})
            return cls.MONTHLY


class TransactionKind(str, Enum):
    """Direction of money flow; amounts themselves are never negative"""

    EXPENSE = "EXPENSE"
    INCOME = "INCOME"

    @classmethod
    def parse(cls, token: "str | TransactionKind") -> "TransactionKind":
        if isinstance(token, cls):
            return token
        try:
            return cls(str(token).strip().upper())
        except ValueError as e:
            raise InvalidRuleError(f"Unknown transaction kind: {token!r}") from e


class BatchStatus(str, Enum):
    """Outcome of a whole batch invocation as seen by the trigger"""

    SUCCESS = "success"
    RETRY = "retry"


class RuleOutcomeStatus(str, Enum):
    EXECUTED = "executed"
    FAILED = "failed"


class ReminderOutcomeStatus(str, Enum):
    RAISED = "raised"
    ALREADY_SENT = "already_sent"
    FAILED = "failed"


@dataclass
class RecurringRule:
    """User-defined recurring obligation"""

    id: uuid.UUID
    title: str
    amount_minor_units: int
    kind: TransactionKind
    category: str
    frequency: Frequency
    start_millis: int
    next_occurrence_millis: int
    estimated_monthly_amount_minor_units: int
    is_active: bool = True
    reminder_enabled: bool = False
    reminder_days_before: int = 0
    created_at: int = 0
    updated_at: int = 0


@dataclass
class MaterializedTransaction:
    """Ledger entry produced for one executed occurrence"""

    transaction_id: str
    kind: TransactionKind
    amount_minor_units: int
    category: str
    description: str
    occurrence_millis: int
    recurring_rule_id: Optional[uuid.UUID] = None


@dataclass
class RuleOutcome:
    """Result of processing one due rule"""

    rule_id: uuid.UUID
    status: RuleOutcomeStatus
    occurrence_millis: int
    next_occurrence_millis: int
    transaction_id: Optional[str] = None
    reminder_retracted: bool = False
    error: Optional[str] = None


@dataclass
class ExecutionReport:
    """Per-rule success/failure report of one execution batch"""

    status: BatchStatus
    outcomes: List[RuleOutcome] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def executed(self) -> List[RuleOutcome]:
        return [o for o in self.outcomes if o.status == RuleOutcomeStatus.EXECUTED]

    @property
    def failed(self) -> List[RuleOutcome]:
        return [o for o in self.outcomes if o.status == RuleOutcomeStatus.FAILED]


@dataclass
class ReminderOutcome:
    rule_id: uuid.UUID
    status: ReminderOutcomeStatus
    due_at_millis: int
    error: Optional[str] = None


@dataclass
class ReminderReport:
    """Result of one reminder scan"""

    status: BatchStatus
    notifications_enabled: bool = True
    outcomes: List[ReminderOutcome] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def raised(self) -> List[ReminderOutcome]:
        return [o for o in self.outcomes if o.status == ReminderOutcomeStatus.RAISED]

    @property
    def failed(self) -> List[ReminderOutcome]:
        return [o for o in self.outcomes if o.status == ReminderOutcomeStatus.FAILED]
