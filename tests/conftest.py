"""Pytest fixtures for testing"""

import uuid
import pytest
from typing import Dict, Generator, List, Optional, Set, Tuple
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from recurring_engine.api.dependencies import get_notifier
from recurring_engine.api.main import create_app
from recurring_engine.domain.exceptions import LedgerError, NotificationError, RuleStoreError
from recurring_engine.domain.models import Frequency, RecurringRule, TransactionKind
from recurring_engine.domain.rules import new_rule
from recurring_engine.infrastructure.database.models import Base
from recurring_engine.infrastructure.database.session import get_db

# 2024-01-01T00:00:00Z and its MONTHLY successors
JAN_1_2024 = 1_704_067_200_000
FEB_1_2024 = 1_706_745_600_000
MAR_1_2024 = 1_709_251_200_000
DAY = 86_400_000


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeLedger:
    """In-memory ledger; rule ids in `fail_for` are rejected"""

    def __init__(self):
        self.transactions: List[dict] = []
        self.fail_for: Set[uuid.UUID] = set()

    async def record_transaction(
        self,
        kind,
        amount_minor_units,
        category,
        description,
        occurrence_millis,
        recurring_rule_id=None,
    ) -> str:
        if recurring_rule_id in self.fail_for:
            raise LedgerError("ledger unavailable")
        transaction_id = f"txn-{len(self.transactions) + 1}"
        self.transactions.append(
            {
                "transaction_id": transaction_id,
                "kind": kind,
                "amount_minor_units": amount_minor_units,
                "category": category,
                "description": description,
                "occurrence_millis": occurrence_millis,
                "recurring_rule_id": recurring_rule_id,
            }
        )
        return transaction_id

    def for_rule(self, rule_id: uuid.UUID) -> List[dict]:
        return [t for t in self.transactions if t["recurring_rule_id"] == rule_id]


class FakeNotifier:
    """In-memory notification service keyed by rule id"""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.active: Dict[uuid.UUID, dict] = {}
        self.raised: List[dict] = []
        self.retracted: List[uuid.UUID] = []
        self.fail_raise_for: Set[uuid.UUID] = set()
        self.fail_retract = False
        self.fail_status = False

    async def raise_reminder(self, rule_id, title, formatted_amount, days_before, due_at_millis) -> None:
        if rule_id in self.fail_raise_for:
            raise NotificationError("notification service unavailable")
        reminder = {
            "rule_id": rule_id,
            "title": title,
            "formatted_amount": formatted_amount,
            "days_before": days_before,
            "due_at_millis": due_at_millis,
        }
        self.active[rule_id] = reminder
        self.raised.append(reminder)

    async def retract_reminder(self, rule_id) -> None:
        if self.fail_retract:
            raise NotificationError("notification service unavailable")
        self.active.pop(rule_id, None)
        self.retracted.append(rule_id)

    async def notifications_enabled(self) -> bool:
        if self.fail_status:
            raise NotificationError("notification service unavailable")
        return self.enabled


class InMemoryRuleStore:
    """Rule store backed by a dict; can be told to fail reads or writes"""

    def __init__(self, rules: Optional[List[RecurringRule]] = None):
        self.rules: Dict[uuid.UUID, RecurringRule] = {r.id: r for r in rules or []}
        self.fail_load = False
        self.fail_save_for: Set[uuid.UUID] = set()
        self.saves: List[RecurringRule] = []

    def load_active_rules(self) -> List[RecurringRule]:
        if self.fail_load:
            raise RuleStoreError("database unavailable")
        return [r for r in self.rules.values() if r.is_active]

    def load_rule_by_id(self, rule_id):
        return self.rules.get(rule_id)

    def save_rule(self, rule: RecurringRule) -> None:
        if rule.id in self.fail_save_for:
            raise RuleStoreError("write failed")
        self.rules[rule.id] = rule
        self.saves.append(rule)

    def delete_rule(self, rule_id) -> None:
        self.rules.pop(rule_id, None)


class InMemorySentLog:
    def __init__(self):
        self.sent: Set[Tuple[uuid.UUID, int]] = set()

    def was_sent(self, rule_id, occurrence_millis) -> bool:
        return (rule_id, occurrence_millis) in self.sent

    def mark_sent(self, rule_id, occurrence_millis, sent_at_millis) -> None:
        self.sent.add((rule_id, occurrence_millis))


def make_rule(
    title: str = "Netflix",
    amount_minor_units: int = 1599,
    kind: TransactionKind = TransactionKind.EXPENSE,
    category: str = "Entertainment",
    frequency: Frequency = Frequency.MONTHLY,
    start_millis: int = JAN_1_2024,
    **overrides,
) -> RecurringRule:
    """Build a rule through the normal creation path, then apply overrides"""
    rule = new_rule(
        title=title,
        amount_minor_units=amount_minor_units,
        kind=kind,
        category=category,
        frequency=frequency,
        start_millis=start_millis,
        now_millis=start_millis,
    )
    for name, value in overrides.items():
        setattr(rule, name, value)
    return rule


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def sent_log() -> InMemorySentLog:
    return InMemorySentLog()


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session, notifier: FakeNotifier) -> TestClient:
    """Create FastAPI test client with test database and in-memory notifier"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    return TestClient(app)
