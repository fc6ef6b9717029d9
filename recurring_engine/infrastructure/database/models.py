"""SQLAlchemy ORM models for recurring rules, ledger entries and sent reminders"""

import uuid
from sqlalchemy import Column, String, BigInteger, Boolean, Integer, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class RecurringRuleRecord(Base):
    """Recurring rule; all instants are epoch milliseconds"""

    __tablename__ = "recurring_rule"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(Text, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    kind = Column(String(16), nullable=False, index=True)
    category = Column(Text, nullable=False)
    frequency = Column(String(16), nullable=False)
    start_millis = Column(BigInteger, nullable=False)
    next_occurrence_millis = Column(BigInteger, nullable=False, index=True)
    estimated_monthly_cents = Column(BigInteger, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    reminder_enabled = Column(Boolean, nullable=False, default=False)
    reminder_days_before = Column(Integer, nullable=False, default=0)
    created_at = Column(BigInteger, nullable=False)
    updated_at = Column(BigInteger, nullable=False)


class LedgerTransaction(Base):
    """Transaction materialized from a recurring rule occurrence"""

    __tablename__ = "ledger_transaction"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    kind = Column(String(16), nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    category = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    occurrence_millis = Column(BigInteger, nullable=False, index=True)
    # No foreign key: ledger entries outlive deleted rules
    recurring_rule_id = Column(UUID(as_uuid=True), nullable=True, index=True)


class SentReminder(Base):
    """One row per (rule, occurrence) whose reminder was raised"""

    __tablename__ = "sent_reminder"
    __table_args__ = (UniqueConstraint("rule_id", "occurrence_millis", name="uq_sent_reminder_cycle"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    rule_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    occurrence_millis = Column(BigInteger, nullable=False)
    sent_at_millis = Column(BigInteger, nullable=False)
