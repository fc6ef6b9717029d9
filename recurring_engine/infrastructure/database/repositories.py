"""Data access layer for recurring rules, ledger entries and sent reminders"""

import uuid
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from recurring_engine.infrastructure.database.models import LedgerTransaction, RecurringRuleRecord, SentReminder
from recurring_engine.domain.exceptions import LedgerError, RuleNotFoundError, RuleStoreError
from recurring_engine.domain.models import Frequency, MaterializedTransaction, RecurringRule, TransactionKind


class RuleRepository:
    """Repository for recurring rules; doubles as the scheduling jobs' rule store"""

    def __init__(self, db: Session):
        self.db = db

    def load_active_rules(self) -> List[RecurringRule]:
        """Fetch all active rules ordered by next occurrence"""
        try:
            records = (
                self.db.query(RecurringRuleRecord)
                .filter(RecurringRuleRecord.is_active.is_(True))
                .order_by(RecurringRuleRecord.next_occurrence_millis.asc())
                .all()
            )
        except SQLAlchemyError as e:
            raise RuleStoreError(f"Could not read recurring rules: {e}") from e
        return [_to_domain(r) for r in records]

    def list_rules(self, kind: Optional[TransactionKind] = None) -> List[RecurringRule]:
        """Fetch all rules, active or not, ordered by next occurrence"""
        query = self.db.query(RecurringRuleRecord)
        if kind is not None:
            query = query.filter(RecurringRuleRecord.kind == kind.value)
        records = query.order_by(RecurringRuleRecord.next_occurrence_millis.asc()).all()
        return [_to_domain(r) for r in records]

    def load_rule_by_id(self, rule_id: uuid.UUID) -> Optional[RecurringRule]:
        record = self.db.get(RecurringRuleRecord, rule_id)
        return _to_domain(record) if record else None

    def get_rule(self, rule_id: uuid.UUID) -> RecurringRule:
        """Fetch a rule or raise RuleNotFoundError"""
        rule = self.load_rule_by_id(rule_id)
        if rule is None:
            raise RuleNotFoundError(f"Recurring rule {rule_id} not found")
        return rule

    def save_rule(self, rule: RecurringRule) -> None:
        """Insert or update a rule and commit it on its own"""
        try:
            record = self.db.get(RecurringRuleRecord, rule.id)
            if record is None:
                record = RecurringRuleRecord(id=rule.id)
                self.db.add(record)
            _apply(record, rule)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RuleStoreError(f"Could not save recurring rule {rule.id}: {e}") from e

    def delete_rule(self, rule_id: uuid.UUID) -> None:
        """Delete a rule; deleting a missing rule is a no-op"""
        try:
            self.db.query(RecurringRuleRecord).filter(RecurringRuleRecord.id == rule_id).delete()
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RuleStoreError(f"Could not delete recurring rule {rule_id}: {e}") from e

    def total_estimated_monthly(self, kind: TransactionKind) -> int:
        """Sum of monthly estimates over active rules of one kind, in cents"""
        total = (
            self.db.query(func.coalesce(func.sum(RecurringRuleRecord.estimated_monthly_cents), 0))
            .filter(RecurringRuleRecord.is_active.is_(True))
            .filter(RecurringRuleRecord.kind == kind.value)
            .scalar()
        )
        return int(total or 0)

    def count(self, active_only: bool = False) -> int:
        query = self.db.query(func.count(RecurringRuleRecord.id))
        if active_only:
            query = query.filter(RecurringRuleRecord.is_active.is_(True))
        return int(query.scalar() or 0)


class TransactionRepository:
    """Repository for ledger transactions materialized from rules"""

    def __init__(self, db: Session):
        self.db = db

    def create_transaction(
        self,
        kind: TransactionKind,
        amount_cents: int,
        category: str,
        description: str,
        occurrence_millis: int,
        recurring_rule_id: Optional[uuid.UUID] = None,
    ) -> LedgerTransaction:
        """Persist one ledger transaction and commit it"""
        db_transaction = LedgerTransaction(
            kind=kind.value,
            amount_cents=amount_cents,
            category=category,
            description=description,
            occurrence_millis=occurrence_millis,
            recurring_rule_id=recurring_rule_id,
        )
        try:
            self.db.add(db_transaction)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise LedgerError(f"Could not record transaction: {e}") from e
        return db_transaction

    def get_transactions_by_rule(self, rule_id: uuid.UUID) -> List[MaterializedTransaction]:
        """Fetch transactions generated by one rule, oldest occurrence first"""
        records = (
            self.db.query(LedgerTransaction)
            .filter(LedgerTransaction.recurring_rule_id == rule_id)
            .order_by(LedgerTransaction.occurrence_millis.asc())
            .all()
        )
        return [
            MaterializedTransaction(
                transaction_id=str(r.id),
                kind=TransactionKind.parse(r.kind),
                amount_minor_units=r.amount_cents,
                category=r.category,
                description=r.description,
                occurrence_millis=r.occurrence_millis,
                recurring_rule_id=r.recurring_rule_id,
            )
            for r in records
        ]


class LocalLedger:
    """Ledger collaborator backed by the local ledger_transaction table"""

    def __init__(self, transactions: TransactionRepository):
        self.transactions = transactions

    async def record_transaction(
        self,
        kind: TransactionKind,
        amount_minor_units: int,
        category: str,
        description: str,
        occurrence_millis: int,
        recurring_rule_id: Optional[uuid.UUID] = None,
    ) -> str:
        db_transaction = self.transactions.create_transaction(
            kind=kind,
            amount_cents=amount_minor_units,
            category=category,
            description=description,
            occurrence_millis=occurrence_millis,
            recurring_rule_id=recurring_rule_id,
        )
        return str(db_transaction.id)


class SentReminderRepository:
    """Per-occurrence log of raised reminders"""

    def __init__(self, db: Session):
        self.db = db

    def was_sent(self, rule_id: uuid.UUID, occurrence_millis: int) -> bool:
        return (
            self.db.query(SentReminder.id)
            .filter(SentReminder.rule_id == rule_id)
            .filter(SentReminder.occurrence_millis == occurrence_millis)
            .first()
            is not None
        )

    def mark_sent(self, rule_id: uuid.UUID, occurrence_millis: int, sent_at_millis: int) -> None:
        try:
            self.db.add(SentReminder(rule_id=rule_id, occurrence_millis=occurrence_millis, sent_at_millis=sent_at_millis))
            self.db.commit()
        except IntegrityError:
            # Already recorded for this cycle
            self.db.rollback()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RuleStoreError(f"Could not record sent reminder for rule {rule_id}: {e}") from e

    def clear_for_rule(self, rule_id: uuid.UUID) -> None:
        """Forget every sent reminder of a rule (used when the rule is deleted)"""
        try:
            self.db.query(SentReminder).filter(SentReminder.rule_id == rule_id).delete()
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RuleStoreError(f"Could not clear sent reminders for rule {rule_id}: {e}") from e


def _to_domain(record: RecurringRuleRecord) -> RecurringRule:
    return RecurringRule(
        id=record.id,
        title=record.title,
        amount_minor_units=record.amount_cents,
        kind=TransactionKind.parse(record.kind),
        category=record.category,
        frequency=Frequency.parse(record.frequency),
        start_millis=record.start_millis,
        next_occurrence_millis=record.next_occurrence_millis,
        estimated_monthly_amount_minor_units=record.estimated_monthly_cents,
        is_active=record.is_active,
        reminder_enabled=record.reminder_enabled,
        reminder_days_before=record.reminder_days_before,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _apply(record: RecurringRuleRecord, rule: RecurringRule) -> None:
    record.title = rule.title
    record.amount_cents = rule.amount_minor_units
    record.kind = rule.kind.value
    record.category = rule.category
    record.frequency = rule.frequency.value
    record.start_millis = rule.start_millis
    record.next_occurrence_millis = rule.next_occurrence_millis
    record.estimated_monthly_cents = rule.estimated_monthly_amount_minor_units
    record.is_active = rule.is_active
    record.reminder_enabled = rule.reminder_enabled
    record.reminder_days_before = rule.reminder_days_before
    record.created_at = rule.created_at
    record.updated_at = rule.updated_at
