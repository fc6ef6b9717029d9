"""Dependency injection for FastAPI endpoints"""

from datetime import tzinfo
from zoneinfo import ZoneInfo
from fastapi import Depends, Request
from sqlalchemy.orm import Session
from recurring_engine.config import settings
from recurring_engine.domain.ports import Ledger
from recurring_engine.infrastructure.clients.ledger import LedgerClient
from recurring_engine.infrastructure.clients.notifications import NotificationClient
from recurring_engine.infrastructure.database.repositories import (
    LocalLedger,
    RuleRepository,
    SentReminderRepository,
    TransactionRepository,
)
from recurring_engine.infrastructure.database.session import get_db


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_rule_repository(db: Session = Depends(get_db)) -> RuleRepository:
    """Provide the rule store bound to the request session"""
    return RuleRepository(db)


def get_sent_reminder_log(db: Session = Depends(get_db)) -> SentReminderRepository:
    """Provide the sent-reminder log bound to the request session"""
    return SentReminderRepository(db)


def get_ledger(db: Session = Depends(get_db)) -> Ledger:
    """Provide the configured ledger: local table or remote ledger service"""
    if settings.ledger_backend == "remote":
        return LedgerClient()
    return LocalLedger(TransactionRepository(db))


def get_notifier() -> NotificationClient:
    """Provide Notification service client instance"""
    return NotificationClient()


def get_calendar_tz() -> tzinfo:
    """Civil calendar used for MONTHLY advancement"""
    return ZoneInfo(settings.calendar_timezone)
