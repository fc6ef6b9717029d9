"""Recurring rule lifecycle: creation, edits, activation and advancement"""

import uuid
from dataclasses import replace
from datetime import timezone, tzinfo
from typing import Optional

from recurring_engine.domain.exceptions import InvalidRuleError
from recurring_engine.domain.frequency import estimated_monthly_amount, next_occurrence
from recurring_engine.domain.models import Frequency, RecurringRule, TransactionKind


def new_rule(
    title: str,
    amount_minor_units: int,
    kind: TransactionKind,
    category: str,
    frequency: Frequency,
    start_millis: int,
    now_millis: int,
    reminder_enabled: bool = False,
    reminder_days_before: int = 0,
    rule_id: Optional[uuid.UUID] = None,
    tz: tzinfo = timezone.utc,
) -> RecurringRule:
    """
    Build a new active rule.

    The first due occurrence is one period after the start instant, and
    the monthly estimate is derived from amount and frequency.
    """
    _check_reminder_days(reminder_days_before)

    return RecurringRule(
        id=rule_id or uuid.uuid4(),
        title=title,
        amount_minor_units=amount_minor_units,
        kind=kind,
        category=category,
        frequency=frequency,
        start_millis=start_millis,
        next_occurrence_millis=next_occurrence(start_millis, frequency, tz),
        estimated_monthly_amount_minor_units=estimated_monthly_amount(amount_minor_units, frequency),
        is_active=True,
        reminder_enabled=reminder_enabled,
        reminder_days_before=reminder_days_before,
        created_at=now_millis,
        updated_at=now_millis,
    )


def edit_rule(
    rule: RecurringRule,
    title: str,
    amount_minor_units: int,
    kind: TransactionKind,
    category: str,
    frequency: Frequency,
    start_millis: int,
    now_millis: int,
    reminder_enabled: bool = False,
    reminder_days_before: int = 0,
    tz: tzinfo = timezone.utc,
) -> RecurringRule:
    """
    Apply a user edit to an existing rule.

    The schedule is reset from the (possibly new) start instant rather
    than shifted relative to the current period. This matches the product
    behavior users currently see; keep it until product confirms otherwise.
    """
    _check_reminder_days(reminder_days_before)

    return replace(
        rule,
        title=title,
        amount_minor_units=amount_minor_units,
        kind=kind,
        category=category,
        frequency=frequency,
        start_millis=start_millis,
        next_occurrence_millis=next_occurrence(start_millis, frequency, tz),
        estimated_monthly_amount_minor_units=estimated_monthly_amount(amount_minor_units, frequency),
        reminder_enabled=reminder_enabled,
        reminder_days_before=reminder_days_before,
        updated_at=now_millis,
    )


def set_active(rule: RecurringRule, is_active: bool, now_millis: int) -> RecurringRule:
    return replace(rule, is_active=is_active, updated_at=now_millis)


def toggle_active(rule: RecurringRule, now_millis: int) -> RecurringRule:
    return set_active(rule, not rule.is_active, now_millis)


def advance_rule(rule: RecurringRule, now_millis: int, tz: tzinfo = timezone.utc) -> RecurringRule:
    """Move the rule's schedule forward by exactly one period"""
    return replace(
        rule,
        next_occurrence_millis=next_occurrence(rule.next_occurrence_millis, rule.frequency, tz),
        updated_at=max(now_millis, rule.updated_at),
    )


def transaction_description(rule: RecurringRule) -> str:
    return f"Recurring: {rule.title}"


def _check_reminder_days(reminder_days_before: int) -> None:
    if reminder_days_before < 0:
        raise InvalidRuleError("reminder_days_before must be non-negative")
