"""Reminder eligibility for upcoming recurring occurrences"""

from typing import Iterable, List

from recurring_engine.domain.models import RecurringRule
from recurring_engine.utils.date_utils import MILLIS_PER_DAY


def needs_reminder(now_millis: int, rule: RecurringRule) -> bool:
    """
    Decide whether an upcoming occurrence should raise a reminder.

    Requirements:
    - reminders enabled and rule active
    - occurrence still in the future (past-due rules belong to execution)
    - occurrence within `reminder_days_before` days of now; 0 days means
      the reminder only fires at the due instant itself, which is never
      strictly in the future, so it is picked up by execution instead
    """
    if not (rule.reminder_enabled and rule.is_active):
        return False

    remaining = rule.next_occurrence_millis - now_millis
    if remaining <= 0:
        return False

    return remaining <= rule.reminder_days_before * MILLIS_PER_DAY


def reminder_candidates(now_millis: int, rules: Iterable[RecurringRule]) -> List[RecurringRule]:
    """Rules that need a reminder at `now_millis`, ordered by due time"""
    selected = [rule for rule in rules if needs_reminder(now_millis, rule)]
    return sorted(selected, key=lambda r: r.next_occurrence_millis)
