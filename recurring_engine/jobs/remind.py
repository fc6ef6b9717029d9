"""Reminder scan job - raises reminders for upcoming occurrences and retracts stale ones"""

import logging
import uuid
from typing import List, Sequence

from recurring_engine.domain.models import (
    BatchStatus,
    RecurringRule,
    ReminderOutcome,
    ReminderOutcomeStatus,
    ReminderReport,
)
from recurring_engine.domain.money import format_amount
from recurring_engine.domain.ports import Notifier, RuleStore, SentReminderLog
from recurring_engine.domain.reminders import reminder_candidates
from recurring_engine.infrastructure.observability.metrics import reminder_retraction_failure_counter


async def retract_reminder(notifier: Notifier, rule_id: uuid.UUID) -> bool:
    """
    Retract any outstanding reminder for a rule.

    Retracting a reminder that was never raised is a no-op on the notifier
    side. Failures are logged and reported as False, never raised.
    """
    try:
        await notifier.retract_reminder(rule_id)
        return True
    except Exception as e:
        reminder_retraction_failure_counter.inc()
        logging.warning(f"Failed to retract reminder: {e}", extra={"rule_id": str(rule_id)})
        return False


async def raise_reminders(
    candidates: Sequence[RecurringRule],
    *,
    notifier: Notifier,
    sent_log: SentReminderLog,
    now_millis: int,
) -> List[ReminderOutcome]:
    """
    Raise one reminder per candidate rule and occurrence.

    Each candidate is handled on its own: a notifier failure for one rule
    is logged and reported without affecting the others. A reminder already
    raised for the same (rule, occurrence) pair is not raised again.
    """
    outcomes = []
    for rule in candidates:
        outcomes.append(await _remind_rule(rule, notifier=notifier, sent_log=sent_log, now_millis=now_millis))
    return outcomes


async def scan_for_reminders(
    *,
    store: RuleStore,
    notifier: Notifier,
    sent_log: SentReminderLog,
    now_millis: int,
) -> ReminderReport:
    """
    Main entry point for the reminder trigger.

    Flow:
    1. Skip quietly when notifications are disabled
    2. Load active rules (failure -> RETRY)
    3. Select rules whose occurrence falls inside their reminder window
    4. Raise reminders, isolated per rule
    """
    try:
        if not await notifier.notifications_enabled():
            logging.info("Notifications disabled, skipping reminder scan")
            return ReminderReport(status=BatchStatus.SUCCESS, notifications_enabled=False)

        rules = store.load_active_rules()
    except Exception as e:
        logging.error(f"Reminder scan could not start: {e}")
        return ReminderReport(status=BatchStatus.RETRY, error=str(e))

    candidates = reminder_candidates(now_millis, rules)
    if not candidates:
        return ReminderReport(status=BatchStatus.SUCCESS)

    outcomes = await raise_reminders(candidates, notifier=notifier, sent_log=sent_log, now_millis=now_millis)
    return ReminderReport(status=BatchStatus.SUCCESS, outcomes=outcomes)


async def _remind_rule(
    rule: RecurringRule,
    *,
    notifier: Notifier,
    sent_log: SentReminderLog,
    now_millis: int,
) -> ReminderOutcome:
    due_at = rule.next_occurrence_millis
    try:
        if sent_log.was_sent(rule.id, due_at):
            logging.debug("Reminder already sent for this occurrence", extra={"rule_id": str(rule.id)})
            return ReminderOutcome(rule_id=rule.id, status=ReminderOutcomeStatus.ALREADY_SENT, due_at_millis=due_at)

        await notifier.raise_reminder(
            rule_id=rule.id,
            title=rule.title,
            formatted_amount=format_amount(rule.amount_minor_units, rule.kind),
            days_before=rule.reminder_days_before,
            due_at_millis=due_at,
        )

    except Exception as e:
        logging.error(f"Failed to send reminder: {e}", extra={"rule_id": str(rule.id)})
        return ReminderOutcome(
            rule_id=rule.id,
            status=ReminderOutcomeStatus.FAILED,
            due_at_millis=due_at,
            error=str(e),
        )

    # Already delivered: a missing record means at most one repeat next scan
    try:
        sent_log.mark_sent(rule.id, due_at, now_millis)
    except Exception as e:
        logging.warning(f"Reminder sent but not recorded: {e}", extra={"rule_id": str(rule.id)})

    logging.info("Reminder sent", extra={"rule_id": str(rule.id), "due_at_millis": due_at})
    return ReminderOutcome(rule_id=rule.id, status=ReminderOutcomeStatus.RAISED, due_at_millis=due_at)
