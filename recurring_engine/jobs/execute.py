"""Execution job - materializes due recurring rules and advances their schedules"""

import asyncio
import logging
import uuid
from datetime import timezone, tzinfo
from typing import Dict, List, Sequence

from recurring_engine.domain.due import due_rules
from recurring_engine.domain.models import (
    BatchStatus,
    ExecutionReport,
    RecurringRule,
    RuleOutcome,
    RuleOutcomeStatus,
)
from recurring_engine.domain.ports import Ledger, Notifier, RuleStore
from recurring_engine.domain.rules import advance_rule, transaction_description
from recurring_engine.jobs.remind import retract_reminder


async def execute_due_batch(
    due: Sequence[RecurringRule],
    *,
    ledger: Ledger,
    store: RuleStore,
    notifier: Notifier,
    now_millis: int,
    tz: tzinfo = timezone.utc,
    max_concurrency: int = 1,
) -> ExecutionReport:
    """
    Execute every rule of a due set, each one independently.

    Per rule:
    1. Record one ledger transaction dated at the rule's current next occurrence
    2. Advance the rule by exactly one period and persist it
    3. Retract the pending reminder when reminders are enabled

    A failure in step 1 or 2 is logged and reported for that rule only; the
    stored rule keeps its next occurrence so the next batch retries it. If
    step 1 succeeded and step 2 failed the retry records the transaction a
    second time (at-least-once).

    Rules run concurrently up to `max_concurrency`; the steps of a single
    rule always run in order, and a rule id appearing twice is executed once.
    """
    unique: Dict[uuid.UUID, RecurringRule] = {}
    for rule in due:
        unique.setdefault(rule.id, rule)

    if not unique:
        return ExecutionReport(status=BatchStatus.SUCCESS)

    semaphore = asyncio.Semaphore(max(1, max_concurrency))

    async def bounded(rule: RecurringRule) -> RuleOutcome:
        async with semaphore:
            return await _execute_rule(
                rule, ledger=ledger, store=store, notifier=notifier, now_millis=now_millis, tz=tz
            )

    outcomes: List[RuleOutcome] = list(await asyncio.gather(*(bounded(r) for r in unique.values())))

    return ExecutionReport(status=BatchStatus.SUCCESS, outcomes=outcomes)


async def run_execution_batch(
    *,
    store: RuleStore,
    ledger: Ledger,
    notifier: Notifier,
    now_millis: int,
    tz: tzinfo = timezone.utc,
    max_concurrency: int = 1,
) -> ExecutionReport:
    """
    Main entry point for the execution trigger.

    Loads active rules, selects the due set and executes it. When the rule
    store cannot be read the whole batch is reported as RETRY.
    """
    try:
        rules = store.load_active_rules()
    except Exception as e:
        logging.error(f"Could not load recurring rules: {e}")
        return ExecutionReport(status=BatchStatus.RETRY, error=str(e))

    due = due_rules(now_millis, rules)
    if not due:
        return ExecutionReport(status=BatchStatus.SUCCESS)

    logging.info("Executing due recurring rules", extra={"due_count": len(due), "now_millis": now_millis})

    return await execute_due_batch(
        due,
        ledger=ledger,
        store=store,
        notifier=notifier,
        now_millis=now_millis,
        tz=tz,
        max_concurrency=max_concurrency,
    )


async def _execute_rule(
    rule: RecurringRule,
    *,
    ledger: Ledger,
    store: RuleStore,
    notifier: Notifier,
    now_millis: int,
    tz: tzinfo,
) -> RuleOutcome:
    occurrence = rule.next_occurrence_millis

    try:
        transaction_id = await ledger.record_transaction(
            kind=rule.kind,
            amount_minor_units=rule.amount_minor_units,
            category=rule.category,
            description=transaction_description(rule),
            occurrence_millis=occurrence,
            recurring_rule_id=rule.id,
        )

        advanced = advance_rule(rule, now_millis, tz)
        store.save_rule(advanced)

    except Exception as e:
        logging.error(
            f"Failed to execute recurring rule: {e}",
            extra={"rule_id": str(rule.id), "occurrence_millis": occurrence},
        )
        return RuleOutcome(
            rule_id=rule.id,
            status=RuleOutcomeStatus.FAILED,
            occurrence_millis=occurrence,
            next_occurrence_millis=occurrence,
            error=str(e),
        )

    retracted = False
    if rule.reminder_enabled:
        retracted = await retract_reminder(notifier, rule.id)

    logging.info(
        "Recurring rule executed",
        extra={
            "rule_id": str(rule.id),
            "transaction_id": transaction_id,
            "occurrence_millis": occurrence,
            "next_occurrence_millis": advanced.next_occurrence_millis,
        },
    )

    return RuleOutcome(
        rule_id=rule.id,
        status=RuleOutcomeStatus.EXECUTED,
        occurrence_millis=occurrence,
        next_occurrence_millis=advanced.next_occurrence_millis,
        transaction_id=transaction_id,
        reminder_retracted=retracted,
    )
