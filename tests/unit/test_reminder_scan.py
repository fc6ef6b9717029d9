"""Unit tests for the reminder scan job"""

from sqlalchemy import event
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from recurring_engine.domain.exceptions import RuleStoreError
from recurring_engine.domain.models import BatchStatus, ReminderOutcomeStatus, TransactionKind
from recurring_engine.infrastructure.database.repositories import SentReminderRepository
from recurring_engine.jobs.remind import retract_reminder, scan_for_reminders

from conftest import DAY, FEB_1_2024, FakeNotifier, InMemoryRuleStore, InMemorySentLog, engine, make_rule

NOW = FEB_1_2024 - DAY


async def test_scan_raises_reminder(notifier: FakeNotifier, sent_log: InMemorySentLog):
    """Test a rule inside its window raises one formatted reminder"""
    rule = make_rule(reminder_enabled=True, reminder_days_before=3)
    store = InMemoryRuleStore([rule])

    report = await scan_for_reminders(store=store, notifier=notifier, sent_log=sent_log, now_millis=NOW)

    assert report.status == BatchStatus.SUCCESS
    assert [o.rule_id for o in report.raised] == [rule.id]
    assert notifier.raised == [
        {
            "rule_id": rule.id,
            "title": "Netflix",
            "formatted_amount": "-$15.99",
            "days_before": 3,
            "due_at_millis": FEB_1_2024,
        }
    ]


async def test_scan_income_reminder_format(notifier: FakeNotifier, sent_log: InMemorySentLog):
    """Test income reminders carry a plus sign"""
    rule = make_rule(
        title="Salary", amount_minor_units=500000, kind=TransactionKind.INCOME, reminder_enabled=True, reminder_days_before=1
    )
    store = InMemoryRuleStore([rule])

    await scan_for_reminders(store=store, notifier=notifier, sent_log=sent_log, now_millis=NOW)

    assert notifier.raised[0]["formatted_amount"] == "+$5,000.00"


async def test_scan_sends_once_per_occurrence(notifier: FakeNotifier, sent_log: InMemorySentLog):
    """Test repeated scans in the same cycle do not raise duplicates"""
    rule = make_rule(reminder_enabled=True, reminder_days_before=3)
    store = InMemoryRuleStore([rule])

    await scan_for_reminders(store=store, notifier=notifier, sent_log=sent_log, now_millis=NOW - DAY)
    report = await scan_for_reminders(store=store, notifier=notifier, sent_log=sent_log, now_millis=NOW)

    assert report.outcomes[0].status == ReminderOutcomeStatus.ALREADY_SENT
    assert len(notifier.raised) == 1


async def test_scan_skipped_when_notifications_disabled(sent_log: InMemorySentLog):
    """Test a disabled notification permission skips the scan"""
    notifier = FakeNotifier(enabled=False)
    store = InMemoryRuleStore([make_rule(reminder_enabled=True, reminder_days_before=3)])

    report = await scan_for_reminders(store=store, notifier=notifier, sent_log=sent_log, now_millis=NOW)

    assert report.status == BatchStatus.SUCCESS
    assert report.notifications_enabled is False
    assert notifier.raised == []


async def test_scan_store_failure_requests_retry(notifier: FakeNotifier, sent_log: InMemorySentLog):
    """Test an unreadable rule store turns the scan into RETRY"""
    store = InMemoryRuleStore()
    store.fail_load = True

    report = await scan_for_reminders(store=store, notifier=notifier, sent_log=sent_log, now_millis=NOW)

    assert report.status == BatchStatus.RETRY


async def test_scan_status_failure_requests_retry(notifier: FakeNotifier, sent_log: InMemorySentLog):
    """Test an unreachable notification service turns the scan into RETRY"""
    notifier.fail_status = True

    report = await scan_for_reminders(store=InMemoryRuleStore(), notifier=notifier, sent_log=sent_log, now_millis=NOW)

    assert report.status == BatchStatus.RETRY


async def test_scan_failure_is_isolated(notifier: FakeNotifier, sent_log: InMemorySentLog):
    """Test one failing reminder does not block the others"""
    failing = make_rule(title="failing", reminder_enabled=True, reminder_days_before=3)
    healthy = make_rule(title="healthy", reminder_enabled=True, reminder_days_before=3)
    notifier.fail_raise_for.add(failing.id)
    store = InMemoryRuleStore([failing, healthy])

    report = await scan_for_reminders(store=store, notifier=notifier, sent_log=sent_log, now_millis=NOW)

    assert report.status == BatchStatus.SUCCESS
    assert [o.rule_id for o in report.failed] == [failing.id]
    assert [o.rule_id for o in report.raised] == [healthy.id]
    assert not sent_log.was_sent(failing.id, FEB_1_2024)


async def test_retract_reminder_reports_failure(notifier: FakeNotifier):
    """Test retraction failures are swallowed and reported as False"""
    rule = make_rule()
    assert await retract_reminder(notifier, rule.id) is True

    notifier.fail_retract = True
    assert await retract_reminder(notifier, rule.id) is False


async def test_unrecorded_reminder_still_reported_raised(notifier: FakeNotifier):
    """Test a sent-log write failure after the send does not mark the reminder failed"""

    class BrokenSentLog(InMemorySentLog):
        def mark_sent(self, rule_id, occurrence_millis, sent_at_millis):
            raise RuleStoreError("database is locked")

    rule = make_rule(reminder_enabled=True, reminder_days_before=3)
    store = InMemoryRuleStore([rule])

    report = await scan_for_reminders(store=store, notifier=notifier, sent_log=BrokenSentLog(), now_millis=NOW)

    assert report.outcomes[0].status == ReminderOutcomeStatus.RAISED
    assert len(notifier.raised) == 1


async def test_sent_log_failure_does_not_block_other_rules(db: Session, notifier: FakeNotifier):
    """Test a failed sent-reminder insert leaves the session usable for the next rule"""
    first = make_rule(title="first", reminder_enabled=True, reminder_days_before=3)
    second = make_rule(
        title="second", reminder_enabled=True, reminder_days_before=3, next_occurrence_millis=FEB_1_2024 + DAY
    )
    store = InMemoryRuleStore([first, second])
    inserts = []

    def fail_first_insert(conn, cursor, statement, parameters, context, executemany):
        if statement.startswith("INSERT INTO sent_reminder"):
            inserts.append(statement)
            if len(inserts) == 1:
                raise OperationalError(statement, parameters, Exception("database is locked"))

    event.listen(engine, "before_cursor_execute", fail_first_insert)
    try:
        report = await scan_for_reminders(
            store=store, notifier=notifier, sent_log=SentReminderRepository(db), now_millis=NOW
        )
    finally:
        event.remove(engine, "before_cursor_execute", fail_first_insert)

    assert [o.status for o in report.outcomes] == [ReminderOutcomeStatus.RAISED, ReminderOutcomeStatus.RAISED]
    assert SentReminderRepository(db).was_sent(second.id, FEB_1_2024 + DAY) is True
    assert SentReminderRepository(db).was_sent(first.id, FEB_1_2024) is False
