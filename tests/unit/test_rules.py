"""Unit tests for the recurring rule lifecycle"""

import pytest
from recurring_engine.domain.exceptions import InvalidRuleError
from recurring_engine.domain.models import Frequency, TransactionKind
from recurring_engine.domain.rules import (
    advance_rule,
    edit_rule,
    new_rule,
    set_active,
    toggle_active,
    transaction_description,
)

from conftest import DAY, FEB_1_2024, JAN_1_2024, MAR_1_2024, make_rule


def test_new_rule_first_occurrence_is_one_period_after_start():
    """Test creation seeds next occurrence and monthly estimate"""
    rule = new_rule(
        title="Netflix",
        amount_minor_units=1599,
        kind=TransactionKind.EXPENSE,
        category="Entertainment",
        frequency=Frequency.MONTHLY,
        start_millis=JAN_1_2024,
        now_millis=JAN_1_2024 + 5,
    )

    assert rule.next_occurrence_millis == FEB_1_2024
    assert rule.estimated_monthly_amount_minor_units == 1599
    assert rule.is_active is True
    assert rule.created_at == rule.updated_at == JAN_1_2024 + 5


def test_new_rule_rejects_negative_reminder_days():
    """Test reminder_days_before must be non-negative"""
    with pytest.raises(InvalidRuleError):
        new_rule(
            title="Rent",
            amount_minor_units=100000,
            kind=TransactionKind.EXPENSE,
            category="Housing",
            frequency=Frequency.MONTHLY,
            start_millis=JAN_1_2024,
            now_millis=JAN_1_2024,
            reminder_days_before=-1,
        )


def test_advance_rule_moves_one_period():
    """Test advancing uses the current next occurrence, not now"""
    rule = make_rule()
    late_now = FEB_1_2024 + 10 * DAY

    advanced = advance_rule(rule, late_now)

    assert advanced.next_occurrence_millis == MAR_1_2024
    assert advanced.updated_at == late_now
    assert rule.next_occurrence_millis == FEB_1_2024  # input rule untouched


def test_advance_rule_does_not_catch_up():
    """Test a rule overdue by several periods advances only once per execution"""
    rule = make_rule(frequency=Frequency.WEEKLY, next_occurrence_millis=JAN_1_2024)

    advanced = advance_rule(rule, JAN_1_2024 + 30 * DAY)

    assert advanced.next_occurrence_millis == JAN_1_2024 + 7 * DAY


def test_advance_rule_updated_at_never_decreases():
    """Test an older now does not move updated_at backwards"""
    rule = make_rule(updated_at=FEB_1_2024)
    assert advance_rule(rule, JAN_1_2024).updated_at == FEB_1_2024


def test_edit_rule_resets_schedule_from_start():
    """Test editing recomputes next occurrence from the start instant"""
    rule = make_rule(next_occurrence_millis=MAR_1_2024)

    edited = edit_rule(
        rule,
        title="Netflix Premium",
        amount_minor_units=2299,
        kind=TransactionKind.EXPENSE,
        category="Entertainment",
        frequency=Frequency.WEEKLY,
        start_millis=JAN_1_2024,
        now_millis=MAR_1_2024,
    )

    assert edited.id == rule.id
    assert edited.next_occurrence_millis == JAN_1_2024 + 7 * DAY
    assert edited.estimated_monthly_amount_minor_units == 2299 * 4
    assert edited.created_at == rule.created_at
    assert edited.updated_at == MAR_1_2024


def test_set_and_toggle_active():
    """Test pause/resume keep the schedule"""
    rule = make_rule()

    paused = toggle_active(rule, FEB_1_2024)
    assert paused.is_active is False
    assert paused.next_occurrence_millis == rule.next_occurrence_millis

    resumed = set_active(paused, True, MAR_1_2024)
    assert resumed.is_active is True
    assert resumed.updated_at == MAR_1_2024


def test_transaction_description():
    """Test ledger description carries the rule title"""
    assert transaction_description(make_rule(title="Gym")) == "Recurring: Gym"
