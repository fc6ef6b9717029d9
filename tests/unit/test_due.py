"""Unit tests for due-set detection"""

from recurring_engine.domain.due import due_rules, is_due

from conftest import DAY, FEB_1_2024, make_rule


def test_rule_due_at_exact_instant():
    """Test next occurrence equal to now is due"""
    rule = make_rule()
    assert rule.next_occurrence_millis == FEB_1_2024
    assert is_due(FEB_1_2024, rule) is True
    assert is_due(FEB_1_2024 - 1, rule) is False


def test_paused_rule_never_due():
    """Test inactive rules are excluded however overdue"""
    rule = make_rule(is_active=False)
    assert is_due(FEB_1_2024 + 365 * DAY, rule) is False


def test_due_rules_filters_and_orders():
    """Test only due rules are returned, earliest first"""
    late = make_rule(title="late", next_occurrence_millis=FEB_1_2024 - DAY)
    later = make_rule(title="later", next_occurrence_millis=FEB_1_2024)
    future = make_rule(title="future", next_occurrence_millis=FEB_1_2024 + 1)
    paused = make_rule(title="paused", next_occurrence_millis=FEB_1_2024 - 2 * DAY, is_active=False)

    result = due_rules(FEB_1_2024, [later, future, paused, late])

    assert [r.title for r in result] == ["late", "later"]


def test_due_rules_does_not_mutate_input():
    """Test the input collection is left untouched"""
    rules = [make_rule(title="b"), make_rule(title="a", next_occurrence_millis=FEB_1_2024 - DAY)]
    snapshot = list(rules)

    due_rules(FEB_1_2024, rules)

    assert rules == snapshot


def test_due_rules_empty():
    """Test empty input gives an empty due set"""
    assert due_rules(FEB_1_2024, []) == []
