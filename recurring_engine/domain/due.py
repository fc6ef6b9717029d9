"""Due-set detection for recurring rules"""

from typing import Iterable, List

from recurring_engine.domain.models import RecurringRule


def is_due(now_millis: int, rule: RecurringRule) -> bool:
    return rule.is_active and rule.next_occurrence_millis <= now_millis


def due_rules(now_millis: int, rules: Iterable[RecurringRule]) -> List[RecurringRule]:
    """
    Select active rules whose next occurrence is at or before `now_millis`.

    The input is not mutated. Results are ordered by next occurrence; ties
    keep their input order.
    """
    selected = [rule for rule in rules if is_due(now_millis, rule)]
    return sorted(selected, key=lambda r: r.next_occurrence_millis)
