"""Frequency calculator - next occurrence and monthly-equivalent amounts"""

from datetime import timezone, tzinfo
from typing import Dict

from recurring_engine.domain.models import Frequency
from recurring_engine.utils.date_utils import MILLIS_PER_DAY, add_calendar_months

# YEARLY advances by a fixed period instead of a calendar year-add, unlike
# MONTHLY below. The constant is the literal the reporting layer and its
# tests are pinned to; do not unify it with the calendar policy.
YEARLY_PERIOD_MILLIS = 31_622_400_000

FIXED_PERIOD_MILLIS: Dict[Frequency, int] = {
    Frequency.DAILY: MILLIS_PER_DAY,
    Frequency.WEEKLY: 7 * MILLIS_PER_DAY,
    Frequency.BIWEEKLY: 14 * MILLIS_PER_DAY,
    Frequency.YEARLY: YEARLY_PERIOD_MILLIS,
}

MONTHLY_MULTIPLIERS: Dict[Frequency, int] = {
    Frequency.DAILY: 30,
    Frequency.WEEKLY: 4,
    Frequency.BIWEEKLY: 2,
    Frequency.MONTHLY: 1,
}


def next_occurrence(
    from_millis: int,
    frequency: "Frequency | str",
    tz: tzinfo = timezone.utc,
) -> int:
    """
    Compute the instant one period after `from_millis`.

    DAILY/WEEKLY/BIWEEKLY/YEARLY add a fixed number of milliseconds.
    MONTHLY adds one calendar month to the civil date in `tz`, keeping the
    time-of-day and clamping to the last valid day of the target month.
    Unrecognized frequency strings are treated as MONTHLY.
    """
    frequency = Frequency.parse(frequency)

    if frequency == Frequency.MONTHLY:
        return add_calendar_months(from_millis, 1, tz)

    return from_millis + FIXED_PERIOD_MILLIS[frequency]


def estimated_monthly_amount(amount_minor_units: int, frequency: "Frequency | str") -> int:
    """
    Long-run monthly equivalent of a recurring amount, in minor units.

    Multipliers: DAILY x30, WEEKLY x4, BIWEEKLY x2, MONTHLY x1.
    YEARLY divides by 12 with truncation.
    """
    frequency = Frequency.parse(frequency)

    if frequency == Frequency.YEARLY:
        return amount_minor_units // 12

    return amount_minor_units * MONTHLY_MULTIPLIERS[frequency]
