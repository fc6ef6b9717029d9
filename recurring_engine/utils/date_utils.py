"""Date manipulation utilities"""

from datetime import datetime, timedelta, timezone, tzinfo
from dateutil.relativedelta import relativedelta

MILLIS_PER_DAY = 86_400_000

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def millis_to_datetime(millis: int, tz: tzinfo = timezone.utc) -> datetime:
    """Convert epoch milliseconds to an aware datetime in `tz`"""
    return (EPOCH + timedelta(milliseconds=millis)).astimezone(tz)


def datetime_to_millis(moment: datetime) -> int:
    """Convert a datetime to epoch milliseconds (naive values are taken as UTC)"""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return (moment - EPOCH) // timedelta(milliseconds=1)


def add_calendar_months(millis: int, months: int = 1, tz: tzinfo = timezone.utc) -> int:
    """
    Add calendar months to an instant, preserving the civil time-of-day in `tz`.

    Day-of-month overflow is clamped to the last day of the target month
    (Jan 31 + 1 month -> Feb 28, or Feb 29 in a leap year).
    """
    moment = millis_to_datetime(millis, tz)
    shifted = moment + relativedelta(months=months)
    return datetime_to_millis(shifted)
