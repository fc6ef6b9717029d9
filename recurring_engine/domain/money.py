"""Money parsing and formatting in integer minor units (cents)"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

from recurring_engine.domain.models import TransactionKind

AmountInput = Union[str, int, float, Decimal, None]


def parse_to_minor_units(value: AmountInput) -> int:
    """
    Convert a user-entered amount into non-negative cents.

    Accepts decimal strings ("5.50", "0005.50", "1,234.56") and native
    numbers. The value is multiplied by 100 and rounded half-up.

    Malformed, empty, negative or non-finite input yields 0; callers
    decide whether zero is an acceptable amount.
    """
    if value is None or isinstance(value, bool):
        return 0

    try:
        if isinstance(value, str):
            cleaned = value.replace(",", "").strip()
            if not cleaned:
                return 0
            amount = Decimal(cleaned)
        elif isinstance(value, float):
            # repr-based conversion avoids binary artifacts (0.29 -> 0.28999...)
            amount = Decimal(repr(value))
        else:
            amount = Decimal(value)

        if not amount.is_finite() or amount < 0:
            return 0

        cents = (amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError):
        return 0

    return int(cents)


def format_amount(amount_minor_units: int, kind: Optional[TransactionKind] = None) -> str:
    """
    Render cents as a signed currency string.

    Examples:
        550, EXPENSE     -> "-$5.50"
        500000, INCOME   -> "+$5,000.00"
        0, None          -> "$0.00"
    """
    sign = ""
    if kind == TransactionKind.INCOME:
        sign = "+"
    elif kind == TransactionKind.EXPENSE:
        sign = "-"

    whole, fraction = divmod(abs(amount_minor_units), 100)
    return f"{sign}${whole:,}.{fraction:02d}"
