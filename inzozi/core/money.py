"""Money helpers. All amounts are Decimals in a single currency unit (RWF)."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import List

from inzozi.core.exceptions import ValidationError

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def round_money(amount) -> Decimal:
    if amount is None:
        return ZERO
    return Decimal(str(amount)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def parse_amount(value, field: str = "amount") -> Decimal:
    """Parse a user-supplied amount; it must be a finite number greater than zero."""
    if isinstance(value, bool):
        raise ValidationError(f"Please enter a valid {field}")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"Please enter a valid {field}")
    if not amount.is_finite():
        raise ValidationError(f"Please enter a valid {field}")
    amount = round_money(amount)
    if amount <= 0:
        raise ValidationError(f"Please enter a valid {field}")
    return amount


def split_evenly(total: Decimal, parts: int) -> List[Decimal]:
    """Split ``total`` into ``parts`` rounded shares; the last share absorbs the remainder.

    >>> split_evenly(Decimal("100.00"), 3)
    [Decimal('33.33'), Decimal('33.33'), Decimal('33.34')]
    """
    if parts < 1:
        raise ValidationError("Installment count must be at least 1")
    share = round_money(total / parts)
    shares = [share] * (parts - 1)
    shares.append(round_money(total) - share * (parts - 1))
    return shares
