"""Effective price resolution.

Always feed these functions values read from the database at the moment of
sale. Client-supplied prices are never trusted.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from libs.common.datetime_utils import ensure_utc

CENTS = Decimal("0.01")
HUNDRED = Decimal("100")


def to_money(value: Union[Decimal, int, float, str]) -> Decimal:
    """Quantise to two decimal places, rounding half up."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def is_discount_active(
    discount: int, discount_expiry: Optional[datetime], now: datetime
) -> bool:
    """A discount applies when it is positive and not yet expired.

    No expiry means the discount is permanent.
    """
    if not discount or discount <= 0:
        return False
    if discount_expiry is None:
        return True
    return ensure_utc(discount_expiry) > ensure_utc(now)


def effective_price(
    price: Union[Decimal, int, float, str],
    discount: int,
    discount_expiry: Optional[datetime],
    now: datetime,
) -> Decimal:
    """Unit price actually charged at ``now``.

    >>> from datetime import timezone
    >>> effective_price(Decimal("100"), 20, None, datetime.now(timezone.utc))
    Decimal('80.00')
    """
    base = to_money(price)
    if not is_discount_active(discount, discount_expiry, now):
        return base
    return to_money(base * (1 - Decimal(discount) / HUNDRED))
