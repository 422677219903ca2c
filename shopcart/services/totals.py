# shopcart/services/totals.py
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from shopcart.domain.schemas import CartItem, Coupon, Totals

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_totals(
    items: Iterable[CartItem],
    coupon: Coupon | None,
    coupon_applied: bool,
    now: datetime | None = None,
) -> Totals:
    """
    Subtotal = suma price * quantity, total = subtotal minus rabat kuponu.

    Rabat liczony tylko gdy kupon jest i flaga coupon_applied jest ustawiona.
    Jesli podano `now`, kupon wygasly w tym momencie nie daje rabatu.
    Obie wartosci zaokraglane do 0.01 (half up).
    """
    subtotal = sum((item.line_total for item in items), Decimal("0.00"))

    total = subtotal
    if coupon is not None and coupon_applied:
        if now is None or coupon.is_active(now):
            total = subtotal - subtotal * coupon.discount_percentage / HUNDRED

    subtotal = round_money(subtotal)
    total = round_money(total)
    return Totals(subtotal=subtotal, discount=subtotal - total, total=total)
