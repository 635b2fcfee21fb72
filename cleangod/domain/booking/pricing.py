"""Pricing - subtotal, coupon discount, GST and total for carts and booking drafts

One canonical rule is used everywhere a total is shown or persisted:

    discount = min(coupon discount, coupon max discount, subtotal * cap fraction)
    taxes    = round_half_up((subtotal - discount) * tax rate)
    total    = subtotal - discount + taxes

Arithmetic is done in Decimal so the result only depends on the inputs.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Literal, Optional

from pydantic import BaseModel

from ...config import COUPON_CAP_FRACTION, TAX_RATE

CENT = Decimal("0.01")


class CouponSnapshot(BaseModel):
    """The coupon terms captured when it was applied to a draft"""

    code: str
    discountType: Literal["percentage", "fixed"]
    discountValue: float
    maxDiscount: Optional[float] = None
    description: Optional[str] = None


class Totals(BaseModel):
    subtotal: float
    discount: float
    taxes: float
    total: float


def _dec(value) -> Decimal:
    return Decimal(str(value))


def round_half_up(value: Decimal) -> Decimal:
    return value.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def line_subtotal(lines: Iterable) -> float:
    """Sum of price * quantity over cart items or draft items"""
    total = sum((_dec(line.price) * line.quantity for line in lines), Decimal("0"))
    return float(total.quantize(CENT, rounding=ROUND_HALF_UP))


def coupon_discount(
    subtotal: float, coupon: Optional[CouponSnapshot], cap_fraction: float = COUPON_CAP_FRACTION
) -> float:
    if coupon is None:
        return 0.0

    base = _dec(subtotal)
    if coupon.discountType == "percentage":
        discount = base * _dec(coupon.discountValue) / Decimal("100")
    else:
        discount = _dec(coupon.discountValue)

    if coupon.maxDiscount is not None:
        discount = min(discount, _dec(coupon.maxDiscount))
    discount = min(discount, base * _dec(cap_fraction))
    discount = max(discount, Decimal("0"))
    return float(discount.quantize(CENT, rounding=ROUND_HALF_UP))


def compute_totals(
    subtotal: float,
    coupon: Optional[CouponSnapshot] = None,
    tax_rate: float = TAX_RATE,
    cap_fraction: float = COUPON_CAP_FRACTION,
) -> Totals:
    if subtotal < 0:
        raise ValueError("subtotal must not be negative")

    discount = _dec(coupon_discount(subtotal, coupon, cap_fraction))
    base = _dec(subtotal)
    taxes = round_half_up((base - discount) * _dec(tax_rate))
    total = base - discount + taxes

    return Totals(
        subtotal=float(base),
        discount=float(discount),
        taxes=float(taxes),
        total=float(total.quantize(CENT, rounding=ROUND_HALF_UP)),
    )
