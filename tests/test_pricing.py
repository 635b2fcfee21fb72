import pytest

from cleangod.domain.booking.pricing import (
    CouponSnapshot,
    compute_totals,
    coupon_discount,
    line_subtotal,
)
from cleangod.domain.cart.schemas import CartItem


def fixed(value, **kwargs):
    return CouponSnapshot(code="FIXED", discountType="fixed", discountValue=value, **kwargs)


def percent(value, **kwargs):
    return CouponSnapshot(code="PCT", discountType="percentage", discountValue=value, **kwargs)


def test_fixed_coupon_on_1000():
    totals = compute_totals(1000, fixed(200))
    assert (totals.discount, totals.taxes, totals.total) == (200, 144, 944)


def test_percentage_coupon_is_capped_at_twenty_percent():
    totals = compute_totals(1000, percent(50))
    assert (totals.discount, totals.taxes, totals.total) == (200, 144, 944)


def test_no_coupon():
    totals = compute_totals(100)
    assert (totals.subtotal, totals.discount, totals.taxes, totals.total) == (100, 0, 18, 118)


def test_coupon_max_discount_applies_before_cap():
    assert coupon_discount(1000, percent(15, maxDiscount=100)) == 100


def test_small_fixed_coupon_is_not_raised_to_cap():
    assert coupon_discount(1000, fixed(50)) == 50


def test_fixed_coupon_larger_than_cap_on_small_order():
    # 20% of 150 is 30
    totals = compute_totals(150, fixed(200))
    assert totals.discount == 30
    assert totals.total == totals.subtotal - totals.discount + totals.taxes


def test_taxes_round_half_up():
    # 0.18 * 25 = 4.5
    assert compute_totals(25).taxes == 5


def test_total_identity_holds_for_odd_amounts():
    for subtotal in (0, 1, 99.99, 333.33, 1234.5):
        totals = compute_totals(subtotal, percent(10))
        assert round(totals.subtotal - totals.discount + totals.taxes, 2) == totals.total
        assert totals.discount <= subtotal * 0.2


def test_configurable_rates():
    totals = compute_totals(1000, percent(50), tax_rate=0.05, cap_fraction=0.5)
    assert (totals.discount, totals.taxes, totals.total) == (500, 25, 525)


def test_negative_subtotal_is_rejected():
    with pytest.raises(ValueError):
        compute_totals(-1)


def test_line_subtotal_multiplies_quantity():
    lines = [
        CartItem(id="a", type="service", name="A", price=499.5, quantity=2),
        CartItem(id="b", type="product", name="B", price=0.1, quantity=3),
    ]
    assert line_subtotal(lines) == 999.3
