"""Unit tests for discount calculation and points allowance"""

import pytest
from dataclasses import replace
from datetime import timedelta
from ticket_gateway.domain.models import Coupon, DiscountEligibility, DiscountSelection, PointsBalance, Voucher
from ticket_gateway.domain.pricing import (
    calculate_discounts,
    calculate_max_points,
    calculate_other_discounts,
    calculate_subtotal,
    clamp_selection,
    has_unapplied_discounts,
    is_voucher_usable,
    set_points_amount,
    toggle_coupon,
    toggle_points,
    toggle_voucher,
)


def test_calculate_subtotal():
    assert calculate_subtotal(50000, 2) == 100000
    assert calculate_subtotal(0, 5) == 0


def test_full_stack_of_discounts(eligibility, now):
    """Coupon + voucher + maxed points on a 100,000 subtotal"""
    selection = DiscountSelection(use_points=True, points_amount=50000, use_coupon=True, use_voucher=True)

    quote = calculate_discounts(100000, selection, eligibility, now)

    assert quote.other_discounts == 35000
    assert quote.max_points == 50000  # 65,000 remaining, capped by available
    assert quote.points_applied == 50000
    assert quote.total_discount == 85000
    assert quote.final_price == 15000


def test_coupon_larger_than_subtotal_floors_final_price(eligibility, now):
    """other_discounts is not clamped, only the final price is"""
    selection = DiscountSelection(use_coupon=True)

    quote = calculate_discounts(10000, selection, eligibility, now)

    assert quote.other_discounts == 20000
    assert quote.total_discount == 20000
    assert quote.final_price == 0
    assert quote.max_points == 0


@pytest.mark.parametrize("subtotal", [0, 1, 15000, 35000, 100000])
@pytest.mark.parametrize("use_coupon", [True, False])
@pytest.mark.parametrize("use_voucher", [True, False])
def test_final_price_never_negative(eligibility, now, subtotal, use_coupon, use_voucher):
    selection = DiscountSelection(use_points=True, points_amount=10**9, use_coupon=use_coupon, use_voucher=use_voucher)

    quote = calculate_discounts(subtotal, selection, eligibility, now)

    other = (20000 if use_coupon else 0) + (15000 if use_voucher else 0)
    assert quote.final_price == max(subtotal - quote.total_discount, 0)
    assert quote.final_price >= 0
    assert quote.max_points == min(50000, max(subtotal - other, 0))


def test_points_ignored_when_not_ticked(eligibility, now):
    selection = DiscountSelection(use_points=False, points_amount=30000)

    quote = calculate_discounts(100000, selection, eligibility, now)

    assert quote.points_applied == 0
    assert quote.final_price == 100000


def test_calculate_discounts_clamps_negative_input(eligibility, now):
    selection = DiscountSelection(use_points=True, points_amount=-500)

    quote = calculate_discounts(-100, selection, eligibility, now)

    assert quote.subtotal == 0
    assert quote.points_applied == 0
    assert quote.final_price == 0


def test_calculate_max_points():
    assert calculate_max_points(50000, 100000, 35000) == 50000
    assert calculate_max_points(80000, 100000, 35000) == 65000
    assert calculate_max_points(50000, 10000, 20000) == 0


def test_voucher_usable_requires_quota_and_future_end(now):
    voucher = Voucher(id=1, name="V", nominal=1000, quota=1, end_date=now + timedelta(hours=1))

    assert is_voucher_usable(voucher, now) is True
    assert is_voucher_usable(replace(voucher, quota=0), now) is False
    assert is_voucher_usable(replace(voucher, end_date=now - timedelta(seconds=1)), now) is False
    assert is_voucher_usable(replace(voucher, end_date=now), now) is False
    assert is_voucher_usable(None, now) is False


def test_voucher_without_end_date_is_gated_by_quota(now):
    voucher = Voucher(id=1, name="V", nominal=1000, quota=2)
    assert is_voucher_usable(voucher, now) is True


def test_expired_voucher_is_not_counted(eligibility, now):
    expired = replace(eligibility, voucher=replace(eligibility.voucher, end_date=now - timedelta(days=1)))
    selection = DiscountSelection(use_voucher=True)

    assert calculate_other_discounts(selection, expired, now) == 0


def test_coupon_toggle_never_leaves_points_stale(now):
    """Points maxed with coupon off, then coupon on: points drop to the new allowance"""
    eligibility = DiscountEligibility(
        points=PointsBalance(available=200000),
        coupon=Coupon(id=1, name="C", nominal=30000),
    )

    selection = toggle_points(DiscountSelection(), True, 100000, eligibility, now)
    selection = set_points_amount(selection, 100000, 100000, eligibility, now)
    assert selection.points_amount == 100000

    selection = toggle_coupon(selection, True, 100000, eligibility, now)
    assert selection.use_coupon is True
    assert selection.points_amount == 70000


def test_toggling_voucher_reclamps_points(eligibility, now):
    selection = DiscountSelection(use_points=True, points_amount=50000, use_coupon=True)
    # subtotal 60,000: coupon leaves 40,000, so points must already be 40,000 max
    selection = clamp_selection(selection, 60000, eligibility, now)
    assert selection.points_amount == 40000

    selection = toggle_voucher(selection, True, 60000, eligibility, now)
    assert selection.use_voucher is True
    assert selection.points_amount == 25000


def test_toggle_voucher_ignored_when_unusable(eligibility, now):
    exhausted = replace(eligibility, voucher=replace(eligibility.voucher, quota=0))
    selection = DiscountSelection()

    assert toggle_voucher(selection, True, 100000, exhausted, now) is selection


def test_toggle_coupon_ignored_without_coupon(eligibility, now):
    no_coupon = replace(eligibility, coupon=None)
    selection = DiscountSelection()

    assert toggle_coupon(selection, True, 100000, no_coupon, now) is selection


def test_untick_points_resets_amount(eligibility, now):
    selection = DiscountSelection(use_points=True, points_amount=1000)

    selection = toggle_points(selection, False, 100000, eligibility, now)

    assert selection == DiscountSelection()


def test_set_points_amount_clamps_to_range(eligibility, now):
    selection = DiscountSelection(use_points=True)

    assert set_points_amount(selection, 999999, 100000, eligibility, now).points_amount == 50000
    assert set_points_amount(selection, -5, 100000, eligibility, now).points_amount == 0


def test_has_unapplied_discounts():
    assert has_unapplied_discounts(DiscountSelection(use_coupon=True), applied=False) is True
    assert has_unapplied_discounts(DiscountSelection(use_coupon=True), applied=True) is False
    assert has_unapplied_discounts(DiscountSelection(use_points=True, points_amount=0), applied=False) is False
    assert has_unapplied_discounts(DiscountSelection(), applied=False) is False
