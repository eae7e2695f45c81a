"""Discount calculation and points allowance - core checkout pricing rules"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional

from ticket_gateway.domain.models import (
    DiscountEligibility,
    DiscountSelection,
    PriceQuote,
    Voucher,
)
from ticket_gateway.utils.date_utils import ensure_utc, utcnow


def calculate_subtotal(unit_price: int, quantity: int) -> int:
    """Ticket price times quantity, before discounts"""
    return max(unit_price, 0) * max(quantity, 0)


def is_voucher_usable(voucher: Optional[Voucher], now: datetime | None = None) -> bool:
    """
    A voucher can be used only while it has quota left and has not ended.

    Vouchers without an end date are gated by quota alone.
    """
    if voucher is None or voucher.quota <= 0:
        return False
    if voucher.end_date is None:
        return True
    now = ensure_utc(now or utcnow())
    return now < ensure_utc(voucher.end_date)


def calculate_other_discounts(
    selection: DiscountSelection,
    eligibility: DiscountEligibility,
    now: datetime | None = None,
) -> int:
    """
    Sum of coupon and voucher nominals for the ticked options.

    Not capped at the subtotal: an oversized coupon only floors the final price.
    """
    other_discounts = 0

    if selection.use_coupon and eligibility.coupon is not None:
        other_discounts += max(eligibility.coupon.nominal, 0)

    if selection.use_voucher and is_voucher_usable(eligibility.voucher, now):
        other_discounts += max(eligibility.voucher.nominal, 0)

    return other_discounts


def calculate_max_points(available: int, subtotal: int, other_discounts: int) -> int:
    """Points usable after coupon and voucher: min(available, remaining price)"""
    remaining_price = max(subtotal - other_discounts, 0)
    return min(max(available, 0), remaining_price)


def clamp_selection(
    selection: DiscountSelection,
    subtotal: int,
    eligibility: DiscountEligibility,
    now: datetime | None = None,
) -> DiscountSelection:
    """
    Bring points_amount back inside [0, max_points].

    Must run after any change to coupon/voucher so a previously maxed points
    amount never stays higher than the new allowance.
    """
    other_discounts = calculate_other_discounts(selection, eligibility, now)
    max_points = calculate_max_points(eligibility.points.available, subtotal, other_discounts)
    points_amount = min(max(selection.points_amount, 0), max_points)

    if points_amount == selection.points_amount:
        return selection
    return replace(selection, points_amount=points_amount)


def calculate_discounts(
    subtotal: int,
    selection: DiscountSelection,
    eligibility: DiscountEligibility,
    now: datetime | None = None,
) -> PriceQuote:
    """
    Compute the price preview for a discount selection.

    Order of evaluation:
    1. other_discounts from coupon and (valid) voucher
    2. max_points from the remaining price, clamping the selected points
    3. total_discount = other_discounts + points, final_price floored at 0

    Never raises for well-typed input; out-of-range values are clamped.

    Example:
        subtotal 100,000, coupon 20,000, voucher 15,000, 50,000 points available
        → other 35,000, max points 50,000, total 85,000, final 15,000
    """
    subtotal = max(subtotal, 0)
    other_discounts = calculate_other_discounts(selection, eligibility, now)
    max_points = calculate_max_points(eligibility.points.available, subtotal, other_discounts)

    points_applied = min(max(selection.points_amount, 0), max_points) if selection.use_points else 0
    total_discount = other_discounts + points_applied

    return PriceQuote(
        subtotal=subtotal,
        other_discounts=other_discounts,
        points_applied=points_applied,
        total_discount=total_discount,
        final_price=max(subtotal - total_discount, 0),
        max_points=max_points,
    )


def toggle_coupon(
    selection: DiscountSelection,
    enabled: bool,
    subtotal: int,
    eligibility: DiscountEligibility,
    now: datetime | None = None,
) -> DiscountSelection:
    """Tick or untick the coupon, then re-clamp points"""
    if enabled and eligibility.coupon is None:
        logging.warning("Ignoring coupon selection: no coupon available")
        return selection
    return clamp_selection(replace(selection, use_coupon=enabled), subtotal, eligibility, now)


def toggle_voucher(
    selection: DiscountSelection,
    enabled: bool,
    subtotal: int,
    eligibility: DiscountEligibility,
    now: datetime | None = None,
) -> DiscountSelection:
    """Tick or untick the voucher; ticking an expired or exhausted voucher is ignored"""
    if enabled and not is_voucher_usable(eligibility.voucher, now):
        logging.warning("Ignoring voucher selection: voucher missing, expired or out of quota")
        return selection
    return clamp_selection(replace(selection, use_voucher=enabled), subtotal, eligibility, now)


def toggle_points(
    selection: DiscountSelection,
    enabled: bool,
    subtotal: int,
    eligibility: DiscountEligibility,
    now: datetime | None = None,
) -> DiscountSelection:
    """Tick or untick points; unticking resets the amount"""
    if not enabled:
        return replace(selection, use_points=False, points_amount=0)
    return clamp_selection(replace(selection, use_points=True), subtotal, eligibility, now)


def set_points_amount(
    selection: DiscountSelection,
    amount: int,
    subtotal: int,
    eligibility: DiscountEligibility,
    now: datetime | None = None,
) -> DiscountSelection:
    return clamp_selection(replace(selection, points_amount=amount), subtotal, eligibility, now)


def has_unapplied_discounts(selection: DiscountSelection, applied: bool) -> bool:
    """True when something is ticked that the backend has not validated yet"""
    has_selected = (
        selection.use_coupon
        or selection.use_voucher
        or (selection.use_points and selection.points_amount > 0)
    )
    return has_selected and not applied
