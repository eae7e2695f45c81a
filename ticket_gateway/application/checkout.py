"""Checkout controller - drives one transaction from discount selection to payment proof"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from ticket_gateway.config import settings
from ticket_gateway.domain import pricing
from ticket_gateway.domain.countdown import ExpireCallback, PaymentWindowTimer, TickCallback
from ticket_gateway.domain.exceptions import (
    BackendAPIError,
    InvalidTransactionDataError,
    PaymentProofValidationError,
    UnappliedDiscountsError,
)
from ticket_gateway.domain.lifecycle import TransactionEvent, next_status
from ticket_gateway.domain.models import (
    AppliedTotals,
    DiscountSelection,
    PriceQuote,
    TransactionDetail,
    TransactionStatus,
)
from ticket_gateway.infrastructure.clients.ticketing import TicketingClient
from ticket_gateway.infrastructure.observability.metrics import (
    backend_failures_counter,
    discount_applied_counter,
    payment_window_expired_counter,
    record_quote,
    status_transition_counter,
)
from ticket_gateway.infrastructure.storage.selections import DiscountSelectionStore
from ticket_gateway.utils.date_utils import utcnow


def validate_payment_proof(
    content: bytes,
    content_type: str,
    max_bytes: int | None = None,
    allowed_types: List[str] | None = None,
) -> None:
    """
    Reject proofs the backend would refuse.

    Raises:
        PaymentProofValidationError: Empty, over the size limit, or not JPEG/PNG/PDF
    """
    max_bytes = max_bytes if max_bytes is not None else settings.max_payment_proof_bytes
    allowed_types = allowed_types if allowed_types is not None else settings.allowed_payment_proof_types

    if not content:
        raise PaymentProofValidationError("Payment proof is required")
    if len(content) > max_bytes:
        raise PaymentProofValidationError(f"File size must be less than {max_bytes // (1024 * 1024)}MB")
    if content_type not in allowed_types:
        raise PaymentProofValidationError("File type must be JPEG, PNG, or PDF")


def preview(
    detail: TransactionDetail,
    selection: DiscountSelection,
    now: datetime | None = None,
) -> Tuple[DiscountSelection, PriceQuote]:
    """Clamp a selection against a transaction and price it"""
    subtotal = pricing.calculate_subtotal(detail.event.price, detail.transaction.quantity)
    eligibility = detail.eligibility

    if selection.use_voucher and not pricing.is_voucher_usable(eligibility.voucher, now):
        selection = replace(selection, use_voucher=False)
    if selection.use_coupon and eligibility.coupon is None:
        selection = replace(selection, use_coupon=False)

    selection = pricing.clamp_selection(selection, subtotal, eligibility, now)
    quote = pricing.calculate_discounts(subtotal, selection, eligibility, now)
    record_quote(quote.total_discount)
    return selection, quote


class CheckoutSession:
    """
    State of one transaction-detail view.

    Owns the discount selection (persisted on every change), the applied
    flag, and the payment window timer. Backend failures leave all local
    state as it was and are re-raised for the caller to report.
    """

    def __init__(
        self,
        transaction_id: int,
        client: TicketingClient,
        store: DiscountSelectionStore,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.transaction_id = transaction_id
        self.client = client
        self.store = store
        self.clock = clock

        self.detail: Optional[TransactionDetail] = None
        self.selection = DiscountSelection()
        self.discount_applied = False
        self.applied_totals: Optional[AppliedTotals] = None
        self.payment_window_expired = False

        self._generation = 0
        self._timer: Optional[PaymentWindowTimer] = None

    @property
    def status(self) -> Optional[TransactionStatus]:
        return self.detail.transaction.status if self.detail else None

    @property
    def subtotal(self) -> int:
        detail = self._require_detail()
        return pricing.calculate_subtotal(detail.event.price, detail.transaction.quantity)

    @property
    def quote(self) -> PriceQuote:
        detail = self._require_detail()
        return pricing.calculate_discounts(self.subtotal, self.selection, detail.eligibility, self.clock())

    @property
    def has_unapplied_discounts(self) -> bool:
        return pricing.has_unapplied_discounts(self.selection, self.discount_applied)

    async def load(self) -> Optional[TransactionDetail]:
        """
        Fetch the transaction and restore the saved selection.

        Only the most recent load wins: a response that arrives after a newer
        load was started is discarded and None is returned.
        """
        self._generation += 1
        generation = self._generation

        try:
            detail = await self._call("get_transaction", self.client.get_transaction(self.transaction_id))
        except (BackendAPIError, InvalidTransactionDataError) as e:
            if generation != self._generation:
                logging.info(
                    f"Discarding stale transaction error: {e}",
                    extra={"transaction_id": self.transaction_id, "generation": generation},
                )
                return None
            raise

        if generation != self._generation:
            logging.info(
                "Discarding stale transaction response",
                extra={"transaction_id": self.transaction_id, "generation": generation},
            )
            return None

        self.detail = detail
        self.selection, _ = preview(detail, self.store.load(self.transaction_id), self.clock())
        return detail

    def toggle_coupon(self, enabled: bool) -> PriceQuote:
        detail = self._require_detail()
        return self._update(pricing.toggle_coupon(self.selection, enabled, self.subtotal, detail.eligibility, self.clock()))

    def toggle_voucher(self, enabled: bool) -> PriceQuote:
        detail = self._require_detail()
        return self._update(pricing.toggle_voucher(self.selection, enabled, self.subtotal, detail.eligibility, self.clock()))

    def toggle_points(self, enabled: bool) -> PriceQuote:
        detail = self._require_detail()
        return self._update(pricing.toggle_points(self.selection, enabled, self.subtotal, detail.eligibility, self.clock()))

    def set_points_amount(self, amount: int) -> PriceQuote:
        detail = self._require_detail()
        return self._update(pricing.set_points_amount(self.selection, amount, self.subtotal, detail.eligibility, self.clock()))

    async def apply_discount(self) -> Optional[AppliedTotals]:
        """
        Ask the backend to validate the current selection.

        If the selection changed while the request was in flight the totals
        are stale and are dropped (None is returned).
        """
        sent = self.selection
        totals = await self._call("apply_discount", self.client.apply_discount(self.transaction_id, sent))

        if self.selection != sent:
            logging.info("Discarding discount totals for an outdated selection", extra={"transaction_id": self.transaction_id})
            return None

        self.applied_totals = totals
        self.discount_applied = True
        discount_applied_counter.inc()
        return totals

    async def confirm_payment(self) -> str:
        """
        Lock in the selected discounts; the saved selection is no longer needed afterwards.

        Raises:
            UnappliedDiscountsError: Discounts are ticked but apply_discount has not succeeded since
        """
        if self.has_unapplied_discounts:
            raise UnappliedDiscountsError("Apply the selected discounts before confirming")
        message = await self._call("confirm_transaction", self.client.confirm_transaction(self.transaction_id, self.selection))
        self.store.clear(self.transaction_id)
        return message

    async def upload_payment_proof(self, filename: str, content: bytes, content_type: str) -> str:
        """Validate and upload the proof, then move to WaitingForAdminConfirmation"""
        detail = self._require_detail()
        validate_payment_proof(content, content_type)
        new_status = next_status(detail.transaction.status, TransactionEvent.UPLOAD_PROOF)

        message = await self._call(
            "upload_payment_proof",
            self.client.upload_payment_proof(self.transaction_id, filename, content, content_type),
        )

        detail.transaction.status = new_status
        status_transition_counter.labels(event=TransactionEvent.UPLOAD_PROOF.value).inc()
        self.store.clear(self.transaction_id)
        self.stop_timer()
        return message

    def start_timer(
        self,
        on_tick: Optional[TickCallback] = None,
        on_expire: Optional[ExpireCallback] = None,
    ) -> PaymentWindowTimer:
        """Start counting down the payment window; replaces any running timer"""
        detail = self._require_detail()
        if detail.transaction.created_at is None:
            raise InvalidTransactionDataError("Transaction has no creation time")

        def expired() -> None:
            self.payment_window_expired = True
            payment_window_expired_counter.inc()
            if on_expire is not None:
                on_expire()

        self.stop_timer()
        self._timer = PaymentWindowTimer(
            detail.transaction.created_at,
            on_tick=on_tick,
            on_expire=expired,
            clock=self.clock,
        )
        self._timer.start()
        return self._timer

    def stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def close(self) -> None:
        """Tear down the view: no timer callback runs after this"""
        self.stop_timer()

    def _update(self, selection: DiscountSelection) -> PriceQuote:
        if selection != self.selection:
            self.selection = selection
            self.discount_applied = False
            self.store.save(self.transaction_id, selection)
        return self.quote

    def _require_detail(self) -> TransactionDetail:
        if self.detail is None:
            raise RuntimeError("Transaction has not been loaded")
        return self.detail

    async def _call(self, operation: str, request):
        try:
            return await request
        except BackendAPIError as e:
            backend_failures_counter.labels(operation=operation).inc()
            logging.error(f"Backend error during {operation}: {e}", extra={"transaction_id": self.transaction_id})
            raise
