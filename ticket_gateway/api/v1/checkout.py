"""Checkout endpoints - discount preview, selection persistence, apply/confirm, payment proof"""

import time
import logging
from fastapi import APIRouter, Depends, File, HTTPException, Request, Response, UploadFile

from ticket_gateway.api.dependencies import get_request_id, get_selection_store, get_ticketing_client
from ticket_gateway.api.v1.errors import backend_http_error
from ticket_gateway.api.v1.schemas import (
    CountdownResponse,
    MessageResponse,
    QuoteResponse,
    QuoteSchema,
    SelectionSchema,
    TotalsResponse,
)
from ticket_gateway.application.checkout import CheckoutSession, preview
from ticket_gateway.domain.countdown import format_time_left, time_left
from ticket_gateway.domain.exceptions import (
    BackendAPIError,
    InvalidTransactionDataError,
    InvalidTransitionError,
    PaymentProofValidationError,
    UnappliedDiscountsError,
)
from ticket_gateway.domain.pricing import is_voucher_usable
from ticket_gateway.infrastructure.clients.ticketing import TicketingClient
from ticket_gateway.infrastructure.observability.logging import log_checkout_step
from ticket_gateway.infrastructure.storage.selections import DiscountSelectionStore

router = APIRouter()


async def open_checkout(
    transaction_id: int,
    client: TicketingClient,
    store: DiscountSelectionStore,
    selection: SelectionSchema | None = None,
) -> CheckoutSession:
    """Load a checkout session, optionally replacing the saved selection with the request's"""
    checkout = CheckoutSession(transaction_id, client, store)
    try:
        await checkout.load()
    except BackendAPIError as e:
        raise backend_http_error(e)
    except InvalidTransactionDataError as e:
        raise HTTPException(status_code=502, detail=str(e))

    if selection is not None:
        checkout.selection, _ = preview(checkout.detail, selection.to_domain())
        store.save(transaction_id, checkout.selection)
    return checkout


@router.post("/transactions/{transaction_id}/quote", response_model=QuoteResponse)
async def quote_transaction(
    transaction_id: int,
    selection: SelectionSchema,
    client: TicketingClient = Depends(get_ticketing_client),
    store: DiscountSelectionStore = Depends(get_selection_store),
):
    """
    Preview the price for a discount selection.

    The selection is clamped (points to the allowance, unusable voucher
    dropped) and saved, so a reload restores it.
    """
    checkout = await open_checkout(transaction_id, client, store, selection)

    return QuoteResponse(
        transaction_id=transaction_id,
        selection=SelectionSchema.from_domain(checkout.selection),
        quote=QuoteSchema.from_domain(checkout.quote),
        voucher_usable=is_voucher_usable(checkout.detail.eligibility.voucher),
    )


@router.get("/transactions/{transaction_id}/selection", response_model=SelectionSchema)
def get_selection(transaction_id: int, store: DiscountSelectionStore = Depends(get_selection_store)):
    """Last saved selection, or all-off defaults"""
    return SelectionSchema.from_domain(store.load(transaction_id))


@router.put("/transactions/{transaction_id}/selection", response_model=SelectionSchema)
async def put_selection(
    transaction_id: int,
    selection: SelectionSchema,
    client: TicketingClient = Depends(get_ticketing_client),
    store: DiscountSelectionStore = Depends(get_selection_store),
):
    """Save a selection after clamping it against the transaction's discounts"""
    checkout = await open_checkout(transaction_id, client, store, selection)
    return SelectionSchema.from_domain(checkout.selection)


@router.delete("/transactions/{transaction_id}/selection", status_code=204)
def delete_selection(transaction_id: int, store: DiscountSelectionStore = Depends(get_selection_store)):
    store.clear(transaction_id)
    return Response(status_code=204)


@router.get("/transactions/{transaction_id}/countdown", response_model=CountdownResponse)
async def get_countdown(
    transaction_id: int,
    client: TicketingClient = Depends(get_ticketing_client),
):
    """Remaining payment window, derived from the transaction's creation time"""
    try:
        detail = await client.get_transaction(transaction_id)
    except BackendAPIError as e:
        raise backend_http_error(e)
    except InvalidTransactionDataError as e:
        raise HTTPException(status_code=502, detail=str(e))

    if detail.transaction.created_at is None:
        raise HTTPException(status_code=422, detail="Transaction has no creation time")

    left = time_left(detail.transaction.created_at)
    return CountdownResponse(
        transaction_id=transaction_id,
        hours=left.hours,
        minutes=left.minutes,
        seconds=left.seconds,
        is_expired=left.is_expired,
        display=format_time_left(left),
    )


@router.post("/transactions/{transaction_id}/apply-discount", response_model=TotalsResponse)
async def apply_discount(
    transaction_id: int,
    selection: SelectionSchema,
    request: Request,
    client: TicketingClient = Depends(get_ticketing_client),
    store: DiscountSelectionStore = Depends(get_selection_store),
):
    """
    Have the backend validate the (clamped) selection and return its totals.

    The session lives for this request only, so the selection cannot change
    while the backend call is in flight.
    """
    start_time = time.time()
    request_id = get_request_id(request)
    checkout = await open_checkout(transaction_id, client, store, selection)

    try:
        totals = await checkout.apply_discount()
    except BackendAPIError as e:
        raise backend_http_error(e)
    except InvalidTransactionDataError as e:
        raise HTTPException(status_code=502, detail=str(e))

    log_checkout_step(
        request_id,
        transaction_id,
        "apply_discount",
        (time.time() - start_time) * 1000,
        final_price=totals.final_price,
    )
    return TotalsResponse(
        transaction_id=transaction_id,
        base_price=totals.base_price,
        total_discount=totals.total_discount,
        final_price=totals.final_price,
        selection=SelectionSchema.from_domain(checkout.selection),
    )


@router.post("/transactions/{transaction_id}/confirm", response_model=MessageResponse)
async def confirm_transaction(
    transaction_id: int,
    selection: SelectionSchema,
    request: Request,
    client: TicketingClient = Depends(get_ticketing_client),
    store: DiscountSelectionStore = Depends(get_selection_store),
):
    """
    Apply the ticked discounts on the backend, then lock them in.

    Each request is a fresh session, so the apply step always runs first when
    anything is selected. The saved selection is cleared on success.
    """
    start_time = time.time()
    request_id = get_request_id(request)
    checkout = await open_checkout(transaction_id, client, store, selection)

    try:
        if checkout.has_unapplied_discounts:
            await checkout.apply_discount()
        message = await checkout.confirm_payment()
    except UnappliedDiscountsError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except BackendAPIError as e:
        raise backend_http_error(e)
    except InvalidTransactionDataError as e:
        raise HTTPException(status_code=502, detail=str(e))

    log_checkout_step(request_id, transaction_id, "confirm", (time.time() - start_time) * 1000)
    return MessageResponse(transaction_id=transaction_id, message=message, status=checkout.status.value)


@router.post("/transactions/{transaction_id}/payment-proof", response_model=MessageResponse)
async def upload_payment_proof(
    transaction_id: int,
    request: Request,
    payment_proof: UploadFile = File(...),
    client: TicketingClient = Depends(get_ticketing_client),
    store: DiscountSelectionStore = Depends(get_selection_store),
):
    """Upload proof of payment and move the transaction to admin confirmation"""
    start_time = time.time()
    request_id = get_request_id(request)
    checkout = await open_checkout(transaction_id, client, store)
    content = await payment_proof.read()

    try:
        message = await checkout.upload_payment_proof(
            payment_proof.filename or "payment_proof",
            content,
            payment_proof.content_type or "application/octet-stream",
        )
    except PaymentProofValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except InvalidTransitionError as e:
        logging.warning(f"Payment proof refused: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=str(e))
    except BackendAPIError as e:
        raise backend_http_error(e)

    log_checkout_step(request_id, transaction_id, "payment_proof", (time.time() - start_time) * 1000)
    return MessageResponse(transaction_id=transaction_id, message=message, status=checkout.status.value)
