"""POST /v1/transactions/{id}/accept|reject - Organizer decision on a paid transaction"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from ticket_gateway.api.dependencies import get_request_id, get_ticketing_client
from ticket_gateway.api.v1.errors import backend_http_error
from ticket_gateway.api.v1.schemas import MessageResponse
from ticket_gateway.application.organizer import OrganizerReview
from ticket_gateway.domain.exceptions import BackendAPIError, InvalidTransactionDataError, InvalidTransitionError
from ticket_gateway.domain.lifecycle import TransactionEvent
from ticket_gateway.infrastructure.clients.ticketing import TicketingClient

router = APIRouter()


async def review_transaction(
    transaction_id: int,
    event: TransactionEvent,
    request_id: str,
    client: TicketingClient,
) -> MessageResponse:
    try:
        detail = await client.get_transaction(transaction_id)
        review = OrganizerReview(client)
        if event is TransactionEvent.ACCEPT:
            reviewed = await review.accept(detail.transaction)
        else:
            reviewed = await review.reject(detail.transaction)
    except InvalidTransitionError as e:
        logging.warning(f"Review refused: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=str(e))
    except BackendAPIError as e:
        raise backend_http_error(e)
    except InvalidTransactionDataError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return MessageResponse(
        transaction_id=transaction_id,
        message=f"Transaction {reviewed.status.value.lower()}",
        status=reviewed.status.value,
    )


@router.post("/transactions/{transaction_id}/accept", response_model=MessageResponse)
async def accept_transaction(
    transaction_id: int,
    request: Request,
    client: TicketingClient = Depends(get_ticketing_client),
):
    return await review_transaction(transaction_id, TransactionEvent.ACCEPT, get_request_id(request), client)


@router.post("/transactions/{transaction_id}/reject", response_model=MessageResponse)
async def reject_transaction(
    transaction_id: int,
    request: Request,
    client: TicketingClient = Depends(get_ticketing_client),
):
    return await review_transaction(transaction_id, TransactionEvent.REJECT, get_request_id(request), client)
