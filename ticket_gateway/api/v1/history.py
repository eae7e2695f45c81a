"""GET /v1/transactions - The caller's transactions, filtered, sorted and paginated"""

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query

from ticket_gateway.api.dependencies import get_ticketing_client
from ticket_gateway.api.v1.errors import backend_http_error
from ticket_gateway.api.v1.schemas import TransactionItem, TransactionPageResponse
from ticket_gateway.domain.exceptions import BackendAPIError, InvalidTransactionDataError
from ticket_gateway.domain.lifecycle import status_label
from ticket_gateway.domain.listing import filter_by_status, paginate, sort_transactions
from ticket_gateway.domain.models import Transaction
from ticket_gateway.infrastructure.clients.ticketing import TicketingClient

router = APIRouter()

StatusFilter = Literal[
    "all",
    "WaitingForPayment",
    "WaitingForAdminConfirmation",
    "Done",
    "Rejected",
    "Expired",
    "Canceled",
]
SortKey = Literal["created_at", "total_price", "quantity", "status"]


def build_page(
    transactions: list[Transaction],
    status: str,
    sort: str,
    descending: bool,
    page: int,
    page_size: int,
) -> TransactionPageResponse:
    selected = sort_transactions(filter_by_status(transactions, status), sort, descending)
    result = paginate(selected, page, page_size)

    return TransactionPageResponse(
        items=[TransactionItem.from_domain(t, status_label(t.status)) for t in result.items],
        page=result.page,
        page_size=result.page_size,
        total=result.total,
        total_pages=result.total_pages,
    )


@router.get("/transactions", response_model=TransactionPageResponse)
async def list_transactions(
    status: StatusFilter = Query("all", description="Status name or 'all'"),
    sort: SortKey = Query("created_at"),
    descending: bool = Query(True),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    client: TicketingClient = Depends(get_ticketing_client),
):
    """Customer's tickets"""
    try:
        transactions = await client.get_user_transactions()
    except BackendAPIError as e:
        raise backend_http_error(e)
    except InvalidTransactionDataError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return build_page(transactions, status, sort, descending, page, page_size)


@router.get("/organizer/transactions", response_model=TransactionPageResponse)
async def list_organizer_transactions(
    status: StatusFilter = Query("all", description="Status name or 'all'"),
    sort: SortKey = Query("created_at"),
    descending: bool = Query(True),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    client: TicketingClient = Depends(get_ticketing_client),
):
    """Transactions on the organizer's events"""
    try:
        transactions = await client.get_organizer_transactions()
    except BackendAPIError as e:
        raise backend_http_error(e)
    except InvalidTransactionDataError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return build_page(transactions, status, sort, descending, page, page_size)
