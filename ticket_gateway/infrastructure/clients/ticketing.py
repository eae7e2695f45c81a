"""Ticketing backend HTTP client for transactions and discounts"""

from typing import Any, Dict, List

import httpx

from ticket_gateway.config import settings
from ticket_gateway.domain.exceptions import BackendAPIError, InvalidTransactionDataError
from ticket_gateway.domain.lifecycle import parse_status
from ticket_gateway.domain.models import (
    AppliedTotals,
    Coupon,
    DiscountEligibility,
    DiscountSelection,
    EventSummary,
    PointsBalance,
    Transaction,
    TransactionDetail,
    Voucher,
)
from ticket_gateway.infrastructure.clients.auth import AuthSession, error_message
from ticket_gateway.utils.date_utils import parse_timestamp


def discount_payload(selection: DiscountSelection) -> Dict[str, Any]:
    """Request body shared by create, apply-discount and confirm"""
    payload: Dict[str, Any] = {
        "use_points": selection.use_points,
        "use_voucher": selection.use_voucher,
        "use_coupon": selection.use_coupon,
    }
    if selection.use_points:
        payload["points_amount"] = selection.points_amount
    return payload


def parse_event(data: Dict[str, Any]) -> EventSummary:
    return EventSummary(
        id=data.get("id"),
        name=data["name"],
        price=data["price"],
        quota=data.get("quota", 0),
        location=data.get("location"),
    )


def parse_eligibility(data: Dict[str, Any]) -> DiscountEligibility:
    points = data.get("points") or {}
    coupon = data.get("coupon")
    voucher = data.get("voucher")

    return DiscountEligibility(
        points=PointsBalance(
            available=points.get("available", 0),
            max_usage=points.get("maxUsage", 0),
        ),
        coupon=Coupon(
            id=coupon["id"],
            name=coupon.get("name", ""),
            nominal=coupon["nominal"],
            quota=coupon.get("quota", 1),
        ) if coupon else None,
        voucher=Voucher(
            id=voucher["id"],
            name=voucher.get("name", ""),
            nominal=voucher["nominal"],
            quota=voucher["quota"],
            start_date=parse_timestamp(voucher.get("startDate")),
            end_date=parse_timestamp(voucher.get("endDate")),
        ) if voucher else None,
    )


def parse_transaction_detail(payload: Dict[str, Any]) -> TransactionDetail:
    """Parse GET /transactions/{id}"""
    try:
        data = payload["data"]
        txn = data["transaction"]
        event = parse_event(data["event"])
        return TransactionDetail(
            transaction=Transaction(
                id=txn["id"],
                quantity=txn["quantity"],
                unit_price=event.price,
                total_discount=txn["totalDiscount"],
                total_price=txn["totalPrice"],
                status=parse_status(txn["status"]),
                created_at=parse_timestamp(txn.get("createdAt")),
                payment_proof=txn.get("paymentProof"),
                event=event,
            ),
            event=event,
            eligibility=parse_eligibility(data.get("availableDiscounts") or {}),
        )
    except (KeyError, ValueError, TypeError) as e:
        raise InvalidTransactionDataError(f"Invalid transaction data from backend: {e}") from e


def parse_transaction_list(payload: Any) -> List[Transaction]:
    """Parse the user (/transactions/user) and organizer (/transactions/eo) listings"""
    items = payload.get("data", []) if isinstance(payload, dict) else payload
    try:
        transactions = []
        for item in items:
            event = parse_event(item["event"])
            transactions.append(
                Transaction(
                    id=item["id"],
                    quantity=item["quantity"],
                    unit_price=event.price,
                    total_discount=item["totalDiscount"],
                    total_price=item["totalPrice"],
                    status=parse_status(item["transactionStatus"]["name"]),
                    created_at=parse_timestamp(item.get("createdAt")),
                    payment_proof=item.get("paymentProof"),
                    event=event,
                )
            )
        return transactions
    except (KeyError, ValueError, TypeError) as e:
        raise InvalidTransactionDataError(f"Invalid transaction data from backend: {e}") from e


def parse_totals(payload: Dict[str, Any]) -> AppliedTotals:
    """Parse the totals returned by create and apply-discount"""
    try:
        data = payload["data"]
        return AppliedTotals(
            transaction_id=data["transactionId"],
            base_price=data["basePrice"],
            total_discount=data["totalDiscount"],
            final_price=data["finalPrice"],
        )
    except (KeyError, TypeError) as e:
        raise InvalidTransactionDataError(f"Invalid totals from backend: {e}") from e


class TicketingClient:
    """Client for the external ticketing backend, acting for one session"""

    def __init__(
        self,
        session: AuthSession,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.session = session
        self.base_url = base_url or settings.backend_api_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def create_transaction(self, event_id: int, quantity: int, selection: DiscountSelection) -> AppliedTotals:
        body = {"eventId": event_id, "quantity": quantity, **discount_payload(selection)}
        payload = await self._request("POST", "/transactions", "Failed to create transaction", json=body)
        return parse_totals(payload)

    async def get_transaction(self, transaction_id: int) -> TransactionDetail:
        payload = await self._request("GET", f"/transactions/{transaction_id}", "Failed to get transaction")
        return parse_transaction_detail(payload)

    async def apply_discount(self, transaction_id: int, selection: DiscountSelection) -> AppliedTotals:
        payload = await self._request(
            "PATCH",
            f"/transactions/{transaction_id}",
            "Failed to apply discount",
            json=discount_payload(selection),
        )
        return parse_totals(payload)

    async def confirm_transaction(self, transaction_id: int, selection: DiscountSelection) -> str:
        payload = await self._request(
            "PATCH",
            f"/transactions/{transaction_id}/confirm",
            "Failed to confirm transaction",
            json=discount_payload(selection),
        )
        return payload.get("message", "")

    async def upload_payment_proof(
        self,
        transaction_id: int,
        filename: str,
        content: bytes,
        content_type: str,
    ) -> str:
        payload = await self._request(
            "PATCH",
            f"/transactions/{transaction_id}/payment-proof",
            "Failed to upload payment proof",
            files={"payment_proof": (filename, content, content_type)},
        )
        return payload.get("message", "")

    async def accept_transaction(self, transaction_id: int) -> str:
        payload = await self._request("PATCH", f"/transactions/{transaction_id}/accept", "Failed to accept transaction")
        return payload.get("message", "")

    async def reject_transaction(self, transaction_id: int) -> str:
        payload = await self._request("PATCH", f"/transactions/{transaction_id}/reject", "Failed to reject transaction")
        return payload.get("message", "")

    async def get_user_transactions(self) -> List[Transaction]:
        payload = await self._request("GET", "/transactions/user", "Failed to fetch user transactions")
        return parse_transaction_list(payload)

    async def get_organizer_transactions(self) -> List[Transaction]:
        payload = await self._request("GET", "/transactions/eo", "Failed to fetch transactions")
        return parse_transaction_list(payload)

    async def _request(self, method: str, path: str, fallback: str, **kwargs: Any) -> Any:
        """
        Send one request; no retries.

        Raises:
            BackendAPIError: On timeout, transport failure, or non-2xx response
        """
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers=self.session.auth_headers(),
            transport=self.transport,
        ) as client:
            try:
                response = await client.request(method, path, **kwargs)
            except httpx.TimeoutException as e:
                raise BackendAPIError(f"Backend timeout after {self.timeout}s") from e
            except httpx.RequestError as e:
                raise BackendAPIError(f"Backend unavailable: {e}") from e

        return self._handle_response(response, fallback)

    @staticmethod
    def _handle_response(response: httpx.Response, fallback: str) -> Any:
        if response.is_error:
            raise BackendAPIError(error_message(response, fallback), response.status_code)
        try:
            return response.json()
        except ValueError as e:
            raise BackendAPIError(f"Invalid JSON from backend: {e}", response.status_code) from e
