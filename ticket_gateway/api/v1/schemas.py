"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from typing import List, Optional

from ticket_gateway.domain.models import DiscountSelection, PriceQuote, Transaction


class SelectionSchema(BaseModel):
    """Discount checkboxes for a transaction"""

    use_points: bool = False
    points_amount: int = Field(0, ge=0, description="Points to spend, clamped to the allowance")
    use_coupon: bool = False
    use_voucher: bool = False

    def to_domain(self) -> DiscountSelection:
        return DiscountSelection(
            use_points=self.use_points,
            points_amount=self.points_amount,
            use_coupon=self.use_coupon,
            use_voucher=self.use_voucher,
        )

    @classmethod
    def from_domain(cls, selection: DiscountSelection) -> "SelectionSchema":
        return cls(
            use_points=selection.use_points,
            points_amount=selection.points_amount,
            use_coupon=selection.use_coupon,
            use_voucher=selection.use_voucher,
        )


class QuoteSchema(BaseModel):
    """Price preview"""

    subtotal: int
    other_discounts: int
    points_applied: int
    total_discount: int
    final_price: int
    max_points: int

    @classmethod
    def from_domain(cls, quote: PriceQuote) -> "QuoteSchema":
        return cls(
            subtotal=quote.subtotal,
            other_discounts=quote.other_discounts,
            points_applied=quote.points_applied,
            total_discount=quote.total_discount,
            final_price=quote.final_price,
            max_points=quote.max_points,
        )


class QuoteResponse(BaseModel):
    """Response for POST /v1/transactions/{id}/quote"""

    transaction_id: int
    selection: SelectionSchema
    quote: QuoteSchema
    voucher_usable: bool


class TotalsResponse(BaseModel):
    """Response for POST /v1/transactions/{id}/apply-discount"""

    transaction_id: int
    base_price: int
    total_discount: int
    final_price: int
    selection: SelectionSchema


class MessageResponse(BaseModel):
    """Acknowledgement relayed from the backend"""

    transaction_id: int
    message: str
    status: Optional[str] = None


class CountdownResponse(BaseModel):
    """Response for GET /v1/transactions/{id}/countdown"""

    transaction_id: int
    hours: int
    minutes: int
    seconds: int
    is_expired: bool
    display: str


class TransactionItem(BaseModel):
    """Single transaction in a listing"""

    id: int
    event_name: Optional[str] = None
    quantity: int
    total_discount: int
    total_price: int
    status: str
    status_label: str
    created_at: Optional[str] = None
    payment_proof: Optional[str] = None

    @classmethod
    def from_domain(cls, transaction: Transaction, label: str) -> "TransactionItem":
        return cls(
            id=transaction.id,
            event_name=transaction.event.name if transaction.event else None,
            quantity=transaction.quantity,
            total_discount=transaction.total_discount,
            total_price=transaction.total_price,
            status=transaction.status.value,
            status_label=label,
            created_at=transaction.created_at.isoformat() if transaction.created_at else None,
            payment_proof=transaction.payment_proof,
        )


class TransactionPageResponse(BaseModel):
    """Response for GET /v1/transactions"""

    items: List[TransactionItem]
    page: int
    page_size: int
    total: int
    total_pages: int
