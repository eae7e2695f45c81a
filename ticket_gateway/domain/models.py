"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


class TransactionStatus(str, Enum):
    """Lifecycle status names as used by the ticketing backend"""

    WAITING_FOR_PAYMENT = "WaitingForPayment"
    WAITING_FOR_ADMIN_CONFIRMATION = "WaitingForAdminConfirmation"
    DONE = "Done"
    REJECTED = "Rejected"
    EXPIRED = "Expired"
    CANCELED = "Canceled"


@dataclass
class Coupon:
    """Referral coupon owned by the customer"""

    id: int
    name: str
    nominal: int
    quota: int = 1


@dataclass
class Voucher:
    """Event voucher created by the organizer"""

    id: int
    name: str
    nominal: int
    quota: int
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


@dataclass
class PointsBalance:
    """Customer reward points"""

    available: int
    max_usage: int = 0


@dataclass
class DiscountEligibility:
    """Read-only snapshot of the discounts the backend offers for a transaction"""

    points: PointsBalance
    coupon: Optional[Coupon] = None
    voucher: Optional[Voucher] = None


@dataclass(frozen=True)
class DiscountSelection:
    """Discount options currently ticked by the customer"""

    use_points: bool = False
    points_amount: int = 0
    use_coupon: bool = False
    use_voucher: bool = False


@dataclass
class EventSummary:
    """Event the tickets belong to"""

    name: str
    price: int
    quota: int = 0
    id: Optional[int] = None
    location: Optional[str] = None


@dataclass
class Transaction:
    """Ticket purchase"""

    id: int
    quantity: int
    unit_price: int
    total_discount: int
    total_price: int
    status: TransactionStatus
    created_at: Optional[datetime] = None
    payment_proof: Optional[str] = None
    event: Optional[EventSummary] = None

    @property
    def subtotal(self) -> int:
        return self.unit_price * self.quantity


@dataclass
class TransactionDetail:
    """Everything the checkout view needs for one transaction"""

    transaction: Transaction
    event: EventSummary
    eligibility: DiscountEligibility


@dataclass
class PriceQuote:
    """Client-side price preview for a discount selection"""

    subtotal: int
    other_discounts: int
    points_applied: int
    total_discount: int
    final_price: int
    max_points: int


@dataclass
class AppliedTotals:
    """Totals recomputed and validated by the backend"""

    transaction_id: int
    base_price: int
    total_discount: int
    final_price: int


@dataclass
class TimeLeft:
    """Remaining payment window"""

    hours: int
    minutes: int
    seconds: int
    is_expired: bool


@dataclass
class Page(Generic[T]):
    """One page of an already-fetched list"""

    items: List[T] = field(default_factory=list)
    page: int = 1
    page_size: int = 10
    total: int = 0
    total_pages: int = 0
