"""Transaction status transitions"""

from enum import Enum
from typing import Dict, Tuple

from ticket_gateway.domain.exceptions import InvalidTransactionDataError, InvalidTransitionError
from ticket_gateway.domain.models import TransactionStatus


class TransactionEvent(str, Enum):
    """Things that move a transaction forward"""

    UPLOAD_PROOF = "upload_proof"  # requested by the customer
    ACCEPT = "accept"  # organizer
    REJECT = "reject"  # organizer
    EXPIRE = "expire"  # payment window elapsed
    CANCEL = "cancel"


INITIAL_STATUS = TransactionStatus.WAITING_FOR_PAYMENT

TERMINAL_STATUSES = frozenset(
    {
        TransactionStatus.DONE,
        TransactionStatus.REJECTED,
        TransactionStatus.EXPIRED,
        TransactionStatus.CANCELED,
    }
)

TRANSITIONS: Dict[Tuple[TransactionStatus, TransactionEvent], TransactionStatus] = {
    (TransactionStatus.WAITING_FOR_PAYMENT, TransactionEvent.UPLOAD_PROOF): TransactionStatus.WAITING_FOR_ADMIN_CONFIRMATION,
    (TransactionStatus.WAITING_FOR_PAYMENT, TransactionEvent.EXPIRE): TransactionStatus.EXPIRED,
    (TransactionStatus.WAITING_FOR_PAYMENT, TransactionEvent.CANCEL): TransactionStatus.CANCELED,
    (TransactionStatus.WAITING_FOR_ADMIN_CONFIRMATION, TransactionEvent.ACCEPT): TransactionStatus.DONE,
    (TransactionStatus.WAITING_FOR_ADMIN_CONFIRMATION, TransactionEvent.REJECT): TransactionStatus.REJECTED,
    (TransactionStatus.WAITING_FOR_ADMIN_CONFIRMATION, TransactionEvent.CANCEL): TransactionStatus.CANCELED,
}

STATUS_LABELS: Dict[TransactionStatus, str] = {
    TransactionStatus.WAITING_FOR_PAYMENT: "Waiting for Payment",
    TransactionStatus.WAITING_FOR_ADMIN_CONFIRMATION: "Waiting for Admin Confirmation",
    TransactionStatus.DONE: "Done",
    TransactionStatus.REJECTED: "Rejected",
    TransactionStatus.EXPIRED: "Expired",
    TransactionStatus.CANCELED: "Canceled",
}


def parse_status(name: str) -> TransactionStatus:
    """Map a backend status name onto TransactionStatus"""
    try:
        return TransactionStatus(name)
    except ValueError as e:
        raise InvalidTransactionDataError(f"Unknown transaction status: {name!r}") from e


def is_terminal(status: TransactionStatus) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(status: TransactionStatus, event: TransactionEvent) -> bool:
    return (status, event) in TRANSITIONS


def next_status(status: TransactionStatus, event: TransactionEvent) -> TransactionStatus:
    """
    Resolve the status a transaction moves to when an event is acknowledged.

    Only call this once the backend has confirmed the change; a failed
    request keeps the previous status.

    Raises:
        InvalidTransitionError: If the event is not allowed from this status
    """
    try:
        return TRANSITIONS[(status, event)]
    except KeyError:
        raise InvalidTransitionError(status.value, event.value) from None


def status_label(status: TransactionStatus) -> str:
    return STATUS_LABELS[status]
