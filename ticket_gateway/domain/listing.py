"""Filtering, sorting and pagination of already-fetched transaction lists"""

import math
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Sequence, TypeVar

from ticket_gateway.domain.models import Page, Transaction, TransactionStatus

T = TypeVar("T")

ALL_STATUSES = "all"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

SORT_KEYS: Dict[str, Callable[[Transaction], Any]] = {
    "created_at": lambda t: t.created_at or _EPOCH,
    "total_price": lambda t: t.total_price,
    "quantity": lambda t: t.quantity,
    "status": lambda t: t.status.value,
}


def filter_by_status(transactions: Sequence[Transaction], status: str = ALL_STATUSES) -> List[Transaction]:
    """Keep transactions in the given status; "all" keeps everything"""
    if status == ALL_STATUSES:
        return list(transactions)
    wanted = TransactionStatus(status)
    return [t for t in transactions if t.status == wanted]


def sort_transactions(
    transactions: Sequence[Transaction],
    key: str = "created_at",
    descending: bool = True,
) -> List[Transaction]:
    """Stable sort by one of SORT_KEYS (newest first by default)"""
    if key not in SORT_KEYS:
        raise ValueError(f"Unsupported sort key: {key}")
    return sorted(transactions, key=SORT_KEYS[key], reverse=descending)


def paginate(items: Sequence[T], page: int = 1, page_size: int = 10) -> Page[T]:
    """Slice out a 1-based page; out-of-range pages come back empty"""
    page = max(page, 1)
    page_size = max(page_size, 1)
    total = len(items)
    start = (page - 1) * page_size

    return Page(
        items=list(items[start:start + page_size]),
        page=page,
        page_size=page_size,
        total=total,
        total_pages=math.ceil(total / page_size) if total else 0,
    )
