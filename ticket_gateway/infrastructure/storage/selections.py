"""Durable per-transaction storage of discount selections"""

import logging
from typing import Any, Callable, Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ticket_gateway.domain.models import DiscountSelection
from ticket_gateway.infrastructure.database.repositories import SelectionRepository
from ticket_gateway.infrastructure.database.session import SessionLocal
from ticket_gateway.infrastructure.observability.metrics import selection_storage_failures_counter


def storage_key(transaction_id: int | str) -> str:
    return f"transaction-{transaction_id}-checkboxes"


def selection_to_json(selection: DiscountSelection) -> Dict[str, Any]:
    return {
        "usePoints": selection.use_points,
        "pointsAmount": selection.points_amount,
        "useVoucher": selection.use_voucher,
        "useCoupon": selection.use_coupon,
    }


def selection_from_json(payload: Any) -> DiscountSelection:
    """Rebuild a selection; missing or malformed fields fall back to defaults"""
    if not isinstance(payload, dict):
        return DiscountSelection()

    points_amount = payload.get("pointsAmount") or 0
    if not isinstance(points_amount, int) or isinstance(points_amount, bool) or points_amount < 0:
        points_amount = 0

    return DiscountSelection(
        use_points=payload.get("usePoints") is True,
        points_amount=points_amount,
        use_voucher=payload.get("useVoucher") is True,
        use_coupon=payload.get("useCoupon") is True,
    )


class DiscountSelectionStore:
    """
    Remembers discount checkboxes across reloads, keyed by transaction id.

    Writes go to the database synchronously. The first storage failure
    switches the store to in-memory only for the rest of its life; callers
    never see the error.
    """

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory
        self._durable = True
        self._memory: Dict[str, Dict[str, Any]] = {}

    @property
    def durable(self) -> bool:
        return self._durable

    def save(self, transaction_id: int | str, selection: DiscountSelection) -> None:
        key = storage_key(transaction_id)
        payload = selection_to_json(selection)

        if self._durable:
            try:
                with self.session_factory() as db:
                    SelectionRepository(db).upsert(key, payload)
                    db.commit()
                return
            except SQLAlchemyError as e:
                self._degrade("save", key, e)

        self._memory[key] = payload

    def load(self, transaction_id: int | str) -> DiscountSelection:
        key = storage_key(transaction_id)

        if self._durable:
            try:
                with self.session_factory() as db:
                    return selection_from_json(SelectionRepository(db).get(key))
            except SQLAlchemyError as e:
                self._degrade("load", key, e)

        return selection_from_json(self._memory.get(key))

    def clear(self, transaction_id: int | str) -> None:
        key = storage_key(transaction_id)
        self._memory.pop(key, None)

        if self._durable:
            try:
                with self.session_factory() as db:
                    SelectionRepository(db).delete(key)
                    db.commit()
            except SQLAlchemyError as e:
                self._degrade("clear", key, e)

    def _degrade(self, operation: str, key: str, error: Exception) -> None:
        self._durable = False
        selection_storage_failures_counter.inc()
        logging.warning(
            f"Selection storage unavailable, keeping selections in memory: {error}",
            extra={"operation": operation, "storage_key": key},
        )
