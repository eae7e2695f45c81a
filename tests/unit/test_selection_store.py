"""Unit tests for discount selection persistence"""

from sqlalchemy.exc import OperationalError

from ticket_gateway.domain.models import DiscountSelection
from ticket_gateway.infrastructure.database.models import StoredSelection
from ticket_gateway.infrastructure.storage.selections import (
    DiscountSelectionStore,
    selection_from_json,
    selection_to_json,
    storage_key,
)


class BrokenSession:
    """Session factory standing in for an unreachable database"""

    def __enter__(self):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    def __exit__(self, *exc):
        return False


def test_storage_key_format():
    assert storage_key(42) == "transaction-42-checkboxes"


def test_save_then_load(selection_store):
    selection = DiscountSelection(use_points=True, points_amount=12000, use_coupon=True, use_voucher=False)

    selection_store.save(42, selection)

    assert selection_store.load(42) == selection


def test_load_missing_returns_defaults(selection_store):
    assert selection_store.load(999) == DiscountSelection()


def test_clear_restores_defaults(selection_store):
    selection_store.save(42, DiscountSelection(use_coupon=True))

    selection_store.clear(42)

    assert selection_store.load(42) == DiscountSelection()


def test_save_overwrites_previous(selection_store):
    selection_store.save(42, DiscountSelection(use_coupon=True))
    selection_store.save(42, DiscountSelection(use_voucher=True))

    assert selection_store.load(42) == DiscountSelection(use_voucher=True)


def test_payload_uses_browser_field_names():
    payload = selection_to_json(DiscountSelection(use_points=True, points_amount=5))
    assert payload == {"usePoints": True, "pointsAmount": 5, "useVoucher": False, "useCoupon": False}


def test_stored_row_is_keyed_by_storage_key(selection_store):
    selection_store.save(7, DiscountSelection(use_coupon=True))

    with selection_store.session_factory() as db:
        row = db.get(StoredSelection, "transaction-7-checkboxes")
        assert row.payload["useCoupon"] is True


def test_malformed_payload_loads_defaults():
    assert selection_from_json("not a dict") == DiscountSelection()
    assert selection_from_json({"pointsAmount": "lots", "usePoints": "yes"}) == DiscountSelection()
    assert selection_from_json({"pointsAmount": -3}) == DiscountSelection()


def test_storage_failure_degrades_to_memory():
    store = DiscountSelectionStore(session_factory=BrokenSession)
    selection = DiscountSelection(use_voucher=True)

    store.save(1, selection)  # must not raise

    assert store.durable is False
    assert store.load(1) == selection

    store.clear(1)
    assert store.load(1) == DiscountSelection()
