"""Unit tests for the ticketing backend client with httpx mock transport"""

import json

import httpx
import pytest

from ticket_gateway.domain.exceptions import BackendAPIError, InvalidTransactionDataError, SessionClosedError
from ticket_gateway.domain.models import DiscountSelection, TransactionStatus
from ticket_gateway.infrastructure.clients.auth import AuthClient, AuthSession
from ticket_gateway.infrastructure.clients.ticketing import TicketingClient, discount_payload


async def test_get_transaction_parses_detail(ticketing_client, fake_backend, detail_payload):
    fake_backend.add("GET", "/transactions/7", json=detail_payload())

    detail = await ticketing_client.get_transaction(7)

    assert detail.transaction.id == 7
    assert detail.transaction.subtotal == 100000
    assert detail.transaction.status == TransactionStatus.WAITING_FOR_PAYMENT
    assert detail.transaction.created_at is not None
    assert detail.eligibility.points.available == 50000
    assert detail.eligibility.coupon.nominal == 20000
    assert detail.eligibility.voucher.end_date is not None


async def test_requests_carry_bearer_token(ticketing_client, fake_backend, detail_payload):
    fake_backend.add("GET", "/transactions/7", json=detail_payload())

    await ticketing_client.get_transaction(7)

    assert fake_backend.requests[0].headers["Authorization"] == "Bearer test-token"


async def test_apply_discount_sends_selection(ticketing_client, fake_backend):
    fake_backend.add(
        "PATCH",
        "/transactions/7",
        json={"message": "ok", "data": {"transactionId": 7, "basePrice": 100000, "totalDiscount": 35000, "finalPrice": 65000}},
    )

    totals = await ticketing_client.apply_discount(7, DiscountSelection(use_coupon=True, use_voucher=True))

    body = json.loads(fake_backend.requests[0].content)
    assert body == {"use_points": False, "use_voucher": True, "use_coupon": True}
    assert totals.final_price == 65000


def test_points_amount_only_sent_when_points_used():
    assert "points_amount" not in discount_payload(DiscountSelection(points_amount=500))
    assert discount_payload(DiscountSelection(use_points=True, points_amount=500))["points_amount"] == 500


async def test_backend_message_is_surfaced(ticketing_client, fake_backend):
    fake_backend.add("PATCH", "/transactions/7/confirm", status=400, json={"message": "Voucher quota exhausted"})

    with pytest.raises(BackendAPIError) as exc_info:
        await ticketing_client.confirm_transaction(7, DiscountSelection())

    assert exc_info.value.message == "Voucher quota exhausted"
    assert exc_info.value.status_code == 400


async def test_error_field_used_when_message_missing(ticketing_client, fake_backend):
    fake_backend.add("PATCH", "/transactions/7/accept", status=403, json={"error": "Organizer only"})

    with pytest.raises(BackendAPIError, match="Organizer only"):
        await ticketing_client.accept_transaction(7)


async def test_fallback_message_when_body_has_none(ticketing_client, fake_backend):
    fake_backend.add("PATCH", "/transactions/7", status=500, json={})

    with pytest.raises(BackendAPIError, match="Failed to apply discount"):
        await ticketing_client.apply_discount(7, DiscountSelection())


async def test_timeout_becomes_backend_error(auth_session):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    client = TicketingClient(auth_session, base_url="http://backend.test/api", transport=httpx.MockTransport(handler))

    with pytest.raises(BackendAPIError, match="timeout"):
        await client.get_transaction(7)


async def test_malformed_detail_raises(ticketing_client, fake_backend):
    fake_backend.add("GET", "/transactions/7", json={"data": {"transaction": {"id": 7}}})

    with pytest.raises(InvalidTransactionDataError):
        await ticketing_client.get_transaction(7)


async def test_upload_payment_proof_is_multipart(ticketing_client, fake_backend):
    fake_backend.add("PATCH", "/transactions/7/payment-proof", json={"message": "Payment proof uploaded"})

    message = await ticketing_client.upload_payment_proof(7, "proof.png", b"\x89PNG", "image/png")

    request = fake_backend.requests[0]
    assert message == "Payment proof uploaded"
    assert request.headers["Content-Type"].startswith("multipart/form-data")
    assert b'name="payment_proof"' in request.content


async def test_user_transactions_listing(ticketing_client, fake_backend):
    fake_backend.add(
        "GET",
        "/transactions/user",
        json={
            "message": "ok",
            "data": [
                {
                    "id": 1,
                    "quantity": 1,
                    "totalDiscount": 0,
                    "totalPrice": 50000,
                    "paymentProof": None,
                    "createdAt": "2024-05-01T10:00:00.000Z",
                    "event": {"id": 3, "name": "Jazz Night", "price": 50000, "location": "Jakarta"},
                    "transactionStatus": {"id": 2, "name": "WaitingForAdminConfirmation"},
                }
            ],
        },
    )

    transactions = await ticketing_client.get_user_transactions()

    assert len(transactions) == 1
    assert transactions[0].status == TransactionStatus.WAITING_FOR_ADMIN_CONFIRMATION
    assert transactions[0].event.location == "Jakarta"


async def test_closed_session_cannot_be_used(auth_session):
    client = TicketingClient(auth_session, base_url="http://backend.test/api")
    auth_session.close()

    with pytest.raises(SessionClosedError):
        await client.get_transaction(7)


async def test_login_returns_session():
    def handler(request: httpx.Request) -> httpx.Response:
        assert json.loads(request.content) == {"email": "a@b.c", "password": "pw"}
        return httpx.Response(200, json={"token": "abc"})

    auth = AuthClient(base_url="http://backend.test/api", transport=httpx.MockTransport(handler))

    session = await auth.login("a@b.c", "pw")

    assert isinstance(session, AuthSession)
    assert session.auth_headers() == {"Authorization": "Bearer abc"}
    session.close()
    assert session.is_active is False


async def test_login_failure_message():
    transport = httpx.MockTransport(lambda request: httpx.Response(401, json={"message": "Invalid credentials"}))
    auth = AuthClient(base_url="http://backend.test/api", transport=transport)

    with pytest.raises(BackendAPIError, match="Invalid credentials"):
        await auth.login("a@b.c", "wrong")


async def test_create_transaction_posts_event_and_selection(ticketing_client, fake_backend):
    fake_backend.add(
        "POST",
        "/transactions",
        status=201,
        json={"message": "created", "data": {"transactionId": 11, "basePrice": 150000, "totalDiscount": 0, "finalPrice": 150000}},
    )

    totals = await ticketing_client.create_transaction(3, 3, DiscountSelection())

    body = json.loads(fake_backend.requests[0].content)
    assert body == {"eventId": 3, "quantity": 3, "use_points": False, "use_voucher": False, "use_coupon": False}
    assert totals.transaction_id == 11
    assert totals.final_price == 150000


async def test_organizer_listing_accepts_bare_list(ticketing_client, fake_backend):
    fake_backend.add(
        "GET",
        "/transactions/eo",
        json=[
            {
                "id": 5,
                "quantity": 2,
                "totalDiscount": 10000,
                "totalPrice": 90000,
                "createdAt": "2024-05-02T08:30:00Z",
                "event": {"id": 3, "name": "Jazz Night", "price": 50000},
                "transactionStatus": {"id": 3, "name": "Done"},
            }
        ],
    )

    transactions = await ticketing_client.get_organizer_transactions()

    assert [t.id for t in transactions] == [5]
    assert transactions[0].status == TransactionStatus.DONE
    assert transactions[0].payment_proof is None


async def test_register_sends_referral_code():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/auth/register"
        assert json.loads(request.content)["referral_code"] == "FRIEND10"
        return httpx.Response(201, json={"token": "new-user"})

    auth = AuthClient(base_url="http://backend.test/api", transport=httpx.MockTransport(handler))

    session = await auth.register("Ana", "ana@example.com", "pw", referral_code="FRIEND10")

    assert session.token == "new-user"
