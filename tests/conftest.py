"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Generator, List, Tuple

import httpx
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from ticket_gateway.api.dependencies import get_auth_session, get_selection_store, get_ticketing_client
from ticket_gateway.api.main import create_app
from ticket_gateway.domain.models import Coupon, DiscountEligibility, PointsBalance, Voucher
from ticket_gateway.infrastructure.clients.auth import AuthSession
from ticket_gateway.infrastructure.clients.ticketing import TicketingClient
from ticket_gateway.infrastructure.database.models import Base
from ticket_gateway.infrastructure.storage.selections import DiscountSelectionStore


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

BACKEND_URL = "http://backend.test/api"


class FakeBackend:
    """Canned ticketing backend behind httpx.MockTransport"""

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Tuple[int, Any]] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, status: int = 200, json: Any = None) -> None:
        self.routes[(method, f"/api{path}")] = (status, json if json is not None else {})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            return httpx.Response(404, json={"message": "Not found"})
        status, body = self.routes[key]
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def db_engine() -> Generator:
    """Create test database tables"""
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def selection_store(db_engine) -> DiscountSelectionStore:
    return DiscountSelectionStore(session_factory=TestingSessionLocal)


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def auth_session() -> AuthSession:
    return AuthSession("test-token")


@pytest.fixture
def ticketing_client(auth_session: AuthSession, fake_backend: FakeBackend) -> TicketingClient:
    return TicketingClient(auth_session, base_url=BACKEND_URL, transport=fake_backend.transport)


@pytest.fixture
def client(selection_store: DiscountSelectionStore, fake_backend: FakeBackend) -> TestClient:
    """Create FastAPI test client with test database and fake backend"""
    app = create_app()

    def override_get_ticketing_client(session: AuthSession = Depends(get_auth_session)):
        return TicketingClient(session, base_url=BACKEND_URL, transport=fake_backend.transport)

    app.dependency_overrides[get_ticketing_client] = override_get_ticketing_client
    app.dependency_overrides[get_selection_store] = lambda: selection_store
    return TestClient(app)


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc)


@pytest.fixture
def eligibility(now: datetime) -> DiscountEligibility:
    """Coupon 20,000 + valid voucher 15,000 + 50,000 points"""
    return DiscountEligibility(
        points=PointsBalance(available=50000, max_usage=50000),
        coupon=Coupon(id=1, name="REFERRAL", nominal=20000),
        voucher=Voucher(
            id=3,
            name="EARLYBIRD",
            nominal=15000,
            quota=10,
            start_date=now - timedelta(days=7),
            end_date=now + timedelta(days=7),
        ),
    )


@pytest.fixture
def detail_payload(now: datetime) -> Callable[..., Dict[str, Any]]:
    """Factory for GET /transactions/{id} bodies (2 tickets at 50,000)"""

    def build(
        transaction_id: int = 7,
        status: str = "WaitingForPayment",
        created_at: datetime | None = None,
        voucher_end: datetime | None = None,
        voucher_quota: int = 10,
        coupon: bool = True,
        points: int = 50000,
    ) -> Dict[str, Any]:
        created_at = created_at or now - timedelta(minutes=30)
        voucher_end = voucher_end or now + timedelta(days=7)
        return {
            "success": True,
            "data": {
                "transaction": {
                    "id": transaction_id,
                    "quantity": 2,
                    "totalPrice": 100000,
                    "totalDiscount": 0,
                    "status": status,
                    "createdAt": created_at.isoformat().replace("+00:00", "Z"),
                },
                "event": {"name": "Jazz Night", "price": 50000, "quota": 100},
                "availableDiscounts": {
                    "points": {"available": points, "maxUsage": points},
                    "coupon": {"id": 1, "name": "REFERRAL", "nominal": 20000, "quota": 1} if coupon else None,
                    "voucher": {
                        "id": 3,
                        "name": "EARLYBIRD",
                        "nominal": 15000,
                        "quota": voucher_quota,
                        "startDate": (now - timedelta(days=7)).isoformat(),
                        "endDate": voucher_end.isoformat(),
                    },
                },
            },
        }

    return build
