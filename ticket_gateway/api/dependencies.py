"""Dependency injection for FastAPI endpoints"""

from functools import lru_cache

from fastapi import Depends, Header, HTTPException, Request
from ticket_gateway.infrastructure.clients.auth import AuthSession
from ticket_gateway.infrastructure.clients.ticketing import TicketingClient
from ticket_gateway.infrastructure.storage.selections import DiscountSelectionStore


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_auth_session(authorization: str | None = Header(None)) -> AuthSession:
    """Build the caller's session from the bearer header"""
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Missing bearer token")
    return AuthSession(token.strip())


def get_ticketing_client(session: AuthSession = Depends(get_auth_session)) -> TicketingClient:
    """Provide ticketing backend client acting for the caller"""
    return TicketingClient(session)


@lru_cache
def get_selection_store() -> DiscountSelectionStore:
    """Provide the process-wide discount selection store"""
    return DiscountSelectionStore()
