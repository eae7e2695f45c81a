"""Auth session and login/register client for the ticketing backend"""

from typing import Dict, Optional

import httpx

from ticket_gateway.config import settings
from ticket_gateway.domain.exceptions import BackendAPIError, SessionClosedError


class AuthSession:
    """
    Bearer credential for one logged-in user.

    Created at login, closed at logout; passed explicitly to whatever needs
    to talk to the backend on the user's behalf.
    """

    def __init__(self, token: str):
        if not token:
            raise ValueError("token must not be empty")
        self._token: Optional[str] = token

    @property
    def is_active(self) -> bool:
        return self._token is not None

    @property
    def token(self) -> str:
        if self._token is None:
            raise SessionClosedError("Session has been logged out")
        return self._token

    def auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    def close(self) -> None:
        """Logout: drop the credential"""
        self._token = None


def error_message(response: httpx.Response, fallback: str) -> str:
    """Pull the backend's `message` (or `error`) field out of an error response"""
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        return body.get("message") or body.get("error") or fallback
    return fallback


class AuthClient:
    """Client for the backend's /auth endpoints"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.backend_api_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def login(self, email: str, password: str) -> AuthSession:
        return await self._authenticate("/auth/login", {"email": email, "password": password}, "Login failed")

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        referral_code: str | None = None,
    ) -> AuthSession:
        payload = {"name": name, "email": email, "password": password}
        if referral_code:
            payload["referral_code"] = referral_code
        return await self._authenticate("/auth/register", payload, "Registration failed")

    async def _authenticate(self, path: str, payload: dict, fallback: str) -> AuthSession:
        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(path, json=payload)
            except httpx.TimeoutException as e:
                raise BackendAPIError(f"Backend timeout after {self.timeout}s") from e
            except httpx.RequestError as e:
                raise BackendAPIError(f"Backend unavailable: {e}") from e

        if response.is_error:
            raise BackendAPIError(error_message(response, fallback), response.status_code)

        try:
            return AuthSession(response.json()["token"])
        except (KeyError, ValueError, TypeError) as e:
            raise BackendAPIError(f"Invalid auth response from backend: {e}") from e
