"""Mapping of domain errors onto HTTP errors"""

from fastapi import HTTPException

from ticket_gateway.domain.exceptions import BackendAPIError


def backend_http_error(error: BackendAPIError) -> HTTPException:
    """Relay backend 4xx as-is; anything else becomes 502 Bad Gateway"""
    if error.status_code is not None and 400 <= error.status_code < 500:
        return HTTPException(status_code=error.status_code, detail=error.message)
    return HTTPException(status_code=502, detail=error.message)
