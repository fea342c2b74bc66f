"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Requests authenticate with an "Authorization: Bearer <token>" header.

State machine:
  Unauthenticated --(valid token)--> Authenticated --(role check)--> Authorized
                                                                  +-> Forbidden

get_current_principal() rejects with 401 when the header is missing or the
token fails verification. require_admin() composes it and rejects non-admin
principals with 403. On success the Principal is also stored on
request.state.principal for middleware and logging.

Layer rule: no imports from api/ or gym/.
  auth/dependencies.py may import from fastapi because this module is part of
  the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import Principal
from auth.tokens import decode_access_token
from core.errors import AuthenticationError, AuthorizationError


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


def get_current_principal(request: Request) -> Principal:
    """Require a valid bearer token.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(principal: Principal = Depends(get_current_principal)): ...
    """
    token = _bearer_token(request)
    if token is None:
        raise AuthenticationError("access token missing", code="token_missing")
    principal = decode_access_token(token)
    if principal is None:
        raise AuthenticationError("invalid or expired token", code="token_invalid")
    request.state.principal = principal
    return principal


def require_admin(request: Request) -> Principal:
    """Require an admin token. 401 if unauthenticated, 403 if not admin."""
    principal = get_current_principal(request)
    if not principal.is_admin:
        raise AuthorizationError("admin access required")
    return principal
