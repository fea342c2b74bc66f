"""
core/errors.py -- Domain exception taxonomy for GymDesk.

Validators, stores and the auth layer raise these; api/main.py owns the one
exception handler that turns them into the ErrorResponse envelope. Each class
carries the HTTP status and machine-readable code it maps to, so route
handlers never choose status codes for domain failures themselves.

Layer rule: no imports from api/, auth/, or gym/.
"""

from __future__ import annotations

from typing import Optional


class GymDeskError(Exception):
    """Base class for all expected, client-visible failures."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str, *, code: Optional[str] = None, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail
        if code is not None:
            self.code = code


class ValidationError(GymDeskError):
    """A submitted field is missing, malformed, or out of range."""

    status_code = 400
    code = "validation_error"


class NotFoundError(GymDeskError):
    """The addressed record does not exist."""

    status_code = 404
    code = "not_found"


class ConflictError(GymDeskError):
    """The write would violate a uniqueness or reference constraint."""

    status_code = 409
    code = "conflict"


class AuthenticationError(GymDeskError):
    """Missing, invalid or expired credentials."""

    status_code = 401
    code = "unauthorized"


class AuthorizationError(GymDeskError):
    """The principal is authenticated but lacks the required role."""

    status_code = 403
    code = "forbidden"


class StoreError(GymDeskError):
    """The persistence layer failed. The message sent to clients is opaque."""

    status_code = 500
    code = "store_error"

    def __init__(self, message: str = "A storage error occurred.", **kwargs) -> None:
        super().__init__(message, **kwargs)
