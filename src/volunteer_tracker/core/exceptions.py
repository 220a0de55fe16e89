from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400
    kind = "DomainError"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = "ValidationError"


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""

    status_code = 401
    kind = "AuthenticationError"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403
    kind = "NotAuthorized"


NotAuthorized = AuthorizationError


class NotFound(DomainError):
    """Raised when a referenced record does not exist."""

    status_code = 404
    kind = "NotFound"


class Conflict(DomainError):
    """Raised when the requested transition conflicts with current state."""

    status_code = 409
    kind = "Conflict"


class AlreadyCheckedIn(Conflict):
    kind = "AlreadyCheckedIn"

    def __init__(self, message: str, *, check_in_id: Optional[int] = None):
        super().__init__(message)
        self.check_in_id = check_in_id


class AlreadyCheckedOut(Conflict):
    kind = "AlreadyCheckedOut"
