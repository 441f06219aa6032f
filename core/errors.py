"""
core/errors.py -- Domain error taxonomy for AdminDesk.

Stores and route handlers raise these exceptions; api/main.py registers one
exception handler that renders any AdminDeskError into the response envelope.
Handlers therefore never build error responses by hand, and the HTTP layer
never needs to know which store produced the failure.

  ValidationFailed   400  missing/empty/out-of-range request fields
  NotFound           400  no matching admin, user, or stored token
  InvalidCredentials 400  log-in failure (unknown email OR wrong password)
  DuplicateEmail     400  sign-up with an email that already exists
  TokenInvalid       401  bad signature, malformed, or expired session token
  Unauthorized       401  request lacks a live session

Layer rule: core/ is the kernel. No imports from api/, auth/, or directory/.
"""

from __future__ import annotations

from typing import Any


class AdminDeskError(Exception):
    """Base class for every error that maps onto the response envelope."""

    status_code: int = 500
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None, error: Any = "") -> None:
        self.message = message or self.default_message
        self.error = error
        super().__init__(self.message)


class ValidationFailed(AdminDeskError):
    """One or more request fields failed validation.

    error is a {field: reason} mapping so the console can highlight each
    offending input.
    """

    status_code = 400
    default_message = "Invalid Values"

    def __init__(self, fields: dict[str, str], message: str | None = None) -> None:
        super().__init__(message, error=fields)
        self.fields = fields


class NotFound(AdminDeskError):
    status_code = 400
    default_message = "Not found"


class InvalidCredentials(AdminDeskError):
    # One message for unknown email and wrong password: no email enumeration.
    status_code = 400
    default_message = "Invalid Credentials"


class DuplicateEmail(AdminDeskError):
    status_code = 400
    default_message = "Email already registered"


class TokenInvalid(AdminDeskError):
    status_code = 401
    default_message = "Invalid or expired token"


class Unauthorized(AdminDeskError):
    status_code = 401
    default_message = "Authentication required"
