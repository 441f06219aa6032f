"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

A request is authenticated only when BOTH checks pass:
  1. Cryptographic validity -- TokenIssuer.verify() accepts the signature and
     the token has not expired.
  2. Stored-token match -- the admin named by the token still holds exactly
     this token. Log-out clears the stored value, so a logged-out token stops
     working immediately even though its signature is still valid, and a
     newer log-in supersedes any older token.

try_get_current_admin() is the soft variant (returns None on failure).
get_current_admin() wraps it and raises Unauthorized (401) if unauthenticated.

Layer rule: no imports from api/ or directory/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import hmac

from fastapi import Request

from auth.models import Admin
from core.errors import TokenInvalid, Unauthorized


def bearer_token(request: Request) -> str | None:
    """Return the token from an 'Authorization: Bearer <token>' header, or None."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
        return token or None
    return None


def try_get_current_admin(request: Request) -> Admin | None:
    """Attempt to authenticate the request via its Bearer token.

    Returns the authenticated Admin on success, None on any failure.
    Never raises -- callers that need a hard 401 should use get_current_admin().
    """
    token = bearer_token(request)
    if token is None:
        return None

    try:
        admin_id = request.app.state.token_issuer.verify(token)
    except TokenInvalid:
        return None

    admin = request.app.state.admin_store.get_by_id(admin_id)
    if admin is None or admin.token is None:
        return None
    if not hmac.compare_digest(admin.token, token):
        return None
    if not admin.is_active or admin.is_deleted:
        return None
    return admin


def get_current_admin(request: Request) -> Admin:
    """Require authentication. Raises Unauthorized if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(admin: Admin = Depends(get_current_admin)): ...
    """
    admin = try_get_current_admin(request)
    if admin is None:
        raise Unauthorized()
    return admin
