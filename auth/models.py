"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in directory/models.py -- dataclasses own domain shape; stores and routes do
the work.

Layer rule: no imports from api/ or directory/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Admin:
    """An operator account with console access.

    id is an opaque UUID4 string generated at sign-up. created_by holds the
    id of the admin that created the record; self sign-up stores the new id
    itself.

    token is the single live session token for this admin. Log-in overwrites
    it and log-out clears it to None, so at most one session exists per admin.

    is_deleted is a soft-delete flag. No HTTP flow sets it, but a deleted or
    inactive admin can neither log in nor authenticate a request.
    """

    id: str
    name: str
    email: str
    gender: str
    hashed_password: str
    created_by: str
    created_at: int = 0  # seconds since epoch
    token: str | None = None
    is_active: bool = True
    is_deleted: bool = False
