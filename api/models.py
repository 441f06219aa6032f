"""
API request and response models for AdminDesk REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
directory/models.py, which own the internal domain representation. Route
handlers map between the two.

Every response -- success or failure -- is wrapped in the same Envelope so a
console client can branch on `status` alone.
"""

from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from auth.tokens import BCRYPT_MAX_BYTES
from directory.models import User

# Required text inputs: whitespace is stripped first, so "   " fails
# min_length=1 the same way "" does. Never used for passwords.
_RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------


class Envelope(BaseModel):
    """Uniform response wrapper: { status, data, message, error }.

    data carries the primary result (created id, token, or result set) and is
    '' when there is none. error carries a {field: reason} mapping for
    validation failures or a short description otherwise.
    """

    model_config = ConfigDict(frozen=True)

    status: int
    data: Any = ""
    message: str = ""
    error: Any = ""


# ---------------------------------------------------------------------------
# Auth -- request models
# ---------------------------------------------------------------------------


def _check_password_bytes(value: str) -> str:
    """Reject passwords bcrypt cannot hash (its input limit is 72 bytes, not characters)."""
    if len(value.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValueError(f"The password may not be longer than {BCRYPT_MAX_BYTES} bytes.")
    return value


class SignUpRequest(BaseModel):
    """Request body for POST /api/v1/auth/signup.

    name, email and gender are stripped before the length check. password is
    kept byte-for-byte: "  secret  " and "secret" are different credentials.
    """

    name: _RequiredText
    email: _RequiredText
    gender: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=30)]
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)


class LogInRequest(BaseModel):
    """Request body for POST /api/v1/auth/login."""

    email: _RequiredText
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)


class LogOutRequest(BaseModel):
    """Request body for POST /api/v1/auth/logout."""

    model_config = ConfigDict(str_strip_whitespace=True)

    token: str = Field(min_length=1)


class AdminProfile(BaseModel):
    """Payload for GET /api/v1/auth/me -- never includes the hash or token."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str
    gender: str


# ---------------------------------------------------------------------------
# Directory -- projections
# ---------------------------------------------------------------------------


class UserListRow(BaseModel):
    """One row in GET /users -- name and email only."""

    model_config = ConfigDict(frozen=True)

    name: str
    email: str

    @classmethod
    def from_user(cls, user: User) -> "UserListRow":
        return cls(name=user.name, email=user.email)


class UserDetail(BaseModel):
    """Payload for GET /users/{id}."""

    model_config = ConfigDict(frozen=True)

    name: str
    email: str
    country: Optional[str]
    city: Optional[str]
    company: Optional[str]

    @classmethod
    def from_user(cls, user: User) -> "UserDetail":
        return cls(
            name=user.name,
            email=user.email,
            country=user.country,
            city=user.city,
            company=user.company,
        )


class UserSearchRow(BaseModel):
    """One row in GET /users/search/{query} -- profile without the id."""

    model_config = ConfigDict(frozen=True)

    name: str
    email: str
    age: Optional[int]
    gender: Optional[str]
    country: Optional[str]
    city: Optional[str]
    company: Optional[str]

    @classmethod
    def from_user(cls, user: User) -> "UserSearchRow":
        return cls(
            name=user.name,
            email=user.email,
            age=user.age,
            gender=user.gender,
            country=user.country,
            city=user.city,
            company=user.company,
        )


class UserRecord(UserSearchRow):
    """Full user record returned by GET /users/filter."""

    id: str

    @classmethod
    def from_user(cls, user: User) -> "UserRecord":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            age=user.age,
            gender=user.gender,
            country=user.country,
            city=user.city,
            company=user.company,
        )


class HealthStatus(BaseModel):
    """Payload for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
