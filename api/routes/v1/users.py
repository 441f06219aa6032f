"""
api/routes/v1/users.py -- Read-only user directory routes for the admin console.

Routes (in registration order to avoid FastAPI path capture conflicts):
  GET /users                  -- paged list, {name, email} per row
  GET /users/filter           -- full records matching country/city fragments
  GET /users/search/{query}   -- name-or-email substring search
  GET /users/{user_id}        -- detail view

/users/filter and /users/search/... are registered before /users/{user_id};
otherwise "filter" would be captured as a user id.

Pagination:
  page is validated by FastAPI (integer, 1 to _MAX_PAGE) before the handler
  runs, so the computed offset is never negative and never overflows the
  database integer type. Invalid values get the standard
  400 validation envelope.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from api.models import Envelope, UserDetail, UserListRow, UserRecord, UserSearchRow
from auth.dependencies import get_current_admin
from core.errors import NotFound, ValidationFailed
from directory.store import UserDirectoryStore

# All directory routes require an authenticated admin.
# Router-level dependency applies to every route registered on this router.
router = APIRouter(dependencies=[Depends(get_current_admin)])

# Keeps (page - 1) * page_size inside the 64-bit OFFSET range of SQLite and PostgreSQL.
_MAX_PAGE = 10**9


@router.get("/users", response_model=Envelope)
def list_users(request: Request, page: int = Query(default=1, ge=1, le=_MAX_PAGE)) -> Envelope:
    """Return one page of users (name and email only)."""
    store: UserDirectoryStore = request.app.state.directory
    page_size: int = request.app.state.settings.page_size

    offset = (page - 1) * page_size
    users = store.list_users(offset=offset, limit=page_size)
    return Envelope(status=200, data=[UserListRow.from_user(u).model_dump() for u in users])


@router.get("/users/filter", response_model=Envelope)
def filter_users(
    request: Request,
    country: Optional[str] = Query(default=None, max_length=100),
    city: Optional[str] = Query(default=None, max_length=100),
) -> Envelope:
    """Return full records whose country and city contain the given fragments.

    Omitted or empty fragments match everything.
    """
    store: UserDirectoryStore = request.app.state.directory
    country = country.strip() if country else None
    city = city.strip() if city else None

    users = store.filter_users(country=country, city=city)
    return Envelope(status=200, data=[UserRecord.from_user(u).model_dump() for u in users])


@router.get("/users/search/{query}", response_model=Envelope)
def search_users(request: Request, query: str) -> Envelope:
    """Return users whose name or email contains query (case-insensitive)."""
    store: UserDirectoryStore = request.app.state.directory
    text = query.strip()
    if not text:
        raise ValidationFailed({"query": "The query field is required."})
    users = store.search_users(text)
    return Envelope(status=200, data=[UserSearchRow.from_user(u).model_dump() for u in users])


@router.get("/users/{user_id}", response_model=Envelope)
def detailed_view(request: Request, user_id: str) -> Envelope:
    """Return name/email/country/city/company for a single user."""
    store: UserDirectoryStore = request.app.state.directory
    user = store.get_by_id(user_id)
    if user is None:
        raise NotFound("No user found")
    return Envelope(status=200, data=UserDetail.from_user(user).model_dump())
