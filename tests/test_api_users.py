"""
tests/test_api_users.py -- Integration tests for the read-only user directory routes.

Coverage:
  - Auth: 401 without a token, with a logged-out token, and with an expired token
  - List: {name, email} projection, fixed page size, page range validation
  - Non-ASCII: filter and search fold "Ö" and "ö" alike
  - Detail: projection fields; unknown id is a not-found envelope
  - Filter: country/city substring matching, empty fragments match all
  - Search: name-or-email matching with the bounded projection

Fixtures used (from conftest.py):
  - api_client: (client, token, admin_id) -- directory seeded with SEED_USERS
"""

from __future__ import annotations

import time

import pytest
from fastapi.testclient import TestClient

from auth.tokens import TokenIssuer
from core.config import get_settings
from directory.models import User

from conftest import SEED_USERS

_Client = tuple[TestClient, str, str]

_BULK_COUNT = 30


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _ensure_bulk_users(client: TestClient) -> None:
    """Top the directory up past one page. Bulk users sort after the seed users
    and match none of the filter/search fragments used in this module."""
    directory = client.app.state.directory
    if directory.search_users("@bulk.test"):
        return
    for n in range(_BULK_COUNT):
        directory.create_user(
            User(name=f"Zz Bulk {n:02d}", email=f"bulk{n:02d}@bulk.test", country="Nowhere", city="Nowhere")
        )


class TestDirectoryAuth:
    def test_no_token(self, api_client: _Client) -> None:
        client, _, _ = api_client
        for path in ("/api/v1/users", "/api/v1/users/filter", "/api/v1/users/search/alice", "/api/v1/users/x"):
            resp = client.get(path)
            assert resp.status_code == 401, path
            assert resp.json()["status"] == 401

    def test_garbage_token(self, api_client: _Client) -> None:
        client, _, _ = api_client
        assert client.get("/api/v1/users", headers=_bearer("garbage")).status_code == 401

    def test_expired_token(self, api_client: _Client) -> None:
        """A correctly signed, still-stored token is rejected once it has expired."""
        client, _, admin_id = api_client
        store = client.app.state.admin_store
        current = store.get_by_id(admin_id).token

        stale_issuer = TokenIssuer(get_settings().secret_key, expire_seconds=3600, clock=lambda: time.time() - 7200)
        expired = stale_issuer.issue(admin_id)
        store.set_token(admin_id, expired)
        try:
            assert client.get("/api/v1/users", headers=_bearer(expired)).status_code == 401
        finally:
            store.set_token(admin_id, current)

    def test_valid_signature_but_not_stored(self, api_client: _Client) -> None:
        """A fresh, valid token that the admin does not hold is rejected."""
        client, _, admin_id = api_client
        unstored = client.app.state.token_issuer.issue(admin_id)
        assert client.get("/api/v1/users", headers=_bearer(unstored)).status_code == 401


class TestListUsers:
    def test_first_page_projection(self, api_client: _Client) -> None:
        client, token, _ = api_client
        resp = client.get("/api/v1/users", params={"page": 1}, headers=_bearer(token))
        assert resp.status_code == 200
        rows = resp.json()["data"]
        assert rows[:5] == [
            {"name": "Alice Smith", "email": "asmith@example.com"},
            {"name": "Bob", "email": "bob@x.com"},
            {"name": "Carol Jones", "email": "alice@x.com"},
            {"name": "Dan Brown", "email": "dan@x.com"},
            {"name": "Eve", "email": "eve@x.com"},
        ]

    def test_page_defaults_to_one(self, api_client: _Client) -> None:
        client, token, _ = api_client
        default = client.get("/api/v1/users", headers=_bearer(token)).json()["data"]
        first = client.get("/api/v1/users", params={"page": 1}, headers=_bearer(token)).json()["data"]
        assert default == first

    def test_fixed_page_size(self, api_client: _Client) -> None:
        client, token, _ = api_client
        _ensure_bulk_users(client)
        total = client.app.state.directory.count_users()
        page_size = get_settings().page_size

        page1 = client.get("/api/v1/users", params={"page": 1}, headers=_bearer(token)).json()["data"]
        page2 = client.get("/api/v1/users", params={"page": 2}, headers=_bearer(token)).json()["data"]
        assert len(page1) == page_size
        assert len(page2) == min(page_size, total - page_size)
        assert not {r["email"] for r in page1} & {r["email"] for r in page2}

    def test_page_past_end_is_empty(self, api_client: _Client) -> None:
        client, token, _ = api_client
        resp = client.get("/api/v1/users", params={"page": 999}, headers=_bearer(token))
        assert resp.status_code == 200
        assert resp.json()["data"] == []

    @pytest.mark.parametrize("page", ["0", "-1", "abc", str(10**18), str(10**9 + 1)])
    def test_invalid_page_rejected(self, api_client: _Client, page: str) -> None:
        client, token, _ = api_client
        resp = client.get("/api/v1/users", params={"page": page}, headers=_bearer(token))
        assert resp.status_code == 400
        body = resp.json()
        assert body["status"] == 400
        assert "page" in body["error"]


class TestDetailedView:
    def test_detail_projection(self, api_client: _Client) -> None:
        client, token, _ = api_client
        alice = client.app.state.directory.search_users("asmith")[0]
        resp = client.get(f"/api/v1/users/{alice.id}", headers=_bearer(token))
        assert resp.status_code == 200
        assert resp.json()["data"] == {
            "name": "Alice Smith",
            "email": "asmith@example.com",
            "country": "USA",
            "city": "Austin",
            "company": "Acme",
        }

    def test_unknown_id(self, api_client: _Client) -> None:
        client, token, _ = api_client
        resp = client.get("/api/v1/users/no-such-user", headers=_bearer(token))
        assert resp.status_code == 400
        body = resp.json()
        assert body["data"] == ""
        assert body["message"] == "No user found"


class TestFilterUsers:
    def test_country_only(self, api_client: _Client) -> None:
        client, token, _ = api_client
        resp = client.get("/api/v1/users/filter", params={"country": "us", "city": ""}, headers=_bearer(token))
        assert resp.status_code == 200
        rows = resp.json()["data"]
        assert {r["name"] for r in rows} == {"Alice Smith", "Carol Jones", "Bob"}

    def test_full_records_returned(self, api_client: _Client) -> None:
        client, token, _ = api_client
        rows = client.get("/api/v1/users/filter", params={"city": "berlin"}, headers=_bearer(token)).json()["data"]
        assert len(rows) == 1
        assert set(rows[0]) == {"id", "name", "email", "age", "gender", "country", "city", "company"}
        assert rows[0]["name"] == "Eve"

    def test_upper_case_fragments(self, api_client: _Client) -> None:
        client, token, _ = api_client
        rows = client.get(
            "/api/v1/users/filter", params={"country": "US", "city": "SYD"}, headers=_bearer(token)
        ).json()["data"]
        assert [r["name"] for r in rows] == ["Bob"]

    def test_no_params_match_all(self, api_client: _Client) -> None:
        client, token, _ = api_client
        rows = client.get("/api/v1/users/filter", headers=_bearer(token)).json()["data"]
        assert len(rows) == client.app.state.directory.count_users()


class TestSearchUsers:
    def test_name_or_email(self, api_client: _Client) -> None:
        client, token, _ = api_client
        resp = client.get("/api/v1/users/search/alice", headers=_bearer(token))
        assert resp.status_code == 200
        rows = resp.json()["data"]
        names = {r["name"] for r in rows}
        emails = {r["email"] for r in rows}
        assert "Alice Smith" in names
        assert "alice@x.com" in emails
        assert "Bob" not in names
        assert "bob@x.com" not in emails

    def test_projection_fields(self, api_client: _Client) -> None:
        client, token, _ = api_client
        rows = client.get("/api/v1/users/search/EVE", headers=_bearer(token)).json()["data"]
        assert rows == [
            {
                "name": "Eve",
                "email": "eve@x.com",
                "age": 23,
                "gender": "female",
                "country": "Germany",
                "city": "Berlin",
                "company": "Hooli",
            }
        ]

    def test_blank_query_rejected(self, api_client: _Client) -> None:
        client, token, _ = api_client
        resp = client.get("/api/v1/users/search/%20%20", headers=_bearer(token))
        assert resp.status_code == 400
        assert "query" in resp.json()["error"]


class TestNonAsciiFragments:
    @pytest.fixture(autouse=True)
    def _austrian(self, api_client: _Client) -> None:
        client, _, _ = api_client
        directory = client.app.state.directory
        if not directory.search_users("jorg@x.at"):
            directory.create_user(User(name="Jörg Österreicher", email="jorg@x.at", country="Österreich", city="Wien"))

    @pytest.mark.parametrize("country", ["Österreich", "österreich"])
    def test_filter_country(self, api_client: _Client, country: str) -> None:
        client, token, _ = api_client
        rows = client.get("/api/v1/users/filter", params={"country": country}, headers=_bearer(token)).json()["data"]
        assert [r["name"] for r in rows] == ["Jörg Österreicher"]

    @pytest.mark.parametrize("query", ["Österreicher", "österreicher"])
    def test_search_name(self, api_client: _Client, query: str) -> None:
        client, token, _ = api_client
        resp = client.get(f"/api/v1/users/search/{query}", headers=_bearer(token))
        assert resp.status_code == 200
        assert [r["email"] for r in resp.json()["data"]] == ["jorg@x.at"]
