"""
directory/ingest.py -- Parsers for bulk user-directory imports.

All parsers normalize their input to the User dataclass. No external
dependencies beyond stdlib.

Supported formats:
  - CSV   (header row with name,email and optional age,gender,country,city,company)
  - JSON  (a list of objects with the same keys, or {"users": [...]})

Pipeline:
  file content -> parse_*() -> list[User] -> UserDirectoryStore.create_user()

Rows missing a name or email are skipped. A non-numeric or negative age is
dropped (stored as NULL) rather than rejecting the whole row.
"""

import csv
import io
import json
from typing import Optional

from directory.models import User

_OPTIONAL_TEXT_FIELDS = ("gender", "country", "city", "company")


def _clean(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_age(value) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        age = int(str(value).strip())
    except ValueError:
        return None
    return age if age >= 0 else None


def _record_to_user(record: dict) -> Optional[User]:
    name = _clean(record.get("name"))
    email = _clean(record.get("email"))
    if not name or not email:
        return None
    return User(
        name=name,
        email=email,
        age=_parse_age(record.get("age")),
        id=_clean(record.get("id")),
        **{f: _clean(record.get(f)) for f in _OPTIONAL_TEXT_FIELDS},
    )


# ---------------------------------------------------------------------------
# CSV parser
# ---------------------------------------------------------------------------


def parse_csv(content: str) -> list[User]:
    """Parse a CSV export of user profiles.

    Expected header: name,email (plus any optional columns). Extra columns
    are ignored.
    """
    users: list[User] = []
    reader = csv.DictReader(io.StringIO(content))
    for row in reader:
        user = _record_to_user(row)
        if user is not None:
            users.append(user)
    return users


# ---------------------------------------------------------------------------
# JSON parser
# ---------------------------------------------------------------------------


def parse_json(content: str) -> list[User]:
    """Parse a JSON array of user objects (or an object wrapping it under "users").

    Raises ValueError if the document is not valid JSON or has neither shape.
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("users")
    if not isinstance(data, list):
        raise ValueError("Expected a JSON array of users or an object with a 'users' array.")

    users: list[User] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        user = _record_to_user(item)
        if user is not None:
            users.append(user)
    return users
