"""
directory/models.py -- Domain dataclass for end-user profile records.

Pure data container with zero logic. All querying (paging, filtering,
searching) lives in directory/store.py; projection onto response shapes
lives in api/models.py.

Separation of concerns: these dataclasses are the directory's domain truth,
just as auth/models.py is the admin domain's truth. Neither imports the other.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class User:
    """An end-user profile, read-only from the console's perspective.

    id is None before the record is written to the database; the store
    assigns a UUID4 string on insert when the caller does not supply one.
    """

    name: str
    email: str
    age: Optional[int] = None
    gender: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    company: Optional[str] = None
    id: Optional[str] = None
