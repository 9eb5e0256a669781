"""
=============================================================
Books (domain vocabulary)
=============================================================
Plain-Python types shared by every layer: the status and sort
enumerations, the BookRecord value object, record identity and the
rating rule that every mutation goes through.

- BookRecord is what stores return and what the view engine projects.
- Identity is either ById(id) or ByTitleAuthor(title, author); records
  without an id (local JSON variant) are matched by the composite key.
- normalize_rating() is the only place that knows "Want to Read => 0".
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union


class Status(str, Enum):
    """Reading status of a tracked book."""
    READING = "Reading"
    READ = "Read"
    WANT_TO_READ = "Want to Read"
    DNF = "DNF"


class SortMode(str, Enum):
    TITLE_ASC = "title-asc"
    TITLE_DESC = "title-desc"
    AUTHOR_ASC = "author-asc"
    AUTHOR_DESC = "author-desc"
    RATING_ASC = "rating-asc"
    RATING_DESC = "rating-desc"


STATUS_ALL = "All"
STATUSES = [s.value for s in Status]
FILTERS = [STATUS_ALL] + STATUSES
SORT_MODES = [m.value for m in SortMode]
DEFAULT_SORT = SortMode.TITLE_ASC.value

MIN_RATING = 0
MAX_RATING = 5


# ---------------------------------------------------------------------------
# Record
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BookRecord:
    """
    One tracked book as seen outside the database.

    `id` is None for records that were never assigned one. Timestamps are only
    present when the record comes from a persistent store.
    """
    title: str
    author: str
    status: str = Status.READING.value
    rating: int = 0
    id: Optional[Union[int, str]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def with_changes(self, **fields: Any) -> "BookRecord":
        """Return a copy with `fields` merged in and the rating rule re-applied."""
        merged = replace(self, **fields)
        return replace(merged, rating=normalize_rating(merged.status, merged.rating))

    def to_dict(self) -> Dict[str, Any]:
        """Wire form used by the HTTP API and the JSON file store."""
        data: Dict[str, Any] = {
            "title": self.title,
            "author": self.author,
            "status": self.status,
            "rating": self.rating,
        }
        if self.id is not None:
            data["id"] = self.id
        if self.created_at is not None:
            data["createdAt"] = self.created_at.isoformat()
        if self.updated_at is not None:
            data["updatedAt"] = self.updated_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BookRecord":
        return cls(
            id=data.get("id"),
            title=str(data.get("title") or ""),
            author=str(data.get("author") or ""),
            status=str(data.get("status") or Status.READING.value),
            rating=int(data.get("rating") or 0),
            created_at=_parse_ts(data.get("createdAt")),
            updated_at=_parse_ts(data.get("updatedAt")),
        )


def _parse_ts(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    # fromisoformat() only learned the trailing "Z" in 3.11
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ById:
    id: Union[int, str]


@dataclass(frozen=True)
class ByTitleAuthor:
    title: str
    author: str


Identity = Union[ById, ByTitleAuthor]


def identity_of(record: BookRecord) -> Identity:
    """Prefer the stable id; fall back to the (title, author) composite key."""
    if record.id is not None:
        return ById(record.id)
    return ByTitleAuthor(record.title, record.author)


def matches(identity: Identity, record: BookRecord) -> bool:
    """
    Single matching rule for update/delete.

    A ById identity never matches an id-less record and vice versa, so the two
    keying schemes cannot accidentally overlap.
    """
    if isinstance(identity, ById):
        return record.id is not None and record.id == identity.id
    return (
        record.id is None
        and record.title == identity.title
        and record.author == identity.author
    )


# ---------------------------------------------------------------------------
# Invariants
# ---------------------------------------------------------------------------

def normalize_rating(status: Optional[str], rating: Optional[int]) -> int:
    """Rating to persist for `status`: always 0 for Want to Read."""
    if status == Status.WANT_TO_READ.value:
        return 0
    return int(rating or 0)


_NEXT_STATUS = {
    Status.READ.value: Status.READING.value,
    Status.READING.value: Status.WANT_TO_READ.value,
}


def next_status(status: str) -> str:
    """Quick toggle order: Read -> Reading -> Want to Read -> Read (DNF -> Read)."""
    return _NEXT_STATUS.get(status, Status.READ.value)
