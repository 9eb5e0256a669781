"""
Input validation for the HTTP boundary and the UI forms.

List parameters are clamped rather than rejected; book fields are rejected
with a ValidationError whose message is safe to show to the user.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from books import (
    DEFAULT_SORT,
    MAX_RATING,
    MIN_RATING,
    SORT_MODES,
    STATUS_ALL,
    STATUSES,
    Status,
    normalize_rating,
)
from view import DEFAULT_PAGE_SIZE, ViewQuery

MAX_PAGE = 10_000
MAX_PAGE_SIZE = 100


class ValidationError(ValueError):
    """Rejected input; str(exc) is the user-facing message."""


def clamp_int(value: Any, low: int, high: int, fallback: int) -> int:
    """
    Coerce `value` to an int within [low, high].
    Non-numeric input (None, "", "abc", "inf") returns `fallback`.
    """
    try:
        number = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return fallback
    return max(low, min(high, number))


def parse_list_query(args: Mapping[str, Any], default_page_size: int = DEFAULT_PAGE_SIZE) -> ViewQuery:
    """Build a ViewQuery from raw query-string values."""
    status = args.get("status")
    if status not in STATUSES:
        status = STATUS_ALL

    sort = args.get("sort")
    if sort not in SORT_MODES:
        sort = DEFAULT_SORT

    search = args.get("search")
    search = search.strip() if isinstance(search, str) else ""

    return ViewQuery(
        status_filter=status,
        search=search,
        sort=sort,
        page=clamp_int(args.get("page"), 1, MAX_PAGE, 1),
        page_size=clamp_int(args.get("pageSize"), 1, MAX_PAGE_SIZE, default_page_size),
    )


# ---------------------------------------------------------------------------
# Book fields
# ---------------------------------------------------------------------------

def _required_text(body: Mapping[str, Any], key: str, message: str) -> str:
    value = body.get(key)
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise ValidationError(message)
    return text


def _status(value: Any) -> str:
    if not isinstance(value, str) or value not in STATUSES:
        raise ValidationError("invalid status")
    return value


def _rating(value: Any) -> int:
    # bool is an int subclass; True must not sneak in as 1
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("invalid rating")
    if not MIN_RATING <= value <= MAX_RATING:
        raise ValidationError("invalid rating")
    return value


def validate_create(body: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Validate a new book. Returns {title, author, status, rating}.
    Status defaults to Reading, rating to 0.
    """
    body = body if isinstance(body, Mapping) else {}

    title = _required_text(body, "title", "title is required")
    author = _required_text(body, "author", "author is required")
    status = _status(body.get("status", Status.READING.value))
    rating = _rating(body.get("rating", 0))

    return {
        "title": title,
        "author": author,
        "status": status,
        "rating": normalize_rating(status, rating),
    }


def validate_update(body: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Validate a partial update. Only fields present in `body` are returned."""
    body = body if isinstance(body, Mapping) else {}
    updates: Dict[str, Any] = {}

    if "title" in body:
        updates["title"] = _required_text(body, "title", "title must be non-empty string")
    if "author" in body:
        updates["author"] = _required_text(body, "author", "author must be non-empty string")
    if "status" in body:
        updates["status"] = _status(body["status"])
    if "rating" in body:
        updates["rating"] = _rating(body["rating"])

    if updates.get("status") == Status.WANT_TO_READ.value:
        updates["rating"] = 0

    if not updates:
        raise ValidationError("no updates provided")
    return updates
