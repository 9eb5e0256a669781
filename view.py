"""
View derivation: filter -> search -> sort -> paginate.

Pure functions over a sequence of BookRecord. Nothing here mutates its input
or keeps state between calls, so the same query over the same records always
produces the same page.
"""

from __future__ import annotations

import math
import unicodedata
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from books import DEFAULT_SORT, STATUS_ALL, BookRecord, SortMode

DEFAULT_PAGE_SIZE = 5


@dataclass(frozen=True)
class ViewQuery:
    status_filter: str = STATUS_ALL
    search: str = ""
    sort: str = DEFAULT_SORT
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class ResultPage:
    """
    One page of derived results.

    - items: at most page_size records
    - total_pages: always >= 1
    - safe_page: requested page clamped to [.., total_pages]
    - total: number of records that survived filter + search
    """
    items: List[BookRecord] = field(default_factory=list)
    total_pages: int = 1
    safe_page: int = 1
    total: int = 0


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------

def _normalize(text: str | None) -> str:
    return (text or "").strip().casefold()


def collation_key(text: str | None) -> str:
    """
    Case- and accent-insensitive sort key ("base" sensitivity):
    'Émile' and 'emile' compare equal.

    Keys compare by code point, not by locale rules, so punctuation such as
    '{' or '~' sorts after letters. The SQLite store registers this same
    function, so both backends order identically.
    """
    decomposed = unicodedata.normalize("NFKD", text or "")
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------

def filter_by_status(records: Sequence[BookRecord], status_filter: str) -> List[BookRecord]:
    if status_filter == STATUS_ALL:
        return list(records)
    return [r for r in records if r.status == status_filter]


def search_books(records: Sequence[BookRecord], search: str) -> List[BookRecord]:
    """Keep records whose title or author contains `search` (case-insensitive)."""
    needle = _normalize(search)
    if not needle:
        return list(records)
    return [
        r for r in records
        if needle in _normalize(r.title) or needle in _normalize(r.author)
    ]


def sort_books(records: Sequence[BookRecord], mode: str) -> List[BookRecord]:
    """
    Stable sort by `mode`. Unknown modes return the records unchanged.

    Rating sorts always break ties by title ascending, whichever direction the
    rating itself is sorted in.
    """
    items = list(records)

    if mode == SortMode.TITLE_ASC:
        return sorted(items, key=lambda r: collation_key(r.title))
    if mode == SortMode.TITLE_DESC:
        return sorted(items, key=lambda r: collation_key(r.title), reverse=True)
    if mode == SortMode.AUTHOR_ASC:
        return sorted(items, key=lambda r: collation_key(r.author))
    if mode == SortMode.AUTHOR_DESC:
        return sorted(items, key=lambda r: collation_key(r.author), reverse=True)
    if mode in (SortMode.RATING_ASC, SortMode.RATING_DESC):
        # secondary key first; the second (stable) pass keeps it within equal ratings
        by_title = sorted(items, key=lambda r: collation_key(r.title))
        return sorted(
            by_title,
            key=lambda r: r.rating or 0,
            reverse=(mode == SortMode.RATING_DESC),
        )
    return items


def page_bounds(total: int, page: int, page_size: int) -> Tuple[int, int]:
    """
    Return (total_pages, safe_page) for `total` items.

    Only the upper bound is clamped; callers validate page >= 1.
    """
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    total_pages = max(1, math.ceil(total / page_size))
    return total_pages, min(page, total_pages)


def paginate(records: Sequence[BookRecord], page: int, page_size: int) -> ResultPage:
    total_pages, safe_page = page_bounds(len(records), page, page_size)
    start = (safe_page - 1) * page_size
    return ResultPage(
        items=list(records[start:start + page_size]),
        total_pages=total_pages,
        safe_page=safe_page,
        total=len(records),
    )


def derive(records: Sequence[BookRecord], query: ViewQuery) -> ResultPage:
    """Run the full pipeline in its fixed order."""
    filtered = filter_by_status(records, query.status_filter)
    searched = search_books(filtered, query.search)
    ordered = sort_books(searched, query.sort)
    return paginate(ordered, query.page, query.page_size)
