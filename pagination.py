"""
Page-number window for the pagination footer.

    build_window(7, 20) -> [1, ..., 6, 7, 8, ..., 20]

At most five page links are shown before ellipses kick in; the first and last
pages are always present.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Union

MAX_FULL_PAGES = 5


@dataclass(frozen=True)
class PageLink:
    number: int


@dataclass(frozen=True)
class Gap:
    def __str__(self) -> str:
        return "..."


ELLIPSIS = Gap()

PageItem = Union[PageLink, Gap]


def build_window(current_page: int, total_pages: int) -> List[PageItem]:
    if total_pages <= MAX_FULL_PAGES:
        return [PageLink(n) for n in range(1, total_pages + 1)]

    window_start = max(2, current_page - 1)
    window_end = min(total_pages - 1, current_page + 1)

    items: List[PageItem] = [PageLink(1)]
    if window_start > 2:
        items.append(ELLIPSIS)
    items.extend(PageLink(n) for n in range(window_start, window_end + 1))
    if window_end < total_pages - 1:
        items.append(ELLIPSIS)
    items.append(PageLink(total_pages))
    return items


def has_prev(current_page: int) -> bool:
    return current_page > 1


def has_next(current_page: int, total_pages: int) -> bool:
    return current_page < total_pages
