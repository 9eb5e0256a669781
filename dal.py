# dal.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from sqlalchemy import String, delete, func, select
from sqlalchemy.orm import Session

from books import STATUS_ALL, SortMode, normalize_rating
from models import Book, utcnow
from view import DEFAULT_PAGE_SIZE, page_bounds

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "author", "status", "rating")

# ORDER BY per sort mode, given the text key function. `id` last keeps equal
# keys in insertion order, which is what a stable in-memory sort over
# insertion-ordered rows gives.
_ORDER_BY = {
    SortMode.TITLE_ASC.value: lambda key: (key(Book.title).asc(), Book.id.asc()),
    SortMode.TITLE_DESC.value: lambda key: (key(Book.title).desc(), Book.id.asc()),
    SortMode.AUTHOR_ASC.value: lambda key: (key(Book.author).asc(), Book.id.asc()),
    SortMode.AUTHOR_DESC.value: lambda key: (key(Book.author).desc(), Book.id.asc()),
    SortMode.RATING_ASC.value: lambda key: (
        Book.rating.asc(), key(Book.title).asc(), Book.id.asc()
    ),
    SortMode.RATING_DESC.value: lambda key: (
        Book.rating.desc(), key(Book.title).asc(), Book.id.asc()
    ),
}


def _text_functions(session: Session):
    """
    (sort key, case fold) SQL functions for the session's database.
    SQLite connections carry book_collate/book_fold (see db.py); other
    databases fall back to lower().
    """
    if session.get_bind().dialect.name == "sqlite":
        return (
            lambda col: func.book_collate(col, type_=String),
            lambda col: func.book_fold(col, type_=String),
        )
    return (
        lambda col: func.lower(col, type_=String),
        lambda col: func.lower(col, type_=String),
    )


# ---------------------------------------------------------------------------
# Queries / listing
# ---------------------------------------------------------------------------

def list_books(
    session: Session,
    *,
    status: Optional[str] = None,
    search: str = "",
    sort: str = SortMode.TITLE_ASC.value,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> Tuple[List[Book], int, int]:
    """
    Filtered, searched, sorted page of books.
    Returns (items, total_count, safe_page).

    - status: exact match; None or "All" keeps every status
    - search: case-insensitive substring of title OR author
    - page: 1-based; pages past the end are clamped to the last page
    """
    sort_key, fold = _text_functions(session)
    base_stmt = select(Book)

    if status and status != STATUS_ALL:
        base_stmt = base_stmt.where(Book.status == status)

    needle = (search or "").strip().casefold()
    if needle:
        base_stmt = base_stmt.where(
            fold(Book.title).contains(needle, autoescape=True)
            | fold(Book.author).contains(needle, autoescape=True)
        )

    # total count
    total_stmt = select(func.count()).select_from(base_stmt.subquery())
    total = int(session.scalar(total_stmt) or 0)

    _, safe_page = page_bounds(total, page, page_size)

    order_by = _ORDER_BY.get(sort)
    ordered = base_stmt.order_by(*order_by(sort_key)) if order_by else base_stmt.order_by(Book.id.asc())

    items = (
        session.execute(
            ordered.limit(page_size).offset((safe_page - 1) * page_size)
        )
        .scalars()
        .all()
    )
    return list(items), total, safe_page


def get_book(session: Session, book_id: int) -> Book | None:
    return session.get(Book, book_id)


# ---------------------------------------------------------------------------
# Create / update
# ---------------------------------------------------------------------------

def create_book(
    session: Session,
    *,
    title: str,
    author: str,
    status: str = "Reading",
    rating: int = 0,
) -> Book:
    """
    Insert a Book and return it.

    Note: this function calls session.flush() but does NOT commit; the caller
    should manage transaction boundaries.
    """
    if not title or not title.strip():
        raise ValueError("title is required")
    if not author or not author.strip():
        raise ValueError("author is required")

    now = utcnow()
    book = Book(
        title=title.strip(),
        author=author.strip(),
        status=status,
        rating=normalize_rating(status, rating),
        created_at=now,
        updated_at=now,
    )
    session.add(book)
    session.flush()  # ensures book.id is available
    logger.info("Created book %s: %r by %r", book.id, book.title, book.author)
    return book


def update_book(session: Session, book_id: int, updates: Mapping[str, Any]) -> Book | None:
    """
    Patch fields on a book. Returns the updated Book or None if not found.

    The rating rule is applied to the merged row, so setting only
    status="Want to Read" also zeroes an existing rating.
    """
    fields: Dict[str, Any] = {k: v for k, v in updates.items() if k in UPDATABLE_FIELDS}
    if not fields:
        raise ValueError("no updates provided")

    book = session.get(Book, book_id)
    if not book:
        return None

    for key, value in fields.items():
        setattr(book, key, value)
    book.rating = normalize_rating(book.status, book.rating)
    book.updated_at = utcnow()

    session.flush()
    logger.info("Updated book %s: %s", book_id, sorted(fields))
    return book


# ---------------------------------------------------------------------------
# Deletes
# ---------------------------------------------------------------------------

def delete_book(session: Session, book_id: int) -> int:
    """
    Hard-delete a book.
    Returns number of Book rows deleted (0 or 1).
    """
    res = session.execute(delete(Book).where(Book.id == book_id))
    deleted = int(res.rowcount or 0)
    if deleted:
        logger.info("Deleted book %s", book_id)
    return deleted
