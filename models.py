"""
=============================================================
Models
=============================================================
This file defines the SQLAlchemy ORM model behind the relational store.

- Book: one row per tracked book.

Conventions:
- `status` holds one of the Status values from books.py.
- `rating` is 0..5 and is always 0 for "Want to Read" (enforced in dal.py
  through books.normalize_rating, backed by a CHECK constraint here).
- Timestamps are naive UTC, assigned by the application on insert/update.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from books import MAX_RATING, MIN_RATING, STATUSES, BookRecord


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


_STATUS_LIST = ", ".join(f"'{s}'" for s in STATUSES)


class Book(Base):
    """
    A book on the reading list.

    Columns:
    - id: PK
    - title, author: non-empty text (indexed for sorting/search)
    - status: Reading / Read / Want to Read / DNF
    - rating: integer in [0..5]
    - created_at / updated_at: timestamps

    Constraints:
    - CHECK status in the enumeration
    - CHECK rating in range, and rating = 0 when status is Want to Read
    """
    __tablename__ = "books"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(300), index=True)
    author: Mapped[str] = mapped_column(String(200), index=True)
    status: Mapped[str] = mapped_column(String(20), default="Reading")
    rating: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    __table_args__ = (
        CheckConstraint(f"status IN ({_STATUS_LIST})", name="ck_book_status"),
        CheckConstraint(
            f"rating >= {MIN_RATING} AND rating <= {MAX_RATING}", name="ck_book_rating_range"
        ),
        CheckConstraint(
            "status <> 'Want to Read' OR rating = 0", name="ck_book_want_to_read_unrated"
        ),
    )

    def to_record(self) -> BookRecord:
        return BookRecord(
            id=self.id,
            title=self.title,
            author=self.author,
            status=self.status,
            rating=self.rating or 0,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def __repr__(self) -> str:
        return f"<Book {self.id} {self.title!r} by {self.author!r} [{self.status}]>"


