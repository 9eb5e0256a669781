"""
Record stores.

Every store answers the same five calls, so the controller and the UI do not
care whether books live in a list, a JSON file, a database or behind the REST
API (see client.HttpBookStore):

    query(ViewQuery) -> ResultPage
    insert(fields) -> BookRecord
    update(identity, fields) -> BookRecord | None
    delete(identity) -> bool
    all() -> list[BookRecord]
"""

from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

import dal
from books import BookRecord, ById, Identity, Status, matches, normalize_rating
from db import get_session
from models import Book
from view import ResultPage, ViewQuery, derive, page_bounds

logger = logging.getLogger(__name__)

DEFAULT_BOOKS = [
    BookRecord(title="The Hobbit", author="J.R.R. Tolkien", status=Status.READING.value),
    BookRecord(title="Harry Potter", author="J. Rowling", status=Status.READ.value),
]


class BookStore(Protocol):
    def query(self, query: ViewQuery) -> ResultPage: ...

    def insert(self, fields: Mapping[str, Any]) -> BookRecord: ...

    def update(self, identity: Identity, fields: Mapping[str, Any]) -> Optional[BookRecord]: ...

    def delete(self, identity: Identity) -> bool: ...

    def all(self) -> List[BookRecord]: ...


def _editable(fields: Mapping[str, Any]) -> Dict[str, Any]:
    editable = {k: v for k, v in fields.items() if k in dal.UPDATABLE_FIELDS}
    if not editable:
        raise ValueError("no updates provided")
    return editable


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------

class MemoryBookStore:
    """
    List-backed store; query() is view.derive over the list.

    With assign_ids=False records stay id-less and are matched by
    (title, author). Like the list it replaces, an update or delete by that
    composite key touches every record sharing it.
    """

    def __init__(self, records: Optional[Iterable[BookRecord]] = None, assign_ids: bool = False):
        self._records: List[BookRecord] = list(records or [])
        self.assign_ids = assign_ids

    def all(self) -> List[BookRecord]:
        return list(self._records)

    def query(self, query: ViewQuery) -> ResultPage:
        return derive(self._records, query)

    def insert(self, fields: Mapping[str, Any]) -> BookRecord:
        status = fields.get("status", Status.READING.value)
        record = BookRecord(
            id=uuid.uuid4().hex if self.assign_ids else None,
            title=fields["title"],
            author=fields["author"],
            status=status,
            rating=normalize_rating(status, fields.get("rating", 0)),
        )
        self._records.append(record)
        self._changed()
        return record

    def update(self, identity: Identity, fields: Mapping[str, Any]) -> Optional[BookRecord]:
        changes = _editable(fields)
        updated: Optional[BookRecord] = None
        for i, record in enumerate(self._records):
            if matches(identity, record):
                self._records[i] = record.with_changes(**changes)
                updated = updated or self._records[i]
        if updated is not None:
            self._changed()
        return updated

    def delete(self, identity: Identity) -> bool:
        kept = [r for r in self._records if not matches(identity, r)]
        removed = len(kept) != len(self._records)
        if removed:
            self._records = kept
            self._changed()
        return removed

    def _changed(self) -> None:
        """Hook for subclasses that persist after every mutation."""


class JsonBookStore(MemoryBookStore):
    """MemoryBookStore saved to a JSON file after every mutation."""

    def __init__(self, path: str | Path, assign_ids: bool = False):
        self.path = Path(path)
        super().__init__(self._load(), assign_ids=assign_ids)
        if not self.path.exists():
            self._changed()

    def _load(self) -> List[BookRecord]:
        if not self.path.exists():
            logger.info("No books file at %s, starting with defaults", self.path)
            return list(DEFAULT_BOOKS)
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Could not read %s (%s), starting with defaults", self.path, exc)
            return list(DEFAULT_BOOKS)
        if not isinstance(raw, list):
            logger.warning("%s does not hold a list, starting with defaults", self.path)
            return list(DEFAULT_BOOKS)
        return [BookRecord.from_dict(item) for item in raw if isinstance(item, dict)]

    def _changed(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(
            json.dumps([r.to_dict() for r in self._records], indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        tmp.replace(self.path)


# ---------------------------------------------------------------------------
# Relational
# ---------------------------------------------------------------------------

class SqlBookStore:
    """dal.py behind the store interface; one transaction per call."""

    def __init__(self, factory: Optional[sessionmaker] = None):
        self.factory = factory

    @staticmethod
    def _book_id(identity: Identity) -> Optional[int]:
        """Integer row id, or None when the id cannot name a row."""
        if not isinstance(identity, ById):
            raise ValueError("database records are addressed by id")
        if isinstance(identity.id, bool):
            return None
        try:
            return int(identity.id)
        except (TypeError, ValueError):
            return None

    def all(self) -> List[BookRecord]:
        with get_session(self.factory) as s:
            rows = s.execute(select(Book).order_by(Book.id.asc())).scalars().all()
            return [b.to_record() for b in rows]

    def query(self, query: ViewQuery) -> ResultPage:
        with get_session(self.factory) as s:
            items, total, safe_page = dal.list_books(
                s,
                status=query.status_filter,
                search=query.search,
                sort=query.sort,
                page=query.page,
                page_size=query.page_size,
            )
            records = [b.to_record() for b in items]
        total_pages, _ = page_bounds(total, query.page, query.page_size)
        return ResultPage(items=records, total_pages=total_pages, safe_page=safe_page, total=total)

    def insert(self, fields: Mapping[str, Any]) -> BookRecord:
        with get_session(self.factory) as s:
            book = dal.create_book(
                s,
                title=fields["title"],
                author=fields["author"],
                status=fields.get("status", Status.READING.value),
                rating=fields.get("rating", 0),
            )
            return book.to_record()

    def update(self, identity: Identity, fields: Mapping[str, Any]) -> Optional[BookRecord]:
        book_id = self._book_id(identity)
        if book_id is None:
            _editable(fields)  # empty updates still fail first
            return None
        with get_session(self.factory) as s:
            book = dal.update_book(s, book_id, fields)
            return book.to_record() if book else None

    def delete(self, identity: Identity) -> bool:
        book_id = self._book_id(identity)
        if book_id is None:
            return False
        with get_session(self.factory) as s:
            return dal.delete_book(s, book_id) > 0


def make_store(backend: str, *, api_url: str = "", books_file: str = "books.json") -> BookStore:
    """Store for a BOOK_TRACKER_BACKEND value: sql, http or json."""
    if backend == "sql":
        return SqlBookStore()
    if backend == "http":
        from client import HttpBookStore  # noqa: PLC0415

        return HttpBookStore(api_url)
    if backend == "json":
        return JsonBookStore(books_file)
    raise ValueError(f"unknown backend: {backend!r}")
