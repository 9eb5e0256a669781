"""
List-view state for the UI.

BookListController owns what the user is looking at (filter, search, sort,
page), the last result page, the last error and the inline-edit buffer. Every
mutation goes through the store and is followed by a fresh query; cached pages
are never reused across a mutation.

Responses are tagged with a request token. Only the newest token may update
state, so a slow answer to an old query cannot overwrite a newer one.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import replace
from typing import Any, Dict, Mapping, Optional

import requests
from sqlalchemy.exc import SQLAlchemyError

from books import BookRecord, Identity, identity_of, matches, next_status, normalize_rating
from client import StoreError
from store import BookStore
from validators import ValidationError, validate_create, validate_update
from view import DEFAULT_PAGE_SIZE, ResultPage, ViewQuery

logger = logging.getLogger(__name__)

# Failures that end up as a message in the UI instead of a traceback
STORE_FAILURES = (StoreError, requests.RequestException, SQLAlchemyError, OSError)


class BookListController:
    def __init__(self, store: BookStore, page_size: int = DEFAULT_PAGE_SIZE,
                 query: Optional[ViewQuery] = None):
        self.store = store
        self.query = query or ViewQuery(page_size=page_size)
        self.result = ResultPage()
        self.error = ""
        self.editing: Optional[Identity] = None
        self.draft: Dict[str, Any] = {}
        self._tokens = itertools.count(1)
        self._latest = 0

    # ------------------------------------------------------------------
    # View parameters
    # ------------------------------------------------------------------
    def set_filter(self, status_filter: str) -> ResultPage:
        self.query = replace(self.query, status_filter=status_filter, page=1)
        return self.reload()

    def set_search(self, search: str) -> ResultPage:
        self.query = replace(self.query, search=search, page=1)
        return self.reload()

    def set_sort(self, sort: str) -> ResultPage:
        self.query = replace(self.query, sort=sort, page=1)
        return self.reload()

    def set_page(self, page: int) -> ResultPage:
        self.query = replace(self.query, page=max(1, int(page)))
        return self.reload()

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------
    def begin_request(self) -> int:
        self._latest = next(self._tokens)
        return self._latest

    def is_latest(self, token: int) -> bool:
        return token == self._latest

    def apply(self, token: int, result: ResultPage) -> bool:
        """
        Apply `result` if `token` is still the newest request.
        Returns False (and changes nothing) for stale results.
        """
        if not self.is_latest(token):
            logger.debug("Discarding stale result for request %s", token)
            return False
        self.result = result
        self.error = ""
        if result.safe_page != self.query.page:
            self.query = replace(self.query, page=result.safe_page)
        return True

    def fail(self, token: int, exc: BaseException) -> bool:
        if not self.is_latest(token):
            return False
        self.error = str(exc) or "Failed to load"
        return True

    def reload(self) -> ResultPage:
        token = self.begin_request()
        try:
            result = self.store.query(self.query)
        except STORE_FAILURES as exc:
            logger.error("Loading books failed: %s", exc)
            self.fail(token, exc)
            return self.result
        self.apply(token, result)
        return self.result

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def _mutate(self, action: str, fn, first_page: bool = False) -> Any:
        try:
            outcome = fn()
        except STORE_FAILURES as exc:
            logger.error("%s failed: %s", action, exc)
            self.error = f"{action} failed: {exc}"
            return None
        if first_page:
            self.query = replace(self.query, page=1)
        self.reload()
        return outcome

    def add(self, fields: Mapping[str, Any]) -> Optional[BookRecord]:
        """Validate and insert a book, then show page 1 of the current view."""
        clean = validate_create(fields)
        return self._mutate("Add", lambda: self.store.insert(clean), first_page=True)

    def rate(self, record: BookRecord, rating: int) -> Optional[BookRecord]:
        clean = validate_update({"rating": rating})
        clean["rating"] = normalize_rating(record.status, clean["rating"])
        return self._mutate("Rating", lambda: self.store.update(identity_of(record), clean))

    def toggle_status(self, record: BookRecord) -> Optional[BookRecord]:
        clean = validate_update({"status": next_status(record.status)})
        return self._mutate("Status change", lambda: self.store.update(identity_of(record), clean))

    def edit(self, record: BookRecord, fields: Mapping[str, Any]) -> Optional[BookRecord]:
        clean = validate_update(fields)
        return self._mutate("Edit", lambda: self.store.update(identity_of(record), clean))

    def remove(self, record: BookRecord) -> bool:
        identity = identity_of(record)
        if self.is_editing(record):
            self.cancel_edit()
        return bool(self._mutate("Delete", lambda: self.store.delete(identity)))

    # ------------------------------------------------------------------
    # Inline editing
    # ------------------------------------------------------------------
    def start_edit(self, record: BookRecord) -> None:
        self.editing = identity_of(record)
        self.draft = {"title": record.title, "author": record.author, "status": record.status}

    def is_editing(self, record: BookRecord) -> bool:
        return self.editing is not None and matches(self.editing, record)

    def cancel_edit(self) -> None:
        self.editing = None
        self.draft = {}

    def save_edit(self, record: BookRecord, fields: Optional[Mapping[str, Any]] = None) -> Optional[BookRecord]:
        """
        Save the draft for `record`. Raises ValidationError for bad fields and
        keeps the buffer so the user can fix them.
        """
        draft = dict(self.draft)
        draft.update(fields or {})
        try:
            updated = self.edit(record, draft)
        except ValidationError:
            self.draft = draft
            raise
        if updated is not None:
            self.cancel_edit()
        return updated
