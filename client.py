# client.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

import requests
from requests.adapters import HTTPAdapter, Retry

from books import STATUS_ALL, BookRecord, ById, Identity
from view import ResultPage, ViewQuery

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants / session
# ---------------------------------------------------------------------------

DEFAULT_TIMEOUT = 12  # seconds
ALL_PAGE_SIZE = 100  # server-side maximum


class StoreError(RuntimeError):
    """The API could not be reached or answered with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def make_session() -> requests.Session:
    """
    requests.Session with JSON headers and retries for idempotent reads.
    Writes are never retried.
    """
    s = requests.Session()
    s.headers.update(
        {
            "User-Agent": "BookTracker/1.0",
            "Accept": "application/json",
        }
    )
    retries = Retry(
        total=3,
        backoff_factor=0.3,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset(["GET", "HEAD"]),
    )
    adapter = HTTPAdapter(max_retries=retries)
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    return s


# ---------------------------------------------------------------------------
# Store over HTTP
# ---------------------------------------------------------------------------

class HttpBookStore:
    """BookStore backed by the /api/books endpoints (see api.py)."""

    def __init__(self, base_url: str, session: Optional[requests.Session] = None,
                 timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self._session = session
        self.timeout = timeout

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = make_session()
        return self._session

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            r = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.error("%s %s failed: %s", method, url, exc)
            raise StoreError(f"Could not reach the server: {exc}") from exc
        return r

    @staticmethod
    def _raise_for(r: requests.Response) -> None:
        if r.ok:
            return
        try:
            message = (r.json() or {}).get("message")
        except ValueError:
            message = None
        raise StoreError(message or f"Request failed: {r.status_code}", r.status_code)

    @staticmethod
    def _book_id(identity: Identity) -> Any:
        if not isinstance(identity, ById):
            raise ValueError("server records are addressed by id")
        return identity.id

    def query(self, query: ViewQuery) -> ResultPage:
        params: Dict[str, Any] = {
            "sort": query.sort,
            "page": query.page,
            "pageSize": query.page_size,
        }
        if query.status_filter and query.status_filter != STATUS_ALL:
            params["status"] = query.status_filter
        if query.search:
            params["search"] = query.search

        r = self._request("GET", "/api/books", params=params)
        self._raise_for(r)
        payload = r.json() or {}
        meta = payload.get("meta") or {}
        return ResultPage(
            items=[BookRecord.from_dict(item) for item in payload.get("data") or []],
            total_pages=int(meta.get("totalPages") or 1),
            safe_page=int(meta.get("page") or 1),
            total=int(meta.get("total") or 0),
        )

    def all(self) -> List[BookRecord]:
        records: List[BookRecord] = []
        page = 1
        while True:
            result = self.query(ViewQuery(page=page, page_size=ALL_PAGE_SIZE))
            records.extend(result.items)
            if result.safe_page >= result.total_pages:
                return records
            page += 1

    def insert(self, fields: Mapping[str, Any]) -> BookRecord:
        r = self._request("POST", "/api/books", json=dict(fields))
        self._raise_for(r)
        return BookRecord.from_dict(r.json())

    def update(self, identity: Identity, fields: Mapping[str, Any]) -> Optional[BookRecord]:
        r = self._request("PATCH", f"/api/books/{self._book_id(identity)}", json=dict(fields))
        if r.status_code == 404:
            return None
        self._raise_for(r)
        return BookRecord.from_dict(r.json())

    def delete(self, identity: Identity) -> bool:
        r = self._request("DELETE", f"/api/books/{self._book_id(identity)}")
        if r.status_code == 404:
            return False
        self._raise_for(r)
        return True
