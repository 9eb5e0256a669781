"""
Remembered UI settings (last filter, sort, search, page and theme).

Convenience only: a missing or unreadable file, or a value that no longer
makes sense, silently falls back to the default for that field.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict

from books import DEFAULT_SORT, FILTERS, SORT_MODES, STATUS_ALL

logger = logging.getLogger(__name__)

THEMES = ("dark", "light")


@dataclass(frozen=True)
class Prefs:
    filter: str = STATUS_ALL
    sort: str = DEFAULT_SORT
    search: str = ""
    page: int = 1
    theme: str = "dark"


def _clean(raw: Dict[str, Any]) -> Prefs:
    defaults = Prefs()
    page = raw.get("page")
    return Prefs(
        filter=raw.get("filter") if raw.get("filter") in FILTERS else defaults.filter,
        sort=raw.get("sort") if raw.get("sort") in SORT_MODES else defaults.sort,
        search=raw.get("search") if isinstance(raw.get("search"), str) else defaults.search,
        page=page if isinstance(page, int) and not isinstance(page, bool) and page >= 1 else defaults.page,
        theme=raw.get("theme") if raw.get("theme") in THEMES else defaults.theme,
    )


def load_prefs(path: str | Path) -> Prefs:
    path = Path(path)
    if not path.exists():
        return Prefs()
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable preferences file %s: %s", path, exc)
        return Prefs()
    if not isinstance(raw, dict):
        return Prefs()
    return _clean(raw)


def save_prefs(path: str | Path, prefs: Prefs) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(asdict(prefs), indent=2), encoding="utf-8")
    tmp.replace(path)
