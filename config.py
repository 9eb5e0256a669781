"""
Settings for the book tracker.

Values come from Streamlit secrets when running under Streamlit (only the
database URL is looked up there), otherwise from environment variables.
"""

import logging
import os

logger = logging.getLogger(__name__)


def _string_to_bool(s: str) -> bool:
    return s.lower() in ["true", "yes", "1", "y"]


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %s", name, raw, default)
        return default


def _secret_db_url():
    # Prefer Streamlit secrets if available
    try:
        import streamlit as st  # noqa: WPS433
        return st.secrets.get("connections", {}).get("sql", {}).get("url")
    except Exception as exc:  # no secrets.toml, or streamlit missing
        logger.debug("No database URL in Streamlit secrets: %s", exc)
        return None


# ==============================================================================
# STORAGE
# ==============================================================================

DATABASE_URL = _secret_db_url() or os.getenv("DATABASE_URL", "sqlite:///books.db")

# sql: talk to the database directly; http: go through the REST API;
# json: local file, no server at all
BACKEND = os.getenv("BOOK_TRACKER_BACKEND", "sql").lower()

API_URL = os.getenv("BOOK_TRACKER_API_URL", "http://localhost:3001")

BOOKS_FILE = os.getenv("BOOK_TRACKER_BOOKS_FILE", "books.json")

PREFS_FILE = os.getenv("BOOK_TRACKER_PREFS", "prefs.json")

# ==============================================================================
# UI / API
# ==============================================================================

PAGE_SIZE = _int_env("PAGE_SIZE", 5)

PORT = _int_env("PORT", 3001)

CORS_ORIGIN = os.getenv("CORS_ORIGIN", "http://localhost:5173")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

DEBUG = _string_to_bool(os.getenv("DEBUG", "false"))
