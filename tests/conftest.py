"""Shared fixtures."""
import pytest

from books import BookRecord
from db import make_session_factory
from store import MemoryBookStore, SqlBookStore


def make_books():
    return [
        BookRecord(id=1, title="The Hobbit", author="J.R.R. Tolkien", status="Reading", rating=4),
        BookRecord(id=2, title="Harry Potter", author="J. Rowling", status="Read", rating=5),
        BookRecord(id=3, title="Dune", author="Frank Herbert", status="Read", rating=4),
        BookRecord(id=4, title="anathem", author="Neal Stephenson", status="DNF", rating=2),
        BookRecord(id=5, title="Circe", author="Madeline Miller", status="Want to Read", rating=0),
        BookRecord(id=6, title="Beloved", author="Toni Morrison", status="Read", rating=4),
    ]


@pytest.fixture
def books():
    return make_books()


@pytest.fixture
def session_factory():
    return make_session_factory("sqlite://")


@pytest.fixture
def sql_store(session_factory):
    return SqlBookStore(session_factory)


@pytest.fixture
def seeded_sql_store(sql_store, books):
    """SQL store holding the same books, inserted in the same order."""
    for b in books:
        sql_store.insert(
            {"title": b.title, "author": b.author, "status": b.status, "rating": b.rating}
        )
    return sql_store


@pytest.fixture
def memory_store(books):
    return MemoryBookStore(books)
