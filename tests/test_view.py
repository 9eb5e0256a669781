"""Tests for the view derivation pipeline."""
import pytest

from books import BookRecord
from view import (
    ResultPage,
    ViewQuery,
    collation_key,
    derive,
    filter_by_status,
    page_bounds,
    paginate,
    search_books,
    sort_books,
)


def titles(records):
    return [r.title for r in records]


def numbered(n):
    return [BookRecord(title=f"Book {i:02d}", author="Anon") for i in range(1, n + 1)]


def test_filter_all_keeps_everything_in_order(books):
    """'All' returns the input unchanged."""
    assert filter_by_status(books, "All") == books


def test_filter_by_status_is_exact(books):
    """Only records with the chosen status survive."""
    result = filter_by_status(books, "Read")
    assert titles(result) == ["Harry Potter", "Dune", "Beloved"]
    assert all(r.status == "Read" for r in result)
    assert filter_by_status(books, "read") == []


def test_search_is_case_insensitive_substring():
    """'The Hobbit' matches hobbit, HOBBIT and ob but not hobbitt."""
    hobbit = [BookRecord(title="The Hobbit", author="J.R.R. Tolkien")]
    for needle in ("hobbit", "HOBBIT", "ob", "  Hobbit  "):
        assert search_books(hobbit, needle) == hobbit
    assert search_books(hobbit, "hobbitt") == []


def test_search_matches_author(books):
    assert titles(search_books(books, "rowling")) == ["Harry Potter"]


def test_blank_search_passes_through(books):
    assert search_books(books, "   ") == books


def test_sort_title_uses_case_insensitive_collation(books):
    """Lower-case 'anathem' sorts with the A's, not after Z."""
    assert titles(sort_books(books, "title-asc")) == [
        "anathem", "Beloved", "Circe", "Dune", "Harry Potter", "The Hobbit",
    ]
    assert titles(sort_books(books, "title-desc")) == [
        "The Hobbit", "Harry Potter", "Dune", "Circe", "Beloved", "anathem",
    ]


def test_sort_author(books):
    assert titles(sort_books(books, "author-asc")) == [
        "Dune", "Harry Potter", "The Hobbit", "Circe", "anathem", "Beloved",
    ]


def test_collation_ignores_accents():
    assert collation_key("Émile") == collation_key("emile")


def test_title_sort_is_stable_for_equal_keys():
    """Equal titles keep their original relative order in both directions."""
    records = [
        BookRecord(title="Same", author="First"),
        BookRecord(title="same", author="Second"),
        BookRecord(title="Other", author="Third"),
    ]
    assert [r.author for r in sort_books(records, "title-asc")] == ["Third", "First", "Second"]
    assert [r.author for r in sort_books(records, "title-desc")] == ["First", "Second", "Third"]


def test_rating_sort_breaks_ties_by_title_ascending():
    """Both rating directions fall back to title A-Z."""
    records = [BookRecord(title="B", author="x", rating=3), BookRecord(title="A", author="x", rating=3)]
    assert titles(sort_books(records, "rating-desc")) == ["A", "B"]
    assert titles(sort_books(records, "rating-asc")) == ["A", "B"]


def test_rating_sort(books):
    assert titles(sort_books(books, "rating-desc")) == [
        "Harry Potter", "Beloved", "Dune", "The Hobbit", "anathem", "Circe",
    ]
    assert titles(sort_books(books, "rating-asc")) == [
        "Circe", "anathem", "Beloved", "Dune", "The Hobbit", "Harry Potter",
    ]


def test_unknown_sort_is_a_no_op(books):
    assert sort_books(books, "by-color") == books


def test_sort_does_not_mutate_input(books):
    before = list(books)
    sort_books(books, "title-desc")
    assert books == before


def test_paginate_clamps_past_last_page():
    """12 items, page size 5: 3 pages; page 5 shows the last 2 items."""
    result = paginate(numbered(12), page=5, page_size=5)
    assert result.total_pages == 3
    assert result.safe_page == 3
    assert titles(result.items) == ["Book 11", "Book 12"]
    assert result.total == 12


def test_paginate_empty():
    assert paginate([], page=1, page_size=5) == ResultPage(items=[], total_pages=1, safe_page=1, total=0)


def test_page_bounds_rejects_non_positive_page_size():
    with pytest.raises(ValueError):
        page_bounds(10, 1, 0)


def test_page_bounds_exact_multiple():
    assert page_bounds(10, 3, 5) == (2, 2)


def test_derive_runs_stages_in_order(books):
    """Filter, then search, then sort, then paginate."""
    query = ViewQuery(status_filter="Read", search="e", sort="rating-desc", page=1, page_size=2)
    result = derive(books, query)
    # Read + contains "e": Harry Potter (Potter), Dune, Beloved
    assert titles(result.items) == ["Harry Potter", "Beloved"]
    assert result.total == 3
    assert result.total_pages == 2


def test_derive_is_idempotent(books):
    query = ViewQuery(sort="title-desc", page=2, page_size=4)
    assert derive(books, query) == derive(books, query)


def test_derive_empty_input():
    result = derive([], ViewQuery())
    assert (result.items, result.total_pages, result.safe_page) == ([], 1, 1)
