"""Tests for the record stores."""
import json

import pytest

from books import BookRecord, ById, ByTitleAuthor
from store import DEFAULT_BOOKS, JsonBookStore, MemoryBookStore, make_store
from view import ViewQuery, derive


def key(records):
    return [(r.title, r.author, r.status, r.rating) for r in records]


# ---------------------------------------------------------------------------
# Memory
# ---------------------------------------------------------------------------

def test_memory_query_is_derive(memory_store, books):
    query = ViewQuery(sort="rating-desc", page=2, page_size=4)
    assert memory_store.query(query) == derive(books, query)


def test_memory_insert_applies_rating_rule():
    store = MemoryBookStore()
    record = store.insert({"title": "Circe", "author": "Madeline Miller", "status": "Want to Read", "rating": 5})
    assert record.rating == 0
    assert record.id is None
    assert store.all() == [record]


def test_memory_insert_can_assign_ids():
    store = MemoryBookStore(assign_ids=True)
    a = store.insert({"title": "A", "author": "X"})
    b = store.insert({"title": "B", "author": "X"})
    assert a.id and b.id and a.id != b.id


def test_memory_update_by_id_merges_and_normalizes(memory_store):
    updated = memory_store.update(ById(2), {"status": "Want to Read"})
    assert updated.title == "Harry Potter"
    assert updated.rating == 0
    assert memory_store.update(ById(99), {"rating": 1}) is None


def test_memory_update_rejects_empty():
    store = MemoryBookStore([BookRecord(title="A", author="B")])
    with pytest.raises(ValueError):
        store.update(ByTitleAuthor("A", "B"), {})


def test_memory_composite_identity():
    store = MemoryBookStore([BookRecord(title="A", author="B"), BookRecord(title="A", author="C")])
    updated = store.update(ByTitleAuthor("A", "B"), {"rating": 3})
    assert updated.rating == 3
    assert [r.rating for r in store.all()] == [3, 0]
    assert store.delete(ByTitleAuthor("A", "C"))
    assert not store.delete(ByTitleAuthor("A", "C"))
    assert key(store.all()) == [("A", "B", "Reading", 3)]


def test_memory_delete_shrinks_pages():
    """Deleting the only book on the last page moves the view back a page."""
    store = MemoryBookStore([BookRecord(id=i, title=f"Book {i}", author="X") for i in range(1, 7)])
    query = ViewQuery(page=2, page_size=5)
    assert store.query(query).total_pages == 2
    assert store.delete(ById(6))
    result = store.query(query)
    assert result.total_pages == 1
    assert result.safe_page == 1
    assert len(result.items) == 5


# ---------------------------------------------------------------------------
# JSON file
# ---------------------------------------------------------------------------

def test_json_store_seeds_defaults(tmp_path):
    path = tmp_path / "books.json"
    store = JsonBookStore(path)
    assert store.all() == DEFAULT_BOOKS
    assert path.exists()


def test_json_store_persists_mutations(tmp_path):
    path = tmp_path / "books.json"
    store = JsonBookStore(path)
    store.insert({"title": "Dune", "author": "Frank Herbert", "status": "Read", "rating": 5})
    store.delete(ByTitleAuthor("Harry Potter", "J. Rowling"))

    reopened = JsonBookStore(path)
    assert key(reopened.all()) == [
        ("The Hobbit", "J.R.R. Tolkien", "Reading", 0),
        ("Dune", "Frank Herbert", "Read", 5),
    ]
    assert json.loads(path.read_text())[1]["title"] == "Dune"


def test_json_store_recovers_from_corrupt_file(tmp_path):
    path = tmp_path / "books.json"
    path.write_text("{not json")
    assert JsonBookStore(path).all() == DEFAULT_BOOKS


def test_make_store(tmp_path):
    assert isinstance(make_store("json", books_file=str(tmp_path / "b.json")), JsonBookStore)
    with pytest.raises(ValueError):
        make_store("carrier-pigeon")


# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

QUERIES = [
    ViewQuery(),
    ViewQuery(sort="title-desc", page_size=4),
    ViewQuery(sort="author-asc", page=2, page_size=2),
    ViewQuery(sort="author-desc"),
    ViewQuery(sort="rating-desc", page_size=10),
    ViewQuery(sort="rating-asc", page_size=10),
    ViewQuery(status_filter="Read", sort="rating-desc"),
    ViewQuery(search="ER", sort="title-asc"),
    ViewQuery(status_filter="Read", search="e", page=9, page_size=2),
    ViewQuery(search="nothing like this"),
]


@pytest.mark.parametrize("query", QUERIES)
def test_sql_store_matches_in_memory_derivation(seeded_sql_store, books, query):
    """The database query and the in-memory pipeline agree."""
    sql_result = seeded_sql_store.query(query)
    mem_result = derive(books, query)
    assert key(sql_result.items) == key(mem_result.items)
    assert sql_result.total == mem_result.total
    assert sql_result.total_pages == mem_result.total_pages
    assert sql_result.safe_page == mem_result.safe_page


ACCENTED = [
    {"title": "Zebra", "author": "Ada Ng"},
    {"title": "Émile", "author": "Jean-Jacques Rousseau"},
    {"title": "apple", "author": "Örjan Berg"},
    {"title": "ÉMILE", "author": "Anon"},
]


@pytest.mark.parametrize(
    "query",
    [
        ViewQuery(sort="title-asc", page_size=10),
        ViewQuery(sort="title-desc", page_size=10),
        ViewQuery(sort="author-asc", page_size=10),
        ViewQuery(search="émile", page_size=10),
        ViewQuery(search="ÖRJAN", page_size=10),
    ],
)
def test_sql_store_matches_in_memory_for_accented_text(sql_store, query):
    """Accented and non-ASCII text sorts and matches the same in SQL and in memory."""
    memory = MemoryBookStore()
    for fields in ACCENTED:
        sql_store.insert(fields)
        memory.insert(fields)
    assert key(sql_store.query(query).items) == key(memory.query(query).items)
    assert sql_store.query(query).total == memory.query(query).total


def test_sql_title_sort_ignores_accents(sql_store):
    for title in ("Zebra", "Émile", "apple"):
        sql_store.insert({"title": title, "author": "X"})
    result = sql_store.query(ViewQuery(sort="title-asc"))
    assert [r.title for r in result.items] == ["apple", "Émile", "Zebra"]


def test_sql_search_folds_non_ascii_case(sql_store):
    sql_store.insert({"title": "ÉMILE", "author": "Jean-Jacques Rousseau"})
    assert sql_store.query(ViewQuery(search="émile")).total == 1


def test_sql_search_escapes_wildcards(sql_store):
    sql_store.insert({"title": "100% Pure", "author": "X"})
    sql_store.insert({"title": "1000 Pure", "author": "X"})
    result = sql_store.query(ViewQuery(search="0%"))
    assert [r.title for r in result.items] == ["100% Pure"]


def test_sql_insert_assigns_id_and_timestamps(sql_store):
    record = sql_store.insert({"title": "Circe", "author": "Madeline Miller", "status": "Want to Read", "rating": 4})
    assert isinstance(record.id, int)
    assert record.rating == 0
    assert record.created_at is not None
    assert record.updated_at is not None


def test_sql_update_normalizes_merged_row(seeded_sql_store):
    hp = next(r for r in seeded_sql_store.all() if r.title == "Harry Potter")
    updated = seeded_sql_store.update(ById(hp.id), {"status": "Want to Read"})
    assert updated.rating == 0
    assert updated.updated_at >= hp.updated_at


def test_sql_update_missing_and_empty(sql_store):
    assert sql_store.update(ById(42), {"rating": 1}) is None
    with pytest.raises(ValueError):
        sql_store.update(ById(42), {})
    with pytest.raises(ValueError):
        sql_store.update(ByTitleAuthor("A", "B"), {"rating": 1})


def test_sql_delete(seeded_sql_store):
    first = seeded_sql_store.all()[0]
    assert seeded_sql_store.delete(ById(first.id))
    assert not seeded_sql_store.delete(ById(first.id))
    assert len(seeded_sql_store.all()) == 5


def test_sql_non_integer_id_is_not_found(seeded_sql_store):
    assert seeded_sql_store.update(ById("abc"), {"rating": 1}) is None
    assert not seeded_sql_store.delete(ById("abc"))
    with pytest.raises(ValueError):
        seeded_sql_store.update(ById("abc"), {})
    assert len(seeded_sql_store.all()) == 6
