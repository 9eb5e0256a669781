"""Tests for remembered UI settings."""
from prefs import Prefs, load_prefs, save_prefs


def test_missing_file_gives_defaults(tmp_path):
    assert load_prefs(tmp_path / "nope.json") == Prefs()


def test_round_trip(tmp_path):
    path = tmp_path / "prefs.json"
    prefs = Prefs(filter="DNF", sort="author-desc", search="le guin", page=3, theme="light")
    save_prefs(path, prefs)
    assert load_prefs(path) == prefs


def test_invalid_values_fall_back_per_field(tmp_path):
    path = tmp_path / "prefs.json"
    path.write_text('{"filter": "Finished", "sort": "author-asc", "page": 0, "theme": "neon", "search": 5}')
    assert load_prefs(path) == Prefs(sort="author-asc")


def test_corrupt_file(tmp_path):
    path = tmp_path / "prefs.json"
    path.write_text("[[[")
    assert load_prefs(path) == Prefs()
