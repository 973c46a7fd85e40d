"""
Tests for mention cursor persistence (memory and SQLite).
"""

from __future__ import annotations

from tweetonium.database import MemoryCursorStore, SQLiteCursorStore, get_cursor_store


def test_memory_cursor_store():
    cs = MemoryCursorStore()
    assert cs.load("x_api") is None
    cs.save("x_api", "100")
    cs.save("x_api", "200")
    assert cs.load("x_api") == "200"
    assert cs.load("memory") is None


def test_sqlite_cursor_store_survives_reopen(tmp_path):
    path = tmp_path / "state" / "cursor.db"
    cs = SQLiteCursorStore(path)
    assert cs.load("x_api") is None
    cs.save("x_api", "1789000000000000001")
    cs.save("x_api", "1789000000000000042")
    cs.save("memory", "3")

    reopened = SQLiteCursorStore(path)
    assert reopened.load("x_api") == "1789000000000000042"
    assert reopened.load("memory") == "3"


def test_get_cursor_store(tmp_path):
    assert isinstance(get_cursor_store(None), MemoryCursorStore)
    assert isinstance(get_cursor_store(""), MemoryCursorStore)
    assert isinstance(get_cursor_store(tmp_path / "c.db"), SQLiteCursorStore)
