"""
Tests for InMemoryMentionSource paging and the demo mentions.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from tweetonium.mentions import InMemoryMentionSource, demo_events, resolve_image


def test_pages_by_offset_cursor(make_event):
    source = InMemoryMentionSource([make_event(str(i)) for i in range(5)], page_size=2)
    first = source.fetch_since(None)
    assert [e.source_id for e in first.events] == ["0", "1"]
    assert first.next_cursor == "2"
    second = source.fetch_since(first.next_cursor)
    assert [e.source_id for e in second.events] == ["2", "3"]
    last = source.fetch_since("4")
    assert [e.source_id for e in last.events] == ["4"]
    assert last.next_cursor == "5"
    empty = source.fetch_since("5")
    assert empty.events == ()
    assert empty.next_cursor == "5"
    assert source.fetch_count == 4


def test_invalid_cursor_and_page_size():
    with pytest.raises(ValueError):
        InMemoryMentionSource(page_size=0)
    with pytest.raises(ValueError):
        InMemoryMentionSource().fetch_since("abc")


def test_demo_events():
    now = datetime(2024, 1, 2, tzinfo=timezone.utc)
    events = demo_events("tweetonium_xyz", now=now)
    assert len(events) == 3
    assert len({e.source_id for e in events}) == 3
    assert all("@tweetonium_xyz" in e.text for e in events)
    images = [resolve_image(e) for e in events]
    assert images[0] == "https://images.unsplash.com/photo-1569172122301-bc5008bc09c5"
    assert images[1].endswith(".jpg")
    assert images[2] is None
    assert demo_events("tweetonium_xyz", now=now) == events
