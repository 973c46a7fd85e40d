"""
Mention source boundary and the in-memory feed.

MentionSource.fetch_since(cursor) returns the events after cursor plus the
cursor to resume from. The cursor is opaque to the caller. InMemoryMentionSource
serves a fixed event list in pages (cursor = offset of the next unread event);
demo_events() builds the sample mentions used when no X API token is set.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Iterable

from tweetonium.mentions.models import MediaRef, MentionBatch, MentionEvent

DEFAULT_PAGE_SIZE = 10


class MentionSource(ABC):
    """Abstract mention feed; implement for the X API or an in-memory list."""

    name = "mentions"

    @abstractmethod
    def fetch_since(self, cursor: str | None) -> MentionBatch:
        """Return events after cursor (None = from the beginning / most recent page)."""
        ...


class InMemoryMentionSource(MentionSource):
    """Pages through a mutable list of events. Thread-safe; events may be appended later."""

    name = "memory"

    def __init__(self, events: Iterable[MentionEvent] = (), *, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._events: list[MentionEvent] = list(events)
        self._page_size = page_size
        self._lock = threading.Lock()
        self.fetch_count = 0

    def add(self, *events: MentionEvent) -> None:
        with self._lock:
            self._events.extend(events)

    def fetch_since(self, cursor: str | None) -> MentionBatch:
        try:
            offset = int(cursor) if cursor else 0
        except ValueError:
            raise ValueError(f"invalid cursor {cursor!r}") from None
        with self._lock:
            self.fetch_count += 1
            page = tuple(self._events[offset : offset + self._page_size])
        return MentionBatch(events=page, next_cursor=str(offset + len(page)))


def demo_events(handle: str, *, now: datetime | None = None) -> list[MentionEvent]:
    """
    Three sample mentions: labeled text with a photo attachment, tag form with a
    linked .jpg, and a mention without any image (skipped by ingestion).
    """
    stamp = now or datetime.now(timezone.utc)
    base = int(stamp.timestamp() * 1000)
    posted_at = stamp.isoformat()
    author_id = "demo_user_1"
    author_handle = "creativedigitalartist"
    avatar = "https://images.unsplash.com/photo-1535713875002-d1d0cf377fde"
    return [
        MentionEvent(
            source_id=f"demo_tweet_{base}",
            author_external_id=author_id,
            author_handle=author_handle,
            author_profile_image=avatar,
            text=(
                "Title: My Amazing Digital Art | Description: Check out this amazing digital art "
                f"I created! @{handle} mint this for me! #NFT #DigitalArt"
            ),
            media=(
                MediaRef(
                    media_key="demo_media_1",
                    type="photo",
                    url="https://images.unsplash.com/photo-1569172122301-bc5008bc09c5",
                    preview_image_url="https://images.unsplash.com/photo-1569172122301-bc5008bc09c5",
                ),
            ),
            posted_at=posted_at,
        ),
        MentionEvent(
            source_id=f"demo_tweet_{base + 1}",
            author_external_id=author_id,
            author_handle=author_handle,
            author_profile_image=avatar,
            text=(
                "Just created this abstract piece! #title Abstract Dreams "
                f"#description A journey through colors and shapes @{handle} #NFT"
            ),
            linked_urls=("https://images.unsplash.com/photo-1618005198919-d3d4b5a92ead.jpg",),
            posted_at=posted_at,
        ),
        MentionEvent(
            source_id=f"demo_tweet_{base + 2}",
            author_external_id=author_id,
            author_handle=author_handle,
            author_profile_image=avatar,
            text=f"Hey @{handle} can you help me mint an NFT? I forgot to attach an image though.",
            posted_at=posted_at,
        ),
    ]
