"""
Data models for mention source output.

A MentionEvent is one post that mentions the service handle, normalized from
whatever feed produced it. Media attachments and linked URLs are kept apart:
attachments take precedence when resolving the artifact image.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class MediaRef:
    """Attached media item (X API includes.media entry)."""

    media_key: str
    type: str
    """photo | video | animated_gif; only "photo" qualifies as an artifact image."""
    url: str | None = None
    preview_image_url: str | None = None

    @classmethod
    def from_api_item(cls, item: dict[str, Any]) -> MediaRef:
        return cls(
            media_key=str(item.get("media_key") or ""),
            type=str(item.get("type") or ""),
            url=item.get("url"),
            preview_image_url=item.get("preview_image_url"),
        )


@dataclass(frozen=True)
class MentionEvent:
    """One raw mention, in source order."""

    source_id: str
    """Globally unique mention id (tweet id); the artifact dedup key."""
    author_external_id: str
    author_handle: str | None
    text: str
    media: tuple[MediaRef, ...] = field(default_factory=tuple)
    linked_urls: tuple[str, ...] = field(default_factory=tuple)
    posted_at: str | None = None
    """ISO 8601 timestamp from the source; None if not provided."""
    author_profile_image: str | None = None


@dataclass(frozen=True)
class MentionBatch:
    """One page from MentionSource.fetch_since."""

    events: tuple[MentionEvent, ...]
    next_cursor: str | None
    """Opaque; pass back to fetch_since. None means no position yet."""

    def __len__(self) -> int:
        return len(self.events)
