"""
Mention text parsing and image resolution.

parse_mention_text() derives (title, description) from mention text. Rules are
tried in order, first match wins:
  1. tag form        "#title Sunset #description over the bay"
  2. labeled form    "Title: Moon | Description: glowing"
  3. sentence split  first sentence is the title, the rest the description
  4. whole text      title is the first 50 chars, description the full text
The service handle is stripped before any rule runs.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import urlsplit

from tweetonium.core.exceptions import ParseFailure
from tweetonium.mentions.models import MentionEvent

DEFAULT_HANDLE = "tweetonium_xyz"
TITLE_MAX_CHARS = 50
IMAGE_SUFFIXES = (".jpg", ".jpeg", ".png")
PHOTO_MEDIA_TYPE = "photo"

_TAG_TITLE = re.compile(r"#title\s+([^#]+)", re.IGNORECASE)
_TAG_DESCRIPTION = re.compile(r"#description\s+([^#]+)", re.IGNORECASE)
_LABELED = re.compile(r"Title:\s*([^|]+)\s*\|\s*Description:\s*(.+)", re.IGNORECASE)
_SENTENCE_DELIMITERS = re.compile(r"[.!?]")


@dataclass(frozen=True)
class ParsedMention:
    title: str
    description: str


def _handle_pattern(handle: str) -> re.Pattern[str]:
    return re.compile("@" + re.escape(handle.lstrip("@")), re.IGNORECASE)


def clean_text(raw_text: str, handle: str = DEFAULT_HANDLE) -> str:
    """Remove every @handle occurrence and trim surrounding whitespace."""
    return _handle_pattern(handle).sub("", raw_text).strip()


def mentions_handle(text: str | None, handle: str = DEFAULT_HANDLE) -> bool:
    if not text:
        return False
    return _handle_pattern(handle).search(text) is not None


def parse_mention_text(raw_text: str, handle: str = DEFAULT_HANDLE) -> ParsedMention:
    """
    Extract title and description from mention text.

    Raises:
        ParseFailure: raw_text is None or not a string.
    """
    if not isinstance(raw_text, str):
        raise ParseFailure("mention text must be a string", got=type(raw_text).__name__)
    text = clean_text(raw_text, handle)

    title_match = _TAG_TITLE.search(text)
    desc_match = _TAG_DESCRIPTION.search(text)
    if title_match and desc_match:
        title = title_match.group(1).strip()
        description = desc_match.group(1).strip()
        if title and description:
            return ParsedMention(title=title, description=description)

    labeled = _LABELED.search(text)
    if labeled:
        return ParsedMention(title=labeled.group(1).strip(), description=labeled.group(2).strip())

    sentences = [s for s in _SENTENCE_DELIMITERS.split(text) if s.strip()]
    if len(sentences) >= 2:
        # Fragments keep their leading whitespace, so the joiner yields ".  " between them.
        return ParsedMention(title=sentences[0].strip(), description=". ".join(sentences[1:]).strip())

    title = text[:TITLE_MAX_CHARS] + ("..." if len(text) > TITLE_MAX_CHARS else "")
    return ParsedMention(title=title, description=text)


def _has_image_suffix(url: str) -> bool:
    try:
        path = urlsplit(url).path
    except ValueError:
        return False
    return path.lower().endswith(IMAGE_SUFFIXES)


def resolve_image(event: MentionEvent) -> str | None:
    """
    Pick the artifact image for an event: first photo attachment, else first
    linked URL ending in .jpg/.jpeg/.png. None means the event is not mintable.
    """
    for media in event.media:
        if media.type == PHOTO_MEDIA_TYPE:
            url = media.url or media.preview_image_url
            if url:
                return url
    for url in event.linked_urls:
        if url and _has_image_suffix(url):
            return url
    return None
