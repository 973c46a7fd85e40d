"""Mention feed: event models, sources and text parsing."""

from tweetonium.mentions.models import MediaRef, MentionBatch, MentionEvent
from tweetonium.mentions.parser import (
    DEFAULT_HANDLE,
    ParsedMention,
    clean_text,
    mentions_handle,
    parse_mention_text,
    resolve_image,
)
from tweetonium.mentions.source import InMemoryMentionSource, MentionSource, demo_events

__all__ = [
    "DEFAULT_HANDLE",
    "InMemoryMentionSource",
    "MediaRef",
    "MentionBatch",
    "MentionEvent",
    "MentionSource",
    "ParsedMention",
    "clean_text",
    "demo_events",
    "mentions_handle",
    "parse_mention_text",
    "resolve_image",
]
