"""Shared primitives: domain exceptions and external-call deadlines."""

from tweetonium.core.exceptions import (
    ArtifactMissingError,
    CallTimeout,
    ChainError,
    ConfigError,
    ConflictError,
    DuplicateError,
    InvalidStateError,
    MentionSourceError,
    NotFoundError,
    ParseFailure,
    TweetoniumError,
)
from tweetonium.core.timeouts import call_with_timeout

__all__ = [
    "ArtifactMissingError",
    "CallTimeout",
    "ChainError",
    "ConfigError",
    "ConflictError",
    "DuplicateError",
    "InvalidStateError",
    "MentionSourceError",
    "NotFoundError",
    "ParseFailure",
    "TweetoniumError",
    "call_with_timeout",
]
