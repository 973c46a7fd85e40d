"""
Application-level exceptions.

Domain errors raised by the record store, chain adapters, ingestion and the
lifecycle controller. Each carries a stable ``code`` so an HTTP layer can map
it to a status without string matching.
"""

from __future__ import annotations

from typing import Any


class TweetoniumError(Exception):
    """Base class for all Tweetonium domain errors."""

    code = "tweetonium_error"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, **self.context}


class ConflictError(TweetoniumError):
    """Unique constraint violation (e.g. identity handle already taken)."""

    code = "conflict"


class DuplicateError(TweetoniumError):
    """Dedup hit: an artifact already exists for this external source id. Expected, non-fatal."""

    code = "duplicate"


class NotFoundError(TweetoniumError):
    """Unknown identity, wallet or artifact id."""

    code = "not_found"


class InvalidStateError(TweetoniumError):
    """Illegal state transition (e.g. finalizing an artifact twice)."""

    code = "invalid_state"


class ArtifactMissingError(NotFoundError, InvalidStateError):
    """Finalize target does not exist: both unknown and not in a finalizable state."""

    code = "not_found"


class ChainError(TweetoniumError):
    """Chain adapter call failed or timed out."""

    code = "chain_error"


class ParseFailure(TweetoniumError):
    """Mention text could not be parsed (None or non-string input)."""

    code = "parse_failure"


class CallTimeout(TweetoniumError):
    """An external call exceeded its deadline. Transient; retry on the next run."""

    code = "timeout"


class ConfigError(TweetoniumError):
    """Invalid configuration value."""

    code = "config_error"


class MentionSourceError(TweetoniumError):
    """Mention feed request failed (HTTP error, rate limit, malformed payload)."""

    code = "mention_source_error"
