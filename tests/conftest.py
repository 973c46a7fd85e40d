"""
Pytest fixtures for Tweetonium tests. Simulated chain, in-memory store and
mention source, fixed clock; settings cache reset around each test.
"""

from __future__ import annotations

import random

import pytest

# 2023-11-14T22:13:20Z
FIXED_NOW = 1_700_000_000.0
HANDLE = "tweetonium_xyz"
PHOTO_URL = "https://pbs.twimg.com/media/photo1.jpg"


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    """Clear config env vars and the settings cache so tests never see a developer .env."""
    for name in (
        "TWITTER_BEARER_TOKEN",
        "X_BEARER_TOKEN",
        "CHAIN_ADAPTER",
        "CURSOR_DB_PATH",
        "SEED_SAMPLE_DATA",
        "WALLET_ENCRYPTION_KEY",
        "MINT_AUTHORITY_PRIVATE_KEY",
        "SOLANA_RPC_URL",
        "HELIUS_API_KEY",
        "SOLANA_NETWORK",
        "TWEETONIUM_HANDLE",
        "SOLANA_CLUSTER",
        "X_API_BASE_URL",
        "MENTION_POLL_INTERVAL_SEC",
        "MENTION_PAGE_SIZE",
        "MENTION_FETCH_TIMEOUT_SEC",
        "CHAIN_CALL_TIMEOUT_SEC",
        "FEATURED_RATIO",
        "REQUIRE_HANDLE_MENTION",
    ):
        monkeypatch.delenv(name, raising=False)
    from tweetonium.config import reset_settings_cache

    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def chain(clock):
    from tweetonium.chain import SimulatedChainAdapter

    return SimulatedChainAdapter(rng=random.Random(7), clock=clock)


@pytest.fixture
def store(chain, clock):
    from tweetonium.database import MemoryRecordStore

    return MemoryRecordStore(chain, clock=clock)


@pytest.fixture
def source():
    from tweetonium.mentions import InMemoryMentionSource

    return InMemoryMentionSource()


@pytest.fixture
def cursor_store():
    from tweetonium.database import MemoryCursorStore

    return MemoryCursorStore()


@pytest.fixture
def ingestor(store, chain, source, cursor_store, clock):
    from tweetonium.ingestion import MentionIngestor

    return MentionIngestor(
        store,
        chain,
        source,
        cursor_store=cursor_store,
        handle=HANDLE,
        featured_picker=lambda event: False,
        clock=clock,
    )


@pytest.fixture
def app(store, chain, ingestor, clock):
    from tweetonium.app import Tweetonium

    return Tweetonium(store, chain, ingestor, clock=clock)


@pytest.fixture
def make_event():
    """Factory for MentionEvents; defaults to a mintable mention with a photo attachment."""
    from tweetonium.mentions import MediaRef, MentionEvent

    def _make(
        source_id: str = "1001",
        *,
        author_id: str = "42",
        handle: str | None = "alice",
        text: str = f"#title Sunset #description over the bay @{HANDLE}",
        media=None,
        linked_urls=(),
    ) -> MentionEvent:
        if media is None:
            media = (MediaRef(media_key="m1", type="photo", url=PHOTO_URL),)
        return MentionEvent(
            source_id=source_id,
            author_external_id=author_id,
            author_handle=handle,
            text=text,
            media=tuple(media),
            linked_urls=tuple(linked_urls),
            posted_at="2023-11-14T20:00:00Z",
        )

    return _make
