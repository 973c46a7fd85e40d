"""
Record store layer: identities, wallets, artifacts and the mention cursor.

Entities live in MemoryRecordStore behind the RecordStore interface; the
mention cursor is persisted separately (memory or SQLite).
"""

from tweetonium.database.cursor_store import (
    CursorStore,
    MemoryCursorStore,
    SQLiteCursorStore,
    get_cursor_store,
)
from tweetonium.database.models import (
    METADATA_CONTENT_HASH,
    METADATA_TOKEN_ID,
    METADATA_TRANSACTION_REF,
    Artifact,
    ArtifactSpec,
    Identity,
    MintState,
    Wallet,
)
from tweetonium.database.store import MemoryRecordStore, RecordStore

__all__ = [
    "METADATA_CONTENT_HASH",
    "METADATA_TOKEN_ID",
    "METADATA_TRANSACTION_REF",
    "Artifact",
    "ArtifactSpec",
    "CursorStore",
    "Identity",
    "MemoryCursorStore",
    "MemoryRecordStore",
    "MintState",
    "RecordStore",
    "SQLiteCursorStore",
    "Wallet",
    "get_cursor_store",
]
