"""
Domain models for record store entities.

Identities, wallets and artifacts (the NFT records). Plain dataclasses with no
ORM coupling so the store backend stays swappable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Well-known artifact metadata keys; everything else in the blob is free-form.
METADATA_TOKEN_ID = "tokenId"
METADATA_CONTENT_HASH = "contentHash"
METADATA_TRANSACTION_REF = "transactionRef"


class MintState(str, Enum):
    """Two-phase mint lifecycle: prepared off-chain, then executed on-chain."""

    LAZY = "lazy"
    FINALIZED = "finalized"


@dataclass
class Identity:
    """A creator account, created on first mention or first connect."""

    id: int
    handle: str
    """Unique, case-sensitive."""
    created_at: int
    """Unix timestamp (seconds)."""
    profile_image: str | None = None
    external_id: str | None = None
    """Platform user id (X author id); unique when present."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "handle": self.handle,
            "profile_image": self.profile_image,
            "external_id": self.external_id,
            "created_at": self.created_at,
        }


@dataclass
class Wallet:
    """Custodial wallet for one identity. The secret is sealed by the chain adapter."""

    id: int
    identity_id: int
    address: str
    encrypted_secret: str
    created_at: int

    def to_dict(self) -> dict[str, Any]:
        # encrypted_secret is never serialized
        return {
            "id": self.id,
            "identity_id": self.identity_id,
            "address": self.address,
            "created_at": self.created_at,
        }


@dataclass
class ArtifactSpec:
    """Input for RecordStore.create_artifact."""

    title: str
    image_url: str
    creator_id: int
    wallet_address: str
    description: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    mint_state: MintState = MintState.LAZY
    featured: bool = False
    transaction_log: str | None = None
    price: str | None = None
    """Price in SOL as a decimal string."""


@dataclass
class Artifact:
    """NFT record. Owned by the record store; callers only ever hold copies."""

    id: int
    title: str
    image_url: str
    creator_id: int
    wallet_address: str
    """Owner address: the creator's at mint time, the buyer's after finalize."""
    minted_at: int
    description: str | None = None
    external_source_id: str | None = None
    """Originating mention id; dedup key."""
    metadata: dict[str, Any] = field(default_factory=dict)
    mint_state: MintState = MintState.LAZY
    featured: bool = False
    views: int = 0
    transaction_log: str | None = None
    price: str | None = None

    @property
    def token_id(self) -> str | None:
        return self.metadata.get(METADATA_TOKEN_ID)

    @property
    def content_hash(self) -> str | None:
        return self.metadata.get(METADATA_CONTENT_HASH)

    @property
    def is_lazy(self) -> bool:
        return self.mint_state is MintState.LAZY

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "image_url": self.image_url,
            "creator_id": self.creator_id,
            "wallet_address": self.wallet_address,
            "external_source_id": self.external_source_id,
            "metadata": self.metadata,
            "minted_at": self.minted_at,
            "mint_state": self.mint_state.value,
            "featured": self.featured,
            "views": self.views,
            "transaction_log": self.transaction_log,
            "price": self.price,
        }
