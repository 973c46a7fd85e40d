"""
Lazy minting: commit an artifact's metadata without an on-chain transaction.

Shared by mention ingestion and the manual mint operation. Builds the NFT
metadata document, asks the chain adapter for a token id and content address,
and stores the artifact in state lazy with both in its metadata.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Callable

from tweetonium.chain.base import ChainAdapter, LazyMintTicket
from tweetonium.chain.metadata import build_nft_metadata
from tweetonium.core.exceptions import ChainError, TweetoniumError
from tweetonium.core.timeouts import call_with_timeout
from tweetonium.database.models import (
    METADATA_CONTENT_HASH,
    METADATA_TOKEN_ID,
    Artifact,
    ArtifactSpec,
    Identity,
    MintState,
    Wallet,
)
from tweetonium.database.store import RecordStore
from tweetonium.logging import get_logger

logger = get_logger(__name__)


def format_day(ts: float) -> str:
    """YYYY-MM-DD (UTC) for transaction log lines."""
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d")


def lazy_mint_log_line(ts: float) -> str:
    return f"Lazy minted on {format_day(ts)}"


def prepare_ticket(chain: ChainAdapter, metadata: dict[str, Any], *, timeout: float | None) -> LazyMintTicket:
    """Call chain.prepare_lazy_mint with a deadline. Adapter failures surface as ChainError."""
    try:
        return call_with_timeout(
            chain.prepare_lazy_mint,
            metadata,
            timeout=timeout,
            label="chain.prepare_lazy_mint",
        )
    except TweetoniumError:
        raise
    except Exception as e:
        raise ChainError(f"prepare_lazy_mint failed: {e}") from e


def lazy_mint(
    store: RecordStore,
    chain: ChainAdapter,
    *,
    creator: Identity,
    wallet: Wallet,
    title: str,
    description: str,
    image_url: str,
    attributes: list[dict[str, str]] | None = None,
    featured: bool = False,
    price: str | None = None,
    external_source_id: str | None = None,
    chain_timeout_sec: float | None = None,
    clock: Callable[[], float] = time.time,
) -> Artifact:
    """
    Lazy mint one artifact for creator, owned by wallet.

    Raises:
        ChainError: prepare_lazy_mint failed or timed out (CallTimeout).
        DuplicateError: external_source_id already has an artifact.
        NotFoundError: creator does not exist in the store.
    """
    metadata = build_nft_metadata(
        title=title,
        description=description,
        image_url=image_url,
        creator=creator.handle,
        attributes=attributes,
    )
    ticket = prepare_ticket(chain, metadata, timeout=chain_timeout_sec)
    metadata[METADATA_TOKEN_ID] = ticket.token_id
    metadata[METADATA_CONTENT_HASH] = ticket.content_hash

    artifact = store.create_artifact(
        ArtifactSpec(
            title=title,
            image_url=image_url,
            creator_id=creator.id,
            wallet_address=wallet.address,
            description=description,
            metadata=metadata,
            mint_state=MintState.LAZY,
            featured=featured,
            transaction_log=lazy_mint_log_line(clock()),
            price=price,
        ),
        external_source_id=external_source_id,
    )
    logger.info(
        "artifact_lazy_minted",
        artifact_id=artifact.id,
        token_id=ticket.token_id,
        creator=creator.handle,
        featured=featured,
    )
    return artifact
