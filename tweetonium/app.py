"""
Tweetonium application facade.

Wires the record store, chain adapter, mention source, ingestion, scheduler and
lifecycle controller together and exposes the consumer operations: ingestion,
listings, artifact detail, finalize, and the account operations (connect,
manual mint, wallet balance).

build_app(settings) builds the whole graph from configuration:
  - chain adapter: simulated (default) or solana
  - mention source: X API when a bearer token is set, else the demo feed
  - cursor store: SQLite when CURSOR_DB_PATH is set, else in memory
"""

from __future__ import annotations

import random
import time
from typing import Any, Callable

from tweetonium.chain.base import ChainAdapter
from tweetonium.chain.secrets import SecretSealer
from tweetonium.chain.simulated import SimulatedChainAdapter
from tweetonium.config.settings import CHAIN_ADAPTER_SOLANA, Settings, get_settings
from tweetonium.core.exceptions import ChainError, NotFoundError, TweetoniumError
from tweetonium.core.timeouts import call_with_timeout
from tweetonium.database.cursor_store import CursorStore, get_cursor_store
from tweetonium.database.models import Artifact, Identity, Wallet
from tweetonium.database.seed import seed_sample_data
from tweetonium.database.store import MemoryRecordStore, RecordStore
from tweetonium.ingestion.minting import lazy_mint
from tweetonium.ingestion.pipeline import IngestionReport, MentionIngestor, random_featured_picker
from tweetonium.lifecycle.controller import LifecycleController
from tweetonium.logging import get_logger
from tweetonium.mentions.source import InMemoryMentionSource, MentionSource, demo_events
from tweetonium.scheduler.engine import IngestionScheduler

logger = get_logger(__name__)

DEFAULT_AVATAR_URL = "https://api.dicebear.com/7.x/initials/svg?seed={handle}"


class Tweetonium:
    """Consumer-facing operations over one store and chain adapter."""

    def __init__(
        self,
        store: RecordStore,
        chain: ChainAdapter,
        ingestor: MentionIngestor,
        *,
        lifecycle: LifecycleController | None = None,
        scheduler: IngestionScheduler | None = None,
        chain_timeout_sec: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.chain = chain
        self.ingestor = ingestor
        self.lifecycle = lifecycle or LifecycleController(store, chain, chain_timeout_sec=chain_timeout_sec, clock=clock)
        self.scheduler = scheduler
        self._chain_timeout_sec = chain_timeout_sec
        self._clock = clock

    # --- ingestion ---

    def ingest_once(self) -> IngestionReport:
        if self.scheduler is not None:
            return self.scheduler.trigger()
        return self.ingestor.ingest_once()

    def start(self) -> None:
        if self.scheduler is None:
            raise RuntimeError("no scheduler configured")
        self.scheduler.start()

    def close(self) -> None:
        """Stop background polling and release the mention source client, if any."""
        if self.scheduler is not None:
            self.scheduler.stop()
        close = getattr(self.ingestor.source, "close", None)
        if callable(close):
            close()

    # --- queries ---

    def list_by_creator(self, identity_id: int) -> list[Artifact]:
        return self.store.by_creator(identity_id)

    def list_featured(self) -> list[Artifact]:
        return self.store.featured()

    def list_newest_first(self) -> list[Artifact]:
        return self.store.newest_first()

    def list_oldest_first(self) -> list[Artifact]:
        return list(reversed(self.store.newest_first()))

    def get_artifact(self, artifact_id: int) -> Artifact:
        """Return the artifact and count one view. Raises NotFoundError if absent."""
        self.store.increment_views(artifact_id)
        artifact = self.store.get_artifact(artifact_id)
        if artifact is None:
            raise NotFoundError(f"artifact {artifact_id} not found", artifact_id=artifact_id)
        return artifact

    # --- lifecycle ---

    def finalize(self, artifact_id: int, buyer_address: str) -> str:
        return self.lifecycle.finalize(artifact_id, buyer_address)

    # --- accounts ---

    def connect(self, handle: str, profile_image: str | None = None) -> tuple[Identity, Wallet]:
        """Get or create the identity for handle and make sure it has a wallet."""
        handle = (handle or "").strip().lstrip("@")
        if not handle:
            raise ValueError("handle must be non-empty")
        identity = self.store.get_identity_by_handle(handle)
        if identity is None:
            identity = self.store.create_identity(
                handle,
                profile_image or DEFAULT_AVATAR_URL.format(handle=handle),
            )
        wallet = self.store.get_or_create_wallet(identity.id)
        logger.info("account_connected", identity_id=identity.id, handle=handle, address=wallet.address)
        return identity, wallet

    def mint(
        self,
        identity_id: int,
        title: str,
        image_url: str,
        description: str | None = None,
        price: str | None = None,
    ) -> Artifact:
        """Lazy mint an uploaded image for an existing identity."""
        if not (title or "").strip():
            raise ValueError("title is required")
        if not image_url:
            raise ValueError("image_url is required")
        identity = self.store.get_identity(identity_id)
        if identity is None:
            raise NotFoundError(f"identity {identity_id} not found", identity_id=identity_id)
        wallet = self.store.get_or_create_wallet(identity_id)
        return lazy_mint(
            self.store,
            self.chain,
            creator=identity,
            wallet=wallet,
            title=title.strip(),
            description=description or "",
            image_url=image_url,
            price=price,
            chain_timeout_sec=self._chain_timeout_sec,
            clock=self._clock,
        )

    def wallet_balance(self, identity_id: int) -> int:
        """Balance in lamports of the identity's wallet."""
        wallet = self.store.get_wallet_by_identity(identity_id)
        if wallet is None:
            raise NotFoundError(f"identity {identity_id} has no wallet", identity_id=identity_id)
        try:
            return call_with_timeout(
                self.chain.get_balance,
                wallet.address,
                timeout=self._chain_timeout_sec,
                label="chain.get_balance",
            )
        except ChainError:
            raise
        except TweetoniumError as e:
            raise ChainError(f"get_balance failed: {e.message}", address=wallet.address) from e
        except Exception as e:
            raise ChainError(f"get_balance failed: {e}", address=wallet.address) from e

    def stats(self) -> dict[str, Any]:
        return {"chain": self.chain.name, "source": self.ingestor.source_name, **self.store.counts()}


def build_chain_adapter(settings: Settings) -> ChainAdapter:
    sealer = SecretSealer(settings.wallet_encryption_key or None)
    if settings.chain_adapter == CHAIN_ADAPTER_SOLANA:
        # solana-py is only needed for the live adapter
        from tweetonium.chain.solana_adapter import SolanaChainAdapter, load_keypair

        authority = load_keypair(settings.mint_authority_key) if settings.mint_authority_key else None
        return SolanaChainAdapter(
            settings.solana_rpc_url,
            mint_authority=authority,
            sealer=sealer,
            rpc_timeout_sec=settings.chain_timeout_sec,
        )
    return SimulatedChainAdapter(sealer=sealer)


def build_mention_source(settings: Settings) -> MentionSource:
    if settings.use_demo_feed:
        logger.info("mention_source_demo_feed", handle=settings.mention_handle)
        return InMemoryMentionSource(demo_events(settings.mention_handle), page_size=settings.mention_page_size)
    from tweetonium.mentions.x_api import XMentionSource

    return XMentionSource(
        settings.x_bearer_token,
        settings.mention_handle,
        base_url=settings.x_api_base_url,
        page_size=settings.mention_page_size,
    )


def build_app(
    settings: Settings | None = None,
    *,
    chain: ChainAdapter | None = None,
    source: MentionSource | None = None,
    cursor_store: CursorStore | None = None,
    rng: random.Random | None = None,
) -> Tweetonium:
    """Build a Tweetonium instance from settings (default: get_settings())."""
    settings = settings or get_settings()
    chain = chain or build_chain_adapter(settings)
    source = source or build_mention_source(settings)
    cursor_store = cursor_store or get_cursor_store(settings.cursor_db_path or None)

    store = MemoryRecordStore(chain, chain_timeout_sec=settings.chain_timeout_sec)
    ingestor = MentionIngestor(
        store,
        chain,
        source,
        cursor_store=cursor_store,
        handle=settings.mention_handle,
        require_mention=settings.require_mention,
        featured_picker=random_featured_picker(settings.featured_ratio, rng),
        fetch_timeout_sec=settings.mention_timeout_sec,
        chain_timeout_sec=settings.chain_timeout_sec,
    )
    app = Tweetonium(
        store,
        chain,
        ingestor,
        scheduler=IngestionScheduler(ingestor, settings.poll_interval_sec),
        chain_timeout_sec=settings.chain_timeout_sec,
    )
    if settings.seed_sample_data:
        seed_sample_data(store, chain, chain_timeout_sec=settings.chain_timeout_sec)
    logger.info(
        "app_built",
        chain=chain.name,
        source=source.name,
        handle=settings.mention_handle,
        poll_interval_sec=settings.poll_interval_sec,
    )
    return app
