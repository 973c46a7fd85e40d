"""
Record store for identities, wallets and artifacts.

All access goes through the abstract RecordStore interface; MemoryRecordStore
is the in-process implementation. The store owns every entity and its
secondary indexes:

- handle -> identity id
- external id -> identity id
- identity id -> wallet id
- external source id -> artifact ids (dedup key)
- identity id -> artifact ids

Index maintenance happens inside each mutating method, after validation and
under the store lock, so a rejected write never leaves an index entry behind.
Reads return deep copies; callers cannot mutate store state through them.
"""

from __future__ import annotations

import copy
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Callable

from tweetonium.chain.base import ChainAdapter
from tweetonium.core.exceptions import (
    ChainError,
    ConflictError,
    DuplicateError,
    InvalidStateError,
    NotFoundError,
    TweetoniumError,
)
from tweetonium.core.locks import KeyedLocks
from tweetonium.core.timeouts import call_with_timeout
from tweetonium.database.models import Artifact, ArtifactSpec, Identity, MintState, Wallet
from tweetonium.logging import get_logger

logger = get_logger(__name__)


class RecordStore(ABC):
    """Abstract interface for entity storage; implement for memory or a database."""

    # --- identities ---

    @abstractmethod
    def create_identity(
        self,
        handle: str,
        profile_image: str | None = None,
        external_id: str | None = None,
    ) -> Identity:
        """
        Create an identity. If external_id is already indexed, return that identity
        unchanged. Raises ConflictError if handle is taken.
        """
        ...

    @abstractmethod
    def get_identity(self, identity_id: int) -> Identity | None:
        ...

    @abstractmethod
    def get_identity_by_handle(self, handle: str) -> Identity | None:
        ...

    @abstractmethod
    def get_identity_by_external_id(self, external_id: str) -> Identity | None:
        ...

    @abstractmethod
    def list_identities(self) -> list[Identity]:
        """All identities in creation order."""
        ...

    # --- wallets ---

    @abstractmethod
    def get_or_create_wallet(self, identity_id: int) -> Wallet:
        """
        Return the identity's wallet, generating one through the chain adapter if
        none exists. Exactly one wallet is ever created per identity.
        Raises NotFoundError for an unknown identity.
        """
        ...

    @abstractmethod
    def get_wallet(self, wallet_id: int) -> Wallet | None:
        ...

    @abstractmethod
    def get_wallet_by_identity(self, identity_id: int) -> Wallet | None:
        ...

    # --- artifacts ---

    @abstractmethod
    def create_artifact(self, spec: ArtifactSpec, external_source_id: str | None = None) -> Artifact:
        """
        Insert an artifact. Raises DuplicateError (no state change) if
        external_source_id is already indexed, NotFoundError for an unknown creator.
        """
        ...

    @abstractmethod
    def get_artifact(self, artifact_id: int) -> Artifact | None:
        """Return a copy of the artifact; does not count a view."""
        ...

    @abstractmethod
    def has_external_source(self, external_source_id: str) -> bool:
        ...

    @abstractmethod
    def artifacts_by_external_source(self, external_source_id: str) -> list[Artifact]:
        ...

    @abstractmethod
    def mark_finalized(
        self,
        artifact_id: int,
        new_wallet_address: str,
        tx_note: str,
        extra_metadata: dict[str, Any] | None = None,
    ) -> Artifact:
        """
        Transition lazy -> finalized, overwrite the wallet address and append tx_note
        to the transaction log. NotFoundError if absent; InvalidStateError if already finalized.
        """
        ...

    @abstractmethod
    def increment_views(self, artifact_id: int) -> None:
        """Add one view. No-op for an unknown artifact."""
        ...

    # --- queries ---

    @abstractmethod
    def by_creator(self, identity_id: int) -> list[Artifact]:
        """Artifacts created by identity_id, in creation order."""
        ...

    @abstractmethod
    def featured(self) -> list[Artifact]:
        """Featured artifacts, newest first."""
        ...

    @abstractmethod
    def newest_first(self) -> list[Artifact]:
        """All artifacts, newest first (ties: higher id first)."""
        ...

    @abstractmethod
    def counts(self) -> dict[str, int]:
        """Entity counts by kind."""
        ...


def _newest_key(artifact: Artifact) -> tuple[int, int]:
    return (artifact.minted_at, artifact.id)


def _append_log(existing: str | None, line: str) -> str:
    if not existing:
        return line
    return f"{existing}\n{line}"


class MemoryRecordStore(RecordStore):
    """
    Thread-safe in-memory record store.

    A single store lock serializes mutations and guards reads. Wallet
    provisioning also holds a per-identity lock across the chain adapter call,
    so the store lock is never held during I/O and concurrent callers for the
    same identity wait for the first one instead of generating a second keypair.
    """

    def __init__(
        self,
        chain: ChainAdapter,
        *,
        chain_timeout_sec: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._chain = chain
        self._chain_timeout_sec = chain_timeout_sec
        self._clock = clock
        self._lock = threading.RLock()
        self._wallet_locks = KeyedLocks()

        self._identities: dict[int, Identity] = {}
        self._wallets: dict[int, Wallet] = {}
        self._artifacts: dict[int, Artifact] = {}
        self._next_identity_id = 1
        self._next_wallet_id = 1
        self._next_artifact_id = 1

        self._handle_index: dict[str, int] = {}
        self._external_id_index: dict[str, int] = {}
        self._identity_wallet_index: dict[int, int] = {}
        self._source_artifact_index: dict[str, list[int]] = {}
        self._creator_artifact_index: dict[int, list[int]] = {}
        self._featured_index: list[int] = []

    def _now(self) -> int:
        return int(self._clock())

    # --- identities ---

    def create_identity(
        self,
        handle: str,
        profile_image: str | None = None,
        external_id: str | None = None,
    ) -> Identity:
        handle = (handle or "").strip()
        if not handle:
            raise ValueError("handle must be non-empty")
        with self._lock:
            if external_id:
                existing_id = self._external_id_index.get(external_id)
                if existing_id is not None:
                    logger.debug("identity_exists_for_external_id", identity_id=existing_id, external_id=external_id)
                    return copy.deepcopy(self._identities[existing_id])
            if handle in self._handle_index:
                raise ConflictError(f"handle {handle!r} is already taken", handle=handle)
            identity = Identity(
                id=self._next_identity_id,
                handle=handle,
                created_at=self._now(),
                profile_image=profile_image,
                external_id=external_id or None,
            )
            self._next_identity_id += 1
            self._identities[identity.id] = identity
            self._handle_index[handle] = identity.id
            if identity.external_id:
                self._external_id_index[identity.external_id] = identity.id
            logger.info(
                "identity_created",
                identity_id=identity.id,
                handle=handle,
                external_id=identity.external_id,
            )
            return copy.deepcopy(identity)

    def get_identity(self, identity_id: int) -> Identity | None:
        with self._lock:
            identity = self._identities.get(identity_id)
            return copy.deepcopy(identity) if identity else None

    def get_identity_by_handle(self, handle: str) -> Identity | None:
        with self._lock:
            identity_id = self._handle_index.get(handle)
            return copy.deepcopy(self._identities[identity_id]) if identity_id is not None else None

    def get_identity_by_external_id(self, external_id: str) -> Identity | None:
        with self._lock:
            identity_id = self._external_id_index.get(external_id)
            return copy.deepcopy(self._identities[identity_id]) if identity_id is not None else None

    def list_identities(self) -> list[Identity]:
        with self._lock:
            return [copy.deepcopy(i) for i in self._identities.values()]

    # --- wallets ---

    def get_or_create_wallet(self, identity_id: int) -> Wallet:
        with self._wallet_locks.hold(identity_id):
            with self._lock:
                if identity_id not in self._identities:
                    raise NotFoundError(f"identity {identity_id} not found", identity_id=identity_id)
                wallet_id = self._identity_wallet_index.get(identity_id)
                if wallet_id is not None:
                    return copy.deepcopy(self._wallets[wallet_id])

            generated = self._generate_wallet(identity_id)

            with self._lock:
                wallet = Wallet(
                    id=self._next_wallet_id,
                    identity_id=identity_id,
                    address=generated.address,
                    encrypted_secret=generated.encrypted_secret,
                    created_at=self._now(),
                )
                self._next_wallet_id += 1
                self._wallets[wallet.id] = wallet
                self._identity_wallet_index[identity_id] = wallet.id
                logger.info(
                    "wallet_provisioned",
                    identity_id=identity_id,
                    wallet_id=wallet.id,
                    address=wallet.address,
                    chain=self._chain.name,
                )
                return copy.deepcopy(wallet)

    def _generate_wallet(self, identity_id: int):
        try:
            return call_with_timeout(
                self._chain.generate_wallet,
                timeout=self._chain_timeout_sec,
                label="chain.generate_wallet",
            )
        except TweetoniumError:
            raise
        except Exception as e:
            logger.warning("wallet_generation_failed", identity_id=identity_id, error=str(e))
            raise ChainError(f"wallet generation failed: {e}", identity_id=identity_id) from e

    def get_wallet(self, wallet_id: int) -> Wallet | None:
        with self._lock:
            wallet = self._wallets.get(wallet_id)
            return copy.deepcopy(wallet) if wallet else None

    def get_wallet_by_identity(self, identity_id: int) -> Wallet | None:
        with self._lock:
            wallet_id = self._identity_wallet_index.get(identity_id)
            return copy.deepcopy(self._wallets[wallet_id]) if wallet_id is not None else None

    # --- artifacts ---

    def create_artifact(self, spec: ArtifactSpec, external_source_id: str | None = None) -> Artifact:
        if not spec.title:
            raise ValueError("artifact title must be non-empty")
        if not spec.image_url:
            raise ValueError("artifact image_url must be non-empty")
        with self._lock:
            if external_source_id and self._source_artifact_index.get(external_source_id):
                raise DuplicateError(
                    f"source {external_source_id} already ingested",
                    external_source_id=external_source_id,
                )
            if spec.creator_id not in self._identities:
                raise NotFoundError(f"creator {spec.creator_id} not found", identity_id=spec.creator_id)
            artifact = Artifact(
                id=self._next_artifact_id,
                title=spec.title,
                image_url=spec.image_url,
                creator_id=spec.creator_id,
                wallet_address=spec.wallet_address,
                minted_at=self._now(),
                description=spec.description,
                external_source_id=external_source_id or None,
                metadata=copy.deepcopy(spec.metadata),
                mint_state=spec.mint_state,
                featured=spec.featured,
                views=0,
                transaction_log=spec.transaction_log,
                price=spec.price,
            )
            self._next_artifact_id += 1
            self._artifacts[artifact.id] = artifact
            self._creator_artifact_index.setdefault(artifact.creator_id, []).append(artifact.id)
            if artifact.featured:
                self._featured_index.append(artifact.id)
            if artifact.external_source_id:
                self._source_artifact_index.setdefault(artifact.external_source_id, []).append(artifact.id)
            logger.info(
                "artifact_created",
                artifact_id=artifact.id,
                creator_id=artifact.creator_id,
                external_source_id=artifact.external_source_id,
                mint_state=artifact.mint_state.value,
            )
            return copy.deepcopy(artifact)

    def get_artifact(self, artifact_id: int) -> Artifact | None:
        with self._lock:
            artifact = self._artifacts.get(artifact_id)
            return copy.deepcopy(artifact) if artifact else None

    def has_external_source(self, external_source_id: str) -> bool:
        with self._lock:
            return bool(self._source_artifact_index.get(external_source_id))

    def artifacts_by_external_source(self, external_source_id: str) -> list[Artifact]:
        with self._lock:
            ids = self._source_artifact_index.get(external_source_id, [])
            return [copy.deepcopy(self._artifacts[i]) for i in ids]

    def mark_finalized(
        self,
        artifact_id: int,
        new_wallet_address: str,
        tx_note: str,
        extra_metadata: dict[str, Any] | None = None,
    ) -> Artifact:
        with self._lock:
            artifact = self._artifacts.get(artifact_id)
            if artifact is None:
                raise NotFoundError(f"artifact {artifact_id} not found", artifact_id=artifact_id)
            if artifact.mint_state is not MintState.LAZY:
                raise InvalidStateError(
                    f"artifact {artifact_id} is already {artifact.mint_state.value}",
                    artifact_id=artifact_id,
                    mint_state=artifact.mint_state.value,
                )
            artifact.mint_state = MintState.FINALIZED
            artifact.wallet_address = new_wallet_address
            artifact.transaction_log = _append_log(artifact.transaction_log, tx_note)
            if extra_metadata:
                artifact.metadata.update(copy.deepcopy(extra_metadata))
            logger.info("artifact_marked_finalized", artifact_id=artifact_id, wallet_address=new_wallet_address)
            return copy.deepcopy(artifact)

    def increment_views(self, artifact_id: int) -> None:
        with self._lock:
            artifact = self._artifacts.get(artifact_id)
            if artifact is not None:
                artifact.views += 1

    # --- queries ---

    def by_creator(self, identity_id: int) -> list[Artifact]:
        with self._lock:
            ids = self._creator_artifact_index.get(identity_id, [])
            return [copy.deepcopy(self._artifacts[i]) for i in ids]

    def featured(self) -> list[Artifact]:
        with self._lock:
            found = [self._artifacts[i] for i in self._featured_index]
            found.sort(key=_newest_key, reverse=True)
            return [copy.deepcopy(a) for a in found]

    def newest_first(self) -> list[Artifact]:
        with self._lock:
            ordered = sorted(self._artifacts.values(), key=_newest_key, reverse=True)
            return [copy.deepcopy(a) for a in ordered]

    def counts(self) -> dict[str, int]:
        """Entity counts for health logging."""
        with self._lock:
            return {
                "identities": len(self._identities),
                "wallets": len(self._wallets),
                "artifacts": len(self._artifacts),
            }
