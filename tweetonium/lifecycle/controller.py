"""
Mint lifecycle: lazy -> finalized.

finalize() executes the real mint for a lazy artifact, transfers it to the
buyer and records the transaction. The chain call happens before any state
change, so a failed or timed-out mint leaves the artifact lazy. Calls for the
same artifact are serialized; the second caller sees the finalized state and
gets InvalidStateError without touching the chain.
"""

from __future__ import annotations

import time
from typing import Callable

from tweetonium.chain.base import ChainAdapter, MintReceipt
from tweetonium.core.exceptions import ArtifactMissingError, ChainError, InvalidStateError, TweetoniumError
from tweetonium.core.locks import KeyedLocks
from tweetonium.core.timeouts import call_with_timeout
from tweetonium.database.models import METADATA_TRANSACTION_REF
from tweetonium.database.store import RecordStore
from tweetonium.ingestion.minting import format_day
from tweetonium.logging import bind_artifact


class LifecycleController:
    def __init__(
        self,
        store: RecordStore,
        chain: ChainAdapter,
        *,
        chain_timeout_sec: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._chain = chain
        self._chain_timeout_sec = chain_timeout_sec
        self._clock = clock
        self._locks = KeyedLocks()

    def finalize(self, artifact_id: int, buyer_wallet_address: str) -> str:
        """
        Finalize a lazy artifact for buyer_wallet_address. Returns the transaction ref.

        Raises:
            ArtifactMissingError: no artifact with this id.
            InvalidStateError: artifact is not lazy.
            ChainError: finalize_mint failed or timed out; artifact stays lazy.
        """
        log = bind_artifact(artifact_id)
        if not buyer_wallet_address:
            raise ValueError("buyer_wallet_address must be non-empty")
        with self._locks.hold(artifact_id):
            artifact = self._store.get_artifact(artifact_id)
            if artifact is None:
                raise ArtifactMissingError(f"artifact {artifact_id} not found", artifact_id=artifact_id)
            if not artifact.is_lazy:
                raise InvalidStateError(
                    f"artifact {artifact_id} is already {artifact.mint_state.value}",
                    artifact_id=artifact_id,
                    mint_state=artifact.mint_state.value,
                )
            if not artifact.token_id:
                raise InvalidStateError(f"artifact {artifact_id} has no lazy mint token", artifact_id=artifact_id)

            receipt = self._finalize_on_chain(artifact.token_id, artifact.content_hash or "", buyer_wallet_address, log)
            tx_ref = receipt.transaction_ref
            note = (
                f"Minted on-chain and transferred to {buyer_wallet_address} "
                f"on {format_day(self._clock())} (tx {tx_ref})"
            )
            self._store.mark_finalized(
                artifact_id,
                buyer_wallet_address,
                note,
                extra_metadata={METADATA_TRANSACTION_REF: tx_ref},
            )
            log.info("artifact_finalized", buyer=buyer_wallet_address, transaction_ref=tx_ref)
            return tx_ref

    def _finalize_on_chain(self, token_id: str, content_hash: str, buyer: str, log) -> MintReceipt:
        try:
            return call_with_timeout(
                self._chain.finalize_mint,
                token_id,
                content_hash,
                buyer,
                timeout=self._chain_timeout_sec,
                label="chain.finalize_mint",
            )
        except ChainError:
            log.warning("artifact_finalize_failed", token_id=token_id, buyer=buyer)
            raise
        except TweetoniumError as e:
            # CallTimeout and friends
            log.warning("artifact_finalize_failed", token_id=token_id, buyer=buyer, error=str(e))
            raise ChainError(f"finalize_mint failed: {e.message}", token_id=token_id) from e
        except Exception as e:
            log.warning("artifact_finalize_failed", token_id=token_id, buyer=buyer, error=str(e))
            raise ChainError(f"finalize_mint failed: {e}", token_id=token_id) from e
