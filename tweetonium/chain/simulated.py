"""
Simulated chain adapter for local runs, demos and tests.

Real ed25519 keypairs (solders) with sealed secrets, but no RPC: balances are
constant, lazy mints get a time-based token id and a sha256 content address,
and finalization returns a random transaction reference. Pass a seeded
random.Random for reproducible output.
"""

from __future__ import annotations

import random
import threading
import time
from typing import Any, Callable

import base58
from solders.keypair import Keypair

from tweetonium.chain.base import (
    LAMPORTS_PER_SOL,
    ChainAdapter,
    GeneratedWallet,
    LazyMintTicket,
    MintReceipt,
)
from tweetonium.chain.metadata import content_hash as metadata_digest
from tweetonium.chain.secrets import SecretSealer
from tweetonium.logging import get_logger

logger = get_logger(__name__)

SIMULATED_BALANCE_LAMPORTS = LAMPORTS_PER_SOL  # 1 SOL
SIMULATED_HASH_PREFIX = "sim://"


class SimulatedChainAdapter(ChainAdapter):
    """In-process stand-in for a ledger. Thread-safe."""

    name = "simulated"

    def __init__(
        self,
        *,
        sealer: SecretSealer | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.time,
        balance_lamports: int = SIMULATED_BALANCE_LAMPORTS,
    ) -> None:
        self._sealer = sealer or SecretSealer()
        self._rng = rng or random.Random()
        self._clock = clock
        self._balance_lamports = balance_lamports
        self._lock = threading.Lock()
        self.finalized: dict[str, MintReceipt] = {}
        """token_id -> receipt for every executed mint."""

    def generate_wallet(self) -> GeneratedWallet:
        with self._lock:
            seed = self._rng.randbytes(32)
        keypair = Keypair.from_seed(seed)
        secret_b58 = base58.b58encode(bytes(keypair)).decode("ascii")
        return GeneratedWallet(
            address=str(keypair.pubkey()),
            encrypted_secret=self._sealer.seal(secret_b58.encode("ascii")),
        )

    def get_balance(self, address: str) -> int:
        return self._balance_lamports

    def prepare_lazy_mint(self, metadata: dict[str, Any]) -> LazyMintTicket:
        with self._lock:
            suffix = self._rng.randrange(1_000_000)
        token_id = f"{int(self._clock() * 1000)}{suffix:06d}"
        ticket = LazyMintTicket(token_id=token_id, content_hash=SIMULATED_HASH_PREFIX + metadata_digest(metadata))
        logger.debug("sim_lazy_mint_prepared", token_id=token_id, content_hash=ticket.content_hash)
        return ticket

    def finalize_mint(self, token_id: str, content_hash: str, buyer_address: str) -> MintReceipt:
        with self._lock:
            tx_ref = f"{int(self._clock() * 1000):x}{self._rng.getrandbits(24):06x}"
            receipt = MintReceipt(transaction_ref=tx_ref)
            self.finalized[token_id] = receipt
        logger.info("sim_mint_finalized", token_id=token_id, buyer=buyer_address, transaction_ref=tx_ref)
        return receipt
