"""
Chain adapter boundary: every ledger and wallet operation goes through here.

The core never touches plaintext secrets or RPC details; it calls a
ChainAdapter. SimulatedChainAdapter and SolanaChainAdapter are the two
implementations; both are interchangeable behind this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

LAMPORTS_PER_SOL = 1_000_000_000


@dataclass(frozen=True)
class GeneratedWallet:
    """Fresh keypair: public address plus the sealed secret key."""

    address: str
    encrypted_secret: str


@dataclass(frozen=True)
class LazyMintTicket:
    """Result of lazy-mint preparation; no on-chain transaction yet."""

    token_id: str
    content_hash: str
    """Content address of the metadata document (e.g. sha256:<hex>)."""


@dataclass(frozen=True)
class MintReceipt:
    """Result of an executed on-chain mint/transfer."""

    transaction_ref: str


class ChainAdapter(ABC):
    """Abstract ledger capability; implement for a simulated or real chain."""

    name = "chain"

    @abstractmethod
    def generate_wallet(self) -> GeneratedWallet:
        """Create a keypair and return its address with the secret sealed."""
        ...

    @abstractmethod
    def get_balance(self, address: str) -> int:
        """Return the balance of address in the smallest unit (lamports)."""
        ...

    @abstractmethod
    def prepare_lazy_mint(self, metadata: dict[str, Any]) -> LazyMintTicket:
        """Assign a token id and content address for metadata without touching the chain."""
        ...

    @abstractmethod
    def finalize_mint(self, token_id: str, content_hash: str, buyer_address: str) -> MintReceipt:
        """Execute the on-chain mint and transfer to buyer_address."""
        ...
