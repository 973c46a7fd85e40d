"""
Chain adapter package.

All ledger and wallet operations (keypairs, balances, lazy-mint preparation,
on-chain finalization) sit behind ChainAdapter so the core stays agnostic to
which chain, real or simulated, is plugged in.
"""

from tweetonium.chain.base import (
    LAMPORTS_PER_SOL,
    ChainAdapter,
    GeneratedWallet,
    LazyMintTicket,
    MintReceipt,
)
from tweetonium.chain.metadata import build_nft_metadata, content_hash
from tweetonium.chain.secrets import SecretSealer
from tweetonium.chain.simulated import SimulatedChainAdapter

__all__ = [
    "LAMPORTS_PER_SOL",
    "ChainAdapter",
    "GeneratedWallet",
    "LazyMintTicket",
    "MintReceipt",
    "SecretSealer",
    "SimulatedChainAdapter",
    "build_nft_metadata",
    "content_hash",
]
