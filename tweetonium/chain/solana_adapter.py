"""
Solana chain adapter.

- Wallets: fresh ed25519 keypairs (solders); the secret is sealed before it
  leaves the adapter.
- Balances: getBalance over JSON-RPC (solana-py Client).
- Lazy mint: token id and sha256 content address only; nothing is sent.
- Finalize: records the mint on-chain as an SPL Memo transaction signed by the
  mint authority (MINT_AUTHORITY_PRIVATE_KEY), carrying token id, content hash
  and buyer. Returns the transaction signature.
Config: SOLANA_RPC_URL, MINT_AUTHORITY_PRIVATE_KEY, WALLET_ENCRYPTION_KEY.
"""

from __future__ import annotations

import json
import secrets
import time
from typing import Any

import base58
from solana.rpc.api import Client
from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from tweetonium.chain.base import ChainAdapter, GeneratedWallet, LazyMintTicket, MintReceipt
from tweetonium.chain.metadata import content_hash as metadata_digest
from tweetonium.chain.secrets import SecretSealer
from tweetonium.config.env import mask_rpc_url
from tweetonium.core.exceptions import ChainError, ConfigError
from tweetonium.logging import get_logger

logger = get_logger(__name__)

MEMO_PROGRAM_ID = "MemoSq4gqABAXKb96qnH8TysNcWxMyWCqXgDLGmfcHr"
CONTENT_HASH_PREFIX = "sha256:"
DEFAULT_RPC_TIMEOUT_SEC = 15.0


def load_keypair(private_key: str) -> Keypair:
    """Load Keypair from a base58 string or a JSON array of 64 bytes."""
    raw = private_key.strip()
    try:
        if raw.startswith("["):
            arr = json.loads(raw)
            return Keypair.from_bytes(bytes(arr[:64]))
        return Keypair.from_bytes(base58.b58decode(raw))
    except Exception as e:
        raise ConfigError("invalid mint authority private key", setting="mint_authority_key") from e


class SolanaChainAdapter(ChainAdapter):
    """ChainAdapter backed by a Solana RPC endpoint."""

    name = "solana"

    def __init__(
        self,
        rpc_url: str,
        *,
        mint_authority: Keypair | None = None,
        sealer: SecretSealer | None = None,
        client: Client | None = None,
        rpc_timeout_sec: float = DEFAULT_RPC_TIMEOUT_SEC,
    ) -> None:
        if not rpc_url.strip():
            raise ConfigError("rpc_url must be non-empty", setting="solana_rpc_url")
        self._rpc_url = rpc_url.strip()
        self._client = client or Client(self._rpc_url, timeout=rpc_timeout_sec)
        self._authority = mint_authority
        self._sealer = sealer or SecretSealer()
        self._memo_program = Pubkey.from_string(MEMO_PROGRAM_ID)
        logger.info(
            "solana_adapter_ready",
            rpc=mask_rpc_url(self._rpc_url),
            mint_authority=str(mint_authority.pubkey()) if mint_authority else None,
        )

    def generate_wallet(self) -> GeneratedWallet:
        keypair = Keypair()
        secret_b58 = base58.b58encode(bytes(keypair)).decode("ascii")
        return GeneratedWallet(
            address=str(keypair.pubkey()),
            encrypted_secret=self._sealer.seal(secret_b58.encode("ascii")),
        )

    def get_balance(self, address: str) -> int:
        try:
            pubkey = Pubkey.from_string(address)
        except Exception as e:
            raise ChainError(f"invalid address {address!r}") from e
        try:
            resp = self._client.get_balance(pubkey)
        except Exception as e:
            logger.warning("solana_get_balance_failed", address=address, error=str(e))
            raise ChainError(f"getBalance failed: {e}", address=address) from e
        return int(resp.value)

    def prepare_lazy_mint(self, metadata: dict[str, Any]) -> LazyMintTicket:
        token_id = f"{int(time.time() * 1000)}{secrets.randbelow(1_000_000):06d}"
        return LazyMintTicket(token_id=token_id, content_hash=CONTENT_HASH_PREFIX + metadata_digest(metadata))

    def _memo_instruction(self, payload: dict[str, str]) -> Instruction:
        data = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
        return Instruction(
            self._memo_program,
            data,
            [AccountMeta(self._authority.pubkey(), is_signer=True, is_writable=False)],
        )

    def finalize_mint(self, token_id: str, content_hash: str, buyer_address: str) -> MintReceipt:
        if self._authority is None:
            raise ChainError("mint authority key not configured")
        try:
            Pubkey.from_string(buyer_address)
        except Exception as e:
            raise ChainError(f"invalid buyer address {buyer_address!r}") from e

        ix = self._memo_instruction(
            {"app": "tweetonium", "token_id": token_id, "content_hash": content_hash, "buyer": buyer_address}
        )
        try:
            blockhash = self._client.get_latest_blockhash().value.blockhash
            message = Message.new_with_blockhash([ix], self._authority.pubkey(), blockhash)
            tx = Transaction([self._authority], message, blockhash)
            resp = self._client.send_transaction(tx)
        except Exception as e:
            logger.warning("solana_finalize_failed", token_id=token_id, buyer=buyer_address, error=str(e))
            raise ChainError(f"finalize transaction failed: {e}", token_id=token_id) from e

        signature = str(resp.value)
        logger.info("solana_mint_finalized", token_id=token_id, buyer=buyer_address, signature=signature)
        return MintReceipt(transaction_ref=signature)
