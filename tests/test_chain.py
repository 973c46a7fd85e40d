"""
Tests for chain adapters: metadata document and content hash, secret sealing,
SimulatedChainAdapter, and SolanaChainAdapter with a mocked RPC client.
"""

from __future__ import annotations

import json
import random
from unittest.mock import MagicMock

import base58
import pytest
from cryptography.fernet import Fernet
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from tweetonium.chain import (
    LAMPORTS_PER_SOL,
    SecretSealer,
    SimulatedChainAdapter,
    build_nft_metadata,
    content_hash,
)
from tweetonium.chain.solana_adapter import MEMO_PROGRAM_ID, SolanaChainAdapter, load_keypair
from tweetonium.core.exceptions import ChainError, ConfigError

VALID_PUBKEY = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"


def _metadata(**overrides):
    kw = dict(title="Sunset", description="over the bay", image_url="https://img.test/s.jpg", creator="alice")
    kw.update(overrides)
    return build_nft_metadata(**kw)


# --- metadata ---


def test_build_nft_metadata_appends_creator_and_platform():
    md = _metadata(attributes=[{"trait_type": "Tweet ID", "value": "1001"}])
    assert md["name"] == "Sunset"
    assert md["image"] == "https://img.test/s.jpg"
    assert md["symbol"] == "TWEET"
    assert md["seller_fee_basis_points"] == 500
    assert md["attributes"] == [
        {"trait_type": "Tweet ID", "value": "1001"},
        {"trait_type": "Creator", "value": "alice"},
        {"trait_type": "Platform", "value": "Tweetonium"},
    ]


def test_content_hash_is_key_order_independent():
    md = _metadata()
    reordered = dict(reversed(list(md.items())))
    assert content_hash(md) == content_hash(reordered)
    assert len(content_hash(md)) == 64
    assert content_hash(md) != content_hash(_metadata(title="Dawn"))


# --- sealing ---


def test_sealer_round_trip():
    sealer = SecretSealer()
    token = sealer.seal(b"secret-key")
    assert token != "secret-key"
    assert sealer.unseal(token) == b"secret-key"


def test_sealer_wrong_key_raises_chain_error():
    token = SecretSealer().seal(b"secret-key")
    with pytest.raises(ChainError):
        SecretSealer(Fernet.generate_key().decode()).unseal(token)


def test_sealer_rejects_malformed_key():
    with pytest.raises(ConfigError):
        SecretSealer("not-a-fernet-key")


# --- simulated adapter ---


def test_simulated_wallet_secret_matches_address():
    sealer = SecretSealer()
    chain = SimulatedChainAdapter(sealer=sealer, rng=random.Random(1))
    wallet = chain.generate_wallet()
    Pubkey.from_string(wallet.address)
    secret = base58.b58decode(sealer.unseal(wallet.encrypted_secret))
    assert str(Keypair.from_bytes(secret).pubkey()) == wallet.address


def test_simulated_wallets_are_seedable_and_distinct():
    a = SimulatedChainAdapter(rng=random.Random(3))
    b = SimulatedChainAdapter(rng=random.Random(3))
    assert a.generate_wallet().address == b.generate_wallet().address
    assert a.generate_wallet().address != a.generate_wallet().address


def test_simulated_balance_is_one_sol(chain):
    assert chain.get_balance(VALID_PUBKEY) == LAMPORTS_PER_SOL


def test_simulated_lazy_mint_ticket(chain):
    md = _metadata()
    ticket = chain.prepare_lazy_mint(md)
    assert ticket.token_id.startswith("1700000000000")
    assert len(ticket.token_id) == len("1700000000000") + 6
    assert ticket.content_hash == "sim://" + content_hash(md)


def test_simulated_finalize_records_receipt(chain):
    receipt = chain.finalize_mint("tok-1", "sim://abc", VALID_PUBKEY)
    assert receipt.transaction_ref
    assert chain.finalized["tok-1"] == receipt


# --- solana adapter ---


@pytest.fixture
def rpc_client():
    client = MagicMock()
    client.get_latest_blockhash.return_value.value.blockhash = Hash.new_unique()
    client.send_transaction.return_value.value = "5igNaTuRe"
    return client


def test_load_keypair_base58_and_json():
    kp = Keypair()
    assert load_keypair(base58.b58encode(bytes(kp)).decode()).pubkey() == kp.pubkey()
    assert load_keypair(json.dumps(list(bytes(kp)))).pubkey() == kp.pubkey()
    with pytest.raises(ConfigError):
        load_keypair("definitely not a key")


def test_solana_requires_rpc_url(rpc_client):
    with pytest.raises(ConfigError):
        SolanaChainAdapter("  ", client=rpc_client)


def test_solana_get_balance(rpc_client):
    rpc_client.get_balance.return_value.value = 2_500_000
    chain = SolanaChainAdapter("https://rpc.test", client=rpc_client)
    assert chain.get_balance(VALID_PUBKEY) == 2_500_000
    rpc_client.get_balance.assert_called_once_with(Pubkey.from_string(VALID_PUBKEY))


def test_solana_get_balance_errors(rpc_client):
    chain = SolanaChainAdapter("https://rpc.test", client=rpc_client)
    with pytest.raises(ChainError):
        chain.get_balance("not-a-pubkey")
    rpc_client.get_balance.side_effect = RuntimeError("429 Too Many Requests")
    with pytest.raises(ChainError):
        chain.get_balance(VALID_PUBKEY)


def test_solana_lazy_mint_content_address(rpc_client):
    chain = SolanaChainAdapter("https://rpc.test", client=rpc_client)
    md = _metadata()
    ticket = chain.prepare_lazy_mint(md)
    assert ticket.content_hash == "sha256:" + content_hash(md)
    assert ticket.token_id.isdigit()
    rpc_client.send_transaction.assert_not_called()


def test_solana_finalize_sends_signed_memo(rpc_client):
    authority = Keypair()
    chain = SolanaChainAdapter("https://rpc.test", mint_authority=authority, client=rpc_client)
    receipt = chain.finalize_mint("tok-1", "sha256:abc", VALID_PUBKEY)
    assert receipt.transaction_ref == "5igNaTuRe"

    tx = rpc_client.send_transaction.call_args[0][0]
    ix = tx.message.instructions[0]
    assert tx.message.account_keys[ix.program_id_index] == Pubkey.from_string(MEMO_PROGRAM_ID)
    assert tx.message.account_keys[0] == authority.pubkey()
    memo = json.loads(bytes(ix.data))
    assert memo == {"app": "tweetonium", "token_id": "tok-1", "content_hash": "sha256:abc", "buyer": VALID_PUBKEY}


def test_solana_finalize_without_authority(rpc_client):
    chain = SolanaChainAdapter("https://rpc.test", client=rpc_client)
    with pytest.raises(ChainError):
        chain.finalize_mint("tok-1", "sha256:abc", VALID_PUBKEY)
    rpc_client.send_transaction.assert_not_called()


def test_solana_finalize_rpc_failure(rpc_client):
    rpc_client.send_transaction.side_effect = RuntimeError("blockhash not found")
    chain = SolanaChainAdapter("https://rpc.test", mint_authority=Keypair(), client=rpc_client)
    with pytest.raises(ChainError):
        chain.finalize_mint("tok-1", "sha256:abc", VALID_PUBKEY)
    with pytest.raises(ChainError):
        chain.finalize_mint("tok-1", "sha256:abc", "bad-buyer")
