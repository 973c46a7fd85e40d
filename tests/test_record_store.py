"""
Tests for MemoryRecordStore: identities, wallet provisioning, artifacts,
dedup index, state transitions, queries and concurrency.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest

from tweetonium.chain import GeneratedWallet
from tweetonium.core.exceptions import (
    CallTimeout,
    ChainError,
    ConflictError,
    DuplicateError,
    InvalidStateError,
    NotFoundError,
)
from tweetonium.database import ArtifactSpec, MemoryRecordStore, MintState


def _spec(creator_id: int, wallet: str = "addr", **kw) -> ArtifactSpec:
    return ArtifactSpec(
        title=kw.pop("title", "Sunset"),
        image_url=kw.pop("image_url", "https://img.test/a.jpg"),
        creator_id=creator_id,
        wallet_address=wallet,
        **kw,
    )


def test_create_identity_and_lookups(store):
    alice = store.create_identity("alice", "https://img.test/alice.png", "x-1")
    assert alice.id == 1
    assert store.get_identity(alice.id).handle == "alice"
    assert store.get_identity_by_handle("alice").id == alice.id
    assert store.get_identity_by_external_id("x-1").id == alice.id
    assert store.get_identity(99) is None
    assert [i.handle for i in store.list_identities()] == ["alice"]


def test_create_identity_handle_conflict(store):
    store.create_identity("alice", external_id="x-1")
    with pytest.raises(ConflictError):
        store.create_identity("alice", external_id="x-2")
    assert store.get_identity_by_external_id("x-2") is None
    assert len(store.list_identities()) == 1


def test_create_identity_idempotent_on_external_id(store):
    first = store.create_identity("alice", external_id="x-1")
    again = store.create_identity("alice_renamed", external_id="x-1")
    assert again.id == first.id
    assert again.handle == "alice"
    assert store.get_identity_by_handle("alice_renamed") is None


def test_create_identity_empty_handle(store):
    with pytest.raises(ValueError):
        store.create_identity("   ")


def test_get_or_create_wallet_is_idempotent(store):
    alice = store.create_identity("alice")
    w1 = store.get_or_create_wallet(alice.id)
    w2 = store.get_or_create_wallet(alice.id)
    assert w1.id == w2.id
    assert w1.address == w2.address
    assert store.get_wallet_by_identity(alice.id).id == w1.id
    assert store.get_wallet(w1.id).identity_id == alice.id
    assert "encrypted_secret" not in w1.to_dict()


def test_get_or_create_wallet_unknown_identity(store):
    with pytest.raises(NotFoundError):
        store.get_or_create_wallet(404)


def test_concurrent_wallet_provisioning_yields_one_wallet(clock):
    """Many threads racing on one identity: exactly one chain call, one wallet."""
    chain = MagicMock()
    chain.name = "mock"
    calls = []
    gate = threading.Event()

    def slow_generate():
        calls.append(1)
        gate.wait(1.0)
        return GeneratedWallet(address=f"addr-{len(calls)}", encrypted_secret="sealed")

    chain.generate_wallet.side_effect = slow_generate
    store = MemoryRecordStore(chain, clock=clock)
    alice = store.create_identity("alice")

    with ThreadPoolExecutor(max_workers=8) as pool:
        futures = [pool.submit(store.get_or_create_wallet, alice.id) for _ in range(8)]
        gate.set()
        wallets = [f.result() for f in futures]

    assert len(calls) == 1
    assert {w.id for w in wallets} == {1}
    assert {w.address for w in wallets} == {"addr-1"}
    assert store.counts()["wallets"] == 1


def test_wallet_generation_failure_becomes_chain_error(clock):
    chain = MagicMock()
    chain.name = "mock"
    chain.generate_wallet.side_effect = RuntimeError("rpc down")
    store = MemoryRecordStore(chain, clock=clock)
    alice = store.create_identity("alice")
    with pytest.raises(ChainError):
        store.get_or_create_wallet(alice.id)
    assert store.get_wallet_by_identity(alice.id) is None


def test_wallet_generation_timeout(clock):
    chain = MagicMock()
    chain.name = "mock"
    release = threading.Event()
    chain.generate_wallet.side_effect = lambda: release.wait(5.0)
    store = MemoryRecordStore(chain, chain_timeout_sec=0.05, clock=clock)
    alice = store.create_identity("alice")
    try:
        with pytest.raises(CallTimeout):
            store.get_or_create_wallet(alice.id)
    finally:
        release.set()
    assert store.get_wallet_by_identity(alice.id) is None


def test_create_artifact_and_dedup(store):
    alice = store.create_identity("alice")
    a = store.create_artifact(_spec(alice.id), external_source_id="tweet-1")
    assert a.id == 1
    assert a.mint_state is MintState.LAZY
    assert a.minted_at == 1_700_000_000
    assert store.has_external_source("tweet-1")
    with pytest.raises(DuplicateError):
        store.create_artifact(_spec(alice.id, title="Other"), external_source_id="tweet-1")
    assert [x.id for x in store.artifacts_by_external_source("tweet-1")] == [a.id]
    assert store.counts()["artifacts"] == 1


def test_concurrent_create_artifact_same_source_yields_one(store):
    """Racing inserts for one mention: one artifact, every other caller gets DuplicateError."""
    alice = store.create_identity("alice")
    start = threading.Barrier(8)

    def insert(i):
        start.wait()
        try:
            return store.create_artifact(_spec(alice.id, title=f"Take {i}"), external_source_id="tw-1")
        except DuplicateError:
            return None

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(insert, range(8)))

    created = [r for r in results if r is not None]
    assert len(created) == 1
    assert results.count(None) == 7
    assert [a.id for a in store.artifacts_by_external_source("tw-1")] == [created[0].id]
    assert store.counts()["artifacts"] == 1
    assert [a.id for a in store.by_creator(alice.id)] == [created[0].id]


def test_create_artifact_validation(store):
    alice = store.create_identity("alice")
    with pytest.raises(ValueError):
        store.create_artifact(_spec(alice.id, title=""))
    with pytest.raises(ValueError):
        store.create_artifact(_spec(alice.id, image_url=""))
    with pytest.raises(NotFoundError):
        store.create_artifact(_spec(999), external_source_id="tweet-x")
    # rejected writes leave no index entry
    assert not store.has_external_source("tweet-x")
    assert store.newest_first() == []


def test_returned_records_are_copies(store):
    alice = store.create_identity("alice")
    a = store.create_artifact(_spec(alice.id, metadata={"tokenId": "t1"}))
    a.metadata["tokenId"] = "tampered"
    a.views = 100
    fresh = store.get_artifact(a.id)
    assert fresh.metadata["tokenId"] == "t1"
    assert fresh.views == 0


def test_mark_finalized_transitions_once(store):
    alice = store.create_identity("alice")
    a = store.create_artifact(_spec(alice.id, transaction_log="Lazy minted on 2023-11-14"))
    done = store.mark_finalized(a.id, "buyer-addr", "Minted", extra_metadata={"transactionRef": "tx1"})
    assert done.mint_state is MintState.FINALIZED
    assert done.wallet_address == "buyer-addr"
    assert done.transaction_log == "Lazy minted on 2023-11-14\nMinted"
    assert done.metadata["transactionRef"] == "tx1"
    with pytest.raises(InvalidStateError):
        store.mark_finalized(a.id, "other", "again")
    assert store.get_artifact(a.id).wallet_address == "buyer-addr"
    with pytest.raises(NotFoundError):
        store.mark_finalized(77, "x", "y")


def test_increment_views_concurrent_no_lost_updates(store):
    alice = store.create_identity("alice")
    a = store.create_artifact(_spec(alice.id))
    with ThreadPoolExecutor(max_workers=16) as pool:
        list(pool.map(lambda _: store.increment_views(a.id), range(500)))
    assert store.get_artifact(a.id).views == 500
    store.increment_views(12345)  # unknown id is a no-op


def test_queries_ordering(clock):
    now = [1000.0]
    store = MemoryRecordStore(MagicMock(), clock=lambda: now[0])
    alice = store.create_identity("alice")
    bob = store.create_identity("bob")
    a1 = store.create_artifact(_spec(alice.id, featured=True))
    now[0] = 2000.0
    b1 = store.create_artifact(_spec(bob.id))
    a2 = store.create_artifact(_spec(alice.id, featured=True))

    assert [a.id for a in store.by_creator(alice.id)] == [a1.id, a2.id]
    assert [a.id for a in store.by_creator(bob.id)] == [b1.id]
    # same timestamp: higher id first
    assert [a.id for a in store.newest_first()] == [a2.id, b1.id, a1.id]
    assert [a.id for a in store.featured()] == [a2.id, a1.id]
    assert store.by_creator(999) == []
