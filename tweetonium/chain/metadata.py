"""
NFT metadata document and its content address.

Builds the Metaplex-style JSON the lazy mint commits to (name, description,
image, attributes, creator, symbol, royalty) and hashes it canonically so the
same document always yields the same content address.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

PLATFORM_NAME = "Tweetonium"
NFT_SYMBOL = "TWEET"
SELLER_FEE_BASIS_POINTS = 500  # 5% royalty


def build_nft_metadata(
    *,
    title: str,
    description: str,
    image_url: str,
    creator: str,
    attributes: list[dict[str, str]] | None = None,
) -> dict[str, Any]:
    """Return the NFT metadata document; Creator and Platform traits are always appended."""
    traits = [dict(a) for a in attributes or []]
    traits.append({"trait_type": "Creator", "value": creator})
    traits.append({"trait_type": "Platform", "value": PLATFORM_NAME})
    return {
        "name": title,
        "description": description,
        "image": image_url,
        "attributes": traits,
        "creator": creator,
        "symbol": NFT_SYMBOL,
        "seller_fee_basis_points": SELLER_FEE_BASIS_POINTS,
    }


def canonical_json(metadata: dict[str, Any]) -> bytes:
    """Deterministic JSON bytes: sorted keys, no insignificant whitespace."""
    return json.dumps(metadata, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str).encode("utf-8")


def content_hash(metadata: dict[str, Any]) -> str:
    """sha256 hex digest of the canonical metadata document."""
    return hashlib.sha256(canonical_json(metadata)).hexdigest()
