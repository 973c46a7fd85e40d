"""
Demo data: a handful of artists with wallets and lazy-minted artifacts.

Used when SEED_SAMPLE_DATA=true so the explore and featured listings are not
empty on a fresh process. Wallets are provisioned through the chain adapter
like any other identity. Re-running is a no-op for artists that already exist.
"""

from __future__ import annotations

from dataclasses import dataclass

from tweetonium.chain.base import ChainAdapter
from tweetonium.database.models import Artifact
from tweetonium.database.store import RecordStore
from tweetonium.ingestion.minting import lazy_mint
from tweetonium.logging import get_logger

logger = get_logger(__name__)

_AVATAR = "https://api.dicebear.com/7.x/initials/svg?seed={handle}"
_IMAGE = "https://images.unsplash.com/{photo}?auto=format&fit=crop&w=800&h=800"


@dataclass(frozen=True)
class SampleArtifact:
    artist: str
    title: str
    description: str
    photo: str
    price: str
    featured: bool


SAMPLE_ARTISTS = ("artist_one", "future_artist", "pixel_master", "neon_walker", "cosmos_dev")

SAMPLE_ARTIFACTS = (
    SampleArtifact(
        "artist_one",
        "Geometric Dreams",
        "An exploration of geometric shapes and neon colors in digital space.",
        "photo-1550745165-9bc0b252726f",
        "2.45",
        True,
    ),
    SampleArtifact(
        "future_artist",
        "Cyber City 2077",
        "A futuristic cityscape inspired by cyberpunk aesthetics and sci-fi visions of tomorrow.",
        "photo-1622737133809-d95047b9e673",
        "5.89",
        True,
    ),
    SampleArtifact(
        "pixel_master",
        "Digital Dreamscape",
        "A surreal landscape that blends digital and natural elements into a dreamlike scene.",
        "photo-1617791160505-6f00504e3519",
        "1.24",
        True,
    ),
    SampleArtifact(
        "neon_walker",
        "Abstract Reality",
        "An abstract exploration of form, color, and texture that challenges perceptions of reality.",
        "photo-1618005182384-a83a8bd57fbe",
        "2.76",
        True,
    ),
    SampleArtifact(
        "cosmos_dev",
        "Neon Genesis",
        "A vibrant explosion of neon colors and geometric forms.",
        "photo-1578632767115-351597cf2477",
        "7.12",
        True,
    ),
    SampleArtifact(
        "artist_one",
        "Quantum Pixels",
        "Quantum mechanics visualized through pixel art.",
        "photo-1534723328310-e82dad3ee43f",
        "0.89",
        False,
    ),
    SampleArtifact(
        "future_artist",
        "Digital Renaissance",
        "A modern reinterpretation of Renaissance art using digital techniques.",
        "photo-1579783902614-a3fb3927b6a5",
        "1.55",
        False,
    ),
    SampleArtifact(
        "pixel_master",
        "Pixel Dreams",
        "A nostalgic journey through the pixel art of early computer graphics and video games.",
        "photo-1634017839464-5c339ebe3cb4",
        "3.21",
        False,
    ),
    SampleArtifact(
        "neon_walker",
        "Virtual Horizons",
        "A digital landscape on the horizon between reality and virtual existence.",
        "photo-1634986666676-ec8fd927c23d",
        "4.33",
        False,
    ),
    SampleArtifact(
        "cosmos_dev",
        "Cosmic Algorithm",
        "Cosmic algorithms and patterns found in nature, rendered as digital art.",
        "photo-1617791160588-241658c0f566",
        "6.78",
        True,
    ),
)


def seed_sample_data(
    store: RecordStore,
    chain: ChainAdapter,
    *,
    chain_timeout_sec: float | None = None,
) -> list[Artifact]:
    """Install sample artists and artifacts. Returns the artifacts created by this call."""
    created_artists: dict[str, tuple] = {}
    for handle in SAMPLE_ARTISTS:
        if store.get_identity_by_handle(handle) is not None:
            continue
        identity = store.create_identity(handle, _AVATAR.format(handle=handle))
        created_artists[handle] = (identity, store.get_or_create_wallet(identity.id))

    artifacts: list[Artifact] = []
    for sample in SAMPLE_ARTIFACTS:
        if sample.artist not in created_artists:
            continue
        identity, wallet = created_artists[sample.artist]
        artifacts.append(
            lazy_mint(
                store,
                chain,
                creator=identity,
                wallet=wallet,
                title=sample.title,
                description=sample.description,
                image_url=_IMAGE.format(photo=sample.photo),
                featured=sample.featured,
                price=sample.price,
                chain_timeout_sec=chain_timeout_sec,
            )
        )
    logger.info("sample_data_seeded", artists=len(created_artists), artifacts=len(artifacts))
    return artifacts
