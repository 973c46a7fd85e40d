# Mention ingestion: poll -> dedup -> identity/wallet -> parse -> lazy mint.

from tweetonium.ingestion.minting import lazy_mint
from tweetonium.ingestion.pipeline import (
    IngestionPhase,
    IngestionReport,
    MentionIngestor,
    random_featured_picker,
)

__all__ = [
    "IngestionPhase",
    "IngestionReport",
    "MentionIngestor",
    "lazy_mint",
    "random_featured_picker",
]
