"""
Tweetonium core: NFT lazy minting driven by social mentions.

Polls the X mention feed, parses each mention into an artifact, provisions
identities and wallets on demand, and finalizes lazy mints on purchase.
Modular architecture with clear separation between record store, chain
adapter, mention source, ingestion, and lifecycle controller.
"""

__version__ = "0.1.0"
