"""
Application settings.

Loads configuration from environment variables (and .env via config.env),
validates it and exposes a single frozen Settings object for the mention
poller, chain adapter, cursor store and worker runtime.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

from tweetonium.config import env
from tweetonium.core.exceptions import ConfigError

DEFAULT_MENTION_HANDLE = "tweetonium_xyz"
DEFAULT_POLL_INTERVAL_SEC = 300.0  # 5 minutes
DEFAULT_MENTION_PAGE_SIZE = 10
DEFAULT_MENTION_TIMEOUT_SEC = 30.0
DEFAULT_CHAIN_TIMEOUT_SEC = 30.0
DEFAULT_X_API_BASE_URL = "https://api.twitter.com/2"
DEFAULT_FEATURED_RATIO = 0.5

# X API v2 recent search accepts max_results in [10, 100]
MIN_MENTION_PAGE_SIZE = 10
MAX_MENTION_PAGE_SIZE = 100

CHAIN_ADAPTER_SIMULATED = "simulated"
CHAIN_ADAPTER_SOLANA = "solana"
CHAIN_ADAPTERS = (CHAIN_ADAPTER_SIMULATED, CHAIN_ADAPTER_SOLANA)


@dataclass(frozen=True)
class Settings:
    """Typed runtime configuration. Build via get_settings() or directly in tests."""

    mention_handle: str = DEFAULT_MENTION_HANDLE
    poll_interval_sec: float = DEFAULT_POLL_INTERVAL_SEC
    mention_page_size: int = DEFAULT_MENTION_PAGE_SIZE
    mention_timeout_sec: float = DEFAULT_MENTION_TIMEOUT_SEC
    chain_timeout_sec: float = DEFAULT_CHAIN_TIMEOUT_SEC
    x_bearer_token: str = ""
    x_api_base_url: str = DEFAULT_X_API_BASE_URL
    chain_adapter: str = CHAIN_ADAPTER_SIMULATED
    solana_rpc_url: str = env.DEVNET_RPC_URL
    mint_authority_key: str = ""
    wallet_encryption_key: str = ""
    """Fernet key (urlsafe base64); empty means a fresh key per process."""
    cursor_db_path: str = ""
    """SQLite path for the mention cursor; empty keeps it in memory."""
    featured_ratio: float = DEFAULT_FEATURED_RATIO
    require_mention: bool = True
    seed_sample_data: bool = False

    def __post_init__(self) -> None:
        handle = self.mention_handle.strip().lstrip("@")
        if not handle:
            raise ConfigError("mention_handle must be non-empty", setting="mention_handle")
        object.__setattr__(self, "mention_handle", handle)
        if self.poll_interval_sec <= 0:
            raise ConfigError("poll_interval_sec must be positive", setting="poll_interval_sec")
        if not (MIN_MENTION_PAGE_SIZE <= self.mention_page_size <= MAX_MENTION_PAGE_SIZE):
            raise ConfigError(
                f"mention_page_size must be between {MIN_MENTION_PAGE_SIZE} and {MAX_MENTION_PAGE_SIZE}",
                setting="mention_page_size",
            )
        if self.chain_adapter not in CHAIN_ADAPTERS:
            raise ConfigError(
                f"chain_adapter must be one of {', '.join(CHAIN_ADAPTERS)}",
                setting="chain_adapter",
            )
        if not (0.0 <= self.featured_ratio <= 1.0):
            raise ConfigError("featured_ratio must be between 0 and 1", setting="featured_ratio")

    @property
    def use_demo_feed(self) -> bool:
        """True when no X bearer token is configured (serve the sample mentions)."""
        return not self.x_bearer_token


def load_settings_from_env() -> Settings:
    """Build Settings from environment with defaults."""
    return Settings(
        mention_handle=env.get_str("TWEETONIUM_HANDLE", DEFAULT_MENTION_HANDLE),
        poll_interval_sec=env.get_float("MENTION_POLL_INTERVAL_SEC", DEFAULT_POLL_INTERVAL_SEC),
        mention_page_size=env.get_int("MENTION_PAGE_SIZE", DEFAULT_MENTION_PAGE_SIZE),
        mention_timeout_sec=env.get_float("MENTION_FETCH_TIMEOUT_SEC", DEFAULT_MENTION_TIMEOUT_SEC),
        chain_timeout_sec=env.get_float("CHAIN_CALL_TIMEOUT_SEC", DEFAULT_CHAIN_TIMEOUT_SEC),
        x_bearer_token=env.get_x_bearer_token(),
        x_api_base_url=env.get_str("X_API_BASE_URL", DEFAULT_X_API_BASE_URL),
        chain_adapter=env.get_str("CHAIN_ADAPTER", CHAIN_ADAPTER_SIMULATED).lower(),
        solana_rpc_url=env.get_solana_rpc_url(),
        mint_authority_key=env.get_str("MINT_AUTHORITY_PRIVATE_KEY"),
        wallet_encryption_key=env.get_str("WALLET_ENCRYPTION_KEY"),
        cursor_db_path=env.get_str("CURSOR_DB_PATH"),
        featured_ratio=env.get_float("FEATURED_RATIO", DEFAULT_FEATURED_RATIO),
        require_mention=env.get_bool("REQUIRE_HANDLE_MENTION", True),
        seed_sample_data=env.get_bool("SEED_SAMPLE_DATA", False),
    )


_settings: Settings | None = None
_settings_lock = threading.Lock()


def get_settings() -> Settings:
    """Return the process-wide settings, loading them from the environment on first use."""
    global _settings
    with _settings_lock:
        if _settings is None:
            _settings = load_settings_from_env()
        return _settings


def reset_settings_cache() -> None:
    """Drop cached settings so the next get_settings() re-reads the environment (tests)."""
    global _settings
    with _settings_lock:
        _settings = None
