"""Wallet secret sealing. Plaintext keys exist only inside the chain adapter."""

from __future__ import annotations

from cryptography.fernet import Fernet, InvalidToken

from tweetonium.core.exceptions import ChainError, ConfigError


class SecretSealer:
    """Fernet (AES-128-CBC + HMAC) wrapper for wallet secret keys."""

    def __init__(self, key: str | bytes | None = None) -> None:
        raw = key.encode("ascii") if isinstance(key, str) else key
        try:
            self._fernet = Fernet(raw or Fernet.generate_key())
        except (ValueError, TypeError) as e:
            raise ConfigError("wallet encryption key must be a urlsafe base64 Fernet key", setting="wallet_encryption_key") from e

    def seal(self, secret: bytes) -> str:
        return self._fernet.encrypt(secret).decode("ascii")

    def unseal(self, token: str) -> bytes:
        try:
            return self._fernet.decrypt(token.encode("ascii"))
        except InvalidToken as e:
            raise ChainError("wallet secret could not be decrypted") from e
