"""BurnVault exceptions.

``SecretNotFound`` deliberately carries no reason: an absent, expired and
burned secret look the same to callers.
"""
from typing import Optional


class BurnVaultError(Exception):
    """Base class for every error raised by burnvault."""


class SecretNotFound(BurnVaultError, KeyError):
    """The secret is absent, expired or its views are exhausted."""

    def __init__(self, public_id: Optional[str] = None):
        self.public_id = public_id
        super().__init__("Secret not found")

    def __str__(self) -> str:
        return "Secret not found"


class DecryptionError(BurnVaultError):
    """Ciphertext failed authentication (key mismatch or corruption)."""


class BackendUnavailable(BurnVaultError):
    """The persistence backend could not complete the operation."""


class DuplicateSecretId(BurnVaultError):
    """A record with the same public id already exists."""

    def __init__(self, public_id: str):
        self.public_id = public_id
        super().__init__(f"Duplicate public id: {public_id}")
