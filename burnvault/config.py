"""
BurnVault Configuration — Master key loading and validated settings.

Reads settings from environment variables:
    BURNVAULT_MASTER_KEY = <base64-encoded 32-byte key>
    BURNVAULT_CIPHER_BACKEND = aesgcm | chacha20
    BURNVAULT_BACKEND = memory | postgres | redis
    BURNVAULT_DSN / BURNVAULT_REDIS_URL = backend connection strings
    BURNVAULT_SWEEP_INTERVAL = seconds between expiry sweeps (0 disables)
    BURNVAULT_FRONTEND_URL = base URL used to build share links
    BURNVAULT_MAX_TEXT_LENGTH = largest accepted secret, in characters

Security Note:
    Never log key material.
"""
import os
import base64
import binascii
import secrets
import logging
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger("burnvault.config")

MASTER_KEY_ENV = "BURNVAULT_MASTER_KEY"

# Caller-layer limits applied by the HTTP surface.
MIN_TTL_SECONDS = 10
MAX_TTL_SECONDS = 2592000  # 30 days
MAX_VIEWS_LIMIT = 100


def load_master_key(environ: Optional[dict] = None) -> bytes:
    """Load the master key from the BURNVAULT_MASTER_KEY environment variable.

    The value must be base64-encoded and decode to exactly 32 bytes.

    Returns:
        Raw 32-byte key.

    Raises:
        RuntimeError: If the key is not set.
        ValueError: If the key is not valid base64 or not 32 bytes long.
    """
    env = os.environ if environ is None else environ
    value = env.get(MASTER_KEY_ENV)
    if not value:
        raise RuntimeError(
            "No master key found in environment. "
            f"Set {MASTER_KEY_ENV}=<base64-encoded-32-byte-key>"
        )
    try:
        key_bytes = base64.b64decode(value, validate=True)
    except binascii.Error as err:
        raise ValueError(f"{MASTER_KEY_ENV} is not valid base64") from err
    if len(key_bytes) != 32:
        raise ValueError(
            f"{MASTER_KEY_ENV} must decode to exactly 32 bytes, "
            f"got {len(key_bytes)}"
        )
    logger.debug("Loaded master key from %s", MASTER_KEY_ENV)
    return key_bytes


def generate_master_key() -> str:
    """Generate a random 32-byte master key and return as base64 string.

    This is a utility for operators to generate new keys.

    Returns:
        Base64-encoded 32-byte key string.
    """
    return base64.b64encode(secrets.token_bytes(32)).decode("ascii")


class StoreConfig(BaseModel):
    """Validated burnvault configuration."""

    master_key: bytes = Field(repr=False)
    cipher_backend: str = Field(default="aesgcm")
    backend: str = Field(default="memory")
    dsn: Optional[str] = Field(default=None, repr=False)
    redis_url: Optional[str] = Field(default=None, repr=False)
    sweep_interval: int = Field(default=60, ge=0)
    frontend_url: str = Field(default="http://localhost:8080")
    max_text_length: int = Field(default=10000, ge=1)

    model_config = {"arbitrary_types_allowed": True}

    @field_validator("master_key")
    @classmethod
    def validate_master_key(cls, v: bytes) -> bytes:
        """Master key must be 32 raw bytes."""
        if len(v) != 32:
            raise ValueError(
                f"master_key must be exactly 32 bytes, got {len(v)}"
            )
        return v

    @field_validator("cipher_backend")
    @classmethod
    def validate_cipher(cls, v: str) -> str:
        """Validate cipher backend is supported."""
        v = v.lower()
        if v not in ("aesgcm", "chacha20"):
            raise ValueError(f"Unsupported cipher backend: {v}")
        return v

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Validate persistence backend is supported."""
        v = v.lower()
        if v not in ("memory", "postgres", "redis"):
            raise ValueError(f"Unsupported storage backend: {v}")
        return v

    @model_validator(mode="after")
    def validate_backend_connection(self) -> "StoreConfig":
        """Ensure the selected backend has a connection string."""
        if self.backend == "postgres" and not self.dsn:
            raise ValueError("BURNVAULT_DSN is required for the postgres backend")
        if self.backend == "redis" and not self.redis_url:
            raise ValueError(
                "BURNVAULT_REDIS_URL is required for the redis backend"
            )
        return self

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "StoreConfig":
        """Create StoreConfig by loading values from environment.

        Returns:
            Populated StoreConfig instance.
        """
        env = os.environ if environ is None else environ
        master_key = load_master_key(env)
        values = {
            "master_key": master_key,
            "cipher_backend": env.get("BURNVAULT_CIPHER_BACKEND", "aesgcm"),
            "backend": env.get("BURNVAULT_BACKEND", "memory"),
            "dsn": env.get("BURNVAULT_DSN"),
            "redis_url": env.get("BURNVAULT_REDIS_URL"),
        }
        for field, name in (
            ("sweep_interval", "BURNVAULT_SWEEP_INTERVAL"),
            ("frontend_url", "BURNVAULT_FRONTEND_URL"),
            ("max_text_length", "BURNVAULT_MAX_TEXT_LENGTH"),
        ):
            if env.get(name):
                values[field] = env[name]
        return cls(**values)
