"""Persistence backends for SecretStore."""
from .abstract import AbstractBackend
from .memory import MemoryBackend
from .postgres import PostgresBackend
from .redis import RedisBackend

__all__ = [
    "AbstractBackend",
    "MemoryBackend",
    "PostgresBackend",
    "RedisBackend",
    "create_backend",
]


def create_backend(config) -> AbstractBackend:
    """Build the backend selected by a ``StoreConfig``."""
    if config.backend == "postgres":
        return PostgresBackend(dsn=config.dsn)
    if config.backend == "redis":
        return RedisBackend(url=config.redis_url)
    return MemoryBackend()
