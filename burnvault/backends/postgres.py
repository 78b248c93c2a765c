"""
PostgreSQL backend — asyncpg connection pool, one row per secret.

The burn-on-read step is a single conditional statement
(``UPDATE``/``DELETE ... WHERE remaining_views = $2``), so two readers
racing for the last view cannot both succeed.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional

import asyncpg

from ..exceptions import BackendUnavailable, DuplicateSecretId
from ..models import SecretRecord
from .abstract import AbstractBackend

logger = logging.getLogger("burnvault.backend")

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS burnvault_secrets (
    id BIGSERIAL PRIMARY KEY,
    public_id VARCHAR(64) NOT NULL UNIQUE,
    ciphertext BYTEA NOT NULL,
    max_views INTEGER NOT NULL CHECK (max_views >= 1),
    remaining_views INTEGER NOT NULL CHECK (remaining_views >= 0),
    expires_at TIMESTAMPTZ NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
)
"""

_CREATE_EXPIRY_INDEX = """
CREATE INDEX IF NOT EXISTS ix_burnvault_secrets_expires_at
ON burnvault_secrets (expires_at)
WHERE expires_at IS NOT NULL
"""

_SELECT_SECRET = """
SELECT public_id, ciphertext, max_views, remaining_views, expires_at
FROM burnvault_secrets
WHERE public_id = $1
"""

_INSERT_SECRET = """
INSERT INTO burnvault_secrets
    (public_id, ciphertext, max_views, remaining_views, expires_at)
VALUES ($1, $2, $3, $4, $5)
"""

_UPDATE_VIEWS = """
UPDATE burnvault_secrets
SET remaining_views = $3
WHERE public_id = $1 AND remaining_views = $2
"""

_DELETE_IF_VIEWS = """
DELETE FROM burnvault_secrets
WHERE public_id = $1 AND remaining_views = $2
"""

_DELETE_SECRET = """
DELETE FROM burnvault_secrets
WHERE public_id = $1
"""

_DELETE_EXPIRED = """
DELETE FROM burnvault_secrets
WHERE expires_at IS NOT NULL AND expires_at < $1
"""

_UNAVAILABLE_ERRORS = (
    OSError,
    asyncio.TimeoutError,
    asyncpg.exceptions.PostgresConnectionError,
    asyncpg.exceptions.InterfaceError,
    # any server-side error, e.g. statement timeout or admin shutdown
    asyncpg.exceptions.PostgresError,
)


def _affected_rows(status: str) -> int:
    """Parse the row count from a command tag such as ``DELETE 3``."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (AttributeError, ValueError):
        return 0


class PostgresBackend(AbstractBackend):
    """Secrets stored in the ``burnvault_secrets`` table.

    Either pass an existing asyncpg-compatible ``pool`` or a ``dsn`` from
    which ``open()`` creates one (and then owns it).
    """

    name = "postgres"

    def __init__(
        self,
        dsn: Optional[str] = None,
        pool: Any = None,
        create_schema: bool = True,
        **pool_kwargs,
    ):
        if dsn is None and pool is None:
            raise ValueError("PostgresBackend needs a dsn or a pool")
        self._dsn = dsn
        self._pool = pool
        self._owns_pool = pool is None
        self._create_schema = create_schema
        self._pool_kwargs = pool_kwargs

    @asynccontextmanager
    async def _connection(self):
        if self._pool is None:
            raise BackendUnavailable("PostgresBackend is not open")
        try:
            async with self._pool.acquire() as conn:
                yield conn
        except _UNAVAILABLE_ERRORS as err:
            logger.error("PostgreSQL unavailable: %s", err)
            raise BackendUnavailable(str(err)) from err

    async def open(self) -> None:
        if self._pool is None:
            try:
                self._pool = await asyncpg.create_pool(
                    self._dsn, **self._pool_kwargs,
                )
            except _UNAVAILABLE_ERRORS as err:
                raise BackendUnavailable(str(err)) from err
        if self._create_schema:
            async with self._connection() as conn:
                await conn.execute(_CREATE_TABLE)
                await conn.execute(_CREATE_EXPIRY_INDEX)
        logger.debug("PostgreSQL backend ready")

    async def close(self) -> None:
        if self._pool is not None and self._owns_pool:
            await self._pool.close()
            self._pool = None

    async def ping(self) -> bool:
        try:
            async with self._connection() as conn:
                await conn.fetchval("SELECT 1")
        except BackendUnavailable:
            return False
        return True

    async def get_by_id(self, public_id: str) -> Optional[SecretRecord]:
        async with self._connection() as conn:
            row = await conn.fetchrow(_SELECT_SECRET, public_id)
        if row is None:
            return None
        return SecretRecord(
            public_id=row["public_id"],
            ciphertext=bytes(row["ciphertext"]),
            max_views=row["max_views"],
            remaining_views=row["remaining_views"],
            expires_at=row["expires_at"],
        )

    async def insert(self, record: SecretRecord) -> None:
        async with self._connection() as conn:
            try:
                await conn.execute(
                    _INSERT_SECRET,
                    record.public_id,
                    record.ciphertext,
                    record.max_views,
                    record.remaining_views,
                    record.expires_at,
                )
            except asyncpg.exceptions.UniqueViolationError as err:
                raise DuplicateSecretId(record.public_id) from err

    async def update_views_if_unchanged(
        self,
        public_id: str,
        expected_views: int,
        new_views: int,
    ) -> bool:
        async with self._connection() as conn:
            if new_views <= 0:
                status = await conn.execute(
                    _DELETE_IF_VIEWS, public_id, expected_views,
                )
            else:
                status = await conn.execute(
                    _UPDATE_VIEWS, public_id, expected_views, new_views,
                )
        return _affected_rows(status) == 1

    async def delete(self, public_id: str) -> bool:
        async with self._connection() as conn:
            status = await conn.execute(_DELETE_SECRET, public_id)
        return _affected_rows(status) > 0

    async def delete_expired_before(self, timestamp: datetime) -> int:
        async with self._connection() as conn:
            status = await conn.execute(_DELETE_EXPIRED, timestamp)
        return _affected_rows(status)
