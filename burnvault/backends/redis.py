"""
Redis backend — one hash per secret plus a sorted-set expiry index.

Keys:
    {prefix}:secret:{public_id}  hash (ciphertext, max_views, remaining_views, expires_at)
    {prefix}:expiry              zset of public ids scored by expiry epoch

Conditional view updates use optimistic locking (WATCH/MULTI/EXEC).
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from redis import asyncio as aioredis
from redis.exceptions import RedisError, WatchError

from ..exceptions import BackendUnavailable, DuplicateSecretId
from ..models import SecretRecord
from .abstract import AbstractBackend

logger = logging.getLogger("burnvault.backend")

_SWEEP_BATCH = 500


class RedisBackend(AbstractBackend):
    """Secrets stored as Redis hashes.

    Pass either a ``url`` (the backend creates and owns the client) or an
    existing ``redis.asyncio`` compatible ``client``. The client must not
    decode responses, ciphertext is raw bytes.
    """

    name = "redis"

    def __init__(
        self,
        url: Optional[str] = None,
        client: Any = None,
        prefix: str = "burnvault",
    ):
        if url is None and client is None:
            raise ValueError("RedisBackend needs a url or a client")
        self._url = url
        self._redis = client
        self._owns_client = client is None
        self._prefix = prefix

    # ------------------------------------------------------------------
    # Key helpers
    # ------------------------------------------------------------------

    def _key(self, public_id: str) -> str:
        return f"{self._prefix}:secret:{public_id}"

    @property
    def _expiry_key(self) -> str:
        return f"{self._prefix}:expiry"

    @staticmethod
    def _to_mapping(record: SecretRecord) -> dict:
        expires = record.expires_at.timestamp() if record.expires_at else ""
        return {
            "ciphertext": record.ciphertext,
            "max_views": record.max_views,
            "remaining_views": record.remaining_views,
            "expires_at": expires,
        }

    @staticmethod
    def _from_mapping(public_id: str, data: dict) -> SecretRecord:
        data = {
            (k.decode() if isinstance(k, bytes) else k): v
            for k, v in data.items()
        }
        raw_expiry = data.get("expires_at") or b""
        if isinstance(raw_expiry, bytes):
            raw_expiry = raw_expiry.decode()
        expires_at = None
        if raw_expiry:
            expires_at = datetime.fromtimestamp(float(raw_expiry), tz=timezone.utc)
        return SecretRecord(
            public_id=public_id,
            ciphertext=data["ciphertext"],
            max_views=int(data["max_views"]),
            remaining_views=int(data["remaining_views"]),
            expires_at=expires_at,
        )

    @asynccontextmanager
    async def _guard(self):
        if self._redis is None:
            raise BackendUnavailable("RedisBackend is not open")
        try:
            yield self._redis
        except WatchError:
            raise
        except (RedisError, OSError) as err:
            logger.error("Redis unavailable: %s", err)
            raise BackendUnavailable(str(err)) from err

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> None:
        if self._redis is None:
            self._redis = aioredis.from_url(self._url, decode_responses=False)
        logger.debug("Redis backend ready")

    async def close(self) -> None:
        if self._redis is not None and self._owns_client:
            await self._redis.aclose()
            self._redis = None

    async def ping(self) -> bool:
        try:
            async with self._guard() as r:
                return bool(await r.ping())
        except BackendUnavailable:
            return False

    # ------------------------------------------------------------------
    # Record operations
    # ------------------------------------------------------------------

    async def get_by_id(self, public_id: str) -> Optional[SecretRecord]:
        async with self._guard() as r:
            data = await r.hgetall(self._key(public_id))
        if not data:
            return None
        return self._from_mapping(public_id, data)

    async def insert(self, record: SecretRecord) -> None:
        key = self._key(record.public_id)
        async with self._guard() as r:
            async with r.pipeline(transaction=True) as pipe:
                try:
                    await pipe.watch(key)
                    if await pipe.exists(key):
                        raise DuplicateSecretId(record.public_id)
                    pipe.multi()
                    pipe.hset(key, mapping=self._to_mapping(record))
                    if record.expires_at is not None:
                        pipe.zadd(
                            self._expiry_key,
                            {record.public_id: record.expires_at.timestamp()},
                        )
                    await pipe.execute()
                except WatchError as err:
                    raise DuplicateSecretId(record.public_id) from err

    async def update_views_if_unchanged(
        self,
        public_id: str,
        expected_views: int,
        new_views: int,
    ) -> bool:
        key = self._key(public_id)
        async with self._guard() as r:
            async with r.pipeline(transaction=True) as pipe:
                try:
                    await pipe.watch(key)
                    current = await pipe.hget(key, "remaining_views")
                    if current is None or int(current) != expected_views:
                        return False
                    pipe.multi()
                    if new_views <= 0:
                        pipe.delete(key)
                        pipe.zrem(self._expiry_key, public_id)
                    else:
                        pipe.hset(key, "remaining_views", new_views)
                    await pipe.execute()
                except WatchError:
                    return False
        return True

    async def delete(self, public_id: str) -> bool:
        async with self._guard() as r:
            async with r.pipeline(transaction=True) as pipe:
                pipe.delete(self._key(public_id))
                pipe.zrem(self._expiry_key, public_id)
                deleted, _ = await pipe.execute()
        return deleted > 0

    async def delete_expired_before(self, timestamp: datetime) -> int:
        # "(" makes the upper bound exclusive
        bound = f"({timestamp.timestamp()}"
        count = 0
        async with self._guard() as r:
            ids = await r.zrangebyscore(self._expiry_key, "-inf", bound)
            for start in range(0, len(ids), _SWEEP_BATCH):
                batch = [
                    i.decode() if isinstance(i, bytes) else i
                    for i in ids[start:start + _SWEEP_BATCH]
                ]
                async with r.pipeline(transaction=True) as pipe:
                    for public_id in batch:
                        pipe.delete(self._key(public_id))
                    pipe.zrem(self._expiry_key, *batch)
                    results = await pipe.execute()
                count += sum(results[:-1])
        return count
