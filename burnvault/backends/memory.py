"""In-process backend, for tests and single-instance deployments."""
import asyncio
import logging
from datetime import datetime
from typing import Optional

from ..exceptions import DuplicateSecretId
from ..models import SecretRecord
from .abstract import AbstractBackend

logger = logging.getLogger("burnvault.backend")


class MemoryBackend(AbstractBackend):
    """Dict-backed storage guarded by an asyncio lock.

    Records are immutable models, so readers get a snapshot that later
    updates cannot change underneath them.
    """

    name = "memory"

    def __init__(self) -> None:
        self._records: dict[str, SecretRecord] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, public_id: object) -> bool:
        return public_id in self._records

    async def ping(self) -> bool:
        return True

    async def get_by_id(self, public_id: str) -> Optional[SecretRecord]:
        return self._records.get(public_id)

    async def insert(self, record: SecretRecord) -> None:
        async with self._lock:
            if record.public_id in self._records:
                raise DuplicateSecretId(record.public_id)
            self._records[record.public_id] = record

    async def update_views_if_unchanged(
        self,
        public_id: str,
        expected_views: int,
        new_views: int,
    ) -> bool:
        async with self._lock:
            current = self._records.get(public_id)
            if current is None or current.remaining_views != expected_views:
                return False
            if new_views <= 0:
                del self._records[public_id]
            else:
                self._records[public_id] = current.model_copy(
                    update={"remaining_views": new_views}
                )
            return True

    async def delete(self, public_id: str) -> bool:
        async with self._lock:
            return self._records.pop(public_id, None) is not None

    async def delete_expired_before(self, timestamp: datetime) -> int:
        async with self._lock:
            expired = [
                pid for pid, record in self._records.items()
                if record.expires_at is not None and record.expires_at < timestamp
            ]
            for pid in expired:
                del self._records[pid]
        return len(expired)
