"""Record-level persistence contract used by SecretStore."""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from ..models import SecretRecord


class AbstractBackend(ABC):
    """Keyed storage of SecretRecord objects.

    Implementations must make ``update_views_if_unchanged`` atomic with
    respect to every other call touching the same ``public_id``; nothing
    else requires cross-call coordination.
    """

    name: str = "abstract"

    async def open(self) -> None:
        """Acquire connections. No-op by default."""

    async def close(self) -> None:
        """Release connections. No-op by default."""

    async def __aenter__(self) -> "AbstractBackend":
        await self.open()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    @abstractmethod
    async def ping(self) -> bool:
        """Return True when the backend can serve requests."""

    @abstractmethod
    async def get_by_id(self, public_id: str) -> Optional[SecretRecord]:
        """Load a record, or None if absent."""

    @abstractmethod
    async def insert(self, record: SecretRecord) -> None:
        """Persist a new record.

        Raises:
            DuplicateSecretId: If ``record.public_id`` is already stored.
        """

    @abstractmethod
    async def update_views_if_unchanged(
        self,
        public_id: str,
        expected_views: int,
        new_views: int,
    ) -> bool:
        """Set remaining views only if they still equal ``expected_views``.

        A ``new_views`` of zero or less removes the record in the same
        atomic step.

        Returns:
            True if the update (or delete) was applied, False if the record
            is gone or its view count changed.
        """

    @abstractmethod
    async def delete(self, public_id: str) -> bool:
        """Remove a record. Returns True if something was deleted."""

    @abstractmethod
    async def delete_expired_before(self, timestamp: datetime) -> int:
        """Remove every record whose ``expires_at`` is before ``timestamp``.

        Records without ``expires_at`` are never touched.

        Returns:
            Number of deleted records.
        """
