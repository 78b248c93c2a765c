"""Periodic removal of expired secrets.

Lazy expiry in ``SecretStore.retrieve`` already hides expired secrets;
the sweeper only bounds storage taken by secrets nobody reads.
"""
import asyncio
import logging
from typing import Optional

from .exceptions import BurnVaultError
from .store import SecretStore

logger = logging.getLogger("burnvault.sweeper")


class SecretSweeper:
    """Runs ``store.sweep()`` every ``interval`` seconds on an asyncio task."""

    def __init__(self, store: SecretStore, interval: float = 60):
        if interval <= 0:
            raise ValueError("Sweep interval must be positive")
        self._store = store
        self._interval = interval
        self._task: Optional[asyncio.Task] = None
        self.runs = 0
        self.deleted = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> int:
        """Run a single sweep, logging (not raising) store failures."""
        try:
            count = await self._store.sweep()
        except BurnVaultError as err:
            logger.error("Sweep failed: %s", err)
            return 0
        self.runs += 1
        self.deleted += count
        return count

    async def _loop(self) -> None:
        while True:
            try:
                await self.run_once()
            except Exception:
                logger.exception("Unexpected error during sweep")
            await asyncio.sleep(self._interval)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="burnvault-sweeper")
        logger.info("Sweeper started (interval=%ss)", self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("Sweeper task ended with an error")
        self._task = None
        logger.info(
            "Sweeper stopped after %d run(s), %d secret(s) removed",
            self.runs, self.deleted,
        )
