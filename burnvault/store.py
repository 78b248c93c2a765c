"""
SecretStore — Lifecycle of burn-on-read secrets.

Provides the public API:
- ``create(text, ttl_seconds, max_views)`` — encrypt and persist a secret,
  returning its public id
- ``retrieve(public_id)`` — decrypt a secret and consume one view, the
  last view destroys it
- ``peek(public_id)`` — metadata of a live secret without consuming it
- ``sweep()`` — delete every expired secret

Security Note:
    Never log plaintext or ciphertext values. Only log public ids and
    counts. ``SecretNotFound`` never tells whether a secret expired, was
    burned or never existed.
"""
import logging
from datetime import timedelta
from typing import Callable, Optional

from .backends import AbstractBackend, create_backend
from .clock import SystemClock
from .config import StoreConfig
from .crypto import Cipher
from .exceptions import DecryptionError, DuplicateSecretId, SecretNotFound
from .identifiers import generate_public_id
from .models import RetrievedSecret, SecretInfo, SecretRecord

logger = logging.getLogger("burnvault.store")


class SecretStore:
    """Encrypted secrets that self-destruct after N reads or a TTL.

    The store holds no state of its own: every operation runs to
    completion on the calling task, and per-secret atomicity comes from
    the backend's conditional view update.
    """

    def __init__(
        self,
        backend: AbstractBackend,
        cipher: Cipher,
        clock=None,
        id_generator: Callable[[], str] = generate_public_id,
    ):
        self._backend = backend
        self._cipher = cipher
        self._clock = clock or SystemClock()
        self._generate_id = id_generator

    @classmethod
    def from_config(
        cls,
        config: StoreConfig,
        backend: Optional[AbstractBackend] = None,
        clock=None,
    ) -> "SecretStore":
        """Build a store (cipher and backend) from a ``StoreConfig``."""
        cipher = Cipher(config.master_key, backend=config.cipher_backend)
        return cls(
            backend=backend or create_backend(config),
            cipher=cipher,
            clock=clock,
        )

    @property
    def backend(self) -> AbstractBackend:
        return self._backend

    @property
    def clock(self):
        return self._clock

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _associated_data(public_id: str) -> bytes:
        """Bind ciphertext to its public id."""
        return public_id.encode("utf-8")

    async def _unique_id(self) -> str:
        while True:
            candidate = self._generate_id()
            if await self._backend.get_by_id(candidate) is None:
                return candidate
            logger.debug("Public id collision, generating a new one")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def create(
        self,
        text: str,
        ttl_seconds: Optional[int] = None,
        max_views: Optional[int] = None,
    ) -> str:
        """Encrypt and persist a new secret.

        Args:
            text: Plaintext to protect.
            ttl_seconds: Lifetime in seconds. None or a non-positive value
                means the secret only expires by running out of views.
            max_views: Number of allowed reads, defaults to 1.

        Returns:
            The public id that redeems the secret.

        Raises:
            ValueError: If max_views is not a positive integer.
            BackendUnavailable: If the backend fails.
        """
        if max_views is None:
            max_views = 1
        if max_views < 1:
            raise ValueError("max_views must be a positive integer")
        expires_at = None
        if ttl_seconds is not None and ttl_seconds > 0:
            expires_at = self._clock.now() + timedelta(seconds=ttl_seconds)

        while True:
            public_id = await self._unique_id()
            record = SecretRecord(
                public_id=public_id,
                ciphertext=self._cipher.encrypt(
                    text, self._associated_data(public_id),
                ),
                max_views=max_views,
                remaining_views=max_views,
                expires_at=expires_at,
            )
            try:
                await self._backend.insert(record)
            except DuplicateSecretId:
                # lost an insert race for the same id
                logger.debug("Duplicate public id on insert, retrying")
                continue
            break

        logger.debug(
            "Secret created: id=%s max_views=%d expires_at=%s",
            public_id, max_views, expires_at,
        )
        return public_id

    async def retrieve(self, public_id: str) -> RetrievedSecret:
        """Decrypt a secret and consume one of its views.

        When the view count reaches zero the secret is deleted in the same
        conditional update that consumed the view. If a concurrent reader
        changed the count first, the record is read again.

        Args:
            public_id: Identifier returned by ``create``.

        Returns:
            The plaintext and the views left after this read.

        Raises:
            SecretNotFound: If the secret is absent, expired or burned.
            DecryptionError: If the ciphertext fails authentication.
            BackendUnavailable: If the backend fails.
        """
        if not public_id:
            raise SecretNotFound(public_id)

        while True:
            record = await self._backend.get_by_id(public_id)
            if record is None:
                raise SecretNotFound(public_id)

            if record.is_expired(self._clock.now()):
                await self._backend.delete(public_id)
                logger.debug("Expired secret removed on access: id=%s", public_id)
                raise SecretNotFound(public_id)

            if not record.has_remaining_views():
                await self._backend.delete(public_id)
                raise SecretNotFound(public_id)

            try:
                text = self._cipher.decrypt_text(
                    record.ciphertext, self._associated_data(public_id),
                )
            except DecryptionError:
                logger.error("Integrity failure decrypting secret id=%s", public_id)
                raise

            remaining = record.remaining_views - 1
            applied = await self._backend.update_views_if_unchanged(
                public_id, record.remaining_views, remaining,
            )
            if applied:
                break
            logger.debug("Concurrent read on id=%s, reloading", public_id)

        if remaining <= 0:
            logger.debug("Secret burned: id=%s", public_id)
        return RetrievedSecret(text=text, remaining_views=max(remaining, 0))

    async def peek(self, public_id: str) -> Optional[SecretInfo]:
        """Return metadata of a live secret without consuming a view.

        Returns:
            SecretInfo, or None if the secret is absent, expired or burned.
        """
        if not public_id:
            return None
        record = await self._backend.get_by_id(public_id)
        if (
            record is None
            or record.is_expired(self._clock.now())
            or not record.has_remaining_views()
        ):
            return None
        return SecretInfo(
            public_id=record.public_id,
            max_views=record.max_views,
            remaining_views=record.remaining_views,
            expires_at=record.expires_at,
        )

    async def sweep(self) -> int:
        """Delete every secret whose expiry has passed.

        Returns:
            Number of deleted secrets.
        """
        deleted = await self._backend.delete_expired_before(self._clock.now())
        if deleted:
            logger.info("Sweep removed %d expired secret(s)", deleted)
        return deleted
