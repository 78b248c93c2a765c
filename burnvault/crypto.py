"""
BurnVault Crypto — Encryption at rest for secret payloads.

A single process-wide master key is stretched with HKDF-SHA256 into the
payload key, which then drives an AEAD cipher (AES-256-GCM by default,
ChaCha20-Poly1305 optionally).

Stored format: [nonce 12B][encrypted_payload + tag 16B]

Security Note:
    Never log plaintext or ciphertext values.
    Nonces are random 96-bit; collision probability negligible under normal usage.
"""
import os
import logging
from typing import Optional, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305

from .exceptions import DecryptionError

logger = logging.getLogger("burnvault.crypto")

NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16
KEY_LENGTH = 32  # AES-256

_PAYLOAD_CONTEXT = "burnvault-payload-v1"

CIPHER_BACKENDS = {
    "aesgcm": AESGCM,
    "chacha20": ChaCha20Poly1305,
}


def derive_key(seed: bytes, context: str) -> bytes:
    """Derive a 32-byte encryption key using HKDF-SHA256.

    Args:
        seed: Input key material (the master key bytes).
        context: Context string for domain separation.

    Returns:
        32-byte derived key.
    """
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=None,
        info=context.encode("utf-8"),
    )
    return hkdf.derive(seed)


class Cipher:
    """Symmetric AEAD cipher bound to one master key.

    The key is read-only after construction, so a single instance is
    shared by every task in the process.
    """

    def __init__(self, master_key: bytes, backend: str = "aesgcm"):
        if len(master_key) != KEY_LENGTH:
            raise ValueError(
                f"master key must be exactly {KEY_LENGTH} bytes, "
                f"got {len(master_key)}"
            )
        try:
            cipher_cls = CIPHER_BACKENDS[backend]
        except KeyError:
            raise ValueError(f"Unsupported cipher backend: {backend}") from None
        self.backend = backend
        self._aead = cipher_cls(derive_key(master_key, _PAYLOAD_CONTEXT))

    def __repr__(self) -> str:
        return f"<Cipher backend={self.backend}>"

    def encrypt(
        self,
        plaintext: Union[str, bytes],
        associated_data: Optional[bytes] = None,
    ) -> bytes:
        """Encrypt plaintext with a fresh random nonce.

        Args:
            plaintext: Text (encoded as UTF-8) or raw bytes.
            associated_data: Optional bytes authenticated with the payload,
                they must be supplied again on decryption.

        Returns:
            Ciphertext bytes in format [nonce][payload+tag].
        """
        if isinstance(plaintext, str):
            plaintext = plaintext.encode("utf-8")
        nonce = os.urandom(NONCE_SIZE)
        return nonce + self._aead.encrypt(nonce, plaintext, associated_data)

    def decrypt(
        self,
        ciphertext: bytes,
        associated_data: Optional[bytes] = None,
    ) -> bytes:
        """Decrypt and authenticate ciphertext produced by ``encrypt``.

        Raises:
            DecryptionError: If the ciphertext is truncated, was tampered
                with, or was produced under another key.
        """
        _min = NONCE_SIZE + TAG_SIZE
        if ciphertext is None or len(ciphertext) < _min:
            raise DecryptionError(
                f"ciphertext too short (minimum {_min} bytes)"
            )
        nonce = bytes(ciphertext[:NONCE_SIZE])
        ct = bytes(ciphertext[NONCE_SIZE:])
        try:
            return self._aead.decrypt(nonce, ct, associated_data)
        except InvalidTag as err:
            raise DecryptionError(
                "ciphertext failed authentication"
            ) from err

    def decrypt_text(
        self,
        ciphertext: bytes,
        associated_data: Optional[bytes] = None,
    ) -> str:
        """Decrypt ciphertext and decode it as UTF-8."""
        data = self.decrypt(ciphertext, associated_data)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as err:
            raise DecryptionError("plaintext is not valid UTF-8") from err
