"""
Tests for the payload Cipher.

Tests cover:
- Encrypt/decrypt round trip for text and bytes
- Nonce freshness
- Associated data binding
- Integrity failures (tampering, truncation, wrong key)
- Backend selection and key validation
"""
import os

import pytest

from burnvault.crypto import NONCE_SIZE, TAG_SIZE, Cipher, derive_key
from burnvault.exceptions import DecryptionError


class TestRoundTrip:
    """Tests for successful decryption."""

    @pytest.mark.parametrize("payload", [b"", b"a", os.urandom(10000)])
    def test_bytes_roundtrip(self, cipher, payload):
        """Test Decrypt(Encrypt(x)) == x for raw bytes."""
        assert cipher.decrypt(cipher.encrypt(payload)) == payload

    def test_text_is_utf8_encoded(self, cipher):
        """Test str input is encoded as UTF-8."""
        ct = cipher.encrypt("ñandú")
        assert cipher.decrypt(ct) == "ñandú".encode("utf-8")
        assert cipher.decrypt_text(ct) == "ñandú"

    def test_layout(self, cipher):
        """Test ciphertext is nonce + payload + tag."""
        ct = cipher.encrypt(b"12345")
        assert len(ct) == NONCE_SIZE + 5 + TAG_SIZE

    def test_fresh_nonce_per_call(self, cipher):
        """Test the same plaintext encrypts differently each time."""
        assert cipher.encrypt("same") != cipher.encrypt("same")

    def test_chacha20_backend(self, master_key):
        """Test the ChaCha20-Poly1305 backend."""
        cipher = Cipher(master_key, backend="chacha20")
        assert cipher.decrypt_text(cipher.encrypt("x")) == "x"

    def test_associated_data(self, cipher):
        """Test associated data must match on decryption."""
        ct = cipher.encrypt("x", b"id-1")
        assert cipher.decrypt_text(ct, b"id-1") == "x"
        with pytest.raises(DecryptionError):
            cipher.decrypt(ct, b"id-2")
        with pytest.raises(DecryptionError):
            cipher.decrypt(ct)


class TestIntegrity:
    """Tests for DecryptionError conditions."""

    def test_tampered_ciphertext(self, cipher):
        """Test flipping a bit fails authentication."""
        ct = bytearray(cipher.encrypt("secret"))
        ct[-1] ^= 0x01
        with pytest.raises(DecryptionError):
            cipher.decrypt(bytes(ct))

    def test_truncated_ciphertext(self, cipher):
        """Test input shorter than nonce + tag is rejected."""
        with pytest.raises(DecryptionError):
            cipher.decrypt(b"\x00" * (NONCE_SIZE + TAG_SIZE - 1))

    def test_wrong_key(self, cipher):
        """Test ciphertext from another key fails."""
        other = Cipher(os.urandom(32))
        with pytest.raises(DecryptionError):
            other.decrypt(cipher.encrypt("secret"))

    def test_wrong_backend(self, master_key):
        """Test AES-GCM ciphertext does not open under ChaCha20."""
        ct = Cipher(master_key, "aesgcm").encrypt("x")
        with pytest.raises(DecryptionError):
            Cipher(master_key, "chacha20").decrypt(ct)


class TestConstruction:
    """Tests for Cipher setup."""

    @pytest.mark.parametrize("size", [0, 16, 31, 33])
    def test_key_length(self, size):
        with pytest.raises(ValueError):
            Cipher(os.urandom(size))

    def test_unknown_backend(self, master_key):
        with pytest.raises(ValueError):
            Cipher(master_key, backend="rot13")

    def test_repr_hides_key(self, master_key):
        assert master_key.hex() not in repr(Cipher(master_key))

    def test_derive_key_is_deterministic(self, master_key):
        assert derive_key(master_key, "a") == derive_key(master_key, "a")
        assert derive_key(master_key, "a") != derive_key(master_key, "b")
        assert len(derive_key(master_key, "a")) == 32
