"""Public identifier generation.

Identifiers use the 64-character URL-safe alphabet and a default length of
21 symbols (126 bits of entropy). Uniqueness is not guaranteed here; the
store retries on collision.
"""
import secrets

ALPHABET = "_-0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
DEFAULT_SIZE = 21


def generate_public_id(size: int = DEFAULT_SIZE) -> str:
    """Return a random URL-safe identifier of ``size`` characters.

    Args:
        size: Number of characters, must be positive.

    Returns:
        Identifier drawn from ``ALPHABET`` using the OS CSPRNG.
    """
    if size < 1:
        raise ValueError("Identifier size must be positive")
    return "".join(secrets.choice(ALPHABET) for _ in range(size))


def is_valid_public_id(value: str) -> bool:
    """Check that ``value`` only uses characters from ``ALPHABET``."""
    return bool(value) and all(c in ALPHABET for c in value)
