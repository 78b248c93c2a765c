"""BurnVault — encrypted secrets that burn after reading.

Security Note (Threat Model):
    Plaintext exists in process memory only while a secret is being
    created or redeemed. Anyone holding the master key and a copy of the
    backend can decrypt stored secrets; key custody is an operational
    concern outside this package.
"""

from .version import __version__
from .clock import ManualClock, SystemClock
from .config import StoreConfig, generate_master_key, load_master_key
from .crypto import Cipher
from .exceptions import (
    BackendUnavailable,
    BurnVaultError,
    DecryptionError,
    DuplicateSecretId,
    SecretNotFound,
)
from .identifiers import generate_public_id
from .models import RetrievedSecret, SecretInfo, SecretRecord
from .store import SecretStore
from .sweeper import SecretSweeper

__all__ = [
    "__version__",
    "BackendUnavailable",
    "BurnVaultError",
    "Cipher",
    "DecryptionError",
    "DuplicateSecretId",
    "ManualClock",
    "RetrievedSecret",
    "SecretInfo",
    "SecretNotFound",
    "SecretRecord",
    "SecretStore",
    "SecretSweeper",
    "StoreConfig",
    "SystemClock",
    "generate_master_key",
    "generate_public_id",
    "load_master_key",
]
