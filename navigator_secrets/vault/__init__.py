"""Credential Vault — Site credentials kept in a single encrypted file.

Security Note (Threat Model):
    Records are decrypted in process memory for the duration of a call.
    Keys are supplied by the caller on every call and never persisted.
    Concurrent writers from several processes are not coordinated;
    the last writer wins.
"""

from .store import VaultStore, upsert, export, load_vault
from .crypto import seal, open_blob
from .config import VaultConfig, load_key

__all__ = [
    "VaultStore",
    "upsert",
    "export",
    "load_vault",
    "seal",
    "open_blob",
    "VaultConfig",
    "load_key",
]
