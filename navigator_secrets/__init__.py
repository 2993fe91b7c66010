"""Navigator Secrets.

Encrypted, file-backed vault of site credentials grouped by category.
"""
from .version import (
    __title__, __description__, __version__, __author__, __author_email__
)
from .data import CredentialRecord, VaultData
from .exceptions import (
    VaultError,
    InvalidKeyLength,
    MalformedBlob,
    AuthenticationFailed,
    CorruptVaultData,
    VaultFileNotFound,
    VaultIOError,
)
