"""Vault Exceptions.

Every error derives from ``VaultError``; most also derive from the closest
builtin exception so callers catching ``ValueError`` or ``OSError`` still work.
"""


class VaultError(Exception):
    """Base class for all vault errors."""


class InvalidKeyLength(VaultError, ValueError):
    """The symmetric key is not exactly the length the cipher requires."""

    def __init__(self, length: int, expected: int):
        self.length = length
        self.expected = expected
        super().__init__(
            f"Vault key must be exactly {expected} bytes, got {length}"
        )


class MalformedBlob(VaultError, ValueError):
    """The encrypted blob is too short to hold a nonce and a tag."""

    def __init__(self, length: int, minimum: int):
        self.length = length
        self.minimum = minimum
        super().__init__(
            f"Encrypted blob too short: {length} bytes (minimum {minimum})"
        )


class AuthenticationFailed(VaultError):
    """Tag verification failed: wrong key, tampering or corruption."""


class CorruptVaultData(VaultError, ValueError):
    """Decrypted bytes are not a valid vault document."""


class VaultFileNotFound(VaultError, FileNotFoundError):
    """No vault file exists at the storage path."""


class VaultIOError(VaultError, OSError):
    """Reading or writing the vault file failed."""
