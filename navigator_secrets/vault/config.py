"""
Vault Configuration — Storage settings and caller key loading.

Reads settings from environment variables:
    VAULT_STORAGE_PATH = <path of the encrypted vault file>
    VAULT_CIPHER_BACKEND = aesgcm | chacha20
    VAULT_KEY = <base64-encoded 32-byte key>  (read only by load_key)

Security Note:
    Never log key material.
"""
import os
import base64
import binascii
import logging
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from ..exceptions import InvalidKeyLength
from .crypto import CIPHER_BACKENDS, KEY_LENGTH, get_cipher_cls

logger = logging.getLogger("navigator.secrets")

DEFAULT_STORAGE_PATH = "vault.data"


def load_key(env_var: str = "VAULT_KEY") -> bytes:
    """Load a caller-provided vault key from an environment variable.

    The value must be base64-encoded and decode to exactly 32 bytes.

    Returns:
        Raw 32-byte key.

    Raises:
        RuntimeError: If the variable is not set.
        ValueError: If the value is not valid base64.
        InvalidKeyLength: If the key does not decode to 32 bytes.
    """
    raw = os.environ.get(env_var)
    if not raw:
        raise RuntimeError(
            f"{env_var} environment variable is not set. "
            f"Set {env_var}=<base64-encoded-32-byte-key>"
        )
    try:
        key = base64.b64decode(raw, validate=True)
    except binascii.Error as err:
        raise ValueError(f"{env_var} is not valid base64") from err
    if len(key) != KEY_LENGTH:
        raise InvalidKeyLength(len(key), KEY_LENGTH)
    logger.debug("Loaded vault key from %s", env_var)
    return key


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    storage_path: Path = Field(default=Path(DEFAULT_STORAGE_PATH))
    cipher_backend: str = Field(default="aesgcm")
    file_mode: int = Field(default=0o600, ge=0, le=0o777)

    @field_validator("cipher_backend")
    @classmethod
    def validate_cipher(cls, v: str) -> str:
        """Validate cipher backend is supported."""
        v = v.lower()
        if v not in CIPHER_BACKENDS:
            raise ValueError(f"Unsupported cipher backend: {v}")
        return v

    @property
    def cipher_cls(self) -> type:
        return get_cipher_cls(self.cipher_backend)

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Returns:
            Populated VaultConfig instance.
        """
        return cls(
            storage_path=os.environ.get("VAULT_STORAGE_PATH", DEFAULT_STORAGE_PATH),
            cipher_backend=os.environ.get("VAULT_CIPHER_BACKEND", "aesgcm"),
        )
