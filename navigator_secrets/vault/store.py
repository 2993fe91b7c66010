"""
VaultStore — Encrypted credential vault persisted as a single file.

Provides the public API for the vault:
- ``upsert(category, name, record, key, update)`` — insert or conditionally replace a record
- ``export(key)`` — decrypt and return the raw vault document bytes
- ``load(key)`` — decrypt and parse the vault into a ``VaultData``

Every mutation reads, decrypts, merges, re-encrypts and rewrites the whole
file; nothing is cached between calls and the key is never kept.

Security Note:
    Never log plaintext, ciphertext or key values. Only log paths,
    category and record names.
"""
import os
import errno
import logging
from pathlib import Path
from typing import Optional, Union

from ..data import CredentialRecord, RecordLike, VaultData, as_record
from ..exceptions import AuthenticationFailed, VaultFileNotFound, VaultIOError
from .config import VaultConfig
from .crypto import open_blob, seal, serialize_vault, deserialize_vault

logger = logging.getLogger("navigator.secrets")

PathLike = Union[str, os.PathLike]


class VaultStore:
    """Encrypted vault bound to a storage path.

    The vault file holds ``[nonce|ciphertext|tag]`` of the JSON document
    ``{category: {name: {site, username, password}}}``.
    """

    def __init__(
        self,
        storage_path: Optional[PathLike] = None,
        config: Optional[VaultConfig] = None,
    ):
        self._config = config or VaultConfig.from_env()
        self._path = Path(storage_path) if storage_path else self._config.storage_path
        self._cipher_cls = self._config.cipher_cls

    def __repr__(self) -> str:
        return f'<VaultStore path={str(self._path)!r} cipher={self._config.cipher_backend}>'

    @property
    def storage_path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    # ------------------------------------------------------------------
    # File helpers
    # ------------------------------------------------------------------

    def _read_blob(self) -> Optional[bytes]:
        """Read the raw vault blob. Returns None if the file does not exist."""
        try:
            return self._path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as err:
            logger.error("Cannot read vault file %s: %s", self._path, err)
            raise VaultIOError(
                err.errno, f"Cannot read vault file: {err.strerror}", str(self._path)
            ) from err

    def _write_blob(self, blob: bytes) -> None:
        """Replace the vault file with blob.

        Writes a sibling temp file, fsyncs it and renames it over the
        target, so readers see either the old or the new file.
        """
        tmp = self._path.with_name(f".{self._path.name}.tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, self._config.file_mode)
            with os.fdopen(fd, "wb") as f:
                f.write(blob)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp, self._config.file_mode)
            os.replace(tmp, self._path)
        except OSError as err:
            tmp.unlink(missing_ok=True)
            logger.error("Cannot write vault file %s: %s", self._path, err)
            raise VaultIOError(
                err.errno, f"Cannot write vault file: {err.strerror}", str(self._path)
            ) from err

    def _decrypt(self, blob: bytes, key: bytes) -> bytes:
        try:
            return open_blob(blob, key, self._cipher_cls)
        except AuthenticationFailed:
            logger.warning("Vault authentication failed for %s", self._path)
            raise

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def upsert(
        self,
        category: str,
        name: str,
        record: RecordLike,
        key: bytes,
        update: bool = False,
    ) -> None:
        """Insert a record, or replace an existing one when ``update`` is set.

        An existing record with the same name is left untouched unless
        ``update`` is True; the file is rewritten in both cases.

        Args:
            category: Category name (created if missing).
            name: Record name inside the category.
            record: CredentialRecord or mapping with site/username/password.
            key: Raw 32-byte symmetric key.
            update: Replace the record if ``name`` already exists.

        Raises:
            InvalidKeyLength: If key is not 32 bytes.
            MalformedBlob: If the existing file is too short to be a blob.
            AuthenticationFailed: If the existing file does not verify under key.
            CorruptVaultData: If the decrypted file is not a valid vault.
            VaultIOError: If the file cannot be read or written.
        """
        record = as_record(record)
        blob = self._read_blob()
        if blob is None:
            vault = VaultData()
            logger.info("Creating vault file %s", self._path)
        else:
            plaintext = self._decrypt(blob, key)
            vault = VaultData.from_dict(deserialize_vault(plaintext))

        if vault.upsert(category, name, record, update=update):
            logger.debug("Vault upsert: category=%s name=%s stored", category, name)
        else:
            logger.debug(
                "Vault upsert: category=%s name=%s exists, update not requested",
                category, name,
            )

        payload = serialize_vault(vault.to_dict())
        self._write_blob(seal(payload, key, self._cipher_cls))

    def export(self, key: bytes) -> bytes:
        """Decrypt the vault file and return the raw document bytes.

        Args:
            key: Raw 32-byte symmetric key.

        Returns:
            Decrypted UTF-8 JSON document.

        Raises:
            VaultFileNotFound: If the vault file does not exist.
            InvalidKeyLength, MalformedBlob, AuthenticationFailed: see ``open_blob``.
        """
        blob = self._read_blob()
        if blob is None:
            raise VaultFileNotFound(
                errno.ENOENT, "Vault file not found", str(self._path)
            )
        plaintext = self._decrypt(blob, key)
        logger.debug("Vault export: %s (%d bytes)", self._path, len(plaintext))
        return plaintext

    def load(self, key: bytes) -> VaultData:
        """Decrypt the vault file and parse it into a VaultData."""
        return VaultData.from_dict(deserialize_vault(self.export(key)))

    def get(self, category: str, name: str, key: bytes) -> Optional[CredentialRecord]:
        """Return a single record, or None if it is not stored."""
        return self.load(key).get_record(category, name)


# ---------------------------------------------------------------------------
# Functional API
# ---------------------------------------------------------------------------

def upsert(
    category: str,
    name: str,
    record: RecordLike,
    key: bytes,
    storage_path: PathLike,
    update: bool = False,
) -> None:
    """Insert or conditionally replace a record in the vault at storage_path."""
    VaultStore(storage_path).upsert(category, name, record, key, update=update)


def export(storage_path: PathLike, key: bytes) -> bytes:
    """Return the decrypted document bytes of the vault at storage_path."""
    return VaultStore(storage_path).export(key)


def load_vault(storage_path: PathLike, key: bytes) -> VaultData:
    """Return the parsed vault at storage_path."""
    return VaultStore(storage_path).load(key)
