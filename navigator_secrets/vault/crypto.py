"""
Vault Crypto Core — Authenticated encryption and vault document serialization.

Every vault file is a single self-describing blob:
    [nonce 12B][encrypted_payload + tag 16B]

The key is supplied by the caller on every call and is never stored.

Security Note:
    Never log plaintext, ciphertext or key values.
    Nonces are random 96-bit; collision probability negligible under normal usage.
"""
import os
import logging
from typing import Any, Optional
from collections.abc import Mapping

import orjson
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305

from ..exceptions import (
    AuthenticationFailed,
    CorruptVaultData,
    InvalidKeyLength,
    MalformedBlob,
)

logger = logging.getLogger("navigator.secrets")

NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # GCM / Poly1305 tag
KEY_LENGTH = 32  # AES-256 / ChaCha20

CIPHER_BACKENDS = {
    "aesgcm": AESGCM,
    "chacha20": ChaCha20Poly1305,
}


def get_cipher_cls(backend: Optional[str] = None) -> type:
    """Return the AEAD cipher class for a backend name.

    When ``backend`` is None the VAULT_CIPHER_BACKEND env var is used,
    falling back to AES-GCM.
    """
    if backend is None:
        backend = os.environ.get("VAULT_CIPHER_BACKEND", "aesgcm")
    try:
        return CIPHER_BACKENDS[backend.lower()]
    except KeyError:
        raise ValueError(f"Unsupported cipher backend: {backend}") from None


# Resolve cipher once at module load to prevent seal/open mismatch
# if the env var changes mid-process.
CIPHER_CLS = get_cipher_cls()


def _check_key(key: bytes) -> None:
    if len(key) != KEY_LENGTH:
        raise InvalidKeyLength(len(key), KEY_LENGTH)


# ---------------------------------------------------------------------------
# Cipher codec
# ---------------------------------------------------------------------------

def seal(plaintext: bytes, key: bytes, cipher_cls: Optional[type] = None) -> bytes:
    """Encrypt and authenticate plaintext under key.

    Format: [nonce 12B][encrypted_payload + tag 16B]

    Args:
        plaintext: Data to encrypt.
        key: Raw 32-byte symmetric key.
        cipher_cls: AEAD class to use (defaults to CIPHER_CLS).

    Returns:
        Encrypted blob bytes.

    Raises:
        InvalidKeyLength: If key is not exactly 32 bytes.
    """
    _check_key(key)
    cipher = (cipher_cls or CIPHER_CLS)(key)
    nonce = os.urandom(NONCE_SIZE)
    ct = cipher.encrypt(nonce, plaintext, None)
    return nonce + ct


def open_blob(blob: bytes, key: bytes, cipher_cls: Optional[type] = None) -> bytes:
    """Verify and decrypt a blob produced by ``seal``.

    Args:
        blob: Ciphertext in format [nonce 12B][payload+tag].
        key: Raw 32-byte symmetric key.
        cipher_cls: AEAD class to use (defaults to CIPHER_CLS).

    Returns:
        Decrypted plaintext bytes.

    Raises:
        InvalidKeyLength: If key is not exactly 32 bytes.
        MalformedBlob: If blob cannot hold a nonce and a tag.
        AuthenticationFailed: If the tag does not verify.
    """
    _check_key(key)
    _min = NONCE_SIZE + TAG_SIZE
    if len(blob) < _min:
        raise MalformedBlob(len(blob), _min)
    cipher = (cipher_cls or CIPHER_CLS)(key)
    nonce = blob[:NONCE_SIZE]
    ct = blob[NONCE_SIZE:]
    try:
        return cipher.decrypt(nonce, ct, None)
    except InvalidTag as err:
        raise AuthenticationFailed(
            "Vault blob failed authentication (wrong key or tampered data)"
        ) from err


# ---------------------------------------------------------------------------
# Vault document serialization
# ---------------------------------------------------------------------------

def serialize_vault(document: Mapping[str, Any]) -> bytes:
    """Serialize a nested vault mapping to UTF-8 JSON bytes."""
    return orjson.dumps(document, option=orjson.OPT_INDENT_2)


def deserialize_vault(data: bytes) -> dict:
    """Parse decrypted bytes into a plain nested dict.

    Raises:
        CorruptVaultData: If data is not a JSON object.
    """
    try:
        parsed = orjson.loads(data)
    except orjson.JSONDecodeError as err:
        raise CorruptVaultData(f"Vault payload is not valid JSON: {err}") from err
    if not isinstance(parsed, dict):
        raise CorruptVaultData(
            f"Vault payload must be an object, got {type(parsed).__name__}"
        )
    return parsed
