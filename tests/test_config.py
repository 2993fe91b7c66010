"""Tests for vault configuration and key loading."""
import base64
import os
from pathlib import Path

import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305
from pydantic import ValidationError

from navigator_secrets.exceptions import InvalidKeyLength
from navigator_secrets.vault.config import DEFAULT_STORAGE_PATH, VaultConfig, load_key


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("VAULT_STORAGE_PATH", "VAULT_CIPHER_BACKEND", "VAULT_KEY"):
        monkeypatch.delenv(name, raising=False)


class TestVaultConfig:
    def test_defaults(self):
        config = VaultConfig()
        assert config.storage_path == Path(DEFAULT_STORAGE_PATH)
        assert config.cipher_backend == "aesgcm"
        assert config.file_mode == 0o600
        assert config.cipher_cls is AESGCM

    def test_chacha_backend(self):
        config = VaultConfig(cipher_backend="ChaCha20")
        assert config.cipher_backend == "chacha20"
        assert config.cipher_cls is ChaCha20Poly1305

    def test_unsupported_backend(self):
        with pytest.raises(ValidationError, match="Unsupported cipher backend"):
            VaultConfig(cipher_backend="des")

    @pytest.mark.parametrize("mode", [-1, 0o1000])
    def test_file_mode_bounds(self, mode):
        with pytest.raises(ValidationError):
            VaultConfig(file_mode=mode)

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("VAULT_STORAGE_PATH", str(tmp_path / "vault.data"))
        monkeypatch.setenv("VAULT_CIPHER_BACKEND", "chacha20")
        config = VaultConfig.from_env()
        assert config.storage_path == tmp_path / "vault.data"
        assert config.cipher_backend == "chacha20"

    def test_from_env_defaults(self):
        config = VaultConfig.from_env()
        assert config.storage_path == Path(DEFAULT_STORAGE_PATH)
        assert config.cipher_backend == "aesgcm"


class TestLoadKey:
    def test_load_key(self, monkeypatch):
        raw = os.urandom(32)
        monkeypatch.setenv("VAULT_KEY", base64.b64encode(raw).decode("ascii"))
        assert load_key() == raw

    def test_custom_env_var(self, monkeypatch):
        raw = os.urandom(32)
        monkeypatch.setenv("MY_VAULT_KEY", base64.b64encode(raw).decode("ascii"))
        assert load_key("MY_VAULT_KEY") == raw

    def test_missing_key(self):
        with pytest.raises(RuntimeError, match="VAULT_KEY"):
            load_key()

    def test_not_base64(self, monkeypatch):
        monkeypatch.setenv("VAULT_KEY", "not base64!!")
        with pytest.raises(ValueError, match="base64"):
            load_key()

    def test_wrong_length(self, monkeypatch):
        monkeypatch.setenv("VAULT_KEY", base64.b64encode(b"k" * 16).decode("ascii"))
        with pytest.raises(InvalidKeyLength):
            load_key()
