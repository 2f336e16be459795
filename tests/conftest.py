"""Pytest configuration and shared fixtures."""

import os
from pathlib import Path

import keyring
import pytest
from keyring.backends import null as keyring_null

from cross_keychain.backends import EncryptedFileBackend
from cross_keychain.keychain import _reset_keyring_state_for_tests

TEST_MASTER_KEY = "00112233445566778899aabbccddeeff00112233445566778899aabbccddeeff"


@pytest.fixture(autouse=True)
def isolated_keychain(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Point every root at a temp dir and start with a clean registry.

    The ``keyring`` package is pinned to its null keyring so the native
    backend is never detected on the test host.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("CROSS_KEYCHAIN_BACKEND", raising=False)
    monkeypatch.delenv("KEYRING_FILE_MASTER_KEY", raising=False)
    for name in list(os.environ):
        if name.startswith("KEYRING_PROPERTY_"):
            monkeypatch.delenv(name)

    keyring.set_keyring(keyring_null.Keyring())
    _reset_keyring_state_for_tests()
    yield
    _reset_keyring_state_for_tests()


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    """Encrypted store location inside the data root."""
    return tmp_path / "data" / "cross-keychain" / "secrets.json"


@pytest.fixture
def key_path(tmp_path: Path) -> Path:
    return tmp_path / "config" / "cross-keychain" / "file.key"


@pytest.fixture
def file_backend() -> EncryptedFileBackend:
    """EncryptedFileBackend using the default paths under the temp roots."""
    return EncryptedFileBackend()


@pytest.fixture
def master_key() -> str:
    """A valid KEYRING_FILE_MASTER_KEY value."""
    return TEST_MASTER_KEY
