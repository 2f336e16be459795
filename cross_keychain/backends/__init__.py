"""Secret storage backends.

Backends, in default detection order:
- native: OS keyring through the ``keyring`` package (priority 10)
- file: AES-256-GCM encrypted local file (priority 0.5)
- null: stores nothing, disables storage (priority -1)
"""

from cross_keychain.backends.backend import (
    BackendFactory,
    BackendInfo,
    BackendLimit,
    Credential,
    SecretStorageBackend,
)
from cross_keychain.backends.base import ConfigurableBackend
from cross_keychain.backends.encrypted_backend import EncryptedFileBackend
from cross_keychain.backends.keyring_backend import KeyringBackend
from cross_keychain.backends.null_backend import NullBackend

__all__ = [
    "BackendFactory",
    "BackendInfo",
    "BackendLimit",
    "ConfigurableBackend",
    "Credential",
    "EncryptedFileBackend",
    "KeyringBackend",
    "NullBackend",
    "SecretStorageBackend",
]
