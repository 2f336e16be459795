"""cross-keychain: store and retrieve passwords through the best available backend."""

from cross_keychain.backends import (
    BackendFactory,
    BackendInfo,
    BackendLimit,
    ConfigurableBackend,
    Credential,
    EncryptedFileBackend,
    KeyringBackend,
    NullBackend,
    SecretStorageBackend,
)
from cross_keychain.exceptions import (
    EncryptionError,
    InitError,
    KeyringError,
    KeyringLockedError,
    NoKeyringError,
    PasswordDeleteError,
    PasswordSetError,
)
from cross_keychain.keychain import (
    config_root,
    data_root,
    delete_password,
    diagnose,
    disable,
    get_credential,
    get_password,
    list_backends,
    set_password,
    use_backend,
)
from cross_keychain.registry import (
    BackendRegistry,
    get_all_backends,
    get_keyring,
    init_backend,
    load_backend_by_id,
    register_backend,
    set_keyring,
)

__version__ = "0.1.0"

__all__ = [
    "BackendFactory",
    "BackendInfo",
    "BackendLimit",
    "BackendRegistry",
    "ConfigurableBackend",
    "Credential",
    "EncryptedFileBackend",
    "EncryptionError",
    "InitError",
    "KeyringBackend",
    "KeyringError",
    "KeyringLockedError",
    "NoKeyringError",
    "NullBackend",
    "PasswordDeleteError",
    "PasswordSetError",
    "SecretStorageBackend",
    "config_root",
    "data_root",
    "delete_password",
    "diagnose",
    "disable",
    "get_all_backends",
    "get_credential",
    "get_keyring",
    "get_password",
    "init_backend",
    "list_backends",
    "load_backend_by_id",
    "register_backend",
    "set_keyring",
    "set_password",
    "use_backend",
]
