"""High-level keychain operations on the active backend.

Example:
    >>> from cross_keychain import get_password, set_password
    >>> set_password("github", "alice", "s3cr3t")
    >>> get_password("github", "alice")
    's3cr3t'
"""

from pathlib import Path
from typing import Any

import structlog

from cross_keychain.backends import BackendInfo, Credential
from cross_keychain.config import (
    KeyringConfig,
    get_config_file,
    get_config_root,
    get_data_root,
    write_config,
)
from cross_keychain.exceptions import KeyringError, NoKeyringError
from cross_keychain.registry import (
    _reset_registry_for_tests,
    get_all_backends,
    get_keyring,
    load_backend_by_id,
    set_keyring,
)

log = structlog.get_logger(__name__)


def data_root() -> Path:
    """Directory where the encrypted store lives by default."""
    return get_data_root()


def config_root() -> Path:
    """Directory where the config file and default key file live."""
    return get_config_root()


def get_password(service: str, account: str) -> str | None:
    """Retrieve a password, or None if it is not stored."""
    return get_keyring().get_password(service, account)


def set_password(service: str, account: str, password: str) -> None:
    """Store a password, replacing any existing one."""
    get_keyring().set_password(service, account, password)


def delete_password(service: str, account: str) -> None:
    """Delete a password.

    Raises:
        PasswordDeleteError: If the password does not exist
    """
    get_keyring().delete_password(service, account)


def get_credential(service: str, account: str | None = None) -> Credential | None:
    """Retrieve a credential; without an account the first known one is used."""
    return get_keyring().get_credential(service, account)


def diagnose() -> dict[str, Any]:
    """Report config locations and the active backend's diagnostics."""
    report: dict[str, Any] = {
        "config_path": str(get_config_file()),
        "data_root": str(get_data_root()),
    }
    report.update(get_keyring().diagnose())
    return report


def list_backends() -> list[BackendInfo]:
    """List every backend supported on this host."""
    return [
        BackendInfo(id=backend.id, name=backend.name, priority=backend.priority)
        for backend in get_all_backends()
    ]


def use_backend(backend_id: str, overrides: dict[str, Any] | None = None) -> None:
    """Pin the active backend by id.

    Args:
        backend_id: Backend id (e.g., "native", "file", "null")
        overrides: Optional backend properties, e.g. ``{"file_path": ...}``

    Raises:
        NoKeyringError: If the backend is not available
    """
    backend = load_backend_by_id(backend_id, overrides=overrides)
    if backend is None:
        raise NoKeyringError(f"Backend {backend_id} is not available")
    set_keyring(backend)


def disable() -> Path:
    """Persistently configure the null backend.

    Returns:
        Path of the written config file

    Raises:
        KeyringError: If a config file already exists
    """
    config_file = get_config_file()
    if config_file.exists():
        raise KeyringError(
            f"Refusing to overwrite existing configuration at {config_file}",
            suggestion="Edit the file and set defaultBackend to \"null\"",
        )

    path = write_config(KeyringConfig(default_backend="null"), config_file)
    log.info("keychain_disabled", config_path=str(path))
    return path


def _reset_keyring_state_for_tests() -> None:
    _reset_registry_for_tests()
