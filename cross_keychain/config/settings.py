"""
Configuration for cross-keychain using Pydantic for type-safe settings.

This module resolves the configuration and data roots, reads the
environment variables the keychain honours, and loads or writes the
persisted backend preference file.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from cross_keychain.exceptions import KeyringError

APP_DIR_NAME = "cross-keychain"
WINDOWS_APP_DIR_NAME = "CrossKeychain"
CONFIG_FILE_NAME = "keychain.config.json"

ENV_BACKEND = "CROSS_KEYCHAIN_BACKEND"
ENV_FILE_MASTER_KEY = "KEYRING_FILE_MASTER_KEY"


class KeychainSettings(BaseSettings):
    """Environment variables read by the keychain.

    Empty values are treated as unset.
    """

    model_config = SettingsConfigDict(env_ignore_empty=True, extra="ignore")

    backend: str | None = Field(
        default=None,
        validation_alias=AliasChoices(ENV_BACKEND),
        description="Backend id that overrides auto-detection",
    )
    file_master_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices(ENV_FILE_MASTER_KEY),
        description="64 hex characters of key material for the encrypted file backend",
    )


class KeyringConfig(BaseModel):
    """Persisted backend preference.

    Stored as JSON using camelCase keys:
    ``{"defaultBackend": "file", "backendProperties": {"file": {...}}}``
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    default_backend: str | None = Field(default=None, alias="defaultBackend")
    backend_properties: dict[str, dict[str, Any]] = Field(
        default_factory=dict, alias="backendProperties"
    )


def get_config_root() -> Path:
    """Directory holding the config file and the default key file."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / APP_DIR_NAME

    if sys.platform == "win32":
        root = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA") or str(Path.home())
        return Path(root) / WINDOWS_APP_DIR_NAME

    return Path.home() / ".config" / APP_DIR_NAME


def get_data_root() -> Path:
    """Directory holding the default encrypted store."""
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg) / APP_DIR_NAME

    if sys.platform == "win32":
        root = os.environ.get("LOCALAPPDATA") or os.environ.get("ProgramData") or str(Path.home())
        return Path(root) / WINDOWS_APP_DIR_NAME

    return Path.home() / ".local" / "share" / APP_DIR_NAME


def get_config_file() -> Path:
    return get_config_root() / CONFIG_FILE_NAME


def ensure_dir(directory: Path) -> None:
    """Create ``directory`` (and parents) with owner-only permissions."""
    directory.mkdir(mode=0o700, parents=True, exist_ok=True)


def read_config(path: Path | None = None) -> KeyringConfig:
    """Load the persisted backend preference.

    Args:
        path: Config file location (defaults to ``get_config_file()``)

    Returns:
        Parsed configuration

    Raises:
        FileNotFoundError: If the file does not exist
        KeyringError: If the file is not valid configuration JSON
    """
    config_path = path or get_config_file()
    raw = config_path.read_text(encoding="utf-8")

    try:
        return KeyringConfig.model_validate_json(raw)
    except ValidationError as e:
        raise KeyringError(
            f"Invalid keychain configuration file: {config_path}",
            suggestion="Fix or delete the file to fall back to auto-detection",
        ) from e


def write_config(config: KeyringConfig, path: Path | None = None) -> Path:
    """Write configuration with owner-only permissions.

    Returns:
        Path the configuration was written to
    """
    config_path = path or get_config_file()
    ensure_dir(config_path.parent)

    data = config.model_dump_json(by_alias=True, exclude_defaults=True, indent=2)
    fd = os.open(config_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(data)

    return config_path
