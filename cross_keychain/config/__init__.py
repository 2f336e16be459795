"""Configuration: environment settings, storage roots and the config file."""

from cross_keychain.config.settings import (
    ENV_BACKEND,
    ENV_FILE_MASTER_KEY,
    KeychainSettings,
    KeyringConfig,
    ensure_dir,
    get_config_file,
    get_config_root,
    get_data_root,
    read_config,
    write_config,
)

__all__ = [
    "ENV_BACKEND",
    "ENV_FILE_MASTER_KEY",
    "KeychainSettings",
    "KeyringConfig",
    "ensure_dir",
    "get_config_file",
    "get_config_root",
    "get_data_root",
    "read_config",
    "write_config",
]
