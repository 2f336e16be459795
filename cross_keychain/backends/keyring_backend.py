"""OS-level keyring backend using system credential stores.

Platform Support:
- Linux: Secret Service API (GNOME Keyring, KWallet)
- macOS: Keychain
- Windows: Windows Credential Locker
"""

from typing import Any, cast

import keyring
import structlog
from keyring.backends import fail
from keyring.backends import null as keyring_null
from keyring.errors import InitError as KeyringInitError
from keyring.errors import KeyringError as BaseKeyringError
from keyring.errors import KeyringLocked
from keyring.errors import PasswordDeleteError as KeyringPasswordDeleteError
from keyring.errors import PasswordSetError as KeyringPasswordSetError

from cross_keychain.backends.base import ConfigurableBackend
from cross_keychain.exceptions import (
    InitError,
    KeyringError,
    KeyringLockedError,
    PasswordDeleteError,
    PasswordSetError,
)
from cross_keychain.validation import validate_identifier, validate_password

log = structlog.get_logger(__name__)

_UNUSABLE_KEYRINGS = (fail.Keyring, keyring_null.Keyring)


class KeyringBackend(ConfigurableBackend):
    """Native OS credential storage through the ``keyring`` package.

    This is the preferred backend on developer machines as it:
    - Integrates with OS security features
    - Supports biometric unlock (Touch ID, Windows Hello)
    - Provides encryption managed by the OS

    Error messages never include the underlying OS error text.

    Example:
        >>> backend = KeyringBackend()
        >>> backend.set_password("github", "alice", "s3cr3t")
        >>> backend.get_password("github", "alice")
        's3cr3t'
    """

    id = "native"
    name = "Native OS keyring"
    priority = 10.0

    @classmethod
    def is_supported(cls) -> bool:
        """Check if ``keyring`` resolved to a working OS backend.

        Returns False on headless systems where ``keyring`` falls back to
        its fail or null keyrings, or if the backend fails to initialize.
        """
        try:
            return not isinstance(keyring.get_keyring(), _UNUSABLE_KEYRINGS)
        except Exception as e:
            log.debug("native_keyring_unavailable", error=type(e).__name__)
            return False

    def get_password(self, service: str, account: str) -> str | None:
        service = validate_identifier(service, "service")
        account = validate_identifier(account, "account")

        try:
            return cast(str | None, keyring.get_password(service, account))
        except KeyringLocked as e:
            raise KeyringLockedError("Keyring is locked", suggestion="Unlock your OS keyring") from e
        except KeyringInitError as e:
            raise InitError("Keyring backend failed to initialize") from e
        except BaseKeyringError as e:
            raise KeyringError("Keyring operation failed") from e

    def set_password(self, service: str, account: str, password: str) -> None:
        service = validate_identifier(service, "service")
        account = validate_identifier(account, "account")
        validate_password(password)

        try:
            keyring.set_password(service, account, password)
        except KeyringLocked as e:
            raise KeyringLockedError("Keyring is locked", suggestion="Unlock your OS keyring") from e
        except KeyringInitError as e:
            raise InitError("Keyring backend failed to initialize") from e
        except KeyringPasswordSetError as e:
            raise PasswordSetError("Failed to store password in keyring") from e
        except BaseKeyringError as e:
            raise PasswordSetError("Keyring operation failed") from e

        log.info("password_stored", backend=self.id, service=service, account=account)

    def delete_password(self, service: str, account: str) -> None:
        service = validate_identifier(service, "service")
        account = validate_identifier(account, "account")

        try:
            keyring.delete_password(service, account)
        except KeyringLocked as e:
            raise KeyringLockedError("Keyring is locked", suggestion="Unlock your OS keyring") from e
        except KeyringInitError as e:
            raise InitError("Keyring backend failed to initialize") from e
        except KeyringPasswordDeleteError as e:
            raise PasswordDeleteError("Password not found") from e
        except BaseKeyringError as e:
            raise PasswordDeleteError("Keyring operation failed") from e

        log.info("password_deleted", backend=self.id, service=service, account=account)

    def lookup_usernames(self, service: str) -> list[str]:
        service = validate_identifier(service, "service")

        try:
            credential = keyring.get_credential(service, None)
        except KeyringLocked as e:
            raise KeyringLockedError("Keyring is locked", suggestion="Unlock your OS keyring") from e
        except KeyringInitError as e:
            raise InitError("Keyring backend failed to initialize") from e
        except BaseKeyringError as e:
            raise KeyringError("Keyring operation failed") from e

        return [credential.username] if credential is not None and credential.username else []

    def diagnose(self) -> dict[str, Any]:
        report = super().diagnose()
        try:
            report["keyring_backend"] = type(keyring.get_keyring()).__name__
        except Exception as e:
            log.debug("native_keyring_diagnose_failed", error=type(e).__name__)
        return report
