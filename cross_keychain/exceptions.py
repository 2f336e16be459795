"""Exception hierarchy for cross-keychain.

Exception Hierarchy:
    KeyringError (base)
    ├── PasswordSetError
    ├── PasswordDeleteError
    ├── InitError
    ├── KeyringLockedError
    ├── NoKeyringError
    └── EncryptionError

Validation failures are reported as plain ``KeyringError`` instances.
Messages never carry passwords, key material or raw OS command output.

Example Usage:
    >>> from cross_keychain.exceptions import PasswordDeleteError
    >>> try:
    ...     backend.delete_password("github", "alice")
    ... except PasswordDeleteError:
    ...     pass
"""


class KeyringError(Exception):
    """Base exception for all keychain errors.

    Attributes:
        message: Human-readable error description
        suggestion: Optional suggestion for resolution
    """

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        """Initialize exception.

        Args:
            message: Error message
            suggestion: Optional suggestion for resolution
        """
        self.suggestion = suggestion

        full_message = message
        if suggestion:
            full_message = f"{message}\nSuggestion: {suggestion}"

        super().__init__(full_message)
        self.message = message


class PasswordSetError(KeyringError):
    """A password could not be stored."""

    pass


class PasswordDeleteError(KeyringError):
    """A password could not be deleted, including when it does not exist."""

    pass


class InitError(KeyringError):
    """A backend could not be constructed or initialized.

    Raised from a backend constructor, this signals that the backend is
    unusable on the current host and the registry leaves it out.
    """

    pass


class KeyringLockedError(KeyringError):
    """The underlying storage is locked and waiting to be unlocked."""

    pass


class NoKeyringError(KeyringError):
    """No backend could be resolved."""

    pass


class EncryptionError(KeyringError):
    """Encrypted store could not be decrypted, authenticated or decoded."""

    pass


__all__ = [
    "KeyringError",
    "PasswordSetError",
    "PasswordDeleteError",
    "InitError",
    "KeyringLockedError",
    "NoKeyringError",
    "EncryptionError",
]
