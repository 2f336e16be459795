"""Identifier and password sanitation shared by every backend.

Identifiers are passed to external tools by several backends, so they are
restricted to a conservative character set. Passwords are never
interpolated into a command line and only have length limits.
"""

import re
import unicodedata

from cross_keychain.exceptions import KeyringError

MAX_IDENTIFIER_LENGTH = 255
MAX_PASSWORD_LENGTH = 4096

IDENTIFIER_PATTERN = re.compile(r"[A-Za-z0-9._@-]+")


def normalize(value: str) -> str:
    """Return the NFC form of ``value``."""
    return unicodedata.normalize("NFC", value)


def _code_units(value: str) -> int:
    # Length in UTF-16 code units, so astral characters count twice.
    return len(value.encode("utf-16-le")) // 2


def validate_identifier(value: str, name: str) -> str:
    """Validate a service or account identifier.

    Args:
        value: Identifier to check
        name: Label used in error messages (e.g., "service")

    Returns:
        The NFC form of the identifier, which backends store and query

    Raises:
        KeyringError: If the identifier is empty, too long or contains
            characters outside ``[A-Za-z0-9._@-]``
    """
    if not isinstance(value, str):
        raise KeyringError(f"{name} must be a string")

    normalized = normalize(value)

    if not normalized:
        raise KeyringError(f"{name} cannot be empty")

    if _code_units(normalized) > MAX_IDENTIFIER_LENGTH:
        raise KeyringError(
            f"{name} exceeds maximum length of {MAX_IDENTIFIER_LENGTH} characters"
        )

    if IDENTIFIER_PATTERN.fullmatch(normalized) is None:
        raise KeyringError(
            f"{name} contains invalid characters. Only alphanumeric characters, "
            "dots, underscores, @ symbols, and hyphens are allowed"
        )

    return normalized


def validate_password(password: str) -> None:
    """Validate a password before it is stored.

    Raises:
        KeyringError: If the password is empty or longer than 4096 code units
    """
    if not isinstance(password, str):
        raise KeyringError("Password must be a string")

    normalized = normalize(password)

    if not normalized:
        raise KeyringError("Password cannot be empty")

    if _code_units(normalized) > MAX_PASSWORD_LENGTH:
        raise KeyringError(
            f"Password exceeds maximum length of {MAX_PASSWORD_LENGTH} characters"
        )
