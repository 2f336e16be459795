"""Backend protocol and shared value types for secret storage."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class Credential:
    """A username together with its password."""

    username: str
    password: str


@dataclass(frozen=True)
class BackendInfo:
    """Identifying details of a detected backend."""

    id: str
    name: str
    priority: float


class SecretStorageBackend(Protocol):
    """Protocol defining the interface for secret storage backends.

    All backends must implement these methods to be selectable by the
    backend registry.
    """

    @property
    def id(self) -> str:
        """Backend identifier (e.g., 'file', 'native', 'null')."""
        ...

    @property
    def name(self) -> str:
        """Human-readable backend description."""
        ...

    @property
    def priority(self) -> float:
        """Priority for automatic selection; higher values are preferred."""
        ...

    def get_password(self, service: str, account: str) -> str | None:
        """Retrieve a password.

        Args:
            service: Service identifier (e.g., 'github')
            account: Account within the service (e.g., 'alice')

        Returns:
            Password or None if not found
        """
        ...

    def set_password(self, service: str, account: str, password: str) -> None:
        """Store a password, replacing any existing one.

        Raises:
            PasswordSetError: If the password could not be stored
        """
        ...

    def delete_password(self, service: str, account: str) -> None:
        """Delete a password.

        Raises:
            PasswordDeleteError: If the password does not exist or could
                not be deleted
        """
        ...

    def get_credential(self, service: str, account: str | None = None) -> Credential | None:
        """Retrieve a credential, searching for a username when none is given."""
        ...

    def with_properties(self, properties: dict[str, Any]) -> "SecretStorageBackend":
        """Return a new backend instance with merged properties."""
        ...

    def diagnose(self) -> dict[str, Any]:
        """Return diagnostic details; never includes secret material."""
        ...


class BackendFactory(Protocol):
    """A backend class the registry can probe and instantiate.

    Factories may also define a ``is_supported()`` classmethod returning
    whether the backend is usable on the current host. The registry calls
    it, when present, before construction.
    """

    def __call__(self, properties: dict[str, Any] | None = None) -> SecretStorageBackend: ...


BackendLimit = Callable[[SecretStorageBackend], bool]
