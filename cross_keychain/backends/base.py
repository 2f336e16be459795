"""Base class for configurable secret storage backends."""

import os
from abc import ABC, abstractmethod
from typing import Any, ClassVar

from cross_keychain.backends.backend import Credential, SecretStorageBackend
from cross_keychain.validation import validate_identifier

ENV_PROPERTY_PREFIX = "KEYRING_PROPERTY_"


class ConfigurableBackend(ABC):
    """Common behaviour for backends: properties, credentials and diagnostics.

    Properties are read from three sources in increasing precedence: the
    ``properties`` argument, then ``KEYRING_PROPERTY_<NAME>`` environment
    variables (``<NAME>`` lower-cased). Environment overrides are applied in
    the constructor, so they also win over ``with_properties`` merges.

    Subclasses define ``id``, ``name`` and ``priority`` and implement the
    three password operations. Backends that can enumerate accounts override
    ``lookup_usernames`` to support account-less ``get_credential`` calls.
    """

    id: ClassVar[str]
    name: ClassVar[str]
    priority: ClassVar[float]

    def __init__(self, properties: dict[str, Any] | None = None) -> None:
        self.properties: dict[str, Any] = dict(properties or {})
        self._apply_env_overrides()

    @abstractmethod
    def get_password(self, service: str, account: str) -> str | None: ...

    @abstractmethod
    def set_password(self, service: str, account: str, password: str) -> None: ...

    @abstractmethod
    def delete_password(self, service: str, account: str) -> None: ...

    def get_credential(self, service: str, account: str | None = None) -> Credential | None:
        """Retrieve a credential for a service.

        When ``account`` is omitted the first username reported by
        ``lookup_usernames`` is used. A password that disappears between the
        two lookups is treated as a miss.

        Args:
            service: Service identifier
            account: Optional account identifier

        Returns:
            Credential or None if nothing is stored
        """
        service = validate_identifier(service, "service")

        if account:
            account = validate_identifier(account, "account")
            password = self.get_password(service, account)
            return None if password is None else Credential(username=account, password=password)

        usernames = self.lookup_usernames(service)
        if not usernames:
            return None

        username = usernames[0]
        password = self.get_password(service, username)
        return None if password is None else Credential(username=username, password=password)

    def with_properties(self, properties: dict[str, Any]) -> SecretStorageBackend:
        """Create a new instance of this backend with merged properties.

        The receiver is left untouched and stays usable.
        """
        return type(self)({**self.properties, **properties})

    def diagnose(self) -> dict[str, Any]:
        """Return backend id, name and priority."""
        return {
            "id": self.id,
            "name": self.name,
            "priority": self.priority,
        }

    def lookup_usernames(self, service: str) -> list[str]:
        """List known usernames for a service (none by default)."""
        return []

    def _apply_env_overrides(self) -> None:
        for key, value in os.environ.items():
            if key.startswith(ENV_PROPERTY_PREFIX):
                self.properties[key[len(ENV_PROPERTY_PREFIX) :].lower()] = value

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, priority={self.priority!r})"
