"""Backend that stores nothing, used to explicitly disable secret storage."""

from cross_keychain.backends.base import ConfigurableBackend
from cross_keychain.exceptions import PasswordDeleteError
from cross_keychain.validation import validate_identifier, validate_password


class NullBackend(ConfigurableBackend):
    """No-op backend.

    Reads find nothing, writes succeed without storing anything and deletes
    always fail. Its negative priority means auto-detection only picks it
    when nothing else qualifies.
    """

    id = "null"
    name = "Null keyring"
    priority = -1.0

    def get_password(self, service: str, account: str) -> str | None:
        validate_identifier(service, "service")
        validate_identifier(account, "account")
        return None

    def set_password(self, service: str, account: str, password: str) -> None:
        validate_identifier(service, "service")
        validate_identifier(account, "account")
        validate_password(password)

    def delete_password(self, service: str, account: str) -> None:
        validate_identifier(service, "service")
        validate_identifier(account, "account")
        raise PasswordDeleteError("Null backend does not store passwords")
