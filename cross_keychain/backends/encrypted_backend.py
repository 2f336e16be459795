"""Encrypted file backend using AES-256-GCM authenticated encryption.

Security Model:
- 32-byte key from KEYRING_FILE_MASTER_KEY (hex) or a generated key file
- Whole store encrypted as one blob with a fresh nonce per write
- File stored at <data root>/secrets.json unless ``file_path`` is set
- Fallback for hosts without a native OS credential store

Envelope layout::

    [version: 1 byte][nonce: 12 bytes][tag: 16 bytes][ciphertext]
"""

import binascii
import contextlib
import json
import os
import tempfile
from pathlib import Path

import structlog
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from pydantic import TypeAdapter, ValidationError

from cross_keychain.backends.base import ConfigurableBackend
from cross_keychain.config import (
    ENV_FILE_MASTER_KEY,
    KeychainSettings,
    ensure_dir,
    get_config_root,
    get_data_root,
)
from cross_keychain.exceptions import (
    EncryptionError,
    KeyringError,
    PasswordDeleteError,
    PasswordSetError,
)
from cross_keychain.validation import validate_identifier, validate_password

log = structlog.get_logger(__name__)

FORMAT_VERSION = 1
KEY_SIZE = 32  # 256 bits for AES-256
NONCE_SIZE = 12  # 96 bits, standard for AES-GCM
TAG_SIZE = 16
HEADER_SIZE = 1 + NONCE_SIZE + TAG_SIZE

PROTECTED_PREFIXES = (
    "/etc",
    "/sys",
    "/proc",
    "/dev",
    "/root",
    "C:\\Windows",
    "C:\\System",
)

Store = dict[str, dict[str, str]]

_STORE_ADAPTER: TypeAdapter[Store] = TypeAdapter(Store)


def _reject_nul(path: str, label: str) -> str:
    if "\0" in path:
        raise KeyringError(f"{label} cannot contain NUL bytes")
    return path


class EncryptedFileBackend(ConfigurableBackend):
    """Encrypted file-based secret storage.

    Every operation reads the whole store, changes it in memory and writes
    it back through a temporary file and an atomic rename. Concurrent
    writers in one process are last-writer-wins.

    Properties:
        file_path: Custom location of the encrypted store
        key_file_path: Custom location of the key file

    Example:
        >>> backend = EncryptedFileBackend({"file_path": "/tmp/secrets.json"})
        >>> backend.set_password("github", "alice", "s3cr3t")
        >>> backend.get_password("github", "alice")
        's3cr3t'
    """

    id = "file"
    name = "Encrypted file storage (AES-256-GCM)"
    priority = 0.5

    @property
    def file_path(self) -> Path:
        """Resolve the encrypted store location.

        Operations resolve this once and pass the result along, so the
        outside-data-root warning is logged once per operation.

        Raises:
            KeyringError: If a custom path contains a NUL byte or points into
                a protected system directory
        """
        custom = self.properties.get("file_path")
        if not isinstance(custom, str) or not custom:
            return get_data_root() / "secrets.json"

        normalized = os.path.normpath(_reject_nul(custom, "File path"))
        lowered = normalized.lower()
        for protected in PROTECTED_PREFIXES:
            if lowered.startswith(protected.lower()):
                raise KeyringError(
                    f"File path cannot be in protected system directory: {protected}"
                )

        path = Path(normalized)
        if path.is_absolute() and not path.is_relative_to(get_data_root()):
            log.warning("file_path_outside_data_root", path=normalized)

        return path

    @property
    def key_file_path(self) -> Path:
        custom = self.properties.get("key_file_path")
        if isinstance(custom, str) and custom:
            return Path(os.path.normpath(_reject_nul(custom, "Key file path")))
        return get_config_root() / "file.key"

    def _get_key_material(self, create: bool = False) -> bytes:
        """Load the 32-byte encryption key.

        Args:
            create: Generate a key file when none exists. Only the write
                path sets this; reads never leave a new key behind.

        Raises:
            KeyringError: If the environment key or key file is malformed
            EncryptionError: If no key file exists and ``create`` is False
        """
        env_key = KeychainSettings().file_master_key
        if env_key:
            if len(env_key) != KEY_SIZE * 2:
                raise KeyringError(
                    f"{ENV_FILE_MASTER_KEY} must be 64 hex characters (32 bytes)"
                )
            try:
                return binascii.unhexlify(env_key)
            except (binascii.Error, ValueError) as e:
                raise KeyringError(f"{ENV_FILE_MASTER_KEY} is not valid hex") from e

        key_file = self.key_file_path
        try:
            key = key_file.read_bytes()
        except FileNotFoundError:
            if not create:
                raise EncryptionError(
                    "Encryption key file not found",
                    suggestion=f"Restore {key_file} or set {ENV_FILE_MASTER_KEY}",
                ) from None
            return self._generate_key_file(key_file)

        if len(key) != KEY_SIZE:
            raise KeyringError(
                "Key file must contain exactly 32 bytes",
                suggestion="Restore the original key file; a new key cannot read existing secrets",
            )
        return key

    @staticmethod
    def _generate_key_file(key_file: Path) -> bytes:
        key = AESGCM.generate_key(bit_length=256)
        ensure_dir(key_file.parent)

        fd = os.open(key_file, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, "wb") as f:
            f.write(key)

        log.info("key_file_generated", path=str(key_file))
        return key

    def _encrypt_store(self, store: Store) -> bytes:
        plaintext = json.dumps(store).encode("utf-8")
        nonce = os.urandom(NONCE_SIZE)

        # AESGCM appends the tag to the ciphertext.
        sealed = AESGCM(self._get_key_material(create=True)).encrypt(nonce, plaintext, None)
        ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]

        return bytes([FORMAT_VERSION]) + nonce + tag + ciphertext

    def _decrypt_store(self, data: bytes) -> Store:
        """Decrypt and decode an envelope.

        Raises:
            EncryptionError: If the envelope is truncated, has an unknown
                version, fails authentication, holds malformed JSON or no
                key is available
        """
        if not data:
            raise EncryptionError("Encrypted store is empty")

        version = data[0]
        if version != FORMAT_VERSION:
            raise EncryptionError(f"Unsupported store format version: {version}")

        if len(data) < HEADER_SIZE:
            raise EncryptionError("Encrypted store is truncated")

        nonce = data[1 : 1 + NONCE_SIZE]
        tag = data[1 + NONCE_SIZE : HEADER_SIZE]
        ciphertext = data[HEADER_SIZE:]

        try:
            plaintext = AESGCM(self._get_key_material()).decrypt(nonce, ciphertext + tag, None)
        except InvalidTag as e:
            raise EncryptionError(
                "Encrypted store failed authentication",
                suggestion="The file was modified or the encryption key changed",
            ) from e

        try:
            return _STORE_ADAPTER.validate_json(plaintext)
        except ValidationError as e:
            raise EncryptionError("Encrypted store is corrupted") from e

    def read_store(self, file_path: Path | None = None) -> Store:
        """Load and decrypt the store; a missing file is an empty store."""
        file_path = file_path or self.file_path
        try:
            data = file_path.read_bytes()
        except FileNotFoundError:
            return {}

        return self._decrypt_store(data)

    def write_store(self, store: Store, file_path: Path | None = None) -> None:
        """Encrypt and atomically replace the store file."""
        file_path = file_path or self.file_path
        encrypted = self._encrypt_store(store)

        ensure_dir(file_path.parent)

        # mkstemp creates the file with mode 0600
        fd, tmp_name = tempfile.mkstemp(dir=file_path.parent, prefix=".tmp-")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(encrypted)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, file_path)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)
            raise

        log.debug("encrypted_store_written", path=str(file_path))

    def get_password(self, service: str, account: str) -> str | None:
        service = validate_identifier(service, "service")
        account = validate_identifier(account, "account")

        store = self.read_store()
        return store.get(service, {}).get(account)

    def set_password(self, service: str, account: str, password: str) -> None:
        service = validate_identifier(service, "service")
        account = validate_identifier(account, "account")
        validate_password(password)

        file_path = self.file_path
        store = self.read_store(file_path)
        store.setdefault(service, {})[account] = password

        try:
            self.write_store(store, file_path)
        except OSError as e:
            raise PasswordSetError("Failed to write encrypted store") from e

        log.info("password_stored", backend=self.id, service=service, account=account)

    def delete_password(self, service: str, account: str) -> None:
        service = validate_identifier(service, "service")
        account = validate_identifier(account, "account")

        file_path = self.file_path
        store = self.read_store(file_path)
        entries = store.get(service)
        if entries is None or account not in entries:
            raise PasswordDeleteError("Password not found")

        del entries[account]
        if not entries:
            del store[service]

        try:
            self.write_store(store, file_path)
        except OSError as e:
            raise PasswordDeleteError("Failed to write encrypted store") from e

        log.info("password_deleted", backend=self.id, service=service, account=account)

    def lookup_usernames(self, service: str) -> list[str]:
        service = validate_identifier(service, "service")
        return list(self.read_store().get(service, {}))
