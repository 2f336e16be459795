"""Backend discovery and selection.

The registry holds an ordered list of backend factories, instantiates the
ones supported on the current host and picks the active backend:

1. ``CROSS_KEYCHAIN_BACKEND`` names a backend id (fails loudly if unavailable)
2. the config file names a default backend, with optional properties
3. the supported backend with the highest priority, else the null backend

Registry state is process-wide and not synchronized. Multi-threaded hosts
must not call ``init_backend`` or ``register_backend`` concurrently.
"""

from collections.abc import Iterable
from typing import Any

import structlog

from cross_keychain.backends import (
    BackendFactory,
    BackendLimit,
    EncryptedFileBackend,
    KeyringBackend,
    NullBackend,
    SecretStorageBackend,
)
from cross_keychain.config import ENV_BACKEND, KeychainSettings, read_config
from cross_keychain.exceptions import InitError, NoKeyringError

log = structlog.get_logger(__name__)

DEFAULT_FACTORIES: tuple[BackendFactory, ...] = (
    KeyringBackend,
    EncryptedFileBackend,
    NullBackend,
)


class BackendRegistry:
    """Owns the factory list, the detected backends and the active backend.

    Example:
        >>> registry = BackendRegistry()
        >>> registry.init_backend(limit=lambda b: b.id != "native")
        >>> registry.get_keyring().id
        'file'
    """

    def __init__(self, factories: Iterable[BackendFactory] = DEFAULT_FACTORIES) -> None:
        self._initial_factories: tuple[BackendFactory, ...] = tuple(factories)
        self._factories: list[BackendFactory] = list(self._initial_factories)
        self._cache: list[SecretStorageBackend] | None = None
        self._active: SecretStorageBackend | None = None
        self._limit: BackendLimit | None = None

    def register_backend(self, factory: BackendFactory) -> None:
        """Add a backend factory and invalidate the detected backends."""
        self._factories.append(factory)
        self._cache = None
        log.debug("backend_registered", factory=getattr(factory, "__name__", repr(factory)))

    def get_all_backends(self) -> list[SecretStorageBackend]:
        """Return every backend usable on this host, in registration order.

        Backends are instantiated once and cached until a new factory is
        registered.
        """
        if self._cache is None:
            instances = (self._instantiate(factory) for factory in self._factories)
            self._cache = [backend for backend in instances if backend is not None]
        return self._cache

    @staticmethod
    def _instantiate(factory: BackendFactory) -> SecretStorageBackend | None:
        factory_name = getattr(factory, "__name__", repr(factory))

        probe = getattr(factory, "is_supported", None)
        if probe is not None:
            try:
                supported = probe()
            except Exception as e:
                log.debug("backend_probe_failed", factory=factory_name, error=type(e).__name__)
                return None
            if not supported:
                log.debug("backend_not_supported", factory=factory_name)
                return None

        try:
            return factory()
        except InitError as e:
            # "unusable here"; anything else is a bug and propagates
            log.debug("backend_init_failed", factory=factory_name, error=e.message)
            return None

    def set_keyring(self, backend: SecretStorageBackend) -> None:
        """Force the active backend, bypassing detection."""
        self._active = backend

    def get_keyring(self) -> SecretStorageBackend:
        """Return the active backend, running detection on first use.

        Raises:
            InitError: If ``CROSS_KEYCHAIN_BACKEND`` names an unavailable backend
            NoKeyringError: If no backend could be initialized
        """
        if self._active is None:
            self.init_backend(self._limit)
        if self._active is None:
            raise NoKeyringError("No keyring backend could be initialized")
        return self._active

    def init_backend(self, limit: BackendLimit | None = None) -> None:
        """Select the active backend.

        Args:
            limit: Optional predicate restricting which backends may be used
        """
        self._limit = limit

        backend = self._load_from_env(limit)
        source = "environment"
        if backend is None:
            backend = self._load_from_config(limit)
            source = "config"
        if backend is None:
            backend = self._detect(limit)
            source = "detection"

        self._active = backend
        log.info("backend_selected", backend=backend.id, source=source)

    def _load_from_env(self, limit: BackendLimit | None) -> SecretStorageBackend | None:
        backend_id = KeychainSettings().backend
        if not backend_id:
            return None

        backend = self.load_backend_by_id(backend_id, limit)
        if backend is None:
            raise InitError(
                f"Backend {backend_id} from {ENV_BACKEND} is not available",
                suggestion=f"Unset {ENV_BACKEND} or choose one of: "
                + ", ".join(b.id for b in self.get_all_backends()),
            )
        return backend

    def _load_from_config(self, limit: BackendLimit | None) -> SecretStorageBackend | None:
        try:
            config = read_config()
        except FileNotFoundError:
            return None

        if not config.default_backend:
            return None

        return self.load_backend_by_id(
            config.default_backend,
            limit,
            config.backend_properties.get(config.default_backend),
        )

    def _detect(self, limit: BackendLimit | None) -> SecretStorageBackend:
        candidates = self.get_all_backends()
        if limit is not None:
            candidates = [backend for backend in candidates if limit(backend)]

        if not candidates:
            return NullBackend()

        # max() keeps the first of equal priorities
        return max(candidates, key=lambda backend: backend.priority)

    def load_backend_by_id(
        self,
        backend_id: str,
        limit: BackendLimit | None = None,
        overrides: dict[str, Any] | None = None,
    ) -> SecretStorageBackend | None:
        """Find a supported backend by id.

        Args:
            backend_id: Backend id (e.g., "native", "file", "null")
            limit: Optional predicate the backend must satisfy
            overrides: Optional properties applied through ``with_properties``

        Returns:
            The backend, a derived instance when overrides are given, or
            None if the backend is unknown or rejected by ``limit``
        """
        backend = next((b for b in self.get_all_backends() if b.id == backend_id), None)
        if backend is None:
            return None
        if limit is not None and not limit(backend):
            return None
        return backend.with_properties(overrides) if overrides else backend

    def _reset_for_tests(self) -> None:
        """Restore the initial factories and clear detected, active and limit state."""
        self._factories = list(self._initial_factories)
        self._cache = None
        self._active = None
        self._limit = None


_registry = BackendRegistry()


def get_registry() -> BackendRegistry:
    """Return the process-wide registry."""
    return _registry


def register_backend(factory: BackendFactory) -> None:
    _registry.register_backend(factory)


def get_all_backends() -> list[SecretStorageBackend]:
    return _registry.get_all_backends()


def set_keyring(backend: SecretStorageBackend) -> None:
    _registry.set_keyring(backend)


def get_keyring() -> SecretStorageBackend:
    return _registry.get_keyring()


def init_backend(limit: BackendLimit | None = None) -> None:
    _registry.init_backend(limit)


def load_backend_by_id(
    backend_id: str,
    limit: BackendLimit | None = None,
    overrides: dict[str, Any] | None = None,
) -> SecretStorageBackend | None:
    return _registry.load_backend_by_id(backend_id, limit, overrides)


def _reset_registry_for_tests() -> None:
    _registry._reset_for_tests()
