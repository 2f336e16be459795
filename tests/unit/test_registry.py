"""Tests for backend discovery and selection."""

import json

import pytest

from cross_keychain import registry
from cross_keychain.backends import ConfigurableBackend, EncryptedFileBackend, NullBackend
from cross_keychain.exceptions import InitError, KeyringError, NoKeyringError, PasswordDeleteError
from cross_keychain.registry import BackendRegistry


class FakeBackend(ConfigurableBackend):
    """Backend storing nothing, used to exercise selection."""

    id = "fake"
    name = "Fake"
    priority = 5.0

    def get_password(self, service, account):
        return None

    def set_password(self, service, account, password):
        pass

    def delete_password(self, service, account):
        raise PasswordDeleteError("Password not found")


class HighBackend(FakeBackend):
    id = "high"
    priority = 7.0


class TiedBackend(FakeBackend):
    id = "tied"
    priority = 7.0


class UnsupportedBackend(FakeBackend):
    id = "unsupported"
    priority = 100.0

    @classmethod
    def is_supported(cls):
        return False


class BrokenProbeBackend(FakeBackend):
    id = "broken-probe"
    priority = 100.0

    @classmethod
    def is_supported(cls):
        raise RuntimeError("probe exploded")


class InitFailingBackend(FakeBackend):
    id = "init-failing"
    priority = 100.0

    def __init__(self, properties=None):
        raise InitError("not usable here")


class BuggyBackend(FakeBackend):
    id = "buggy"

    def __init__(self, properties=None):
        raise ValueError("programming error")


def write_config(tmp_path, content):
    config_file = tmp_path / "config" / "cross-keychain" / "keychain.config.json"
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(content if isinstance(content, str) else json.dumps(content))
    return config_file


class TestGetAllBackends:
    """Tests for backend discovery."""

    def test_instantiates_supported_backends_in_order(self):
        """Should return instances in registration order."""
        reg = BackendRegistry([FakeBackend, HighBackend, NullBackend])

        assert [b.id for b in reg.get_all_backends()] == ["fake", "high", "null"]

    def test_skips_unsupported_and_failed_probes(self):
        """Should skip backends whose probe is negative or raises."""
        reg = BackendRegistry([UnsupportedBackend, BrokenProbeBackend, FakeBackend])

        assert [b.id for b in reg.get_all_backends()] == ["fake"]

    def test_swallows_init_error(self):
        """Should exclude backends that raise InitError on construction."""
        reg = BackendRegistry([InitFailingBackend, FakeBackend])

        assert [b.id for b in reg.get_all_backends()] == ["fake"]

    def test_propagates_other_construction_errors(self):
        """Should not hide programming errors."""
        reg = BackendRegistry([BuggyBackend, FakeBackend])

        with pytest.raises(ValueError, match="programming error"):
            reg.get_all_backends()

    def test_results_are_cached(self):
        """Should return the same instances on repeated calls."""
        reg = BackendRegistry([FakeBackend])

        assert reg.get_all_backends()[0] is reg.get_all_backends()[0]

    def test_register_backend_invalidates_cache(self):
        """Should rebuild the list after a factory is registered."""
        reg = BackendRegistry([FakeBackend])
        first = reg.get_all_backends()[0]

        reg.register_backend(HighBackend)
        backends = reg.get_all_backends()

        assert [b.id for b in backends] == ["fake", "high"]
        assert backends[0] is not first

    def test_default_factories_on_test_host(self):
        """Should detect file and null backends when no OS keyring exists."""
        assert [b.id for b in BackendRegistry().get_all_backends()] == ["file", "null"]


class TestAutoDetection:
    """Tests for priority-based selection."""

    def test_picks_highest_priority(self):
        """Should pick the backend with the highest priority."""
        reg = BackendRegistry([NullBackend, FakeBackend, HighBackend])

        reg.init_backend()

        assert reg.get_keyring().id == "high"

    def test_ties_keep_first_seen(self):
        """Should break priority ties by registration order."""
        reg = BackendRegistry([TiedBackend, HighBackend])

        reg.init_backend()

        assert reg.get_keyring().id == "tied"

    def test_limit_filters_candidates(self):
        """Should only consider backends accepted by the limit."""
        reg = BackendRegistry([FakeBackend, HighBackend])

        reg.init_backend(limit=lambda backend: backend.id != "high")

        assert reg.get_keyring().id == "fake"

    def test_limit_rejecting_everything_falls_back_to_null(self):
        """Should resolve to the null backend when nothing qualifies."""
        reg = BackendRegistry([FakeBackend, HighBackend])

        reg.init_backend(limit=lambda backend: False)
        backend = reg.get_keyring()

        assert isinstance(backend, NullBackend)
        assert backend.priority == -1
        assert backend.get_password("svc", "alice") is None
        backend.set_password("svc", "alice", "s3cr3t")
        with pytest.raises(PasswordDeleteError):
            backend.delete_password("svc", "alice")

    def test_no_factories_falls_back_to_null(self):
        """Should resolve to the null backend with an empty registry."""
        reg = BackendRegistry([])

        assert reg.get_keyring().id == "null"

    def test_get_keyring_runs_detection_once(self):
        """Should memoize the active backend."""
        reg = BackendRegistry([FakeBackend])

        assert reg.get_keyring() is reg.get_keyring()

    def test_get_keyring_reuses_limit(self):
        """Should re-run detection with the last limit after a reset of the active backend."""
        reg = BackendRegistry([FakeBackend, HighBackend])
        reg.init_backend(limit=lambda backend: backend.id == "fake")
        reg._active = None

        assert reg.get_keyring().id == "fake"

    def test_get_keyring_raises_when_nothing_selected(self, monkeypatch):
        """Should raise NoKeyringError if selection produced nothing."""
        reg = BackendRegistry([FakeBackend])
        monkeypatch.setattr(reg, "init_backend", lambda limit=None: None)

        with pytest.raises(NoKeyringError):
            reg.get_keyring()

    def test_set_keyring_bypasses_detection(self):
        """Should return a force-installed backend."""
        reg = BackendRegistry([HighBackend])
        pinned = FakeBackend()

        reg.set_keyring(pinned)

        assert reg.get_keyring() is pinned


class TestEnvironmentOverride:
    """Tests for CROSS_KEYCHAIN_BACKEND."""

    def test_env_selects_backend(self, monkeypatch):
        """Should use the backend named in the environment."""
        monkeypatch.setenv("CROSS_KEYCHAIN_BACKEND", "fake")
        reg = BackendRegistry([FakeBackend, HighBackend])

        reg.init_backend()

        assert reg.get_keyring().id == "fake"

    def test_env_unknown_backend_is_fatal(self, monkeypatch):
        """Should raise InitError rather than fall back to detection."""
        monkeypatch.setenv("CROSS_KEYCHAIN_BACKEND", "does-not-exist")
        reg = BackendRegistry([FakeBackend, HighBackend])

        with pytest.raises(InitError, match="does-not-exist"):
            reg.init_backend()

    def test_env_backend_rejected_by_limit_is_fatal(self, monkeypatch):
        """Should raise InitError when the limit rejects the requested backend."""
        monkeypatch.setenv("CROSS_KEYCHAIN_BACKEND", "high")
        reg = BackendRegistry([FakeBackend, HighBackend])

        with pytest.raises(InitError):
            reg.init_backend(limit=lambda backend: backend.id != "high")

    def test_env_wins_over_config(self, tmp_path, monkeypatch):
        """Should prefer the environment over the config file."""
        write_config(tmp_path, {"defaultBackend": "high"})
        monkeypatch.setenv("CROSS_KEYCHAIN_BACKEND", "fake")
        reg = BackendRegistry([FakeBackend, HighBackend])

        reg.init_backend()

        assert reg.get_keyring().id == "fake"

    def test_empty_env_is_ignored(self, monkeypatch):
        """Should treat an empty variable as unset."""
        monkeypatch.setenv("CROSS_KEYCHAIN_BACKEND", "")
        reg = BackendRegistry([FakeBackend, HighBackend])

        reg.init_backend()

        assert reg.get_keyring().id == "high"


class TestConfigFile:
    """Tests for the persisted configuration."""

    def test_config_selects_backend(self, tmp_path):
        """Should use the default backend from the config file."""
        write_config(tmp_path, {"defaultBackend": "fake"})
        reg = BackendRegistry([FakeBackend, HighBackend])

        reg.init_backend()

        assert reg.get_keyring().id == "fake"

    def test_config_applies_backend_properties(self, tmp_path):
        """Should derive the backend with recorded properties."""
        write_config(
            tmp_path,
            {
                "defaultBackend": "fake",
                "backendProperties": {"fake": {"mode": "custom"}, "high": {"mode": "other"}},
            },
        )
        reg = BackendRegistry([FakeBackend, HighBackend])

        reg.init_backend()
        backend = reg.get_keyring()

        assert backend.properties == {"mode": "custom"}
        assert reg.get_all_backends()[0].properties == {}

    def test_config_without_default_uses_detection(self, tmp_path):
        """Should fall through to detection without a default backend."""
        write_config(tmp_path, {"backendProperties": {}})
        reg = BackendRegistry([FakeBackend, HighBackend])

        reg.init_backend()

        assert reg.get_keyring().id == "high"

    def test_config_unknown_backend_uses_detection(self, tmp_path):
        """Should fall through when the configured backend is unavailable."""
        write_config(tmp_path, {"defaultBackend": "missing"})
        reg = BackendRegistry([FakeBackend, HighBackend])

        reg.init_backend()

        assert reg.get_keyring().id == "high"

    def test_missing_config_is_not_an_error(self):
        """Should treat a missing config file as no preference."""
        reg = BackendRegistry([FakeBackend])

        reg.init_backend()

        assert reg.get_keyring().id == "fake"

    def test_malformed_config_is_fatal(self, tmp_path):
        """Should propagate parse errors instead of ignoring the file."""
        write_config(tmp_path, "{not json")
        reg = BackendRegistry([FakeBackend])

        with pytest.raises(KeyringError, match="Invalid keychain configuration"):
            reg.init_backend()

    def test_unreadable_config_propagates(self, tmp_path):
        """Should propagate read errors other than a missing file."""
        config_file = write_config(tmp_path, "{}")
        config_file.unlink()
        config_file.mkdir()
        reg = BackendRegistry([FakeBackend])

        with pytest.raises(OSError):
            reg.init_backend()


class TestLoadBackendById:
    """Tests for load_backend_by_id."""

    def test_returns_instance(self):
        reg = BackendRegistry([FakeBackend, HighBackend])

        assert reg.load_backend_by_id("high") is reg.get_all_backends()[1]

    def test_unknown_returns_none(self):
        assert BackendRegistry([FakeBackend]).load_backend_by_id("missing") is None

    def test_rejected_by_limit_returns_none(self):
        reg = BackendRegistry([FakeBackend])

        assert reg.load_backend_by_id("fake", limit=lambda backend: False) is None

    def test_overrides_derive_new_instance(self):
        """Should apply overrides through with_properties."""
        reg = BackendRegistry([FakeBackend])

        backend = reg.load_backend_by_id("fake", overrides={"mode": "x"})

        assert backend is not reg.get_all_backends()[0]
        assert backend.properties == {"mode": "x"}


class TestModuleRegistry:
    """Tests for the process-wide registry functions."""

    def test_auto_detection_picks_file_backend(self):
        """Should pick the encrypted file backend on a host without an OS keyring."""
        registry.init_backend()

        assert isinstance(registry.get_keyring(), EncryptedFileBackend)

    def test_register_backend_is_detected(self):
        """Should include a registered factory in detection."""
        registry.register_backend(HighBackend)

        assert registry.get_keyring().id == "high"
        assert registry.load_backend_by_id("high") is not None

    def test_reset_restores_defaults(self):
        """Should forget registered factories and the active backend."""
        registry.register_backend(HighBackend)
        registry.set_keyring(FakeBackend())

        registry._reset_registry_for_tests()

        assert [b.id for b in registry.get_all_backends()] == ["file", "null"]
        assert registry.get_keyring().id == "file"

    def test_get_registry_returns_singleton(self):
        assert registry.get_registry() is registry.get_registry()
