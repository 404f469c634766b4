"""Unit tests for Pydantic Settings configuration.

Tests configuration loading from environment variables and defaults
with proper validation.
"""

import pytest

from thread_isolation.adapters.config.settings import (
    IsolationSettings,
    LoggingSettings,
    Settings,
    get_settings,
    reload_settings,
)

pytestmark = pytest.mark.unit


class TestIsolationSettings:
    """Tests for isolation policy configuration."""

    def test_default_values(self, clean_env: None) -> None:
        settings = IsolationSettings()

        assert settings.protected_namespaces == []
        assert settings.deny_stdlib is True
        assert settings.module_alias_prefix == "__isolated__"

    def test_load_from_env_vars(self, monkeypatch: pytest.MonkeyPatch, clean_env: None) -> None:
        """Should load from THREAD_ISOLATION_* environment variables."""
        monkeypatch.setenv("THREAD_ISOLATION_PROTECTED_NAMESPACES", '["demo.badlib", "tests"]')
        monkeypatch.setenv("THREAD_ISOLATION_DENY_STDLIB", "false")
        monkeypatch.setenv("THREAD_ISOLATION_MODULE_ALIAS_PREFIX", "_copy_")

        settings = IsolationSettings()

        assert settings.protected_namespaces == ["demo.badlib", "tests"]
        assert settings.deny_stdlib is False
        assert settings.module_alias_prefix == "_copy_"

    def test_namespaces_are_normalized(self) -> None:
        settings = IsolationSettings(protected_namespaces=[" .demo.badlib. ", "", "."])
        assert settings.protected_namespaces == ["demo.badlib"]

    def test_invalid_namespace_rejected(self) -> None:
        with pytest.raises(ValueError, match="Invalid namespace"):
            IsolationSettings(protected_namespaces=["demo.bad-lib"])

    def test_alias_prefix_must_be_identifier_characters(self) -> None:
        with pytest.raises(ValueError, match="identifier characters"):
            IsolationSettings(module_alias_prefix="-copy.")

    def test_alias_prefix_may_start_with_digit(self) -> None:
        assert IsolationSettings(module_alias_prefix="0copy").module_alias_prefix == "0copy"


class TestLoggingSettings:
    def test_default_values(self, clean_env: None) -> None:
        settings = LoggingSettings()

        assert settings.level == "INFO"
        assert settings.json_output is False

    def test_load_from_env_vars(self, monkeypatch: pytest.MonkeyPatch, clean_env: None) -> None:
        monkeypatch.setenv("THREAD_ISOLATION_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("THREAD_ISOLATION_LOG_JSON_OUTPUT", "true")

        settings = LoggingSettings()

        assert settings.level == "DEBUG"
        assert settings.json_output is True

    def test_invalid_level_rejected(self) -> None:
        with pytest.raises(ValueError):
            LoggingSettings(level="VERBOSE")  # type: ignore[arg-type]


class TestRootSettings:
    def test_aggregates_subsettings(self, clean_env: None) -> None:
        settings = Settings()

        assert isinstance(settings.isolation, IsolationSettings)
        assert isinstance(settings.logging, LoggingSettings)

    def test_get_settings_is_singleton(self, clean_env: None) -> None:
        assert get_settings() is get_settings()

    def test_reload_settings_picks_up_env(
        self, monkeypatch: pytest.MonkeyPatch, clean_env: None
    ) -> None:
        monkeypatch.setenv("THREAD_ISOLATION_DENY_STDLIB", "false")
        try:
            assert reload_settings().isolation.deny_stdlib is False
            assert get_settings().isolation.deny_stdlib is False
        finally:
            monkeypatch.delenv("THREAD_ISOLATION_DENY_STDLIB")
            reload_settings()
