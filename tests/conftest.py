"""Pytest configuration and shared fixtures.

This module defines:
- Test markers (unit, integration, slow, property)
- Shared fixtures for isolation settings and registries
- A fake ModuleLoaderPort for tests that must not touch the import system
"""

from collections.abc import Callable, Iterator
from types import ModuleType
from unittest.mock import MagicMock

import pytest

from thread_isolation.adapters.config.settings import IsolationSettings
from thread_isolation.application.registry import IsolatedTypeRegistry

_ENV_VARS = (
    "THREAD_ISOLATION_PROTECTED_NAMESPACES",
    "THREAD_ISOLATION_DENY_STDLIB",
    "THREAD_ISOLATION_MODULE_ALIAS_PREFIX",
    "THREAD_ISOLATION_LOG_LEVEL",
    "THREAD_ISOLATION_LOG_JSON_OUTPUT",
)


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "unit: Fast unit tests with mocked boundaries",
    )
    config.addinivalue_line(
        "markers",
        "integration: Tests that load real private module copies across threads",
    )
    config.addinivalue_line(
        "markers",
        "slow: Timing-based tests (sleeping number generator)",
    )
    config.addinivalue_line(
        "markers",
        "property: Hypothesis property-based tests",
    )


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove THREAD_ISOLATION_* variables so settings use defaults."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def isolation_settings(clean_env: None) -> IsolationSettings:
    """Default isolation settings, independent of the host environment."""
    return IsolationSettings()


@pytest.fixture
def make_registry(
    isolation_settings: IsolationSettings,
) -> Iterator[Callable[..., IsolatedTypeRegistry]]:
    """Factory creating registries that are removed after the test."""
    created: list[IsolatedTypeRegistry] = []

    def factory(*target_types: type, **kwargs) -> IsolatedTypeRegistry:
        kwargs.setdefault("settings", isolation_settings)
        registry = IsolatedTypeRegistry.create(*target_types, **kwargs)
        created.append(registry)
        return registry

    yield factory

    for registry in created:
        registry.remove()


@pytest.fixture
def fake_module_loader() -> MagicMock:
    """Fake ModuleLoaderPort for unit testing.

    Every ``load_private_copy`` call returns a new empty module named after
    the alias, so tests can observe aliases and discard calls.
    """
    mock = MagicMock()
    mock.is_isolatable.return_value = True
    mock.load_private_copy.side_effect = lambda module_name, alias: ModuleType(alias)
    mock.discard.return_value = None
    return mock
