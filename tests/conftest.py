"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from kubegen.adapters.mock import MockAdapter
from kubegen.adapters.registry import AdapterRegistry
from kubegen.core.config.loader import GeneratorOptions
from kubegen.core.models.context import GenerationContext
from kubegen.core.persistence.config_store import APP_NAMESPACE, ConfigStore

from tests.sample_apps import GATEWAY, STORE


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Two application folders next to an empty ``deploy`` directory.

    Returns the deploy directory (the generator destination).
    """
    store = ConfigStore(tmp_path)
    store.write("gateway", GATEWAY, APP_NAMESPACE)
    store.write("store", STORE, APP_NAMESPACE)
    deploy = tmp_path / "deploy"
    deploy.mkdir()
    return deploy


@pytest.fixture
def mock_shell() -> MockAdapter:
    """Shell double whose every command reports a recent version."""
    return MockAdapter(adapter_name="shell", default_output="version 3.14.0")


@pytest.fixture
def shell_registry(mock_shell: MockAdapter) -> AdapterRegistry:
    registry = AdapterRegistry()
    registry.register(mock_shell)
    return registry


@pytest.fixture
def ctx(tmp_path: Path, shell_registry: AdapterRegistry) -> GenerationContext:
    """Bare context rooted at tmp_path."""
    options = GeneratorOptions(destination=tmp_path)
    return GenerationContext(
        options=options,
        store=ConfigStore(tmp_path),
        adapters=shell_registry,
    )
