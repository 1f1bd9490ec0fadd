"""Shared fixtures for CLI command tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from unittest.mock import MagicMock

import pytest

APP_YAML = """\
workspaceId: ws-1
name: api
ns: shop
image: registry.example.com/api:1.2.0
port: 8080
path: /api
"""


@pytest.fixture
def mock_application_manager() -> MagicMock:
    """Create a mock ApplicationManager."""
    manager = MagicMock()
    manager.verify_deploy.side_effect = lambda app: app
    return manager


@pytest.fixture
def get_application_manager(mock_application_manager: MagicMock) -> Callable[[], MagicMock]:
    """Create a factory function that returns mock ApplicationManager."""
    return lambda: mock_application_manager


@pytest.fixture
def mock_fetch_manager() -> MagicMock:
    """Create a mock ResourceFetchManager."""
    return MagicMock()


@pytest.fixture
def get_fetch_manager(mock_fetch_manager: MagicMock) -> Callable[[], MagicMock]:
    """Create a factory function that returns mock ResourceFetchManager."""
    return lambda: mock_fetch_manager


@pytest.fixture
def app_file(write_yaml: Callable[..., Path]) -> Path:
    """An application data file."""
    return write_yaml(APP_YAML, "app.yaml")
