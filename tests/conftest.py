"""
Global pytest configuration and fixtures for fleet status tests.

Provides fresh registries populated with fake endpoint handles whose
connections are mocks, so no test needs a live cluster.
"""

from collections.abc import Callable, Iterable
from unittest.mock import MagicMock

import logging

import pytest

from fleet_status.core.registry import EndpointHandle, EndpointRegistry
from fleet_status.framework.dispatch import DispatchContext
from fleet_status.framework.logging import PACKAGE_LOGGER


def make_handle(name: str, connection=None) -> EndpointHandle:
    """Build an endpoint handle backed by a mock connection."""
    return EndpointHandle(name=name, connection=connection or MagicMock(name=f"conn-{name}"), context=name)


@pytest.fixture
def registry() -> EndpointRegistry:
    """Provide an empty registry with a short default timeout."""
    return EndpointRegistry(default_timeout=2.0)


@pytest.fixture
def populated_registry(registry) -> Callable[[Iterable[str]], EndpointRegistry]:
    """Factory that registers a fake handle for each name."""

    def _populate(names: Iterable[str]) -> EndpointRegistry:
        for name in names:
            registry.register(name, make_handle(name))
        return registry

    return _populate


@pytest.fixture
def handle() -> EndpointHandle:
    """Provide a single fake endpoint handle."""
    return make_handle("prod-1")


@pytest.fixture
def dispatch_context() -> DispatchContext:
    """Provide a context with a generous deadline."""
    return DispatchContext("prod-1", 5.0)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo handlers and levels installed by configure_logging."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    level = logger.level
    yield
    logger.handlers.clear()
    logger.setLevel(level)
