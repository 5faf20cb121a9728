"""
Pytest configuration and shared fixtures for msvs-detect tests.
"""

import logging

import pytest

# Import test fixtures to make them available to all tests
# ruff: noqa: F401
from tests.fixtures.toolchains import toolchain_factory
from tests.mocks import FakeRegistry


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture
def fake_registry() -> FakeRegistry:
    """Empty in-memory registry."""
    return FakeRegistry()


@pytest.fixture(autouse=True)
def reset_logging():
    """Restore root logging after tests which reconfigure it."""
    root = logging.getLogger()
    level = root.level
    handlers = list(root.handlers)
    yield
    root.handlers = handlers
    root.setLevel(level)
