"""Shared pytest fixtures for wirescan tests."""

import pytest

from wirescan import ServiceCollection


@pytest.fixture()
def services() -> ServiceCollection:
    """Empty registry."""
    return ServiceCollection()
