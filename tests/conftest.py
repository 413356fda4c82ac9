"""Shared pytest fixtures."""

import pytest

from app_identity.versions import allow


@pytest.fixture(autouse=True)
def reset_disallowed_versions():
    """Clear the global disallowed versions after each test."""
    yield
    allow(1, 2, 3, 4)
