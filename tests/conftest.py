# tests/conftest.py

"""Shared pytest fixtures for all tests."""

from collections.abc import Generator
from unittest.mock import patch

import pytest

from marketplace.config.settings import Settings


@pytest.fixture(autouse=True)
def backend_settings() -> Generator[None, None, None]:
    """Point the backend settings at a fake project for every test."""
    with patch.multiple(
        Settings,
        SUPABASE_URL="https://test-project.supabase.co",
        SUPABASE_ANON_KEY="anon-test-key",
        SUPABASE_SERVICE_ROLE_KEY="service-test-key",
        REVIEWER_ID="reviewer-1",
    ):
        yield
