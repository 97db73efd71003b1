"""Root conftest.py for the Postbox test suite."""

from collections.abc import Generator

import pytest

from src.core.config import get_settings


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that test individual components in isolation"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that test multiple components"
    )


@pytest.fixture(autouse=True)
def clean_lru_cache() -> Generator[None]:
    """Start every test with freshly loaded settings."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
