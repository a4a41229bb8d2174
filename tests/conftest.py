"""
Shared pytest fixtures for the focus overlay test suite.
"""

import pytest

from src.config import Settings


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Each test reads Settings fresh from the (monkeypatched) environment."""
    from src.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def settings() -> Settings:
    return Settings(_env_file=None)
