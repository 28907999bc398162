"""
Pytest configuration and fixtures.
"""

import pytest
import os
from unittest.mock import patch

from markup import card, page


@pytest.fixture(autouse=True)
def mock_env_vars():
    """Mock environment variables for tests."""
    env_vars = {
        "PORT": "3000",
        "LOG_LEVEL": "DEBUG",
        "PAGE_TIMEOUT_MS": "60000",
        "CARD_TIMEOUT_MS": "15000",
        "STEALTH_ENABLED": "false",
    }

    with patch.dict(os.environ, env_vars):
        # Clear config cache
        from src.scraper.config import get_config
        get_config.cache_clear()
        yield
        get_config.cache_clear()


@pytest.fixture
def sample_menu_html():
    """A small rendered menu: two sections, one sold-out item."""
    return page(
        "<h1>Corner Cafe</h1>",
        "<section><h2>Drinks</h2></section>",
        '<div class="grid">',
        card("Latte", price="$4.00", description="Hot espresso drink"),
        card("Mocha", price="$4.50", extra="<span>Unavailable</span>"),
        "</div>",
        "<section><h2>Pastries</h2></section>",
        '<div class="grid">',
        card("Croissant", price="$3.25", description="Butter, flaky"),
        "</div>",
    )
