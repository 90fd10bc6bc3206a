"""
Test configuration for quarryreader.

Provides HTML documents shared across the unit and end-to-end suites.
"""

import pytest
from quarryreader.config import HeuristicsConfig, ParseOptions
from quarryreader.readability.dom import load

from tests.helpers.documents import ARTICLE_URL, build_article_html

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: End-to-end tests across modules")
    config.addinivalue_line("markers", "slow: Tests that take >10 seconds")


# ============================================================================
# Documents
# ============================================================================


@pytest.fixture
def article_url():
    return ARTICLE_URL


@pytest.fixture
def article_html():
    """A complete news-style page: navigation, article body, comments and footer."""
    return build_article_html()


@pytest.fixture
def article_document(article_html, article_url):
    return load(article_html, url=article_url)


@pytest.fixture
def short_html():
    """Custom embed next to a single paragraph, too short for the default threshold."""
    return (
        "<p>Lorem ipsum dolor sit amet, consectetur adipiscing elit. Nunc mollis leo lacus, "
        "vitae semper nisl ullamcorper ut.</p>"
        '<iframe src="https://mycustomdomain.com/some-embeds"></iframe>'
    )


@pytest.fixture
def default_options():
    return ParseOptions()


@pytest.fixture
def heuristics():
    return HeuristicsConfig()
