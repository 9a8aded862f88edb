"""Shared fixtures for layout-sync tests."""

import sys
from pathlib import Path

import pytest

# Add project root to path so we can import modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import Config
from store import Store


API_BASE_URL = "https://api.example.com/wpcom/v2"


@pytest.fixture
def sample_payload():
    """Block-layouts response as returned by the server."""
    return {
        "categories": [
            {"slug": "about", "title": "About", "description": "Introduce yourself", "emoji": "👋"},
            {"slug": "blog", "title": "Blog", "description": "Latest posts", "emoji": "📰"},
            {"slug": "contact", "title": "Contact", "description": None, "emoji": None},
        ],
        "layouts": [
            {
                "slug": "about-me",
                "title": "About Me",
                "preview": "https://example.com/previews/about-me.png",
                "content": "<!-- wp:paragraph --><p>Hi</p><!-- /wp:paragraph -->",
                "categories": [{"slug": "about", "title": "About"}],
            },
            {
                "slug": "blog-grid",
                "title": "Blog Grid",
                "preview": "https://example.com/previews/blog-grid.png",
                "content": "<!-- wp:latest-posts /-->",
                "categories": [{"slug": "blog"}, {"slug": "about"}],
            },
            {
                "slug": "contact-form",
                "title": "Contact Form",
                "preview": "https://example.com/previews/contact-form.png",
                "content": "",
                "categories": [{"slug": "contact"}],
            },
        ],
    }


@pytest.fixture
def sample_config(tmp_path):
    """Pre-configured Config instance for testing."""
    return Config(
        api_base_url=API_BASE_URL,
        database_url=f"sqlite:///{tmp_path / 'layouts.db'}",
        display_scale=2.0,
        user_agent="layout-sync-tests/1.0",
        request_timeout=5.0,
        fetch_workers=2,
    )


@pytest.fixture
def store(sample_config):
    """Empty store backed by a SQLite file in tmp_path."""
    s = Store(sample_config.database_url)
    s.create_tables()
    yield s
    s.dispose()


@pytest.fixture
def config_toml_content():
    """Sample config.toml content."""
    return """
api_base_url = "https://custom.example.com/wpcom/v2/"
database_url = "sqlite:////tmp/custom-layouts.db"
display_scale = 3
user_agent = "custom-agent/2.0"
fetch_workers = 4
"""
