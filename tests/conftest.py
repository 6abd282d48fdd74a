"""
Pytest configuration and fixtures for gzipware tests.
"""
from pathlib import Path

import pytest

from gzipware.config import GzipSettings
from tests.utils import CSS_BODY, HTML_BODY, JS_BODY


@pytest.fixture
def static_root(tmp_path: Path) -> Path:
    """A small static site: style.css, index.html, js/app.js and an empty directory."""
    root = tmp_path / "public"
    (root / "js").mkdir(parents=True)
    (root / "empty").mkdir()
    (root / "style.css").write_text(CSS_BODY)
    (root / "index.html").write_text(HTML_BODY)
    (root / "js" / "app.js").write_text(JS_BODY)
    return root


@pytest.fixture
def css_settings() -> GzipSettings:
    """Static mode settings whitelisting .css only."""
    return GzipSettings(EXTENSIONS=[".css"])


@pytest.fixture
def settings() -> GzipSettings:
    """Default settings."""
    return GzipSettings()
