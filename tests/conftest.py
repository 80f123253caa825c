"""
Shared pytest fixtures for the JREF test suite.

Usage in tests:
    def test_something(jref_factory):
        doc = jref_factory.open("main.jref", '{"a": 1}')
        assert "/a" in doc.symbol_table
"""

import pytest

from tests.factories import JrefTestFactory


@pytest.fixture
def jref_factory(tmp_path):
    """
    Create a JrefTestFactory rooted at a temp directory.

    Each test gets its own language service and document registry.
    """
    return JrefTestFactory(tmp_path)


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """
    Point the user config at an empty temp location and clear JREF_* env.

    Returns the temp directory used as the user's home config dir.
    """
    from jref.config import ConfigManager

    user_dir = tmp_path / "home" / ".jref"
    monkeypatch.setattr(ConfigManager, "USER_CONFIG_DIR", user_dir)
    monkeypatch.setattr(ConfigManager, "USER_CONFIG_FILE", user_dir / "config.yaml")
    for key in ("JREF_LOG_LEVEL", "JREF_LOG_FILE", "JREF_MAX_FILE_SIZE"):
        monkeypatch.delenv(key, raising=False)
    return user_dir
