"""
Unit test configuration.

Unit tests build settings objects directly, so pydantic-settings must never
pick up a developer's .env (a real COUCHDB_URL or Shopify version would leak
into the defaults under test). Config is controlled through monkeypatch.setenv().
"""

import pytest


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Make every .env file read as empty for the duration of a unit test."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})
