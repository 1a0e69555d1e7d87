"""Tests for application settings."""

import pytest

from learnpath.config.settings import Settings


def test_environment_flags() -> None:
    production = Settings(environment="production")
    assert production.is_production
    assert not production.is_development

    development = Settings(environment="development")
    assert development.is_development
    assert not development.is_production


def test_retired_server_variables_are_ignored(monkeypatch: pytest.MonkeyPatch) -> None:
    """Old DEBUG/API_HOST/API_PORT variables in the environment are not fields."""
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.setenv("API_HOST", "0.0.0.0")
    monkeypatch.setenv("API_PORT", "9000")

    settings = Settings()

    for name in ("debug", "api_host", "api_port", "is_testing"):
        assert not hasattr(settings, name)
