"""
Configuration and authentication tests.

Settings validators, CORS defaults, startup auth checks and the shared API
key guard on the /v3 router.
"""

import pytest
from pydantic import ValidationError

from cloudgate.api.deps import validate_auth_config
from cloudgate.config import Environment, Settings, settings


def test_cors_no_wildcard_with_credentials():
    """allow_origins=["*"] together with credentials is never the default."""
    assert settings.cors_allow_credentials is True
    assert settings.cors_allowed_origins != ["*"], "Must not use wildcard with credentials"
    assert len(settings.cors_allowed_origins) > 0


def test_cors_explicit_methods_and_headers():
    assert settings.cors_allowed_methods != ["*"], "Methods should be explicit"
    assert settings.cors_allowed_headers != ["*"], "Headers should be explicit"

    for method in ("GET", "POST", "PATCH", "DELETE"):
        assert method in settings.cors_allowed_methods
    for header in ("Authorization", "X-API-Key", "X-User-ID"):
        assert header in settings.cors_allowed_headers


def test_api_key_required_in_production():
    with pytest.raises(ValidationError, match="api_key is required"):
        Settings(env=Environment.PRODUCTION, allow_insecure_dev=False, api_key=None)

    config = Settings(env=Environment.PRODUCTION, allow_insecure_dev=False, api_key="secret")
    assert config.api_key == "secret"


def test_api_key_required_without_insecure_dev():
    with pytest.raises(ValidationError):
        Settings(env=Environment.DEVELOPMENT, allow_insecure_dev=False, api_key=None)


def test_database_url_must_be_supported_backend():
    with pytest.raises(ValidationError, match="database_url"):
        Settings(database_url="mysql://root@localhost/cloudgate", allow_insecure_dev=True)

    for url in (
        "postgresql://u:p@localhost/db",
        "postgresql+asyncpg://u:p@localhost/db",
        "sqlite+aiosqlite:///:memory:",
    ):
        assert Settings(database_url=url, allow_insecure_dev=True).database_url == url


def test_external_url_is_normalised():
    config = Settings(external_url="https://api.example.com/", allow_insecure_dev=True)
    assert config.external_url == "https://api.example.com"

    with pytest.raises(ValidationError):
        Settings(external_url="ftp://api.example.com", allow_insecure_dev=True)


def test_port_range():
    with pytest.raises(ValidationError):
        Settings(port=0, allow_insecure_dev=True)
    with pytest.raises(ValidationError):
        Settings(port=70000, allow_insecure_dev=True)


def test_insecure_dev_rejected_outside_development(monkeypatch):
    monkeypatch.setattr(settings, "allow_insecure_dev", True)
    monkeypatch.setattr(settings, "env", Environment.STAGING)

    with pytest.raises(RuntimeError, match="SECURITY ERROR"):
        validate_auth_config()


def test_secure_mode_requires_key(monkeypatch):
    monkeypatch.setattr(settings, "allow_insecure_dev", False)
    monkeypatch.setattr(settings, "api_key", None)

    with pytest.raises(RuntimeError, match="CLOUDGATE_API_KEY"):
        validate_auth_config()


@pytest.mark.asyncio
async def test_api_key_guard(client, monkeypatch):
    monkeypatch.setattr(settings, "allow_insecure_dev", False)
    monkeypatch.setattr(settings, "api_key", "secret")

    missing = await client.get("/v3/health")
    wrong = await client.get("/v3/health", headers={"Authorization": "Bearer nope"})
    bearer = await client.get("/v3/health", headers={"Authorization": "Bearer secret"})
    header = await client.get("/v3/health", headers={"X-API-Key": "secret"})

    assert missing.status_code == 401
    assert wrong.status_code == 401
    assert bearer.status_code == 200
    assert header.status_code == 200


@pytest.mark.asyncio
async def test_no_configured_key_fails_closed(client, monkeypatch):
    monkeypatch.setattr(settings, "allow_insecure_dev", False)
    monkeypatch.setattr(settings, "api_key", None)

    response = await client.get("/v3/health", headers={"X-API-Key": "anything"})

    assert response.status_code == 503
