"""
Tests for application assembly: context, CORS and route policies.
"""

import logging

import pytest
from fastapi.testclient import TestClient

from core.server import _get_allowed_origins


class TestCORSConfiguration:
    """CORS origins never fall back to a wildcard."""

    def test_cors_includes_base_url_when_configured(self):
        assert _get_allowed_origins("https://hooks.example.com", False) == [
            "https://hooks.example.com"
        ]

    def test_cors_does_not_fallback_to_wildcard_in_production(self, caplog):
        with caplog.at_level(logging.WARNING):
            origins = _get_allowed_origins("", False)

        assert origins == []
        assert "*" not in origins
        assert "BASE_URL not configured" in caplog.text

    def test_cors_allows_localhost_in_debug_mode(self):
        origins = _get_allowed_origins("https://hooks.example.com", True)

        assert "https://hooks.example.com" in origins
        assert "http://localhost:3000" in origins

    def test_preflight_from_allowed_origin(self, client):
        response = client.options(
            "/api/v1/webhooks",
            headers={
                "Origin": "https://test.example.com",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "X-API-Key, X-Webhook-Signature",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "https://test.example.com"


class TestAppContext:

    def test_context_reads_configuration(self, app_context):
        assert app_context.config.get("security.api_key") == "test-api-key-12345"
        assert app_context.signature_verifier.is_configured is True
        assert app_context.idempotency_cache is not None

    def test_missing_credentials_logged_at_startup(self, monkeypatch, config, caplog):
        from core.app_context import AppContext
        from core.providers import ConfigurationProvider

        monkeypatch.setenv("WEBHOOK_SECRET", "")
        with caplog.at_level(logging.ERROR, logger="core.app_context"):
            AppContext(config=ConfigurationProvider().load())

        assert "Security credentials missing" in caplog.text

    def test_configured_credentials_not_reported(self, config, caplog):
        from core.app_context import AppContext

        with caplog.at_level(logging.ERROR, logger="core.app_context"):
            AppContext(config=config)

        assert "Security credentials missing" not in caplog.text

    def test_idempotency_ttl_from_hours(self, monkeypatch, config):
        from core.app_context import AppContext
        from core.providers import ConfigurationProvider

        monkeypatch.setenv("IDEMPOTENCY_TTL_HOURS", "2")
        context = AppContext(config=ConfigurationProvider().load())

        assert context.idempotency_cache._ttl == 7200

    def test_unknown_signature_mode_falls_back_to_raw(self, monkeypatch, config, caplog):
        from core.app_context import AppContext
        from core.providers import ConfigurationProvider
        from core.security.gates import SignaturePayloadMode

        monkeypatch.setenv("WEBHOOK_SIGNATURE_MODE", "sorted")
        with caplog.at_level(logging.WARNING):
            context = AppContext(config=ConfigurationProvider().load())

        assert context._signature_gate.payload_mode is SignaturePayloadMode.RAW
        assert "Unknown WEBHOOK_SIGNATURE_MODE" in caplog.text

    def test_canonical_signature_mode_end_to_end(self, monkeypatch, config, repository):
        import json

        from conftest import TEST_API_KEY, sign
        from core.app_context import AppContext
        from core.dependencies import get_webhook_repository
        from core.providers import ConfigurationProvider
        from core.server import create_base_app

        monkeypatch.setenv("WEBHOOK_SIGNATURE_MODE", "canonical")
        app = create_base_app(AppContext(config=ConfigurationProvider().load()))
        app.dependency_overrides[get_webhook_repository] = lambda: repository
        client = TestClient(app)

        data = {"source": "github", "event": "push", "payload": {"ref": "main"}}
        pretty = json.dumps(data, indent=4).encode("utf-8")
        compact = json.dumps(data, separators=(",", ":")).encode("utf-8")

        response = client.post(
            "/api/v1/webhooks",
            content=pretty,
            headers={"X-API-Key": TEST_API_KEY, "X-Webhook-Signature": sign(compact)},
        )

        assert response.status_code == 201


class TestConfigurationProvider:

    def test_defaults(self, monkeypatch):
        from core.providers import ConfigurationProvider

        for key in ("SERVER_PORT", "IDEMPOTENCY_TTL_HOURS", "THROTTLE_LIMIT", "API_KEY"):
            monkeypatch.delenv(key, raising=False)

        config = ConfigurationProvider().load()

        assert config.get("server.port") == 3000
        assert config.get("idempotency.ttl_hours") == 24
        assert config.get("throttle.limit") == 100
        assert config.get("security.api_key") == ""
        assert config.is_security_configured() is False

    def test_valid_configuration_has_no_problems(self, config):
        assert config.validate() == []

    def test_validate_reports_missing_secrets(self, monkeypatch):
        from core.providers import ConfigurationProvider

        monkeypatch.setenv("API_KEY", "")
        monkeypatch.setenv("WEBHOOK_SECRET", "")
        monkeypatch.setenv("DATABASE_URL", "")

        problems = ConfigurationProvider().load().validate()

        assert any("API_KEY" in p for p in problems)
        assert any("WEBHOOK_SECRET" in p for p in problems)
        assert any("DATABASE_URL" in p for p in problems)

    def test_validate_reports_unknown_modes(self, monkeypatch, mock_env_vars):
        from core.providers import ConfigurationProvider

        monkeypatch.setenv("WEBHOOK_SIGNATURE_MODE", "sorted")
        monkeypatch.setenv("DATABASE_SSL_MODE", "sometimes")

        problems = ConfigurationProvider().load().validate()

        assert len(problems) == 2

    def test_malformed_numbers_fall_back_to_defaults(self, monkeypatch, mock_env_vars, caplog):
        from core.providers import ConfigurationProvider

        monkeypatch.setenv("THROTTLE_LIMIT", "lots")
        monkeypatch.setenv("IDEMPOTENCY_TTL_HOURS", "-3")
        monkeypatch.setenv("APP_DEBUG", "maybe")

        with caplog.at_level(logging.WARNING):
            config = ConfigurationProvider().load()

        assert config.get("throttle.limit") == 100
        assert config.get("idempotency.ttl_hours") == 24
        assert config.get("app.debug") is False
        assert "THROTTLE_LIMIT" in caplog.text

    def test_secrets_are_not_stripped(self, monkeypatch, mock_env_vars):
        from core.providers import ConfigurationProvider

        monkeypatch.setenv("API_KEY", " padded ")
        assert ConfigurationProvider().load().get("security.api_key") == " padded "

    def test_missing_key_returns_default(self, config):
        assert config.get("does.not.exist", "fallback") == "fallback"

    def test_singleton(self, config):
        from core.providers import get_configuration_provider

        assert get_configuration_provider() is get_configuration_provider()
