"""Tests for deployment settings: env-driven via pydantic-settings."""

from __future__ import annotations

from pathlib import Path

from derivcast.config import Settings


class TestSettings:
    def test_defaults(self):
        config = Settings()
        assert config.environment == "development"
        assert config.log_level == "INFO"
        assert config.broker_backend == "local"
        assert config.stomp_port == 61613
        assert config.jwt_algorithm == "HS256"
        assert config.jwt_ttl_seconds == 300

    def test_is_production_false_by_default(self):
        assert Settings().is_production is False

    def test_is_production_when_set(self):
        assert Settings(environment="production").is_production is True

    def test_default_storage(self):
        config = Settings()
        assert config.default_scheme == "public"
        assert "public" in config.allowed_schemes
        assert config.allowed_mime_types == ["image"]
        assert "public" in config.stream_wrappers

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("DERIVCAST_BROKER_BACKEND", "stomp")
        monkeypatch.setenv("DERIVCAST_STOMP_HOST", "activemq")
        monkeypatch.setenv("DERIVCAST_STOMP_PORT", "61614")
        config = Settings()
        assert config.broker_backend == "stomp"
        assert config.stomp_host == "activemq"
        assert config.stomp_port == 61614

    def test_private_key_path_from_env(self, monkeypatch):
        monkeypatch.setenv("DERIVCAST_JWT_PRIVATE_KEY_PATH", "/run/secrets/jwt.key")
        assert Settings().jwt_private_key_path == Path("/run/secrets/jwt.key")
