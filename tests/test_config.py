"""Tests for nanda/config.py."""

import pytest
from pydantic import ValidationError

from nanda.config import DEFAULT_REGISTRY_URL, Settings


class TestSettings:
    def test_defaults(self):
        s = Settings()
        assert s.port == 6000
        assert s.api_port == 6001
        assert s.ssl is False
        assert s.registry_url == DEFAULT_REGISTRY_URL
        assert s.max_conversations == 0
        assert s.log_level == "info"

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("NANDA_AGENT_ID", "env-agent")
        monkeypatch.setenv("NANDA_API_PORT", "7100")
        s = Settings()
        assert s.agent_id == "env-agent"
        assert s.api_port == 7100

    def test_anthropic_key_unprefixed(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        assert Settings().anthropic_api_key == "sk-test"

    def test_derived_urls(self):
        s = Settings(port=6100, api_port=6101)
        assert s.agent_url == "http://localhost:6100"
        assert s.api_base_url == "http://localhost:6101"

    def test_public_urls_override(self):
        s = Settings(public_url="https://a.example", api_url="https://b.example")
        assert s.agent_url == "https://a.example"
        assert s.api_base_url == "https://b.example"

    def test_ssl_requires_cert_and_key(self):
        with pytest.raises(ValidationError, match="cert_path and key_path"):
            Settings(ssl=True, cert_path="/tmp/cert.pem")

    def test_ssl_with_paths(self):
        s = Settings(ssl=True, cert_path="/tmp/cert.pem", key_path="/tmp/key.pem")
        assert s.ssl is True

    def test_negative_capacity_rejected(self):
        with pytest.raises(ValidationError):
            Settings(max_conversations=-1)

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(log_level="loud")
