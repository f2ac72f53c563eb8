"""Tests for EnvironConfig lookups."""

import pytest

from liveclass.config import EnvironConfig, config


class TestEnvironConfig:
    def test_singleton(self):
        assert EnvironConfig() is config

    def test_get_default_for_missing_key(self):
        assert config.get("LIVECLASS_NOT_A_REAL_KEY", "fallback") == "fallback"

    def test_environment_wins_over_env_files(self):
        """conftest sets DEMO_MODE=false; env.example says true."""
        assert config.get("DEMO_MODE") == "false"

    def test_labelled_url_wins(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setitem(config._config, "REDIS_URL_LOCK", "redis://lock-host:6379")
        monkeypatch.setitem(config._config, "REDIS_URL", "redis://shared-host:6379")

        assert config.get_redis_url("lock") == "redis://lock-host:6379"
        assert config.get_redis_url("events") == "redis://shared-host:6379"

    def test_url_falls_back_to_localhost(self, monkeypatch: pytest.MonkeyPatch):
        for key in ("MONGO_URL", "MONGO_URL_DEFAULT"):
            monkeypatch.delitem(config._config, key, raising=False)

        assert config.get_mongo_url() == "mongodb://localhost:27017"
