"""Tests for engine settings loading."""

from __future__ import annotations

import pytest

from strain._internal.config import EngineSettings, load_settings
from strain._internal.errors import ConfigError


class TestEngineSettings:
    """Tests for the EngineSettings dataclass."""

    def test_defaults(self):
        """Defaults match the executor's pool and timeout contract."""
        settings = EngineSettings()
        assert settings.connection_pool_size == 300
        assert settings.request_timeout == 10.0
        assert settings.tick_interval == 1.0

    def test_frozen(self):
        """EngineSettings is immutable."""
        settings = EngineSettings()
        with pytest.raises(AttributeError):
            settings.request_timeout = 1.0  # type: ignore[misc]


class TestLoadSettings:
    """Tests for the load_settings function."""

    @pytest.fixture(autouse=True)
    def _clean_env(self, monkeypatch: pytest.MonkeyPatch):
        for name in ("STRAIN_POOL_SIZE", "STRAIN_TIMEOUT", "STRAIN_TICK_INTERVAL"):
            monkeypatch.delenv(name, raising=False)

    def test_defaults_from_env(self):
        assert load_settings() == EngineSettings()

    def test_pool_size_from_env(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("STRAIN_POOL_SIZE", "50")
        assert load_settings().connection_pool_size == 50

    def test_timeout_from_env(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("STRAIN_TIMEOUT", "2.5")
        assert load_settings().request_timeout == 2.5

    def test_tick_interval_from_env(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("STRAIN_TICK_INTERVAL", "0.25")
        assert load_settings().tick_interval == 0.25

    def test_invalid_pool_size_raises_error(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("STRAIN_POOL_SIZE", "lots")
        with pytest.raises(ConfigError, match="must be an integer"):
            load_settings()

    def test_zero_pool_size_raises_error(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("STRAIN_POOL_SIZE", "0")
        with pytest.raises(ConfigError, match="must be >= 1"):
            load_settings()

    def test_invalid_timeout_raises_error(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("STRAIN_TIMEOUT", "abc")
        with pytest.raises(ConfigError, match="must be a number"):
            load_settings()

    def test_negative_timeout_raises_error(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("STRAIN_TIMEOUT", "-5.0")
        with pytest.raises(ConfigError, match="must be positive"):
            load_settings()
