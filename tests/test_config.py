"""Tests for engine settings."""

import pytest

from formforge.config import ConditionMode, EngineSettings


class TestEngineSettings:
    def test_defaults(self):
        settings = EngineSettings()
        assert settings.debounce_ms == 300
        assert settings.max_condition_depth == 16
        assert settings.condition_mode is ConditionMode.SOURCE

    def test_from_env_defaults(self, monkeypatch):
        for name in (
            "FORMFORGE_DEBOUNCE_MS",
            "FORMFORGE_MAX_CONDITION_DEPTH",
            "FORMFORGE_CONDITION_MODE",
            "FORMFORGE_LOG_LEVEL",
        ):
            monkeypatch.delenv(name, raising=False)
        assert EngineSettings.from_env() == EngineSettings()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("FORMFORGE_DEBOUNCE_MS", "50")
        monkeypatch.setenv("FORMFORGE_MAX_CONDITION_DEPTH", "4")
        monkeypatch.setenv("FORMFORGE_CONDITION_MODE", "NESTED_ONLY")
        monkeypatch.setenv("FORMFORGE_LOG_LEVEL", "debug")

        settings = EngineSettings.from_env()

        assert settings.debounce_ms == 50
        assert settings.max_condition_depth == 4
        assert settings.condition_mode is ConditionMode.NESTED_ONLY
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize("name,value", [
        ("FORMFORGE_DEBOUNCE_MS", "-1"),
        ("FORMFORGE_DEBOUNCE_MS", "soon"),
        ("FORMFORGE_MAX_CONDITION_DEPTH", "0"),
        ("FORMFORGE_CONDITION_MODE", "strict"),
    ])
    def test_invalid_values(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ValueError):
            EngineSettings.from_env()
