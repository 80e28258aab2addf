"""Tests for configuration module."""

import os

import pytest


def test_settings_defaults():
    """Settings have sensible defaults."""
    from parentgate.core.config import Settings

    # Create fresh settings (don't use global)
    s = Settings()

    assert s.timezone == "UTC"
    assert s.credential_store_timeout_seconds == 2.0
    assert s.database_path.name == "parentgate.db"


def test_settings_from_env():
    """Settings can be overridden via environment variables."""
    os.environ["TIMEZONE"] = "Europe/Berlin"
    os.environ["CREDENTIAL_STORE_TIMEOUT_SECONDS"] = "0.5"

    try:
        from parentgate.core.config import Settings

        s = Settings()

        assert s.timezone == "Europe/Berlin"
        assert s.tzinfo.key == "Europe/Berlin"
        assert s.credential_store_timeout_seconds == 0.5
    finally:
        del os.environ["TIMEZONE"]
        del os.environ["CREDENTIAL_STORE_TIMEOUT_SECONDS"]


def test_settings_validation():
    """Settings validate constraints."""
    from parentgate.core.config import Settings
    from pydantic import ValidationError

    with pytest.raises(ValidationError):
        Settings(timezone="Mars/Olympus_Mons")

    with pytest.raises(ValidationError):
        Settings(credential_store_timeout_seconds=0)


def test_global_settings_available():
    """Global settings instance is importable."""
    from parentgate.core.config import settings

    assert settings is not None
    assert hasattr(settings, "database_path")


class TestGateConfig:
    def test_defaults(self):
        from parentgate.core.config import GateConfig

        config = GateConfig()
        assert config.pin.length == 6
        assert config.lockout.failure_threshold == 3
        assert config.lockout.lockout_seconds == 300
        assert config.lockout.retention_seconds == 300
        assert config.time_lock.windows == []
        assert config.time_lock.schedule().windows == ()
        assert config.redirection.confidence_threshold == 0.6

    def test_retention_must_cover_lockout(self):
        from parentgate.core.config import LockoutConfig
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            LockoutConfig(lockout_seconds=600, retention_seconds=300)

    def test_messages_only_for_actionable_intents(self):
        from parentgate.core.config import RedirectionConfig
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            RedirectionConfig(messages={"on_topic": "Keep going!"})

    def test_default_messages_cover_actionable_intents(self):
        from parentgate.core.config import RedirectionConfig
        from parentgate.domain.models.intent import ACTIONABLE_INTENTS

        assert set(RedirectionConfig().messages) == set(ACTIONABLE_INTENTS)


class TestLoadGateConfig:
    def test_loads_yaml(self, tmp_path):
        from parentgate.core.config import load_gate_config
        from parentgate.domain.models.intent import IntentLabel
        from parentgate.domain.models.schedule import Weekday

        path = tmp_path / "gate_config.yaml"
        path.write_text(
            "lockout:\n"
            "  failure_threshold: 5\n"
            "time_lock:\n"
            "  windows:\n"
            "    - days: [fri, sat]\n"
            "      start: '22:00'\n"
            "      end: '07:00'\n"
            "redirection:\n"
            "  messages:\n"
            "    distress: Check in now.\n"
        )

        config = load_gate_config(path)

        assert config.lockout.failure_threshold == 5
        window = config.time_lock.windows[0]
        assert window.days == frozenset({Weekday.FRI, Weekday.SAT})
        assert window.wraps_midnight is True
        assert config.redirection.messages == {IntentLabel.DISTRESS: "Check in now."}

    def test_missing_file_gives_defaults(self, tmp_path):
        from parentgate.core.config import GateConfig, load_gate_config

        assert load_gate_config(tmp_path / "absent.yaml") == GateConfig()

    def test_empty_file_gives_defaults(self, tmp_path):
        from parentgate.core.config import GateConfig, load_gate_config

        path = tmp_path / "gate_config.yaml"
        path.write_text("")
        assert load_gate_config(path) == GateConfig()

    def test_invalid_yaml_raises_configuration_error(self, tmp_path):
        from parentgate.core.config import load_gate_config
        from parentgate.core.exceptions import ConfigurationError

        path = tmp_path / "gate_config.yaml"
        path.write_text("lockout: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_gate_config(path)

    def test_invalid_values_raise_configuration_error(self, tmp_path):
        from parentgate.core.config import load_gate_config
        from parentgate.core.exceptions import ConfigurationError

        path = tmp_path / "gate_config.yaml"
        path.write_text("pin:\n  length: 2\n")
        with pytest.raises(ConfigurationError):
            load_gate_config(path)

    def test_shipped_config_is_valid(self):
        from pathlib import Path

        from parentgate.core.config import load_gate_config

        shipped = Path(__file__).resolve().parents[2] / "config" / "gate_config.yaml"
        config = load_gate_config(shipped)
        assert len(config.time_lock.windows) == 2
