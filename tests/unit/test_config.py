"""Tests for Pydantic Settings configuration validation"""
import logging
import pytest
from pydantic import ValidationError

from cbti.config import Settings, configure_logging, validate_config
from cbti.exceptions import ConfigurationError


class TestConfigValidation:
    """Test configuration validation with Pydantic Settings"""

    def test_defaults(self, clean_env):
        """Test that clinical defaults load without any environment"""
        settings = Settings()

        assert settings.min_window_minutes == 300
        assert settings.titration_increment_minutes == 15
        assert settings.min_days_for_recommendation == 3
        assert settings.min_days_for_confidence == 5
        assert (settings.se_excellent, settings.se_good, settings.se_borderline) == (90, 85, 80)
        assert settings.quick_sleep_onset_minutes == 5
        assert settings.day_rollover_hour == 12
        assert settings.log_level == "INFO"

    def test_environment_overrides(self, clean_env):
        """Test that CBTI_ variables override defaults"""
        clean_env.setenv("CBTI_MIN_WINDOW_MINUTES", "330")
        clean_env.setenv("CBTI_LOG_LEVEL", "debug")

        settings = Settings()

        assert settings.min_window_minutes == 330
        assert settings.log_level == "DEBUG"

    def test_unprefixed_variables_ignored(self, clean_env):
        clean_env.setenv("MIN_WINDOW_MINUTES", "100")
        assert Settings().min_window_minutes == 300

    def test_invalid_log_level(self, clean_env):
        with pytest.raises(ValidationError) as exc_info:
            Settings(log_level="LOUD")
        assert "log_level" in str(exc_info.value)

    def test_thresholds_must_descend(self, clean_env):
        with pytest.raises(ValidationError, match="must descend"):
            Settings(se_excellent=85, se_good=85)

    def test_confidence_days_not_below_recommendation_days(self, clean_env):
        with pytest.raises(ValidationError):
            Settings(min_days_for_recommendation=5, min_days_for_confidence=4)

    def test_rollover_hour_range(self, clean_env):
        with pytest.raises(ValidationError):
            Settings(day_rollover_hour=24)

    def test_invalid_timezone(self, clean_env):
        with pytest.raises(ValidationError, match="Invalid timezone"):
            Settings(default_timezone="Not/AZone")

    def test_increment_must_be_positive(self, clean_env):
        with pytest.raises(ValidationError):
            Settings(titration_increment_minutes=0)


class TestValidateConfig:
    """Test cross-setting checks"""

    def test_defaults_valid(self, clean_env):
        validate_config(Settings())

    def test_increment_larger_than_floor(self, clean_env):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_config(Settings(min_window_minutes=60, titration_increment_minutes=90))
        assert exc_info.value.config_key == "titration_increment_minutes"


class TestConfigureLogging:
    def test_applies_level(self, monkeypatch):
        calls = {}
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.update(kwargs))

        configure_logging("warning")

        assert calls["level"] == logging.WARNING
        assert "%(name)s" in calls["format"]
