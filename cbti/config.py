"""Configuration management"""
import logging
from typing import Optional

import pytz
from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cbti.exceptions import ConfigurationError

load_dotenv()

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class Settings(BaseSettings):
    """
    Clinical and runtime settings for the sleep engine

    Every value can be overridden through a CBTI_-prefixed environment
    variable or a .env file, e.g. CBTI_MIN_WINDOW_MINUTES=330.
    """

    model_config = SettingsConfigDict(env_prefix="CBTI_", extra="ignore")

    # Logging
    log_level: str = "INFO"

    # Titration
    min_window_minutes: int = Field(default=300, ge=0, le=1440)  # 5 hour floor
    titration_increment_minutes: int = Field(default=15, gt=0, le=120)
    min_days_for_recommendation: int = Field(default=3, ge=0, le=7)
    min_days_for_confidence: int = Field(default=5, ge=0, le=7)
    se_excellent: float = 90
    se_good: float = 85
    se_borderline: float = 80

    # Diary metrics
    quick_sleep_onset_minutes: int = Field(default=5, ge=0, le=60)
    day_rollover_hour: int = 12
    default_timezone: str = "UTC"

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure a level the logging module understands"""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: '{v}'")
        return level

    @field_validator('day_rollover_hour')
    @classmethod
    def validate_rollover_hour(cls, v: int) -> int:
        """Rollover must be an hour of the day"""
        if v < 0 or v > 23:
            raise ValueError(f"day_rollover_hour must be 0-23, got {v}")
        return v

    @field_validator('default_timezone')
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Ensure valid IANA timezone"""
        try:
            pytz.timezone(v)
        except pytz.exceptions.UnknownTimeZoneError:
            raise ValueError(
                f"Invalid timezone: '{v}'. "
                f"Please use IANA timezone (e.g., 'Europe/Stockholm', 'America/New_York')"
            )
        return v

    @model_validator(mode='after')
    def thresholds_descend(self) -> 'Settings':
        """Sleep efficiency bands must be strictly ordered"""
        if not (self.se_excellent > self.se_good > self.se_borderline):
            raise ValueError(
                f"Sleep efficiency thresholds must descend: "
                f"excellent ({self.se_excellent}) > good ({self.se_good}) "
                f"> borderline ({self.se_borderline})"
            )
        if self.min_days_for_confidence < self.min_days_for_recommendation:
            raise ValueError(
                "min_days_for_confidence cannot be lower than min_days_for_recommendation"
            )
        return self


settings = Settings()


def validate_config(config: Optional[Settings] = None) -> None:
    """Validate settings that cannot be expressed as field constraints"""
    config = config or settings
    if config.titration_increment_minutes > config.min_window_minutes and config.min_window_minutes > 0:
        raise ConfigurationError(
            f"Titration increment ({config.titration_increment_minutes} min) is larger "
            f"than the minimum window ({config.min_window_minutes} min)",
            config_key="titration_increment_minutes",
        )


def configure_logging(level: Optional[str] = None) -> None:
    """Apply the standard log format at the configured level"""
    logging.basicConfig(
        format=LOG_FORMAT,
        level=getattr(logging, (level or settings.log_level).upper())
    )
