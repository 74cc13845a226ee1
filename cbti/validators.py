"""
Centralized Pydantic Input Validation Layer

Validates the inputs therapists and patients hand to the engine before they
reach the calculators.

Validation Categories:
1. Clock Times - HH:MM, 24-hour
2. Timezones - IANA names, with a UTC fallback for display code
3. Prescriptions - window length bounds and the configured floor
4. Sleep Dates - no future dates, reasonable range
"""

import logging
from datetime import date
from typing import ClassVar, Optional

import pytz
from pydantic import BaseModel, Field, field_validator, model_validator

from cbti.utils.clock import parse_clock_time, window_minutes as clock_window_minutes

logger = logging.getLogger(__name__)


# ============================================================================
# TIME / TIMEZONE VALIDATION
# ============================================================================

class ClockTimeInput(BaseModel):
    """
    Validate a wall-clock time

    Constraints:
    - HH:MM on a 24-hour clock
    - Normalized to zero-padded form ("6:05" -> "06:05")
    """
    value: str = Field(..., description="Time of day, HH:MM")

    @field_validator('value')
    @classmethod
    def valid_clock(cls, v: str) -> str:
        hour, minute = parse_clock_time(v)
        return f"{hour:02d}:{minute:02d}"


def is_valid_timezone(tz_name: Optional[str]) -> bool:
    """Whether tz_name is a known IANA timezone"""
    if not tz_name or not isinstance(tz_name, str):
        return False
    try:
        pytz.timezone(tz_name)
    except pytz.exceptions.UnknownTimeZoneError:
        return False
    return True


def sanitize_timezone(tz_name: Optional[str], fallback: str = "UTC") -> str:
    """Return tz_name if it is a valid IANA timezone, otherwise the fallback"""
    if is_valid_timezone(tz_name):
        return tz_name
    logger.debug(f"Unknown timezone {tz_name!r}, falling back to {fallback}")
    return fallback


class TimezoneInput(BaseModel):
    """Validate an IANA timezone name"""
    timezone: str = Field(default="UTC", description="IANA timezone")

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Ensure valid IANA timezone"""
        if not is_valid_timezone(v):
            raise ValueError(
                f"Invalid timezone: '{v}'. "
                f"Please use IANA timezone (e.g., 'Europe/Stockholm', 'America/New_York')"
            )
        return v


# ============================================================================
# PRESCRIPTION VALIDATION
# ============================================================================

class PrescriptionInput(BaseModel):
    """
    Validate a therapist-entered sleep window

    Constraints:
    - Bedtime and wake time are HH:MM
    - Window is at least the configured minimum (default 5 hours)
    - Window is at most 12 hours
    """
    bedtime: str = Field(..., description="Prescribed bedtime, HH:MM")
    wake_time: str = Field(..., description="Prescribed wake time, HH:MM")
    min_window_minutes: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = Field(default=None, max_length=2000)

    MAX_WINDOW_MINUTES: ClassVar[int] = 720

    @field_validator('bedtime', 'wake_time')
    @classmethod
    def valid_clock(cls, v: str) -> str:
        hour, minute = parse_clock_time(v)
        return f"{hour:02d}:{minute:02d}"

    @model_validator(mode='after')
    def window_within_bounds(self) -> 'PrescriptionInput':
        """Reject windows below the floor or implausibly long"""
        if self.min_window_minutes is None:
            from cbti.config import settings
            self.min_window_minutes = settings.min_window_minutes

        minutes = clock_window_minutes(self.bedtime, self.wake_time)
        if minutes < self.min_window_minutes:
            raise ValueError(
                f"Sleep window of {minutes} minutes is below the minimum "
                f"of {self.min_window_minutes} minutes"
            )
        if minutes > self.MAX_WINDOW_MINUTES:
            raise ValueError(
                f"Sleep window of {minutes} minutes exceeds "
                f"{self.MAX_WINDOW_MINUTES // 60} hours"
            )
        return self

    @property
    def window_minutes(self) -> int:
        return clock_window_minutes(self.bedtime, self.wake_time)


# ============================================================================
# DATE VALIDATION
# ============================================================================

class SleepDateInput(BaseModel):
    """
    Validate the sleep date a diary entry is filed under

    Constraints:
    - No future dates (the night must have happened)
    - Must be after 2020-01-01
    """
    date_value: date = Field(..., description="Night the patient went to bed")

    MIN_DATE: ClassVar[date] = date(2020, 1, 1)

    @field_validator('date_value')
    @classmethod
    def no_future_dates(cls, v: date) -> date:
        today = date.today()
        if v > today:
            raise ValueError(
                f"Date cannot be in the future. "
                f"Provided: {v}, Today: {today}"
            )
        return v

    @field_validator('date_value')
    @classmethod
    def reasonable_range(cls, v: date) -> date:
        if v < cls.MIN_DATE:
            raise ValueError(
                f"Date must be after {cls.MIN_DATE}. "
                f"Provided: {v}"
            )
        return v


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================

def format_validation_error(e: Exception) -> str:
    """
    Format Pydantic validation error for user-friendly display

    Args:
        e: ValidationError from Pydantic

    Returns:
        User-friendly error message
    """
    from pydantic import ValidationError

    if not isinstance(e, ValidationError):
        return f"Error: {str(e)}"

    errors = e.errors()
    if not errors:
        return "Validation failed"

    # Get first error for simplicity
    first_error = errors[0]
    loc = first_error.get('loc') or ('input',)
    field = loc[0]
    msg = first_error.get('msg', 'Invalid value')

    if isinstance(field, str):
        field_name = field.replace('_', ' ').title()
    else:
        field_name = 'Input'

    return f"Invalid {field_name}: {msg}"


def safe_validate(model_class: type[BaseModel], **data) -> tuple[Optional[BaseModel], Optional[str]]:
    """
    Safely validate data and return (validated_model, error_message)

    Args:
        model_class: Pydantic model class
        **data: Data to validate

    Returns:
        Tuple of (validated_instance, error_message)
        - If valid: (instance, None)
        - If invalid: (None, user_friendly_error)
    """
    from pydantic import ValidationError

    try:
        instance = model_class(**data)
        return instance, None
    except ValidationError as e:
        error_msg = format_validation_error(e)
        logger.warning(f"Validation failed for {model_class.__name__}: {error_msg}")
        return None, error_msg
