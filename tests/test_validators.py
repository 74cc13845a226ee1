"""
Comprehensive tests for Pydantic validation layer

Tests all validators in cbti/validators.py to ensure proper input validation
for therapist and patient supplied values.
"""

import pytest
from datetime import date, timedelta
from pydantic import ValidationError

from cbti.validators import (
    ClockTimeInput,
    PrescriptionInput,
    SleepDateInput,
    TimezoneInput,
    format_validation_error,
    is_valid_timezone,
    safe_validate,
    sanitize_timezone,
)


# ============================================================================
# TIME / TIMEZONE TESTS
# ============================================================================

class TestClockTimeInput:
    """Test wall-clock validation"""

    def test_valid_time(self):
        """Test valid time passes and is zero-padded"""
        assert ClockTimeInput(value="6:05").value == "06:05"

    def test_invalid_time_fails(self):
        """Test out-of-range hour is rejected"""
        with pytest.raises(ValidationError, match="Invalid time format"):
            ClockTimeInput(value="24:30")


class TestTimezone:
    """Test IANA timezone validation"""

    def test_valid_timezone(self):
        assert TimezoneInput(timezone="Europe/Stockholm").timezone == "Europe/Stockholm"

    def test_default_is_utc(self):
        assert TimezoneInput().timezone == "UTC"

    def test_invalid_timezone_fails(self):
        with pytest.raises(ValidationError, match="Invalid timezone"):
            TimezoneInput(timezone="Mars/Olympus")

    def test_is_valid_timezone(self):
        assert is_valid_timezone("America/New_York")
        assert not is_valid_timezone("")
        assert not is_valid_timezone(None)

    def test_sanitize_falls_back(self):
        """Test display code gets UTC for unknown zones"""
        assert sanitize_timezone("Nowhere/Land") == "UTC"
        assert sanitize_timezone(None, fallback="Europe/London") == "Europe/London"
        assert sanitize_timezone("Asia/Tokyo") == "Asia/Tokyo"


# ============================================================================
# PRESCRIPTION TESTS
# ============================================================================

class TestPrescriptionInput:
    """Test therapist-entered sleep windows"""

    def test_valid_overnight_window(self):
        rx = PrescriptionInput(bedtime="23:30", wake_time="6:00")
        assert rx.wake_time == "06:00"
        assert rx.window_minutes == 390

    def test_window_at_floor_passes(self):
        rx = PrescriptionInput(bedtime="01:00", wake_time="06:00")
        assert rx.window_minutes == 300

    def test_window_below_floor_fails(self):
        with pytest.raises(ValidationError, match="below the minimum"):
            PrescriptionInput(bedtime="02:00", wake_time="06:00")

    def test_custom_floor(self):
        rx = PrescriptionInput(bedtime="02:00", wake_time="06:00", min_window_minutes=240)
        assert rx.window_minutes == 240

    def test_window_too_long_fails(self):
        with pytest.raises(ValidationError, match="exceeds 12 hours"):
            PrescriptionInput(bedtime="18:00", wake_time="07:00")

    def test_equal_times_fail(self):
        """Zero-length window is below any positive floor"""
        with pytest.raises(ValidationError):
            PrescriptionInput(bedtime="23:00", wake_time="23:00")

    def test_bad_clock_fails(self):
        with pytest.raises(ValidationError):
            PrescriptionInput(bedtime="11pm", wake_time="06:00")


# ============================================================================
# DATE TESTS
# ============================================================================

class TestSleepDateInput:
    """Test sleep date validation"""

    def test_yesterday_passes(self):
        yesterday = date.today() - timedelta(days=1)
        assert SleepDateInput(date_value=yesterday).date_value == yesterday

    def test_future_date_fails(self):
        with pytest.raises(ValidationError, match="cannot be in the future"):
            SleepDateInput(date_value=date.today() + timedelta(days=1))

    def test_too_old_fails(self):
        with pytest.raises(ValidationError, match="must be after"):
            SleepDateInput(date_value=date(2019, 12, 31))


# ============================================================================
# UTILITY TESTS
# ============================================================================

class TestUtilities:
    """Test error formatting helpers"""

    def test_format_validation_error(self):
        try:
            PrescriptionInput(bedtime="11pm", wake_time="06:00")
        except ValidationError as e:
            message = format_validation_error(e)
        assert message.startswith("Invalid Bedtime:")

    def test_format_non_pydantic_error(self):
        assert format_validation_error(RuntimeError("boom")) == "Error: boom"

    def test_safe_validate_success(self):
        instance, error = safe_validate(TimezoneInput, timezone="UTC")
        assert instance.timezone == "UTC"
        assert error is None

    def test_safe_validate_failure(self):
        instance, error = safe_validate(TimezoneInput, timezone="Bad/Zone")
        assert instance is None
        assert "Invalid Timezone" in error
