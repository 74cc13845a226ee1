"""Pydantic models for derived sleep metrics"""
from datetime import date, datetime
from typing import Any, Dict, Optional

import pytz
from pydantic import BaseModel, ConfigDict, Field

from cbti.utils.rounding import round_half_up


class SleepMetrics(BaseModel):
    """
    Metrics for one night, derived once from validated diary answers

    All durations are whole minutes. Anchors are naive local datetimes.
    """

    model_config = ConfigDict(frozen=True)

    sleep_date: date

    # Anchors
    bed_time: datetime
    sleep_attempt_time: datetime
    final_awakening_time: datetime
    out_of_bed_time: datetime

    # Components
    sleep_onset_latency: int = Field(ge=0)
    sleep_onset_latency_out_of_bed: int = Field(ge=0)
    awakenings: int = Field(ge=0)
    waso_minutes: int = Field(ge=0)
    waso_out_of_bed_minutes: int = Field(ge=0)
    early_morning_awakening_minutes: int = Field(ge=0)
    early_morning_awakening_out_of_bed_minutes: int = Field(ge=0)
    quality_rating: int = Field(ge=1, le=5)

    # Computed
    time_in_bed: int
    total_wake_time: int = Field(ge=0)
    total_wake_time_out_of_bed: int = Field(ge=0)
    total_sleep_time: int = Field(ge=0)
    sleep_efficiency: int

    def to_entry_record(
        self,
        answers: Optional[Dict[str, Any]] = None,
        timezone: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Persistence-ready diary entry

        Anchors are ISO timestamps with the UTC offset of the patient's
        timezone (settings.default_timezone when not given); the raw answer
        map is kept for audit.

        Raises:
            pytz.exceptions.UnknownTimeZoneError: If timezone is not an IANA name
        """
        if timezone is None:
            from cbti.config import settings
            timezone = settings.default_timezone
        tz = pytz.timezone(timezone)

        def stamp(anchor: datetime) -> str:
            return tz.localize(anchor).isoformat()

        record = {
            "date": self.sleep_date.isoformat(),
            "ttb": stamp(self.bed_time),
            "tts": stamp(self.sleep_attempt_time),
            "tfa": stamp(self.final_awakening_time),
            "tob": stamp(self.out_of_bed_time),
            "sol": self.sleep_onset_latency,
            "sol_out_of_bed": self.sleep_onset_latency_out_of_bed,
            "awakenings": self.awakenings,
            "waso": self.waso_minutes,
            "waso_out_of_bed": self.waso_out_of_bed_minutes,
            "ema": self.early_morning_awakening_minutes,
            "ema_out_of_bed": self.early_morning_awakening_out_of_bed_minutes,
            "quality_rating": self.quality_rating,
            "tib": self.time_in_bed,
            "twt": self.total_wake_time,
            "tst": self.total_sleep_time,
            "se": self.sleep_efficiency,
        }
        if answers is not None:
            record["answers"] = answers
        return record


class NightlyRecord(BaseModel):
    """
    One stored night as read back from persistence

    Any metric may be missing on older or partially migrated rows.
    """

    sleep_date: Optional[date] = None
    total_sleep_time: Optional[float] = None
    time_in_bed: Optional[float] = None
    sleep_efficiency: Optional[float] = None
    sleep_onset_latency: Optional[float] = None
    waso_minutes: Optional[float] = None
    early_morning_awakening_minutes: Optional[float] = None
    total_wake_time: Optional[float] = None
    quality_rating: Optional[float] = None


class WeeklyMetrics(BaseModel):
    """Averages over a window of nights; None means no data, never zero"""

    model_config = ConfigDict(frozen=True)

    avg_sleep_efficiency: Optional[float] = None
    avg_total_sleep_time: Optional[float] = None
    avg_time_in_bed: Optional[float] = None
    avg_sol: Optional[float] = None
    avg_waso: Optional[float] = None
    avg_ema: Optional[float] = None
    avg_total_wake_time: Optional[float] = None
    avg_quality: Optional[float] = None
    days_logged: int = Field(default=0, ge=0)
    total_days: int = Field(default=7, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @property
    def completion_rate(self) -> int:
        """Diary completion as a whole percentage of expected days"""
        if self.total_days == 0:
            return 0
        return round_half_up(self.days_logged / self.total_days * 100)


class MetricsComparison(BaseModel):
    """Current week against the previous week and the baseline window"""

    current: WeeklyMetrics
    previous: Optional[WeeklyMetrics] = None
    baseline: Optional[WeeklyMetrics] = None
    se_change: Optional[float] = None  # percentage points vs previous week
    se_baseline_change: Optional[float] = None  # percentage points vs baseline
