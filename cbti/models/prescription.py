"""Pydantic models for sleep window prescriptions and titration"""
from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cbti.utils.clock import parse_clock_time, window_minutes as clock_window_minutes


class TitrationAction(str, Enum):
    INCREASE = "increase"
    MAINTAIN = "maintain"
    DECREASE = "decrease"
    REVIEW = "review"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class WindowAnchor(str, Enum):
    """Which end of the sleep window stays put when it is resized"""

    WAKE_TIME = "waketime"
    BEDTIME = "bedtime"


class Prescription(BaseModel):
    """
    Therapist-set sleep window, versioned by effective_date

    History is append-only: a change is a new Prescription with a later
    effective_date, never an edit.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    patient_id: str
    bedtime: str
    wake_time: str
    window_minutes: int = Field(ge=0, le=1440)
    effective_date: date
    created_by: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator('bedtime', 'wake_time')
    @classmethod
    def valid_clock_time(cls, v: str, info) -> str:
        hour, minute = parse_clock_time(v, field=info.field_name)
        return f"{hour:02d}:{minute:02d}"

    @classmethod
    def from_times(
        cls,
        patient_id: str,
        bedtime: str,
        wake_time: str,
        effective_date: date,
        created_by: str,
        **kwargs
    ) -> "Prescription":
        """Build a prescription, deriving the window length from the two times"""
        return cls(
            patient_id=patient_id,
            bedtime=bedtime,
            wake_time=wake_time,
            window_minutes=clock_window_minutes(bedtime, wake_time),
            effective_date=effective_date,
            created_by=created_by,
            **kwargs
        )


class TitrationInput(BaseModel):
    weekly_avg_se: Optional[float] = None
    days_logged: int = Field(ge=0)
    current_window_minutes: int
    min_window_minutes: int


class TitrationRecommendation(BaseModel):
    """Explained suggestion for the next sleep window; computed, never stored"""

    model_config = ConfigDict(frozen=True)

    action: TitrationAction
    minutes: int = Field(ge=0)
    reason: str
    confidence: Confidence
    weekly_avg_se: Optional[float] = None
    days_logged: int = 0
    rule: str

    @property
    def signed_minutes(self) -> int:
        """Window change in minutes: positive to widen, negative to restrict"""
        if self.action == TitrationAction.INCREASE:
            return self.minutes
        if self.action == TitrationAction.DECREASE:
            return -self.minutes
        return 0


class WindowAdjustment(BaseModel):
    """Concrete bedtime / wake time pair after applying a titration action"""

    model_config = ConfigDict(frozen=True)

    bedtime: str
    wake_time: str
    window_minutes: int
    anchor: WindowAnchor = WindowAnchor.WAKE_TIME
