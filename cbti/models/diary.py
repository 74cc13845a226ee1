"""Pydantic models for nightly sleep diary answers"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cbti.utils.clock import parse_clock_time


class DiaryAnswers(BaseModel):
    """
    One patient-submitted diary for one night

    Attributes are snake_case; the questionnaire ids (q1_ttb ... q14_quality)
    are accepted as aliases, so an answer map keyed by question id validates
    directly:

        DiaryAnswers.model_validate({"q1_ttb": "22:00", ...})

    Conditional durations are None when their governing question hid them.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    time_to_bed: str = Field(alias="q1_ttb")
    time_try_sleep: str = Field(alias="q2_tts")
    fell_asleep_quickly: bool = Field(alias="q3_fell_asleep_quickly")
    sleep_onset_latency: Optional[int] = Field(None, ge=0, le=1440, alias="q4_sol")
    sleep_onset_latency_out_of_bed: Optional[int] = Field(None, ge=0, le=1440, alias="q5_sol_out")
    awakening_count: int = Field(ge=0, le=6, alias="q6_awakenings")  # MCQ bucket, not a raw count
    waso_minutes: Optional[int] = Field(None, ge=0, le=1440, alias="q7_waso")
    waso_out_of_bed_minutes: Optional[int] = Field(None, ge=0, le=1440, alias="q8_waso_out")
    time_final_awakening: str = Field(alias="q9_tfa")
    woke_early: bool = Field(alias="q10_woke_early")
    early_morning_awakening_minutes: Optional[int] = Field(None, ge=0, le=1440, alias="q11_ema")
    early_morning_awakening_out_of_bed_minutes: Optional[int] = Field(None, ge=0, le=1440, alias="q12_ema_out")
    time_out_of_bed: str = Field(alias="q13_tob")
    quality_rating: int = Field(ge=1, le=5, alias="q14_quality")

    @field_validator('time_to_bed', 'time_try_sleep', 'time_final_awakening', 'time_out_of_bed')
    @classmethod
    def valid_clock_time(cls, v: str, info) -> str:
        """Reject anything that is not a 24-hour HH:MM time"""
        hour, minute = parse_clock_time(v, field=info.field_name)
        return f"{hour:02d}:{minute:02d}"

    def to_answer_map(self) -> Dict[str, Any]:
        """Answers keyed by question id, omitting unanswered conditionals"""
        return self.model_dump(by_alias=True, exclude_none=True)
