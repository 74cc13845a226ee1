"""Pydantic models for Insomnia Severity Index assessments"""
from datetime import date
from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class AssessmentType(str, Enum):
    INTAKE = "intake"
    MID_TREATMENT = "mid_treatment"
    DISCHARGE = "discharge"
    FOLLOW_UP = "follow_up"


class IsiSeverity(str, Enum):
    NONE = "none"
    SUBTHRESHOLD = "subthreshold"
    MODERATE = "moderate"
    SEVERE = "severe"


class IsiItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    labels: Tuple[str, ...]  # index == score


class IsiResult(BaseModel):
    """Scored ISI questionnaire (total 0-28)"""

    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=0, le=28)
    severity: IsiSeverity
    label: str
    assessment_type: AssessmentType = AssessmentType.INTAKE
    assessed_on: Optional[date] = None
    answers: Dict[str, int] = Field(default_factory=dict)
