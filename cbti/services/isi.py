"""
Insomnia Severity Index (ISI)

Seven items scored 0-4, summed to 0-28. Collected at intake, mid-treatment,
discharge and follow-up to track treatment response alongside the diary.

Severity bands:
- 0-7: no clinically significant insomnia
- 8-14: subthreshold insomnia
- 15-21: clinical insomnia (moderate severity)
- 22-28: clinical insomnia (severe)
"""

import logging
from datetime import date
from typing import List, Mapping, Optional, Tuple

from cbti.exceptions import ValidationError
from cbti.models.isi import AssessmentType, IsiItem, IsiResult, IsiSeverity

logger = logging.getLogger(__name__)

_SEVERITY_SCALE = ("None", "Mild", "Moderate", "Severe", "Very Severe")

ISI_ITEMS: List[IsiItem] = [
    IsiItem(id="severity_onset", text="Difficulty falling asleep", labels=_SEVERITY_SCALE),
    IsiItem(id="severity_maintenance", text="Difficulty staying asleep", labels=_SEVERITY_SCALE),
    IsiItem(id="severity_early_waking", text="Problems waking up too early", labels=_SEVERITY_SCALE),
    IsiItem(
        id="satisfaction",
        text="How satisfied/dissatisfied are you with your current sleep pattern?",
        labels=("Very Satisfied", "Satisfied", "Moderately Satisfied", "Dissatisfied", "Very Dissatisfied"),
    ),
    IsiItem(
        id="noticeability",
        text="How noticeable to others do you think your sleep problem is in terms of impairing the quality of your life?",
        labels=("Not at all Noticeable", "A Little", "Somewhat", "Much", "Very Much Noticeable"),
    ),
    IsiItem(
        id="worry",
        text="How worried/distressed are you about your current sleep problem?",
        labels=("Not at all Worried", "A Little", "Somewhat", "Much", "Very Much Worried"),
    ),
    IsiItem(
        id="interference",
        text="To what extent do you consider your sleep problem to interfere with your daily functioning?",
        labels=("Not at all Interfering", "A Little", "Somewhat", "Much", "Very Much Interfering"),
    ),
]

# (upper bound inclusive, severity, label)
SEVERITY_BANDS: Tuple[Tuple[int, IsiSeverity, str], ...] = (
    (7, IsiSeverity.NONE, "No clinically significant insomnia"),
    (14, IsiSeverity.SUBTHRESHOLD, "Subthreshold insomnia"),
    (21, IsiSeverity.MODERATE, "Clinical insomnia (moderate severity)"),
    (28, IsiSeverity.SEVERE, "Clinical insomnia (severe)"),
)


def classify_isi(score: int) -> Tuple[IsiSeverity, str]:
    """Severity band for a total score"""
    for upper, severity, label in SEVERITY_BANDS:
        if score <= upper:
            return severity, label
    raise ValidationError("ISI total must be between 0 and 28", field="score", value=score)


def score_isi(
    answers: Mapping[str, int],
    assessment_type: AssessmentType = AssessmentType.INTAKE,
    assessed_on: Optional[date] = None
) -> IsiResult:
    """
    Score a completed ISI questionnaire

    Args:
        answers: Item id -> score (0-4) for all seven items
        assessment_type: Point in treatment the assessment belongs to
        assessed_on: Date the patient completed it

    Returns:
        IsiResult with total score and severity band

    Raises:
        ValidationError: If an item is missing or scored outside 0-4
    """
    assessment_type = AssessmentType(assessment_type)
    scores = {}
    for item in ISI_ITEMS:
        value = answers.get(item.id)
        if value is None:
            raise ValidationError("ISI item is required", field=item.id)
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 4:
            raise ValidationError("ISI item score must be between 0 and 4", field=item.id, value=value)
        scores[item.id] = value

    total = sum(scores.values())
    severity, label = classify_isi(total)
    logger.debug(f"ISI {assessment_type.value} score {total} ({severity.value})")

    return IsiResult(
        score=total,
        severity=severity,
        label=label,
        assessment_type=assessment_type,
        assessed_on=assessed_on,
        answers=scores,
    )
