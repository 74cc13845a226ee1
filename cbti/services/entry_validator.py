"""
Diary Entry Validator

Cross-field consistency checks run before a night's metrics are computed
and stored. Every check runs and every failure is reported, so the diary
form can show all problems at once. Rejections are values, not exceptions:
the caller re-prompts the patient.
"""

import logging
from datetime import date
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from cbti.exceptions import TimeFormatError
from cbti.models.diary import DiaryAnswers
from cbti.models.metrics import SleepMetrics
from cbti.services.metric_calculator import awakening_count, calculate_sleep_metrics, resolve_anchors
from cbti.services.questionnaire import validate_answers
from cbti.utils.clock import MINUTES_PER_DAY, elapsed_minutes
from cbti.utils.day_boundary import DayBoundaryPolicy

logger = logging.getLogger(__name__)


class EntryRule(str, Enum):
    SLEEP_BEFORE_BED = "sleep_before_bed"
    WAKE_NOT_AFTER_SLEEP = "wake_not_after_sleep"
    OUT_OF_BED_BEFORE_WAKE = "out_of_bed_before_wake"
    TIME_IN_BED_RANGE = "time_in_bed_range"
    SOL_OUT_EXCEEDS_SOL = "sol_out_exceeds_sol"
    WASO_OUT_EXCEEDS_WASO = "waso_out_exceeds_waso"
    EMA_OUT_EXCEEDS_EMA = "ema_out_exceeds_ema"
    INVALID_TIME_FORMAT = "invalid_time_format"
    ANSWER_INVALID = "answer_invalid"


class EntryViolation(BaseModel):
    """One broken rule, with text suitable for the patient"""

    model_config = ConfigDict(frozen=True)

    rule: EntryRule
    message: str
    question_id: Optional[str] = None


class EntrySubmission(BaseModel):
    """Outcome of submitting a diary: metrics only when nothing was violated"""

    metrics: Optional[SleepMetrics] = None
    violations: List[EntryViolation] = Field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return not self.violations


def validate_time_order(
    answers: DiaryAnswers,
    sleep_date: date,
    policy: Optional[DayBoundaryPolicy] = None
) -> List[EntryViolation]:
    """Ordering of the four anchored times and the overall time-in-bed span"""
    violations: List[EntryViolation] = []

    try:
        anchors = resolve_anchors(answers, sleep_date, policy)
    except TimeFormatError as e:
        return [EntryViolation(
            rule=EntryRule.INVALID_TIME_FORMAT,
            message="Invalid time format",
            question_id=e.field,
        )]

    if anchors.sleep_attempt_time < anchors.bed_time:
        violations.append(EntryViolation(
            rule=EntryRule.SLEEP_BEFORE_BED,
            message="Sleep attempt time cannot be before bed time",
            question_id="q2_tts",
        ))

    if anchors.final_awakening_time <= anchors.sleep_attempt_time:
        violations.append(EntryViolation(
            rule=EntryRule.WAKE_NOT_AFTER_SLEEP,
            message="Wake time must be after sleep time",
            question_id="q9_tfa",
        ))

    if anchors.out_of_bed_time < anchors.final_awakening_time:
        violations.append(EntryViolation(
            rule=EntryRule.OUT_OF_BED_BEFORE_WAKE,
            message="Out of bed time cannot be before wake time",
            question_id="q13_tob",
        ))

    span = elapsed_minutes(anchors.bed_time, anchors.out_of_bed_time)
    if span > MINUTES_PER_DAY:
        violations.append(EntryViolation(
            rule=EntryRule.TIME_IN_BED_RANGE,
            message="Time in bed cannot exceed 24 hours",
            question_id="q13_tob",
        ))
    elif span <= 0:
        violations.append(EntryViolation(
            rule=EntryRule.TIME_IN_BED_RANGE,
            message="Invalid time sequence",
            question_id="q13_tob",
        ))

    return violations


def validate_out_of_bed_times(answers: DiaryAnswers) -> List[EntryViolation]:
    """
    Out-of-bed portions may not exceed the duration they are part of

    Each pair is only checked when its governing answer made the parent
    question apply and the parent was reported.
    """
    violations: List[EntryViolation] = []

    def exceeds(part: Optional[int], parent: Optional[int]) -> bool:
        return parent is not None and part is not None and part > parent

    if not answers.fell_asleep_quickly and exceeds(
        answers.sleep_onset_latency_out_of_bed, answers.sleep_onset_latency
    ):
        violations.append(EntryViolation(
            rule=EntryRule.SOL_OUT_EXCEEDS_SOL,
            message="Out of bed time cannot exceed total time to fall asleep",
            question_id="q5_sol_out",
        ))

    if awakening_count(answers.awakening_count) > 0 and exceeds(
        answers.waso_out_of_bed_minutes, answers.waso_minutes
    ):
        violations.append(EntryViolation(
            rule=EntryRule.WASO_OUT_EXCEEDS_WASO,
            message="Out of bed time cannot exceed total wake time during night",
            question_id="q8_waso_out",
        ))

    if answers.woke_early and exceeds(
        answers.early_morning_awakening_out_of_bed_minutes, answers.early_morning_awakening_minutes
    ):
        violations.append(EntryViolation(
            rule=EntryRule.EMA_OUT_EXCEEDS_EMA,
            message="Out of bed time cannot exceed total early wake time",
            question_id="q12_ema_out",
        ))

    return violations


def validate_entry(
    answers: DiaryAnswers,
    sleep_date: date,
    policy: Optional[DayBoundaryPolicy] = None
) -> List[EntryViolation]:
    """
    Run every cross-field check

    Args:
        answers: Diary answers for one night
        sleep_date: Calendar date the patient went to bed
        policy: Day-boundary rules; defaults to the configured uniform rule

    Returns:
        All violated rules; empty when the entry is consistent
    """
    return validate_time_order(answers, sleep_date, policy) + validate_out_of_bed_times(answers)


def submit_entry(
    answers: DiaryAnswers,
    sleep_date: date,
    policy: Optional[DayBoundaryPolicy] = None,
    patient_id: Optional[str] = None
) -> EntrySubmission:
    """
    Gate a diary submission and compute metrics if it is accepted

    Questionnaire rules (required answers, minimum durations) are checked
    first, then the cross-field rules. Metrics are only computed when there
    are no violations at all.
    """
    violations = [
        EntryViolation(rule=EntryRule.ANSWER_INVALID, message=error, question_id=question_id)
        for question_id, error in validate_answers(answers.to_answer_map()).errors.items()
    ]
    violations.extend(validate_entry(answers, sleep_date, policy))

    if violations:
        logger.warning(
            f"Rejected diary entry for {sleep_date} (patient {patient_id}): "
            f"{', '.join(v.rule.value for v in violations)}"
        )
        return EntrySubmission(violations=violations)

    metrics = calculate_sleep_metrics(answers, sleep_date, policy)
    logger.info(f"Accepted diary entry for {sleep_date} (patient {patient_id}), SE={metrics.sleep_efficiency}%")
    return EntrySubmission(metrics=metrics)
