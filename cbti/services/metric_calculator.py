"""
Sleep Metric Calculator

Turns one night's validated diary answers into SleepMetrics.

Definitions (all in whole minutes):
- SOL: sleep onset latency; a "fell asleep within 5 minutes" answer counts
  as the configured quick-onset value (5)
- WASO: wake after sleep onset; zero whenever no awakenings were reported
- EMA: early morning awakening; zero unless the patient woke early
- TIB = (final awakening - sleep attempt) + EMA
- TWT = SOL + WASO + EMA
- TST = max(0, TIB - TWT)
- SE  = round(100 * TST / TIB), or 0 when TIB is not positive

The final awakening already reflects the early, unwanted waking, so EMA is
added back to reach the time the patient intended to wake.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from cbti.config import settings
from cbti.models.diary import DiaryAnswers
from cbti.models.metrics import SleepMetrics
from cbti.services.questionnaire import AWAKENING_COUNT_MAP
from cbti.utils.clock import elapsed_minutes
from cbti.utils.day_boundary import DayBoundaryPolicy
from cbti.utils.rounding import round_half_up

logger = logging.getLogger(__name__)


class SleepAnchors(BaseModel):
    """The four diary times resolved to absolute instants"""

    model_config = ConfigDict(frozen=True)

    bed_time: datetime
    sleep_attempt_time: datetime
    final_awakening_time: datetime
    out_of_bed_time: datetime


def default_sleep_date(today: date) -> date:
    """
    Sleep date for a diary filled in on `today`

    The diary is completed in the morning about the previous night, so the
    sleep date is the day before.
    """
    return today - timedelta(days=1)


def resolve_anchors(
    answers: DiaryAnswers,
    sleep_date: date,
    policy: Optional[DayBoundaryPolicy] = None
) -> SleepAnchors:
    """
    Anchor the four wall-clock answers to the sleep date or the day after

    Raises:
        TimeFormatError: If any time answer is not HH:MM
    """
    policy = policy or DayBoundaryPolicy.from_settings()
    return SleepAnchors(
        bed_time=policy.anchor(sleep_date, "time_to_bed", answers.time_to_bed),
        sleep_attempt_time=policy.anchor(sleep_date, "time_try_sleep", answers.time_try_sleep),
        final_awakening_time=policy.anchor(sleep_date, "time_final_awakening", answers.time_final_awakening),
        out_of_bed_time=policy.anchor(sleep_date, "time_out_of_bed", answers.time_out_of_bed),
    )


def awakening_count(bucket: int) -> int:
    """Representative awakening count for a questionnaire bucket (unknown -> 0)"""
    return AWAKENING_COUNT_MAP.get(bucket, 0)


def sleep_efficiency(total_sleep_time: float, time_in_bed: float) -> int:
    """SE as a whole percentage; 0 when there was no time in bed"""
    if time_in_bed <= 0:
        return 0
    return round_half_up(total_sleep_time / time_in_bed * 100)


def calculate_sleep_metrics(
    answers: DiaryAnswers,
    sleep_date: date,
    policy: Optional[DayBoundaryPolicy] = None
) -> SleepMetrics:
    """
    Calculate all sleep metrics for one night

    Assumes the entry validator has accepted the answers. Deterministic:
    the same answers, date and policy always give an identical result.

    Args:
        answers: Validated diary answers
        sleep_date: Calendar date the patient went to bed
        policy: Day-boundary rules; defaults to the configured uniform rule

    Returns:
        SleepMetrics for the night

    Raises:
        TimeFormatError: If a time answer cannot be parsed
    """
    anchors = resolve_anchors(answers, sleep_date, policy)

    # Sleep onset latency
    if answers.fell_asleep_quickly:
        sol = settings.quick_sleep_onset_minutes
        sol_out = 0
    else:
        sol = answers.sleep_onset_latency or 0
        sol_out = answers.sleep_onset_latency_out_of_bed or 0

    # Wake after sleep onset; no awakenings means no WASO whatever was typed
    awakenings = awakening_count(answers.awakening_count)
    if awakenings > 0:
        waso = answers.waso_minutes or 0
        waso_out = answers.waso_out_of_bed_minutes or 0
    else:
        waso = 0
        waso_out = 0

    # Early morning awakening
    if answers.woke_early:
        ema = answers.early_morning_awakening_minutes or 0
        ema_out = answers.early_morning_awakening_out_of_bed_minutes or 0
    else:
        ema = 0
        ema_out = 0

    total_wake_time = sol + waso + ema
    total_wake_time_out = sol_out + waso_out + ema_out

    time_in_bed = elapsed_minutes(anchors.sleep_attempt_time, anchors.final_awakening_time) + ema
    total_sleep_time = max(0, time_in_bed - total_wake_time)
    se = sleep_efficiency(total_sleep_time, time_in_bed)

    metrics = SleepMetrics(
        sleep_date=sleep_date,
        bed_time=anchors.bed_time,
        sleep_attempt_time=anchors.sleep_attempt_time,
        final_awakening_time=anchors.final_awakening_time,
        out_of_bed_time=anchors.out_of_bed_time,
        sleep_onset_latency=sol,
        sleep_onset_latency_out_of_bed=sol_out,
        awakenings=awakenings,
        waso_minutes=waso,
        waso_out_of_bed_minutes=waso_out,
        early_morning_awakening_minutes=ema,
        early_morning_awakening_out_of_bed_minutes=ema_out,
        quality_rating=answers.quality_rating,
        time_in_bed=time_in_bed,
        total_wake_time=total_wake_time,
        total_wake_time_out_of_bed=total_wake_time_out,
        total_sleep_time=total_sleep_time,
        sleep_efficiency=se,
    )

    logger.debug(
        f"Sleep metrics for {sleep_date}: TIB={time_in_bed} TWT={total_wake_time} "
        f"TST={total_sleep_time} SE={se}%"
    )
    return metrics


def prepare_diary_entry(
    answers: DiaryAnswers,
    sleep_date: date,
    policy: Optional[DayBoundaryPolicy] = None,
    timezone: Optional[str] = None
) -> Dict[str, Any]:
    """Diary entry ready for storage: metrics plus the raw answers for audit"""
    metrics = calculate_sleep_metrics(answers, sleep_date, policy)
    return metrics.to_entry_record(answers=answers.to_answer_map(), timezone=timezone)
