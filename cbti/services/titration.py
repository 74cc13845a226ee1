"""
Sleep Window Titration

Recommends how to adjust a patient's prescribed sleep window from their
weekly average sleep efficiency (SE), following standard CBT-I practice:

- SE >= 90%: widen the window by one increment (15 min)
- SE 85-89%: keep the window
- SE 80-84%: borderline, clinician decides
- SE < 80%: restrict by one increment, unless already at the minimum window

The rules live in an ordered table (TITRATION_RULES); the first row whose
condition holds decides the recommendation. Thresholds, increment and the
minimum window come from settings.

Sparse diaries are not an error: fewer than 3 logged days yields a
low-confidence "maintain". SE values outside 0-100 are not clamped; they go
through the same thresholds.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, Optional

from cbti.config import Settings, settings as default_settings
from cbti.models.metrics import WeeklyMetrics
from cbti.models.prescription import (
    Confidence,
    Prescription,
    TitrationAction,
    TitrationInput,
    TitrationRecommendation,
    WindowAdjustment,
    WindowAnchor,
)
from cbti.utils.clock import shift_clock, window_minutes
from cbti.utils.rounding import floor_tenth

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TitrationRule:
    """One row of the decision table"""
    name: str
    applies: Callable[[TitrationInput, Settings], bool]
    action: TitrationAction
    adjusts_window: bool
    confidence: Callable[[TitrationInput, Settings], Confidence]
    reason: Callable[[TitrationInput, Settings], str]


def _data_confidence(data: TitrationInput, config: Settings) -> Confidence:
    if data.days_logged >= config.min_days_for_confidence:
        return Confidence.HIGH
    return Confidence.MEDIUM


def _medium(data: TitrationInput, config: Settings) -> Confidence:
    return Confidence.MEDIUM


def _low(data: TitrationInput, config: Settings) -> Confidence:
    return Confidence.LOW


def _se(data: TitrationInput) -> str:
    return _fmt(floor_tenth(data.weekly_avg_se))


def _fmt(threshold: float) -> str:
    return f"{threshold:g}"


TITRATION_RULES = (
    TitrationRule(
        name="insufficient_data",
        applies=lambda d, c: d.weekly_avg_se is None or d.days_logged < c.min_days_for_recommendation,
        action=TitrationAction.MAINTAIN,
        adjusts_window=False,
        confidence=_low,
        reason=lambda d, c: (
            f"Not enough diary data to make a recommendation. "
            f"Need at least {c.min_days_for_recommendation} days logged."
        ),
    ),
    TitrationRule(
        name="excellent",
        applies=lambda d, c: d.weekly_avg_se >= c.se_excellent,
        action=TitrationAction.INCREASE,
        adjusts_window=True,
        confidence=_data_confidence,
        reason=lambda d, c: (
            f"Sleep efficiency {_se(d)}% meets or exceeds {_fmt(c.se_excellent)}%, indicating excellent "
            f"sleep consolidation. Recommend expanding sleep window by "
            f"{c.titration_increment_minutes} minutes."
        ),
    ),
    TitrationRule(
        name="good",
        applies=lambda d, c: d.weekly_avg_se >= c.se_good,
        action=TitrationAction.MAINTAIN,
        adjusts_window=False,
        confidence=_data_confidence,
        reason=lambda d, c: (
            f"Sleep efficiency {_se(d)}% is at least {_fmt(c.se_good)}% and below {_fmt(c.se_excellent)}%, "
            f"indicating good progress. Recommend maintaining current sleep window."
        ),
    ),
    TitrationRule(
        name="borderline",
        applies=lambda d, c: d.weekly_avg_se >= c.se_borderline,
        action=TitrationAction.REVIEW,
        adjusts_window=False,
        confidence=_medium,
        reason=lambda d, c: (
            f"Sleep efficiency {_se(d)}% is borderline (at least {_fmt(c.se_borderline)}% and below {_fmt(c.se_good)}%). "
            f"Clinical judgment recommended - consider maintaining or decreasing window "
            f"based on patient factors."
        ),
    ),
    TitrationRule(
        name="poor",
        applies=lambda d, c: d.current_window_minutes > d.min_window_minutes,
        action=TitrationAction.DECREASE,
        adjusts_window=True,
        confidence=_data_confidence,
        reason=lambda d, c: (
            f"Sleep efficiency {_se(d)}% is below {_fmt(c.se_borderline)}%, suggesting the sleep "
            f"window may be too large. Recommend restricting by "
            f"{c.titration_increment_minutes} minutes."
        ),
    ),
    TitrationRule(
        name="at_floor",
        applies=lambda d, c: True,
        action=TitrationAction.REVIEW,
        adjusts_window=False,
        confidence=_medium,
        reason=lambda d, c: (
            f"Sleep efficiency {_se(d)}% is below {_fmt(c.se_borderline)}% but patient is already "
            f"at minimum sleep window ({d.min_window_minutes / 60:g} hours). "
            f"Clinical review recommended."
        ),
    ),
)


def get_titration_recommendation(
    data: TitrationInput,
    config: Optional[Settings] = None
) -> TitrationRecommendation:
    """
    Evaluate the decision table for one week of data

    Args:
        data: Weekly average SE, days logged, current and minimum window
        config: Settings carrying thresholds and increment (module settings by default)

    Returns:
        TitrationRecommendation from the first matching rule
    """
    config = config or default_settings

    for rule in TITRATION_RULES:
        if rule.applies(data, config):
            recommendation = TitrationRecommendation(
                action=rule.action,
                minutes=config.titration_increment_minutes if rule.adjusts_window else 0,
                reason=rule.reason(data, config),
                confidence=rule.confidence(data, config),
                weekly_avg_se=data.weekly_avg_se,
                days_logged=data.days_logged,
                rule=rule.name,
            )
            logger.info(
                f"Titration rule '{rule.name}' matched: {recommendation.action.value} "
                f"{recommendation.minutes} min ({recommendation.confidence.value} confidence)"
            )
            return recommendation

    # at_floor always applies, so the loop cannot fall through
    raise RuntimeError("Titration table has no catch-all rule")


def recommend_for_week(
    weekly: WeeklyMetrics,
    prescription: Prescription,
    min_window_minutes: Optional[int] = None,
    config: Optional[Settings] = None
) -> TitrationRecommendation:
    """Recommendation for a weekly summary and the prescription currently in force"""
    config = config or default_settings
    floor = config.min_window_minutes if min_window_minutes is None else min_window_minutes
    return get_titration_recommendation(
        TitrationInput(
            weekly_avg_se=weekly.avg_sleep_efficiency,
            days_logged=weekly.days_logged,
            current_window_minutes=prescription.window_minutes,
            min_window_minutes=floor,
        ),
        config,
    )


def calculate_new_prescription(
    prescription: Prescription,
    action: TitrationAction,
    minutes: int,
    anchor: WindowAnchor = WindowAnchor.WAKE_TIME
) -> WindowAdjustment:
    """
    New bedtime / wake time after applying a titration action

    With the default wake-time anchor the wake time stays fixed and bedtime
    moves (earlier to widen, later to restrict); with the bedtime anchor the
    wake time moves instead. Clock times wrap around midnight. The minimum
    window is not enforced here; callers reject windows below the floor.

    Example:
        >>> rx = Prescription.from_times("p1", "23:45", "06:00", date(2024, 1, 1), "dr")
        >>> calculate_new_prescription(rx, TitrationAction.INCREASE, 15).bedtime
        '23:30'
    """
    anchor = WindowAnchor(anchor)

    if action in (TitrationAction.MAINTAIN, TitrationAction.REVIEW) or minutes == 0:
        return WindowAdjustment(
            bedtime=prescription.bedtime,
            wake_time=prescription.wake_time,
            window_minutes=prescription.window_minutes,
            anchor=anchor,
        )

    adjustment = minutes if action == TitrationAction.INCREASE else -minutes

    if anchor == WindowAnchor.WAKE_TIME:
        bedtime = shift_clock(prescription.bedtime, -adjustment)
        wake_time = prescription.wake_time
    else:
        bedtime = prescription.bedtime
        wake_time = shift_clock(prescription.wake_time, adjustment)

    return WindowAdjustment(
        bedtime=bedtime,
        wake_time=wake_time,
        window_minutes=prescription.window_minutes + adjustment,
        anchor=anchor,
    )


def calculate_window_minutes(bedtime: str, wake_time: str) -> int:
    """Sleep window length for a bedtime / wake time pair, wrapping overnight"""
    return window_minutes(bedtime, wake_time)


def active_prescription(prescriptions: Iterable[Prescription], on_date: date) -> Optional[Prescription]:
    """
    The prescription in force on a date

    That is the one with the latest effective_date on or before on_date.
    Same-day ties go to the latest created_at, then to list order.
    """
    in_force = None
    for rx in prescriptions:
        if rx.effective_date > on_date:
            continue
        if in_force is None or _supersedes(rx, in_force):
            in_force = rx
    return in_force


def _supersedes(candidate: Prescription, current: Prescription) -> bool:
    if candidate.effective_date != current.effective_date:
        return candidate.effective_date > current.effective_date
    if candidate.created_at and current.created_at:
        return candidate.created_at >= current.created_at
    return True


ACTION_LABELS = {
    TitrationAction.INCREASE: "Increase Window",
    TitrationAction.MAINTAIN: "Maintain",
    TitrationAction.DECREASE: "Decrease Window",
    TitrationAction.REVIEW: "Review Needed",
}


def action_label(action: TitrationAction) -> str:
    return ACTION_LABELS[TitrationAction(action)]
