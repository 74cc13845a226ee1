"""
Weekly Sleep Metrics Aggregation

Reduces a set of nightly metrics into averages for a window (usually the
last 7 days, or the baseline week), and compares windows for the therapist
dashboard.

Averages are None when no night contributes a value. None means "no data"
and is never reported as zero.
"""

import logging
from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from cbti.models.metrics import MetricsComparison, NightlyRecord, SleepMetrics, WeeklyMetrics
from cbti.utils.rounding import round_half_up, round_tenth

logger = logging.getLogger(__name__)

NightlyEntry = Union[SleepMetrics, NightlyRecord]

# WeeklyMetrics field -> attribute on a nightly entry
AVERAGED_FIELDS = {
    "avg_sleep_efficiency": "sleep_efficiency",
    "avg_total_sleep_time": "total_sleep_time",
    "avg_time_in_bed": "time_in_bed",
    "avg_sol": "sleep_onset_latency",
    "avg_waso": "waso_minutes",
    "avg_ema": "early_morning_awakening_minutes",
    "avg_total_wake_time": "total_wake_time",
    "avg_quality": "quality_rating",
}


def average(values: Iterable[Optional[float]]) -> Optional[float]:
    """Arithmetic mean of the non-null values, or None if there are none"""
    present = [v for v in values if v is not None]
    if not present:
        return None
    return sum(present) / len(present)


def _in_range(entry: NightlyEntry, start_date: Optional[date], end_date: Optional[date]) -> bool:
    day = entry.sleep_date
    if day is None:
        return True
    if start_date is not None and day < start_date:
        return False
    if end_date is not None and day > end_date:
        return False
    return True


def calculate_weekly_metrics(
    entries: Sequence[NightlyEntry],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    total_days: int = 7
) -> WeeklyMetrics:
    """
    Aggregate nightly entries into weekly averages

    Args:
        entries: Nightly metrics, already fetched for the patient
        start_date: Inclusive start of the window; entries before it are ignored
        end_date: Inclusive end of the window; entries after it are ignored
        total_days: Days the patient was expected to log in the window

    Returns:
        WeeklyMetrics; days_logged counts the entries considered, whichever
        fields they carry
    """
    considered = [e for e in entries if _in_range(e, start_date, end_date)]

    averages = {
        name: average(getattr(entry, attr, None) for entry in considered)
        for name, attr in AVERAGED_FIELDS.items()
    }

    weekly = WeeklyMetrics(
        **averages,
        days_logged=len(considered),
        total_days=total_days,
        start_date=start_date,
        end_date=end_date,
    )
    logger.debug(
        f"Weekly metrics {start_date}..{end_date}: {weekly.days_logged} days, "
        f"avg SE={weekly.avg_sleep_efficiency}"
    )
    return weekly


# ============================================================================
# WINDOWS
# ============================================================================

def week_date_range(end_date: date, days: int = 7) -> Tuple[date, date]:
    """Inclusive (start, end) of the `days`-day window ending on end_date"""
    return end_date - timedelta(days=days - 1), end_date


def baseline_entries(entries: Sequence[NightlyEntry], days: int = 7) -> List[NightlyEntry]:
    """The first `days` nights the patient logged, oldest first"""
    dated = sorted(
        (e for e in entries if e.sleep_date is not None),
        key=lambda e: e.sleep_date,
    )
    return dated[:days]


def calculate_baseline_metrics(entries: Sequence[NightlyEntry], days: int = 7) -> WeeklyMetrics:
    """Weekly metrics over the baseline nights, expecting as many days as were found"""
    baseline = baseline_entries(entries, days)
    return calculate_weekly_metrics(baseline, total_days=len(baseline))


# ============================================================================
# COMPARISONS
# ============================================================================

def calculate_diff(current: Optional[float], previous: Optional[float]) -> Optional[float]:
    """Absolute difference to one decimal, None if either side is missing"""
    if current is None or previous is None:
        return None
    return round_tenth(current - previous)


def calculate_change(current: Optional[float], previous: Optional[float]) -> Optional[float]:
    """Percent change to one decimal, None if either side is missing or previous is zero"""
    if current is None or previous is None or previous == 0:
        return None
    return round_tenth((current - previous) / previous * 100)


def compare_weeks(
    current: WeeklyMetrics,
    previous: Optional[WeeklyMetrics] = None,
    baseline: Optional[WeeklyMetrics] = None
) -> MetricsComparison:
    """Sleep efficiency movement against last week and against baseline"""
    return MetricsComparison(
        current=current,
        previous=previous,
        baseline=baseline,
        se_change=calculate_diff(
            current.avg_sleep_efficiency,
            previous.avg_sleep_efficiency if previous else None,
        ),
        se_baseline_change=calculate_diff(
            current.avg_sleep_efficiency,
            baseline.avg_sleep_efficiency if baseline else None,
        ),
    )


def completion_rate(logged: int, total: int) -> int:
    """Diary completion as a whole percentage"""
    if total == 0:
        return 0
    return round_half_up(logged / total * 100)
