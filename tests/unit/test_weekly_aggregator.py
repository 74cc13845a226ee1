"""Unit tests for weekly sleep metric aggregation"""
import pytest
from datetime import date

from cbti.models.metrics import NightlyRecord, WeeklyMetrics
from cbti.services.metric_calculator import calculate_sleep_metrics
from cbti.services.weekly_aggregator import (
    average,
    baseline_entries,
    calculate_baseline_metrics,
    calculate_change,
    calculate_diff,
    calculate_weekly_metrics,
    compare_weeks,
    completion_rate,
    week_date_range,
)


class TestCalculateWeeklyMetrics:
    """Test weekly averaging"""

    def test_empty_week(self):
        weekly = calculate_weekly_metrics([])

        assert weekly.days_logged == 0
        assert weekly.avg_sleep_efficiency is None
        assert weekly.avg_total_sleep_time is None
        assert weekly.avg_quality is None

    def test_exact_mean(self, nightly_record_factory):
        weekly = calculate_weekly_metrics(nightly_record_factory([80, 85, 91]))

        assert weekly.avg_sleep_efficiency == pytest.approx(85.333333, rel=1e-6)
        assert weekly.days_logged == 3

    def test_missing_values_skipped_per_field(self):
        entries = [
            NightlyRecord(sleep_date=date(2024, 1, 8), sleep_efficiency=80, total_sleep_time=400),
            NightlyRecord(sleep_date=date(2024, 1, 9), sleep_efficiency=90),
        ]
        weekly = calculate_weekly_metrics(entries)

        assert weekly.avg_sleep_efficiency == 85
        assert weekly.avg_total_sleep_time == 400
        assert weekly.avg_sol is None
        assert weekly.days_logged == 2

    def test_accepts_computed_metrics(self, diary_answers_factory, restless_answers, sleep_date):
        nights = [
            calculate_sleep_metrics(diary_answers_factory(), sleep_date),
            calculate_sleep_metrics(restless_answers, date(2024, 1, 16)),
        ]
        weekly = calculate_weekly_metrics(nights)

        assert weekly.avg_sleep_efficiency == pytest.approx((99 + 74) / 2)
        assert weekly.avg_time_in_bed == pytest.approx((495 + 390) / 2)
        assert weekly.avg_quality == pytest.approx(3)

    def test_range_filters_entries(self, nightly_record_factory):
        entries = nightly_record_factory([70, 80, 90, 100])  # Jan 8-11
        weekly = calculate_weekly_metrics(entries, start_date=date(2024, 1, 9), end_date=date(2024, 1, 10))

        assert weekly.days_logged == 2
        assert weekly.avg_sleep_efficiency == 85
        assert weekly.start_date == date(2024, 1, 9)

    def test_undated_entries_kept(self):
        weekly = calculate_weekly_metrics(
            [NightlyRecord(sleep_efficiency=88)], start_date=date(2024, 1, 1), end_date=date(2024, 1, 7)
        )
        assert weekly.days_logged == 1

    def test_average_helper(self):
        assert average([1, None, 3]) == 2
        assert average([None, None]) is None
        assert average([0]) == 0


class TestWindows:
    """Test window helpers and baseline selection"""

    def test_week_date_range(self):
        assert week_date_range(date(2024, 1, 14)) == (date(2024, 1, 8), date(2024, 1, 14))

    def test_baseline_is_first_logged_nights(self, nightly_record_factory):
        entries = list(reversed(nightly_record_factory([60, 65, 70, 75, 80, 85, 90, 95, 99])))
        baseline = baseline_entries(entries)

        assert len(baseline) == 7
        assert baseline[0].sleep_date == date(2024, 1, 8)
        assert baseline[-1].sleep_efficiency == 90

    def test_baseline_metrics(self, nightly_record_factory):
        weekly = calculate_baseline_metrics(nightly_record_factory([60, 70, 80]))

        assert weekly.avg_sleep_efficiency == 70
        assert weekly.total_days == 3
        assert weekly.completion_rate == 100


class TestComparisons:
    """Test week-over-week and baseline movement"""

    def test_diff(self):
        assert calculate_diff(86.25, 80) == 6.3
        assert calculate_diff(None, 80) is None

    def test_change(self):
        assert calculate_change(90, 80) == 12.5
        assert calculate_change(90, 0) is None
        assert calculate_change(90, None) is None

    def test_compare_weeks(self):
        comparison = compare_weeks(
            WeeklyMetrics(avg_sleep_efficiency=88),
            previous=WeeklyMetrics(avg_sleep_efficiency=84.5),
            baseline=WeeklyMetrics(avg_sleep_efficiency=72),
        )
        assert comparison.se_change == 3.5
        assert comparison.se_baseline_change == 16

    def test_compare_without_history(self):
        comparison = compare_weeks(WeeklyMetrics(avg_sleep_efficiency=88))
        assert comparison.se_change is None
        assert comparison.se_baseline_change is None

    def test_completion_rate(self):
        assert completion_rate(6, 7) == 86
        assert completion_rate(0, 0) == 0
