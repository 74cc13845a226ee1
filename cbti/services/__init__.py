"""
Service Layer Package

Pure computation over diary answers and prescriptions. Nothing here does I/O;
persistence, authentication and delivery belong to the surrounding app.

Core Services:
- questionnaire: Diary questions, visibility and answer validation
- metric_calculator: Diary answers -> nightly SleepMetrics
- entry_validator: Cross-field checks gating a diary submission
- weekly_aggregator: Nightly metrics -> WeeklyMetrics and week comparisons
- titration: Sleep window recommendation and new window computation
- isi: Insomnia Severity Index scoring
"""

from cbti.services.questionnaire import QUESTIONS, is_visible, visible_questions, validate_answer
from cbti.services.metric_calculator import calculate_sleep_metrics, prepare_diary_entry
from cbti.services.entry_validator import EntryRule, EntryViolation, submit_entry, validate_entry
from cbti.services.weekly_aggregator import calculate_weekly_metrics, compare_weeks
from cbti.services.titration import (
    active_prescription,
    calculate_new_prescription,
    get_titration_recommendation,
    recommend_for_week,
)
from cbti.services.isi import score_isi

__all__ = [
    # Question model
    "QUESTIONS",
    "is_visible",
    "visible_questions",
    "validate_answer",
    # Nightly metrics
    "calculate_sleep_metrics",
    "prepare_diary_entry",
    "EntryRule",
    "EntryViolation",
    "submit_entry",
    "validate_entry",
    # Weekly aggregation
    "calculate_weekly_metrics",
    "compare_weeks",
    # Titration
    "active_prescription",
    "calculate_new_prescription",
    "get_titration_recommendation",
    "recommend_for_week",
    # Assessments
    "score_isi",
]
