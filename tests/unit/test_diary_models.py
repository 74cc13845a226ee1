"""Unit tests for diary, metrics and prescription models"""
import pytest
from datetime import date
from pydantic import ValidationError

from cbti.models.diary import DiaryAnswers
from cbti.models.metrics import WeeklyMetrics
from cbti.models.prescription import Prescription, TitrationAction, TitrationRecommendation, Confidence


class TestDiaryAnswers:
    """Test DiaryAnswers validation"""

    def test_valid_answers(self, diary_answers_factory):
        answers = diary_answers_factory()
        assert answers.time_to_bed == "22:00"
        assert answers.sleep_onset_latency is None

    def test_accepts_question_ids(self):
        answers = DiaryAnswers.model_validate({
            "q1_ttb": "23:00",
            "q2_tts": "23:10",
            "q3_fell_asleep_quickly": False,
            "q4_sol": 20,
            "q5_sol_out": 0,
            "q6_awakenings": 0,
            "q9_tfa": "6:45",
            "q10_woke_early": False,
            "q13_tob": "07:00",
            "q14_quality": 3,
        })
        assert answers.sleep_onset_latency == 20
        assert answers.time_final_awakening == "06:45"

    def test_answer_map_uses_question_ids(self, diary_answers_factory):
        answer_map = diary_answers_factory().to_answer_map()
        assert answer_map["q1_ttb"] == "22:00"
        assert answer_map["q3_fell_asleep_quickly"] is True
        assert "q4_sol" not in answer_map

    def test_bad_time_rejected(self, diary_answers_factory):
        with pytest.raises(ValidationError):
            diary_answers_factory(time_to_bed="25:00")

    def test_negative_duration_rejected(self, diary_answers_factory):
        with pytest.raises(ValidationError):
            diary_answers_factory(fell_asleep_quickly=False, sleep_onset_latency=-5)

    def test_awakening_bucket_range(self, diary_answers_factory):
        assert diary_answers_factory(awakening_count=6).awakening_count == 6
        with pytest.raises(ValidationError):
            diary_answers_factory(awakening_count=7, waso_minutes=90, waso_out_of_bed_minutes=10)

    def test_quality_range(self, diary_answers_factory):
        with pytest.raises(ValidationError):
            diary_answers_factory(quality_rating=6)
        with pytest.raises(ValidationError):
            diary_answers_factory(quality_rating=0)

    def test_frozen(self, diary_answers_factory):
        answers = diary_answers_factory()
        with pytest.raises(ValidationError):
            answers.quality_rating = 1


class TestWeeklyMetricsModel:
    """Test weekly summary helpers"""

    def test_completion_rate(self):
        assert WeeklyMetrics(days_logged=5, total_days=7).completion_rate == 71
        assert WeeklyMetrics(days_logged=7, total_days=7).completion_rate == 100

    def test_completion_rate_no_expected_days(self):
        assert WeeklyMetrics(days_logged=0, total_days=0).completion_rate == 0


class TestPrescription:
    """Test prescription construction"""

    def test_from_times_derives_window(self, prescription):
        assert prescription.window_minutes == 375
        assert prescription.bedtime == "23:45"

    def test_normalizes_times(self):
        rx = Prescription.from_times("p1", "1:00", "7:30", date(2024, 1, 1), "dr")
        assert rx.bedtime == "01:00"
        assert rx.window_minutes == 390

    def test_signed_minutes(self):
        def rec(action, minutes):
            return TitrationRecommendation(
                action=action, minutes=minutes, reason="", confidence=Confidence.HIGH, rule="test"
            )

        assert rec(TitrationAction.INCREASE, 15).signed_minutes == 15
        assert rec(TitrationAction.DECREASE, 15).signed_minutes == -15
        assert rec(TitrationAction.MAINTAIN, 0).signed_minutes == 0
