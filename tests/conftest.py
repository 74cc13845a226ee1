"""Global test fixtures and utilities for sleep engine tests"""
import pytest
from datetime import date, datetime

from cbti.models.diary import DiaryAnswers
from cbti.models.metrics import NightlyRecord
from cbti.models.prescription import Prescription


# ============================================================================
# Diary Fixtures
# ============================================================================

@pytest.fixture
def sleep_date():
    """Night the patient went to bed"""
    return date(2024, 1, 15)


@pytest.fixture
def base_answers():
    """A clean night: in bed 22:00, asleep quickly, no awakenings, up 06:40"""
    return {
        "time_to_bed": "22:00",
        "time_try_sleep": "22:15",
        "fell_asleep_quickly": True,
        "awakening_count": 0,
        "time_final_awakening": "06:30",
        "woke_early": False,
        "time_out_of_bed": "06:40",
        "quality_rating": 4,
    }


@pytest.fixture
def diary_answers_factory(base_answers):
    """Factory for DiaryAnswers with field overrides"""
    def _create(**overrides):
        data = dict(base_answers)
        data.update(overrides)
        return DiaryAnswers(**data)

    return _create


@pytest.fixture
def restless_answers(diary_answers_factory):
    """A night with slow onset, awakenings and an early waking"""
    return diary_answers_factory(
        time_to_bed="23:00",
        time_try_sleep="23:30",
        fell_asleep_quickly=False,
        sleep_onset_latency=40,
        sleep_onset_latency_out_of_bed=15,
        awakening_count=1,
        waso_minutes=30,
        waso_out_of_bed_minutes=10,
        time_final_awakening="05:30",
        woke_early=True,
        early_morning_awakening_minutes=30,
        early_morning_awakening_out_of_bed_minutes=0,
        time_out_of_bed="06:15",
        quality_rating=2,
    )


# ============================================================================
# Weekly Fixtures
# ============================================================================

@pytest.fixture
def nightly_record_factory():
    """Factory for stored nights with a given SE on consecutive dates"""
    def _create(efficiencies, start=date(2024, 1, 8), **fields):
        records = []
        for offset, se in enumerate(efficiencies):
            records.append(NightlyRecord(
                sleep_date=date.fromordinal(start.toordinal() + offset),
                sleep_efficiency=se,
                **fields
            ))
        return records

    return _create


# ============================================================================
# Prescription Fixtures
# ============================================================================

@pytest.fixture
def prescription():
    """23:45 -> 06:00 sleep window (375 minutes)"""
    return Prescription.from_times(
        patient_id="patient-1",
        bedtime="23:45",
        wake_time="06:00",
        effective_date=date(2024, 1, 1),
        created_by="therapist-1",
        created_at=datetime(2024, 1, 1, 9, 0),
    )


# ============================================================================
# Environment & Config Fixtures
# ============================================================================

@pytest.fixture
def clean_env(monkeypatch):
    """Remove CBTI_ overrides so Settings() sees only defaults"""
    import os

    for key in list(os.environ):
        if key.startswith("CBTI_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch
