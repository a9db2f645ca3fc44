import logging
from datetime import datetime, timedelta, timezone

from src.shift_payroll.shift_payroll.shifts.duration import apply_night_bonus, compute_duration, session_minutes

T0 = datetime(2026, 3, 10, 10, 0, tzinfo=timezone.utc)


def test_compute_duration_floors_to_whole_minutes():
    assert compute_duration(T0, T0 + timedelta(minutes=59, seconds=59)) == 59
    assert compute_duration(T0, T0 + timedelta(hours=10)) == 600


def test_compute_duration_clamps_clock_skew_and_logs_it(caplog):
    with caplog.at_level(logging.WARNING):
        assert compute_duration(T0, T0 - timedelta(minutes=5)) == 0
    assert "Clock anomaly" in caplog.text


def test_night_bonus_is_added_to_minutes_only_for_night_sessions():
    assert apply_night_bonus(120, False, 60) == 120
    assert apply_night_bonus(120, True, 60) == 180
    assert apply_night_bonus(120, True, 0) == 120


def test_zero_length_session_yields_only_the_bonus():
    assert session_minutes(T0, T0, is_night_shift=False, bonus_minutes=45) == 0
    assert session_minutes(T0, T0, is_night_shift=True, bonus_minutes=45) == 45
