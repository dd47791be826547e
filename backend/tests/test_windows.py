from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from backend.app.windows import window_for, day_seed

def test_boundary_instants_fall_in_adjacent_windows():
    """05:59:59 closes the old window, 06:00:00 opens the new one"""
    before = window_for(datetime(2026, 5, 4, 5, 59, 59))
    after = window_for(datetime(2026, 5, 4, 6, 0, 0))

    assert before.end == datetime(2026, 5, 4, 5, 59, 59)
    assert after.start == datetime(2026, 5, 4, 6, 0, 0)
    assert before.end < after.start
    assert after.start - before.end == timedelta(seconds=1)

def test_early_morning_belongs_to_previous_day():
    window = window_for(datetime(2026, 5, 4, 2, 15))
    assert window.start == datetime(2026, 5, 3, 6, 0)
    assert window.end == datetime(2026, 5, 4, 5, 59, 59)

def test_window_spans_one_day_minus_one_second():
    window = window_for(datetime(2026, 12, 31, 23, 59, 59))
    assert window.start == datetime(2026, 12, 31, 6, 0)
    assert window.end - window.start == timedelta(days=1) - timedelta(seconds=1)

def test_new_year_rollover():
    window = window_for(datetime(2027, 1, 1, 4, 0))
    assert window.start == datetime(2026, 12, 31, 6, 0)

def test_timezone_is_preserved():
    tz = ZoneInfo("Asia/Colombo")
    window = window_for(datetime(2026, 5, 4, 7, 0, tzinfo=tz))
    assert window.start == datetime(2026, 5, 4, 6, 0, tzinfo=tz)
    assert window.start.utcoffset() == timedelta(hours=5, minutes=30)

def test_contains():
    window = window_for(datetime(2026, 5, 4, 12, 0))
    assert window.contains(datetime(2026, 5, 4, 6, 0))
    assert window.contains(datetime(2026, 5, 5, 5, 59, 59, 500000))
    assert not window.contains(datetime(2026, 5, 5, 6, 0))
    assert not window.contains(datetime(2026, 5, 4, 5, 59, 59))

def test_custom_anchor_hour():
    window = window_for(datetime(2026, 5, 4, 7, 0), anchor_hour=8)
    assert window.start == datetime(2026, 5, 3, 8, 0)

def test_day_seed_uses_window_start():
    # Before the anchor on Feb 1 the window still starts on Jan 31
    assert day_seed(window_for(datetime(2026, 2, 1, 5, 0))) == 31
    assert day_seed(window_for(datetime(2026, 2, 1, 6, 0))) == 32
