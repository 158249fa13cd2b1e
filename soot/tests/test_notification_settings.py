from datetime import datetime
from types import SimpleNamespace

import pytest

from soot.common.enums import Weekday
from soot.core.notifications.settings import (
    DEFAULT_SCHEDULE_DAYS,
    NotificationPreferences,
    format_minutes_to_time,
    is_within_window,
    parse_time_to_minutes,
    should_send_email_now,
)


def test_defaults_without_record():
    prefs = NotificationPreferences.from_record(None)
    assert prefs.quiet_hours_start_minutes == 22 * 60
    assert prefs.schedule_days == DEFAULT_SCHEDULE_DAYS
    assert prefs.escalation_enabled is True
    assert prefs.escalation_delay_hours == 24


def test_empty_schedule_days_fall_back_to_weekdays():
    record = SimpleNamespace(
        quiet_hours_enabled=True,
        quiet_hours_start_minutes=1320,
        quiet_hours_end_minutes=420,
        schedule_enabled=True,
        schedule_days=[],
        schedule_start_minutes=480,
        schedule_end_minutes=1080,
        escalation_enabled=False,
        escalation_delay_hours=12,
    )
    prefs = NotificationPreferences.from_record(record)
    assert prefs.schedule_days == DEFAULT_SCHEDULE_DAYS
    assert prefs.escalation_delay_hours == 12


@pytest.mark.parametrize(
    "minutes,start,end,expected",
    [
        (600, 480, 1080, True),
        (1080, 480, 1080, False),
        (1380, 1320, 420, True),
        (60, 1320, 420, True),
        (720, 1320, 420, False),
        (0, 600, 600, True),
    ],
)
def test_is_within_window(minutes, start, end, expected):
    assert is_within_window(minutes, start, end) is expected


def test_time_formatting():
    assert format_minutes_to_time(0) == "00:00"
    assert format_minutes_to_time(605) == "10:05"
    assert format_minutes_to_time(5000) == "23:59"
    assert parse_time_to_minutes("07:30") == 450
    assert parse_time_to_minutes("24:00") is None
    assert parse_time_to_minutes("7:30") is None
    assert parse_time_to_minutes(None) is None


def test_quiet_hours_block_email():
    prefs = NotificationPreferences(quiet_hours_enabled=True)
    late = datetime(2025, 3, 12, 23, 15)
    assert should_send_email_now(prefs, late) is False
    assert should_send_email_now(prefs, late, bypass_quiet_hours=True) is True
    assert should_send_email_now(prefs, datetime(2025, 3, 12, 9, 0)) is True


def test_schedule_blocks_days_and_hours():
    prefs = NotificationPreferences(schedule_enabled=True, schedule_days=[Weekday.MON, Weekday.WED])
    assert should_send_email_now(prefs, datetime(2025, 3, 12, 10, 0)) is True  # Wednesday
    assert should_send_email_now(prefs, datetime(2025, 3, 13, 10, 0)) is False  # Thursday
    assert should_send_email_now(prefs, datetime(2025, 3, 12, 19, 0)) is False
    assert should_send_email_now(prefs, datetime(2025, 3, 13, 10, 0), bypass_schedule=True) is True
