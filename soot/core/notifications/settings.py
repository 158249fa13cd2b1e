"""Quiet hours, delivery schedule and escalation preferences."""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import BaseModel, Field

from soot.common.enums import Weekday

TIME_REGEX = re.compile(r"^\d{2}:\d{2}$")

DEFAULT_SCHEDULE_DAYS = [Weekday.MON, Weekday.TUE, Weekday.WED, Weekday.THU, Weekday.FRI]

WEEKDAY_LABELS = {
    Weekday.MON: "Lundi",
    Weekday.TUE: "Mardi",
    Weekday.WED: "Mercredi",
    Weekday.THU: "Jeudi",
    Weekday.FRI: "Vendredi",
    Weekday.SAT: "Samedi",
    Weekday.SUN: "Dimanche",
}

_WEEKDAYS_BY_INDEX = list(WEEKDAY_LABELS)


class NotificationPreferences(BaseModel):
    quiet_hours_enabled: bool = False
    quiet_hours_start_minutes: int = 22 * 60
    quiet_hours_end_minutes: int = 7 * 60
    schedule_enabled: bool = False
    schedule_days: list[Weekday] = Field(default_factory=lambda: list(DEFAULT_SCHEDULE_DAYS))
    schedule_start_minutes: int = 8 * 60
    schedule_end_minutes: int = 18 * 60
    escalation_enabled: bool = True
    escalation_delay_hours: int = 24

    @classmethod
    def from_record(cls, record) -> NotificationPreferences:
        """Build from a ``NotificationSettings`` row; None yields the defaults."""
        if record is None:
            return cls()
        days = [Weekday(day) for day in (record.schedule_days or [])]
        return cls(
            quiet_hours_enabled=record.quiet_hours_enabled,
            quiet_hours_start_minutes=record.quiet_hours_start_minutes,
            quiet_hours_end_minutes=record.quiet_hours_end_minutes,
            schedule_enabled=record.schedule_enabled,
            schedule_days=days or list(DEFAULT_SCHEDULE_DAYS),
            schedule_start_minutes=record.schedule_start_minutes,
            schedule_end_minutes=record.schedule_end_minutes,
            escalation_enabled=record.escalation_enabled,
            escalation_delay_hours=record.escalation_delay_hours,
        )


def weekday_of(moment: datetime) -> Weekday:
    return _WEEKDAYS_BY_INDEX[moment.weekday()]


def is_within_window(minutes: int, start: int, end: int) -> bool:
    """Half-open ``[start, end)`` window that may wrap past midnight."""
    if start == end:
        return True
    if start < end:
        return start <= minutes < end
    return minutes >= start or minutes < end


def format_minutes_to_time(minutes: int) -> str:
    safe = max(0, min(1439, int(minutes)))
    return f"{safe // 60:02d}:{safe % 60:02d}"


def parse_time_to_minutes(raw: str | None) -> int | None:
    if not raw or not TIME_REGEX.match(raw):
        return None
    hours, minutes = (int(part) for part in raw.split(":"))
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def should_send_email_now(
    prefs: NotificationPreferences,
    now: datetime,
    bypass_quiet_hours: bool = False,
    bypass_schedule: bool = False,
) -> bool:
    minutes = now.hour * 60 + now.minute

    if prefs.schedule_enabled and not bypass_schedule:
        if weekday_of(now) not in prefs.schedule_days:
            return False
        if not is_within_window(minutes, prefs.schedule_start_minutes, prefs.schedule_end_minutes):
            return False

    if prefs.quiet_hours_enabled and not bypass_quiet_hours:
        if is_within_window(minutes, prefs.quiet_hours_start_minutes, prefs.quiet_hours_end_minutes):
            return False

    return True
