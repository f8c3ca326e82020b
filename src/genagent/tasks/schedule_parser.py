# src/genagent/tasks/schedule_parser.py

"""
Natural-language schedule phrases -> structured descriptors.

Accepted phrases (case-insensitive, surrounding whitespace ignored),
tried in this order, first match wins:

    at 2026-02-20 14:00            -> one-time
    every 30 minutes               -> heartbeat (minute/hour/day units)
    daily at 9:30                  -> recurring  "0 30 9 * * *"
    weekly on monday at 9:30       -> recurring  "0 30 9 * * 1"
    monthly on 15 at 9:30          -> recurring  "0 30 9 15 * *"
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime

from .errors import InvalidScheduleFormat
from .task_models import TaskType

_MINUTE_MS = 60 * 1000
_UNIT_MS = {
    "minute": _MINUTE_MS,
    "hour": 60 * _MINUTE_MS,
    "day": 24 * 60 * _MINUTE_MS,
}
# Keeps now + interval well inside datetime's range.
MAX_INTERVAL_MS = 100 * 365 * _UNIT_MS["day"]

# Sunday-first numbering, as used by the day-of-week cron field.
WEEKDAYS = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")

_ONE_TIME_RE = re.compile(r"at\s+(\d{4})-(\d{2})-(\d{2})\s+(\d{1,2}):(\d{2})")
_HEARTBEAT_RE = re.compile(r"every\s+(\d+)\s*(minute|hour|day)s?")
_DAILY_RE = re.compile(r"daily\s+at\s+(\d{1,2}):(\d{2})")
_WEEKLY_RE = re.compile(r"weekly\s+on\s+([a-z]+)\s+at\s+(\d{1,2}):(\d{2})")
_MONTHLY_RE = re.compile(r"monthly\s+on\s+(\d{1,2})\s+at\s+(\d{1,2}):(\d{2})")


@dataclass(slots=True, frozen=True)
class ScheduleDescriptor:
    type: TaskType
    run_at: datetime | None = None
    interval_ms: int | None = None
    cron: str | None = None


def _weekday_index(name: str) -> int | None:
    for i, day in enumerate(WEEKDAYS):
        if name == day or name == day[:3]:
            return i
    return None


def _time_of_day(text: str, hour_raw: str, minute_raw: str) -> tuple[int, int]:
    hour, minute = int(hour_raw), int(minute_raw)
    if not 0 <= hour <= 23 or not 0 <= minute <= 59:
        raise InvalidScheduleFormat(text, f"time {hour_raw}:{minute_raw} is out of range")
    return hour, minute


def parse_schedule(text: str) -> ScheduleDescriptor:
    """Parse a schedule phrase or raise InvalidScheduleFormat."""
    s = (text or "").strip().lower()

    m = _ONE_TIME_RE.fullmatch(s)
    if m:
        year, month, day, hour, minute = (int(g) for g in m.groups())
        try:
            run_at = datetime(year, month, day, hour, minute)
        except ValueError as e:
            raise InvalidScheduleFormat(text, str(e)) from e
        return ScheduleDescriptor(type=TaskType.ONE_TIME, run_at=run_at)

    m = _HEARTBEAT_RE.fullmatch(s)
    if m:
        count = int(m.group(1))
        if count < 1:
            raise InvalidScheduleFormat(text, "interval must be at least 1")
        interval_ms = count * _UNIT_MS[m.group(2)]
        if interval_ms > MAX_INTERVAL_MS:
            raise InvalidScheduleFormat(text, "interval must not exceed 100 years")
        return ScheduleDescriptor(type=TaskType.HEARTBEAT, interval_ms=interval_ms)

    m = _DAILY_RE.fullmatch(s)
    if m:
        hour, minute = _time_of_day(text, m.group(1), m.group(2))
        return ScheduleDescriptor(type=TaskType.RECURRING, cron=f"0 {minute} {hour} * * *")

    m = _WEEKLY_RE.fullmatch(s)
    if m:
        dow = _weekday_index(m.group(1))
        if dow is None:
            raise InvalidScheduleFormat(text, f"unknown weekday {m.group(1)!r}")
        hour, minute = _time_of_day(text, m.group(2), m.group(3))
        return ScheduleDescriptor(type=TaskType.RECURRING, cron=f"0 {minute} {hour} * * {dow}")

    m = _MONTHLY_RE.fullmatch(s)
    if m:
        dom = int(m.group(1))
        if not 1 <= dom <= 31:
            raise InvalidScheduleFormat(text, f"day of month {dom} is out of range")
        hour, minute = _time_of_day(text, m.group(2), m.group(3))
        return ScheduleDescriptor(type=TaskType.RECURRING, cron=f"0 {minute} {hour} {dom} * *")

    raise InvalidScheduleFormat(text)
