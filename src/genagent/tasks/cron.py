# src/genagent/tasks/cron.py

"""
Minute-granularity cron-like matcher.

Expressions have six space-separated fields:

    second minute hour day-of-month month day-of-week

Each field is one of: `*`, a number, `a-b` (inclusive), `*/n`, or a
comma list of those. Day-of-week is 0=Sunday .. 6=Saturday.

There is no next-occurrence computation: the poller only asks
"does this tick match?".
"""

from __future__ import annotations

import logging
from datetime import datetime

logger = logging.getLogger(__name__)

CRON_FIELDS = ("second", "minute", "hour", "day_of_month", "month", "day_of_week")


def _term_matches(term: str, value: int) -> bool:
    if term == "*":
        return True
    if term.startswith("*/"):
        step = int(term[2:])
        return step > 0 and value % step == 0
    if "-" in term:
        start, end = (int(p) for p in term.split("-", 1))
        return start <= value <= end
    return int(term) == value


def field_matches(field: str, value: int) -> bool:
    """Raises ValueError on malformed fields."""
    return any(_term_matches(term.strip(), value) for term in field.split(","))


def validate_cron(expr: str) -> bool:
    parts = (expr or "").split()
    if len(parts) != len(CRON_FIELDS):
        return False
    try:
        # Every term is parsed; field_matches() would stop at the first hit.
        for part in parts:
            for term in part.split(","):
                _term_matches(term.strip(), 0)
    except ValueError:
        return False
    return True


def tick_values(when: datetime) -> tuple[int, ...]:
    """Field values for `when` in CRON_FIELDS order."""
    return (
        when.second,
        when.minute,
        when.hour,
        when.day,
        when.month,
        (when.weekday() + 1) % 7,
    )


def cron_matches(expr: str, when: datetime) -> bool:
    """True when every field of `expr` matches `when`. Malformed expressions never match."""
    parts = (expr or "").split()
    if len(parts) != len(CRON_FIELDS):
        logger.warning("Cron expression must have %d fields: %r", len(CRON_FIELDS), expr)
        return False
    try:
        return all(field_matches(f, v) for f, v in zip(parts, tick_values(when)))
    except ValueError:
        logger.warning("Malformed cron expression: %r", expr)
        return False
