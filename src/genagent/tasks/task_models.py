# src/genagent/tasks/task_models.py

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from ..core.ports import ChatMessage

SCHEDULE_TEMPLATES: tuple[str, ...] = (
    "at 2026-02-20 14:00",
    "every 30 minutes",
    "daily at 9:30",
    "weekly on monday at 9:30",
    "monthly on 1 at 9:30",
)

DEFAULT_MAX_ATTEMPTS = 5


class TaskType(StrEnum):
    ONE_TIME = "one-time"
    HEARTBEAT = "heartbeat"
    RECURRING = "recurring"


def new_task_id() -> str:
    return f"task_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_iso(raw: Any) -> datetime | None:
    if not raw:
        return None
    return datetime.fromisoformat(str(raw))


def _clean_context(raw: Any) -> list[ChatMessage]:
    if not isinstance(raw, list):
        return []
    out: list[ChatMessage] = []
    for m in raw:
        if isinstance(m, dict):
            out.append({"role": str(m.get("role", "user")), "content": str(m.get("content", ""))})
    return out


@dataclass(slots=True, frozen=True)
class TaskOptions:
    """Optional knobs for task creation."""

    skill: str | None = None
    context: list[ChatMessage] | None = None
    max_attempts: int | None = None


@dataclass(slots=True)
class Task:
    id: str
    name: str
    type: TaskType
    schedule: str
    command: str

    skill: str | None = None
    context: list[ChatMessage] = field(default_factory=list)

    # Type-specific payload: exactly one is set.
    run_at: datetime | None = None
    interval_ms: int | None = None
    cron: str | None = None

    enabled: bool = True
    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    created_at: datetime | None = None
    last_run: datetime | None = None
    next_run: datetime | None = None

    run_count: int = 0
    success_count: int = 0
    failure_count: int = 0

    def to_record(self) -> dict[str, Any]:
        """Persisted/external record shape (camelCase keys, ISO-8601 instants)."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "schedule": self.schedule,
            "command": self.command,
            "skill": self.skill,
            "context": [dict(m) for m in self.context],
            "interval": self.interval_ms,
            "cron": self.cron,
            "datetime": _iso(self.run_at),
            "enabled": self.enabled,
            "maxAttempts": self.max_attempts,
            "createdAt": _iso(self.created_at),
            "lastRun": _iso(self.last_run),
            "nextRun": _iso(self.next_run),
            "runCount": self.run_count,
            "successCount": self.success_count,
            "failureCount": self.failure_count,
        }

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> Task:
        """
        Inverse of to_record().

        Raises ValueError/KeyError on records that cannot describe a task
        (missing id, unknown type, unparseable instants).
        """
        interval = data.get("interval")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            type=TaskType(data["type"]),
            schedule=str(data.get("schedule") or ""),
            command=str(data.get("command") or ""),
            skill=data.get("skill") or None,
            context=_clean_context(data.get("context")),
            run_at=_parse_iso(data.get("datetime")),
            interval_ms=int(interval) if interval is not None else None,
            cron=data.get("cron") or None,
            enabled=bool(data.get("enabled", True)),
            max_attempts=int(data.get("maxAttempts") or DEFAULT_MAX_ATTEMPTS),
            created_at=_parse_iso(data.get("createdAt")),
            last_run=_parse_iso(data.get("lastRun")),
            next_run=_parse_iso(data.get("nextRun")),
            run_count=int(data.get("runCount") or 0),
            success_count=int(data.get("successCount") or 0),
            failure_count=int(data.get("failureCount") or 0),
        )


@dataclass(slots=True, frozen=True)
class TaskSummary:
    """Read-only view for listings."""

    id: str
    name: str
    type: TaskType
    schedule: str
    enabled: bool
    last_run: datetime | None
    next_run: datetime | None
    run_count: int
    success_count: int
    failure_count: int

    @classmethod
    def of(cls, task: Task) -> TaskSummary:
        return cls(
            id=task.id,
            name=task.name,
            type=task.type,
            schedule=task.schedule,
            enabled=task.enabled,
            last_run=task.last_run,
            next_run=task.next_run,
            run_count=task.run_count,
            success_count=task.success_count,
            failure_count=task.failure_count,
        )
