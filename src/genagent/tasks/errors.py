# src/genagent/tasks/errors.py

from __future__ import annotations

from .task_models import SCHEDULE_TEMPLATES


class SchedulerError(Exception):
    """Base class for task scheduling errors."""


class InvalidScheduleFormat(SchedulerError):
    def __init__(self, text: str, reason: str | None = None) -> None:
        self.text = text
        self.reason = reason
        examples = ", ".join(f'"{t}"' for t in SCHEDULE_TEMPLATES)
        detail = f" ({reason})" if reason else ""
        super().__init__(f"Invalid schedule format: {text!r}{detail}. Use formats like: {examples}")


class UnknownTask(SchedulerError):
    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Task not found: {task_id}")


class PersistenceFailure(SchedulerError):
    """I/O error while reading or writing the task store."""


class CollaboratorFailure(SchedulerError):
    """The message processor raised or returned an error payload."""
