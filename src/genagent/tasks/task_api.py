# src/genagent/tasks/task_api.py

from __future__ import annotations

import logging
from typing import Any

from ..core.ports import ChatMessage
from ..core.state import AppState
from .errors import InvalidScheduleFormat, PersistenceFailure, UnknownTask
from .task_models import TaskOptions, TaskSummary

logger = logging.getLogger(__name__)

Payload = dict[str, Any]

_NOT_FOUND = "Task not found"
_SAVE_FAILED = "Could not save the task. See logs for details."


def _fail(error: str) -> Payload:
    return {"success": False, "error": error}


def summary_to_dict(s: TaskSummary) -> Payload:
    return {
        "id": s.id,
        "name": s.name,
        "type": s.type.value,
        "schedule": s.schedule,
        "enabled": s.enabled,
        "lastRun": s.last_run.isoformat() if s.last_run else None,
        "nextRun": s.next_run.isoformat() if s.next_run else None,
        "runCount": s.run_count,
        "successCount": s.success_count,
        "failureCount": s.failure_count,
    }


def add_task(
    state: AppState,
    *,
    name: str,
    schedule: str,
    command: str,
    skill: str | None = None,
    context: list[ChatMessage] | None = None,
    max_attempts: int | None = None,
) -> Payload:
    """
    Create and arm a task. Failure payloads carry a user-facing message;
    for bad phrases it lists the accepted schedule templates.
    """
    options = TaskOptions(skill=skill, context=context, max_attempts=max_attempts)
    try:
        task = state.scheduler.add(name, schedule, command, options)
    except InvalidScheduleFormat as e:
        return _fail(str(e))
    except ValueError as e:
        return _fail(str(e))
    except PersistenceFailure:
        logger.exception("add_task failed to persist name=%s", name)
        return _fail(_SAVE_FAILED)
    return {"success": True, "task": task.to_record()}


def remove_task(state: AppState, task_id: str) -> Payload:
    try:
        state.scheduler.remove(task_id)
    except UnknownTask:
        return _fail(_NOT_FOUND)
    except PersistenceFailure:
        logger.exception("remove_task failed to delete record task_id=%s", task_id)
        return _fail("Task removed from the schedule, but its stored record could not be deleted.")
    return {"success": True}


def pause_task(state: AppState, task_id: str) -> Payload:
    try:
        task = state.scheduler.pause(task_id)
    except UnknownTask:
        return _fail(_NOT_FOUND)
    except PersistenceFailure:
        logger.exception("pause_task failed to persist task_id=%s", task_id)
        return _fail(_SAVE_FAILED)
    return {"success": True, "task": task.to_record()}


def resume_task(state: AppState, task_id: str) -> Payload:
    try:
        task = state.scheduler.resume(task_id)
    except UnknownTask:
        return _fail(_NOT_FOUND)
    except PersistenceFailure:
        logger.exception("resume_task failed to persist task_id=%s", task_id)
        return _fail(_SAVE_FAILED)
    return {
        "success": True,
        "task": task.to_record(),
        "armed": state.scheduler.is_armed(task_id),
    }


def stop_task(state: AppState, task_id: str) -> Payload:
    try:
        state.scheduler.request_stop(task_id)
    except UnknownTask:
        return _fail(_NOT_FOUND)
    return {"success": True}


def run_task_now(state: AppState, task_id: str) -> Payload:
    try:
        state.scheduler.run_now(task_id)
    except UnknownTask:
        return _fail(_NOT_FOUND)
    return {"success": True}


def list_tasks(state: AppState) -> Payload:
    return {"success": True, "tasks": [summary_to_dict(s) for s in state.scheduler.list()]}


def get_task(state: AppState, task_id: str) -> Payload:
    task = state.scheduler.get(task_id)
    if task is None:
        return _fail(_NOT_FOUND)
    return {"success": True, "task": task.to_record()}


def is_running(state: AppState, task_id: str) -> Payload:
    if state.scheduler.get(task_id) is None:
        return _fail(_NOT_FOUND)
    return {"success": True, "running": state.scheduler.is_running(task_id)}


def is_stopped(state: AppState, task_id: str) -> Payload:
    if state.scheduler.get(task_id) is None:
        return _fail(_NOT_FOUND)
    return {"success": True, "stopped": state.scheduler.is_stopped(task_id)}
