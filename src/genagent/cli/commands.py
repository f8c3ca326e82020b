# src/genagent/cli/commands.py

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import datetime
from typing import Any

from ..core.state import AppState
from ..tasks import task_api
from ..tasks.task_models import SCHEDULE_TEMPLATES

CommandHandler = Callable[[AppState, str], str]

logger = logging.getLogger(__name__)

# /schedule "name" <phrase> | <command>
_ADD_RE = re.compile(r"""^["'](?P<name>.+?)["']\s+(?P<schedule>[^|]+?)\s*\|\s*(?P<command>.+)$""")


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /schedule, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split(maxsplit=1)
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        rest = parts[1].strip() if len(parts) > 1 else ""

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return handler(state, rest)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _fmt_ts(value: str | None) -> str:
    if not value:
        return "-"
    return datetime.fromisoformat(value).strftime("%Y-%m-%d %H:%M")


def _schedule_usage() -> str:
    lines = [
        "Schedule commands:",
        '  /schedule "name" <when> | <command>   create a task',
        "  /schedules                            list tasks",
        "  /schedule info <id>                   show one task",
        "  /schedule run <id>                    run a task now",
        "  /schedule stop <id>                   block the next runs of a task",
        "  /schedule pause <id> | resume <id>    disable / re-enable timers",
        "  /schedule delete <id>                 remove a task",
        "Accepted <when> phrases:",
    ]
    lines.extend(f"  {t}" for t in SCHEDULE_TEMPLATES)
    return "\n".join(lines)


def _render_list(payload: dict[str, Any]) -> str:
    tasks = payload.get("tasks") or []
    if not tasks:
        return "No scheduled tasks."
    lines = ["Scheduled tasks:"]
    for t in tasks:
        status = "Running" if t["enabled"] else "Paused"
        lines.append(f"  - {t['name']} [{t['type']}] id={t['id']}")
        lines.append(f"    Schedule: {t['schedule']} | Status: {status}")
        lines.append(f"    Last: {_fmt_ts(t['lastRun'])} | Next: {_fmt_ts(t['nextRun'])}")
        lines.append(
            f"    Runs: {t['runCount']}, Success: {t['successCount']}, Failed: {t['failureCount']}"
        )
    return "\n".join(lines)


def _render_task(record: dict[str, Any]) -> str:
    return "\n".join(
        [
            f"{record['name']} [{record['type']}] id={record['id']}",
            f"  Schedule: {record['schedule']}",
            f"  Command: {record['command']}",
            f"  Skill: {record['skill'] or '-'}",
            f"  Enabled: {'yes' if record['enabled'] else 'no'}",
            f"  Last: {_fmt_ts(record['lastRun'])} | Next: {_fmt_ts(record['nextRun'])}",
            f"  Runs: {record['runCount']}, Success: {record['successCount']}, "
            f"Failed: {record['failureCount']}",
        ]
    )


def cmd_help(state: AppState, rest: str) -> str:
    return registry.build_help()


def cmd_status(state: AppState, rest: str) -> str:
    payload = task_api.list_tasks(state)
    tasks = payload["tasks"]
    enabled = sum(1 for t in tasks if t["enabled"])
    models = ", ".join(list(getattr(state.settings, "llm_models", []) or []))
    return (
        "Status:\n"
        f"  Scheduled tasks: {len(tasks)} ({enabled} enabled)\n"
        f"  Models (priority -> fallback): {models}"
    )


def cmd_schedules(state: AppState, rest: str) -> str:
    return _render_list(task_api.list_tasks(state))


def cmd_schedule(state: AppState, rest: str) -> str:
    """
    /schedule                         -> usage
    /schedule "name" <when> | <cmd>   -> add
    /schedule <action> <id>           -> run/stop/pause/resume/delete/info
    """
    if not rest:
        return _schedule_usage()

    m = _ADD_RE.match(rest)
    if m:
        payload = task_api.add_task(
            state,
            name=m.group("name"),
            schedule=m.group("schedule"),
            command=m.group("command"),
        )
        if not payload["success"]:
            return payload["error"]
        t = payload["task"]
        return f'Scheduled: "{t["name"]}" ({t["type"]})\n  ID: {t["id"]}\n  Schedule: {t["schedule"]}'

    parts = rest.split()
    action = parts[0].lower()
    if action == "list":
        return _render_list(task_api.list_tasks(state))
    if len(parts) != 2:
        return _schedule_usage()
    task_id = parts[1]

    if action == "info":
        payload = task_api.get_task(state, task_id)
        return _render_task(payload["task"]) if payload["success"] else payload["error"]

    actions: dict[str, tuple[Callable[[AppState, str], dict[str, Any]], str]] = {
        "run": (task_api.run_task_now, "Task started."),
        "stop": (task_api.stop_task, "Task stop requested."),
        "pause": (task_api.pause_task, "Task paused."),
        "resume": (task_api.resume_task, "Task resumed."),
        "delete": (task_api.remove_task, "Task removed."),
        "remove": (task_api.remove_task, "Task removed."),
    }
    entry = actions.get(action)
    if entry is None:
        return _schedule_usage()

    fn, ok_text = entry
    payload = fn(state, task_id)
    if not payload["success"]:
        return payload["error"]
    if action == "resume" and not payload.get("armed", True):
        return ok_text + " (nothing left to fire: its time has passed)"
    return ok_text


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show scheduler and model status.")
registry.register(
    "schedule",
    cmd_schedule,
    help_text='Manage tasks: /schedule "name" every 30 minutes | <command>.',
)
registry.register("schedules", cmd_schedules, help_text="List scheduled tasks.")
