# src/genagent/tasks/task_scheduler.py

from __future__ import annotations

"""
Task registry: the public face of the scheduler.

TaskScheduler owns one SchedulerContext (task map, in-flight set, stop flags),
the store, the runner and the dispatch engine. Front ends hold a reference to
it (via AppState); nothing here is a module-level global.

Lifecycle:
    scheduler = TaskScheduler(store, agent)
    scheduler.start()          # inside the event loop: load + arm
    ...
    scheduler.shutdown()       # disarm everything

Errors: InvalidScheduleFormat, UnknownTask and PersistenceFailure are raised
to the caller; task_api converts them into structured payloads.
"""

import asyncio
import logging
from dataclasses import replace

from ..core.clock import Clock, SystemClock
from ..core.ports import MessageProcessor
from .dispatch import DispatchEngine
from .errors import UnknownTask
from .schedule_parser import parse_schedule
from .task_models import DEFAULT_MAX_ATTEMPTS, Task, TaskOptions, TaskSummary, new_task_id
from .task_runner import SchedulerContext, TaskRunner
from .task_store import TaskStore

logger = logging.getLogger(__name__)


def _snapshot(task: Task) -> Task:
    return replace(task, context=[dict(m) for m in task.context])


class TaskScheduler:
    def __init__(
            self,
            store: TaskStore,
            processor: MessageProcessor,
            *,
            clock: Clock | None = None,
            cron_poll_seconds: float = 60.0,
            default_max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self._store = store
        self._clock = clock or SystemClock()
        self._default_max_attempts = max(1, int(default_max_attempts))
        self._ctx = SchedulerContext()
        self._runner = TaskRunner(self._ctx, store, processor, clock=self._clock)
        self._dispatch = DispatchEngine(
            self._runner,
            clock=self._clock,
            cron_poll_seconds=cron_poll_seconds,
        )

    @property
    def runner(self) -> TaskRunner:
        return self._runner

    # ---- lifecycle ----

    def start(self) -> int:
        """Load every persisted task and arm the enabled ones. Returns the number loaded."""
        tasks = self._store.load_all()
        armed = 0
        for task in tasks:
            self._ctx.tasks[task.id] = task
            if task.enabled and self._dispatch.arm(task):
                armed += 1
        logger.info("Loaded %d scheduled tasks (%d armed)", len(tasks), armed)
        return len(tasks)

    def shutdown(self) -> None:
        self._dispatch.disarm_all()
        self._dispatch.cancel_jobs()
        logger.info("Scheduler shutdown complete")

    async def wait_idle(self) -> None:
        """Wait until every spawned run has finished."""
        await self._dispatch.wait_jobs()

    # ---- CRUD ----

    def _require(self, task_id: str) -> Task:
        task = self._ctx.tasks.get(task_id)
        if task is None:
            raise UnknownTask(task_id)
        return task

    def add(
            self,
            name: str,
            schedule_text: str,
            command: str,
            options: TaskOptions | None = None,
    ) -> Task:
        descriptor = parse_schedule(schedule_text)

        name = (name or "").strip()
        command = (command or "").strip()
        if not name:
            raise ValueError("name is required")
        if not command:
            raise ValueError("command is required")

        opts = options or TaskOptions()
        task = Task(
            id=new_task_id(),
            name=name,
            type=descriptor.type,
            schedule=schedule_text.strip(),
            command=command,
            skill=opts.skill or None,
            context=[dict(m) for m in (opts.context or [])],
            run_at=descriptor.run_at,
            interval_ms=descriptor.interval_ms,
            cron=descriptor.cron,
            enabled=True,
            max_attempts=opts.max_attempts or self._default_max_attempts,
            created_at=self._clock.now(),
        )

        # Registered only once armed and saved; any failure leaves no trace.
        try:
            self._dispatch.arm(task)
            self._store.save(task)
        except Exception:
            self._dispatch.disarm(task.id)
            raise
        self._ctx.tasks[task.id] = task

        logger.info('Scheduled task: "%s" (%s) id=%s', task.name, task.type.value, task.id)
        return _snapshot(task)

    def remove(self, task_id: str) -> None:
        task = self._require(task_id)
        self._dispatch.disarm(task_id)
        self._ctx.tasks.pop(task_id, None)
        self._ctx.in_flight.discard(task_id)
        self._ctx.stop_flags.discard(task_id)
        self._store.delete(task_id)
        logger.info('Removed task: "%s"', task.name)

    def pause(self, task_id: str) -> Task:
        task = self._require(task_id)
        self._dispatch.disarm(task_id)
        task.enabled = False
        self._store.save(task)
        logger.info('Paused task: "%s"', task.name)
        return _snapshot(task)

    def resume(self, task_id: str) -> Task:
        task = self._require(task_id)
        task.enabled = True
        self._ctx.stop_flags.discard(task_id)
        if not self._dispatch.arm(task):
            logger.info('Task "%s" resumed but has nothing left to fire', task.name)
        self._store.save(task)
        logger.info('Resumed task: "%s"', task.name)
        return _snapshot(task)

    # ---- execution control ----

    def request_stop(self, task_id: str) -> None:
        """
        Block future cycles of this task until clear_stop()/resume().

        The in-flight marker is cleared immediately; a call that is already
        running is not interrupted.
        """
        self._require(task_id)
        self._ctx.stop_flags.add(task_id)
        self._ctx.in_flight.discard(task_id)
        logger.info("Stop requested for task: %s", task_id)

    def clear_stop(self, task_id: str) -> None:
        self._require(task_id)
        self._ctx.stop_flags.discard(task_id)

    def run_now(self, task_id: str) -> asyncio.Task[bool]:
        """Spawn one immediate run (same guards as a scheduled fire)."""
        self._require(task_id)
        return self._dispatch.spawn_run(task_id)

    # ---- queries ----

    def list(self) -> list[TaskSummary]:
        return [TaskSummary.of(t) for t in self._ctx.tasks.values()]

    def get(self, task_id: str) -> Task | None:
        task = self._ctx.tasks.get(task_id)
        return _snapshot(task) if task is not None else None

    def is_running(self, task_id: str) -> bool:
        return task_id in self._ctx.in_flight

    def is_stopped(self, task_id: str) -> bool:
        return task_id in self._ctx.stop_flags

    def is_armed(self, task_id: str) -> bool:
        return self._dispatch.is_armed(task_id)
