# src/genagent/tasks/dispatch.py

from __future__ import annotations

"""
Timing strategies.

Every armed task owns one asyncio.Task ("handle") in a side table keyed by
task id; records never carry live handles.

- one-time:  a single deferred fire at task.run_at (only if still in the future)
- heartbeat: fire every interval while armed
- recurring: poll every cron_poll_seconds, fire when the tick matches the cron fields

A fire spawns TaskRunner.run as its own asyncio.Task so a slow run never
delays the timer; the runner's in-flight guard rejects overlapping runs.
"""

import asyncio
import logging
from datetime import timedelta

from ..core.clock import Clock
from .cron import cron_matches, validate_cron
from .task_models import Task, TaskType
from .task_runner import TaskRunner

logger = logging.getLogger(__name__)


class DispatchEngine:
    def __init__(
            self,
            runner: TaskRunner,
            *,
            clock: Clock,
            cron_poll_seconds: float = 60.0,
    ) -> None:
        self._runner = runner
        self._clock = clock
        self._poll_s = max(1.0, float(cron_poll_seconds))
        self._handles: dict[str, asyncio.Task[None]] = {}
        self._jobs: set[asyncio.Task[bool]] = set()

    # ---- arming ----

    def arm(self, task: Task) -> bool:
        """
        (Re)arm the timing primitive for `task` and refresh task.next_run.

        Returns False when nothing was armed (one-time in the past, bad payload).
        Must be called from inside the running event loop.
        """
        self.disarm(task.id)
        now = self._clock.now()

        if task.type == TaskType.ONE_TIME:
            if task.run_at is None:
                logger.warning('One-time task "%s" has no target time; not armed', task.name)
                return False
            delay = (task.run_at - now).total_seconds()
            if delay <= 0:
                logger.info('One-time task "%s" is past %s; staying dormant', task.name, task.run_at)
                return False
            coro = self._one_shot(task.id, delay)
            task.next_run = task.run_at

        elif task.type == TaskType.HEARTBEAT:
            if not task.interval_ms or task.interval_ms <= 0:
                logger.warning('Heartbeat task "%s" has no interval; not armed', task.name)
                return False
            interval_s = task.interval_ms / 1000.0
            try:
                next_run = now + timedelta(seconds=interval_s)
            except OverflowError:
                logger.warning('Heartbeat task "%s" interval is out of range; not armed', task.name)
                return False
            coro = self._heartbeat_loop(task.id, interval_s)
            task.next_run = next_run

        elif task.type == TaskType.RECURRING:
            if not task.cron or not validate_cron(task.cron):
                logger.warning('Recurring task "%s" has invalid cron %r; not armed', task.name, task.cron)
                return False
            coro = self._cron_loop(task.id, task.cron)
            task.next_run = now + timedelta(seconds=self._poll_s)

        else:
            logger.warning("Unknown task type %r for task %s", task.type, task.id)
            return False

        loop = asyncio.get_running_loop()
        self._handles[task.id] = loop.create_task(coro, name=f"schedule:{task.id}")
        logger.debug("Armed %s task %s next_run=%s", task.type.value, task.id, task.next_run)
        return True

    def disarm(self, task_id: str) -> bool:
        handle = self._handles.pop(task_id, None)
        if handle is None:
            return False
        if not handle.done():
            handle.cancel()
        logger.debug("Disarmed task %s", task_id)
        return True

    def disarm_all(self) -> None:
        for task_id in list(self._handles):
            self.disarm(task_id)

    def is_armed(self, task_id: str) -> bool:
        handle = self._handles.get(task_id)
        return handle is not None and not handle.done()

    # ---- runs ----

    def spawn_run(self, task_id: str) -> asyncio.Task[bool]:
        loop = asyncio.get_running_loop()
        job = loop.create_task(self._runner.run(task_id), name=f"run:{task_id}")
        self._jobs.add(job)
        job.add_done_callback(self._jobs.discard)
        return job

    def cancel_jobs(self) -> None:
        for job in list(self._jobs):
            job.cancel()

    async def wait_jobs(self) -> None:
        """Wait for every spawned run (cancelled ones included) to settle."""
        if self._jobs:
            await asyncio.gather(*list(self._jobs), return_exceptions=True)

    # ---- timer loops ----

    async def _one_shot(self, task_id: str, delay_s: float) -> None:
        await self._clock.sleep(delay_s)
        if self._handles.get(task_id) is asyncio.current_task():
            del self._handles[task_id]
        self.spawn_run(task_id)

    async def _heartbeat_loop(self, task_id: str, interval_s: float) -> None:
        while True:
            await self._clock.sleep(interval_s)
            try:
                self.spawn_run(task_id)
            except Exception:
                logger.exception("Heartbeat tick failed task_id=%s", task_id)

    async def _cron_loop(self, task_id: str, expr: str) -> None:
        while True:
            await self._clock.sleep(self._poll_s)
            try:
                tick = self._clock.now().replace(second=0, microsecond=0)
                if cron_matches(expr, tick):
                    logger.debug("Cron tick matched task_id=%s at %s", task_id, tick)
                    self.spawn_run(task_id)
            except Exception:
                logger.exception("Cron tick failed task_id=%s", task_id)
