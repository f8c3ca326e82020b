# src/genagent/tasks/task_runner.py

from __future__ import annotations

"""
Single-task invocation path.

run(task_id) is the only place a scheduled command reaches the collaborator.
Guards, checked in order, each a logged no-op:
- unknown task id,
- an execution for this id is already in flight (skip this cycle, no queuing),
- a stop request is pending for this id (the flag stays set).

Whatever the collaborator does (result, error payload, raised exception),
the run is counted, the in-flight marker is cleared and the record is saved.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from ..core.clock import Clock
from ..core.ports import MessageProcessor, ProcessResult
from .errors import CollaboratorFailure, PersistenceFailure
from .task_models import Task
from .task_store import TaskStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SchedulerContext:
    """
    Mutable scheduler state, owned by one TaskScheduler.

    Only touched from the event loop thread.
    """

    tasks: dict[str, Task] = field(default_factory=dict)
    in_flight: set[str] = field(default_factory=set)
    stop_flags: set[str] = field(default_factory=set)


class TaskRunner:
    def __init__(
            self,
            ctx: SchedulerContext,
            store: TaskStore,
            processor: MessageProcessor,
            *,
            clock: Clock,
    ) -> None:
        self._ctx = ctx
        self._store = store
        self._processor = processor
        self._clock = clock

    async def run(self, task_id: str) -> bool:
        """Returns True if the collaborator was invoked."""
        ctx = self._ctx
        task = ctx.tasks.get(task_id)
        if task is None:
            logger.error("Task %s not found", task_id)
            return False

        if task_id in ctx.in_flight:
            logger.warning('Task "%s" is already running, skipping this cycle', task.name)
            return False

        if task_id in ctx.stop_flags:
            logger.info('Task "%s" marked stop, skipping', task.name)
            return False

        ctx.in_flight.add(task_id)
        logger.info('Running task: "%s" (%s)', task.name, task_id)

        try:
            ok = await self._invoke(task)
            task.last_run = self._clock.now()
            task.run_count += 1
            if ok:
                task.success_count += 1
            else:
                task.failure_count += 1
        except asyncio.CancelledError:
            logger.info('Task "%s" cancelled before completion', task.name)
            raise
        finally:
            ctx.in_flight.discard(task_id)

        self._persist(task)
        return True

    async def _invoke(self, task: Task) -> bool:
        try:
            result = await self._processor.process_message(
                task.command,
                skill_name=task.skill or None,
                context=list(task.context),
            )
        except Exception as e:
            failure = CollaboratorFailure(f"{e.__class__.__name__}: {e}")
            logger.error('Task "%s" failed: %s', task.name, failure, exc_info=e)
            return False

        if not isinstance(result, ProcessResult):
            logger.warning('Task "%s" got an unexpected %s result', task.name, type(result).__name__)
            return False

        if result.error:
            logger.warning('Task "%s" completed with error: %s', task.name, result.error)
            return False

        logger.info('Task "%s" completed successfully', task.name)
        return True

    def _persist(self, task: Task) -> None:
        # The task may have been removed while the collaborator was running.
        if self._ctx.tasks.get(task.id) is not task:
            logger.debug("Task %s removed during run; not saving", task.id)
            return
        try:
            self._store.save(task)
        except PersistenceFailure:
            logger.exception('Failed to persist run stats for task "%s"', task.name)
