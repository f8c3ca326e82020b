# tests/fakes.py

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from genagent.core.ports import ChatMessage, ProcessResult
from genagent.tasks.errors import PersistenceFailure
from genagent.tasks.task_models import Task


class ManualClock:
    """
    Deterministic Clock for scheduler tests.

    sleep() parks the caller until advance() moves simulated time past its
    wake-up instant. Sleepers wake in time order and the event loop is given
    a few turns after each wake-up so spawned runs can finish.
    """

    def __init__(self, start: datetime) -> None:
        self._now = start
        self._waiters: list[tuple[datetime, asyncio.Future[None]]] = []

    def now(self) -> datetime:
        return self._now

    def set(self, when: datetime) -> None:
        self._now = when

    async def sleep(self, seconds: float) -> None:
        fut = asyncio.get_running_loop().create_future()
        self._waiters.append((self._now + timedelta(seconds=max(0.0, seconds)), fut))
        await fut

    async def settle(self, turns: int = 20) -> None:
        for _ in range(turns):
            await asyncio.sleep(0)

    async def advance(self, seconds: float) -> None:
        target = self._now + timedelta(seconds=seconds)
        await self.settle()
        while True:
            due = [w for w in self._waiters if w[0] <= target and not w[1].done()]
            if not due:
                break
            wake, fut = min(due, key=lambda w: w[0])
            self._waiters.remove((wake, fut))
            self._now = max(self._now, wake)
            fut.set_result(None)
            await self.settle()
        self._waiters = [w for w in self._waiters if not w[1].done()]
        self._now = target
        await self.settle()


@dataclass(slots=True)
class ProcessCall:
    command: str
    skill_name: str | None
    context: list[ChatMessage]
    at: datetime | None = None


class FakeProcessor:
    """
    Scripted MessageProcessor.

    - outcomes: ProcessResult or Exception instances consumed in order,
      then ProcessResult(response="ok") forever
    - gate: when set to an asyncio.Event, every call blocks until it is set
    """

    def __init__(self, outcomes: list[ProcessResult | Exception] | None = None, clock=None) -> None:
        self.outcomes = list(outcomes or [])
        self.calls: list[ProcessCall] = []
        self.gate: asyncio.Event | None = None
        self._clock = clock

    async def process_message(
        self,
        command: str,
        *,
        skill_name: str | None = None,
        context: list[ChatMessage] | None = None,
    ) -> ProcessResult:
        at = self._clock.now() if self._clock is not None else None
        self.calls.append(ProcessCall(command, skill_name, list(context or []), at))
        if self.gate is not None:
            await self.gate.wait()
        outcome = self.outcomes.pop(0) if self.outcomes else ProcessResult(response="ok")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@dataclass(slots=True)
class FailingStore:
    """TaskStore stand-in whose writes always fail."""

    saved: list[Task] = field(default_factory=list)

    def load_all(self) -> list[Task]:
        return []

    def save(self, task: Task) -> None:
        raise PersistenceFailure(f"disk full while saving {task.id}")

    def delete(self, task_id: str) -> None:
        raise PersistenceFailure(f"disk full while deleting {task_id}")
