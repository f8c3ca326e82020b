# tests/conftest.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from genagent.core.state import AppState
from genagent.tasks.task_scheduler import TaskScheduler
from genagent.tasks.task_store import TaskStore

from .fakes import FakeProcessor, ManualClock

START = datetime(2026, 10, 19, 8, 0, 0)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="genagent-test",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "schedules.sqlite3",
        llm_models=["fake-model"],
        cron_poll_seconds=60.0,
        default_max_attempts=5,
    )


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock(START)


@pytest.fixture()
def store(settings: SimpleNamespace) -> TaskStore:
    return TaskStore(settings.tasks_db_path)


@pytest.fixture()
def processor(clock: ManualClock) -> FakeProcessor:
    return FakeProcessor(clock=clock)


@pytest.fixture()
def scheduler(store: TaskStore, processor: FakeProcessor, clock: ManualClock) -> TaskScheduler:
    """
    Scheduler wired with a real SQLite store and fake time/collaborator.

    NOTE: start()/add() arm asyncio timers, so call them from async tests.
    """
    return TaskScheduler(store, processor, clock=clock, cron_poll_seconds=60.0)


@pytest.fixture()
def state(settings: SimpleNamespace, processor: FakeProcessor, scheduler: TaskScheduler) -> AppState:
    return AppState(settings=settings, agent=processor, scheduler=scheduler)
