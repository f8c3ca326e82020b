# tests/test_task_scheduler.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from genagent.tasks.errors import InvalidScheduleFormat, UnknownTask
from genagent.tasks.task_models import Task, TaskOptions, TaskType
from genagent.tasks.task_scheduler import TaskScheduler
from genagent.tasks.task_store import TaskStore

from .fakes import FakeProcessor, ManualClock


def _restart(db_path: Path, now: datetime) -> tuple[TaskScheduler, ManualClock, FakeProcessor]:
    """Simulate a process restart: fresh store, clock and scheduler over the same DB."""
    clock = ManualClock(now)
    processor = FakeProcessor(clock=clock)
    scheduler = TaskScheduler(TaskStore(db_path), processor, clock=clock)
    scheduler.start()
    return scheduler, clock, processor


@pytest.mark.asyncio
async def test_every_minute_heartbeat_fires_after_interval(scheduler: TaskScheduler, clock: ManualClock) -> None:
    task = scheduler.add("ping", "every 1 minute", "say hi")
    assert task.type == TaskType.HEARTBEAT
    assert task.interval_ms == 60_000
    assert task.next_run == clock.now() + timedelta(minutes=1)

    await clock.advance(59)
    assert scheduler.get(task.id).run_count == 0

    await clock.advance(2)
    assert scheduler.get(task.id).run_count == 1
    scheduler.shutdown()


@pytest.mark.asyncio
async def test_heartbeat_fires_are_spaced_by_interval(
    scheduler: TaskScheduler, clock: ManualClock, processor: FakeProcessor
) -> None:
    scheduler.add("ping", "every 5 minutes", "say hi")
    await clock.advance(3 * 300 + 1)

    times = [c.at for c in processor.calls]
    assert len(times) == 3
    assert all(b - a >= timedelta(minutes=5) for a, b in zip(times, times[1:]))
    scheduler.shutdown()


@pytest.mark.asyncio
async def test_tick_during_slow_run_is_skipped(
    scheduler: TaskScheduler, clock: ManualClock, processor: FakeProcessor
) -> None:
    processor.gate = asyncio.Event()
    task = scheduler.add("slow", "every 1 minute", "crunch")

    await clock.advance(61)
    assert scheduler.is_running(task.id)
    await clock.advance(60)  # second tick lands while the first run is blocked

    processor.gate.set()
    await clock.settle()

    t = scheduler.get(task.id)
    assert t.run_count == 1
    assert len(processor.calls) == 1

    await clock.advance(60)
    assert scheduler.get(task.id).run_count == 2
    scheduler.shutdown()


@pytest.mark.asyncio
async def test_one_time_fires_exactly_once(scheduler: TaskScheduler, clock: ManualClock) -> None:
    task = scheduler.add("call", "at 2026-10-19 08:05", "call mom")
    assert task.type == TaskType.ONE_TIME
    assert task.next_run == datetime(2026, 10, 19, 8, 5)
    assert scheduler.is_armed(task.id)

    await clock.advance(5 * 60 + 1)
    assert scheduler.get(task.id).run_count == 1
    assert not scheduler.is_armed(task.id)

    await clock.advance(24 * 3600)
    assert scheduler.get(task.id).run_count == 1
    scheduler.shutdown()


@pytest.mark.asyncio
async def test_one_time_in_the_past_stays_dormant(scheduler: TaskScheduler, clock: ManualClock) -> None:
    task = scheduler.add("late", "at 2026-10-18 08:00", "too late")
    assert not scheduler.is_armed(task.id)

    await clock.advance(3600)
    assert scheduler.get(task.id).run_count == 0

    scheduler.resume(task.id)
    assert not scheduler.is_armed(task.id)
    scheduler.shutdown()


@pytest.mark.asyncio
async def test_one_time_is_not_rearmed_after_its_instant(settings, scheduler: TaskScheduler) -> None:
    task = scheduler.add("future", "at 2099-01-01 00:00", "hello")
    assert scheduler.is_armed(task.id)
    scheduler.shutdown()

    restarted, clock, processor = _restart(settings.tasks_db_path, datetime(2100, 1, 1, 12, 0))
    assert not restarted.is_armed(task.id)

    await clock.advance(7 * 24 * 3600)
    t = restarted.get(task.id)
    assert t.run_count == 0
    assert t.next_run == datetime(2099, 1, 1, 0, 0)
    assert processor.calls == []
    restarted.shutdown()


@pytest.mark.asyncio
async def test_daily_cron_fires_within_a_minute_of_target(store: TaskStore) -> None:
    clock = ManualClock(datetime(2026, 10, 19, 9, 28, 30))
    processor = FakeProcessor(clock=clock)
    scheduler = TaskScheduler(store, processor, clock=clock, cron_poll_seconds=60.0)

    task = scheduler.add("daily", "daily at 9:30", "report")
    assert task.cron == "0 30 9 * * *"
    assert task.next_run == clock.now() + timedelta(seconds=60)

    await clock.advance(3 * 60)

    assert scheduler.get(task.id).run_count == 1
    [call] = processor.calls
    assert call.at == datetime(2026, 10, 19, 9, 30, 30)

    await clock.advance(23 * 3600)
    assert scheduler.get(task.id).run_count == 1
    scheduler.shutdown()


@pytest.mark.asyncio
async def test_pause_halts_and_resume_restores(scheduler: TaskScheduler, clock: ManualClock) -> None:
    task = scheduler.add("ping", "every 1 minute", "say hi")
    await clock.advance(61)
    assert scheduler.get(task.id).run_count == 1

    paused = scheduler.pause(task.id)
    assert paused.enabled is False
    assert not scheduler.is_armed(task.id)
    await clock.advance(10 * 60)
    assert scheduler.get(task.id).run_count == 1

    resumed = scheduler.resume(task.id)
    assert resumed.enabled is True
    assert scheduler.is_armed(task.id)
    await clock.advance(61)
    assert scheduler.get(task.id).run_count == 2
    scheduler.shutdown()


@pytest.mark.asyncio
async def test_request_stop_blocks_next_cycle(scheduler: TaskScheduler, clock: ManualClock, caplog) -> None:
    caplog.set_level(logging.INFO, logger="genagent")
    task = scheduler.add("ping", "every 1 minute", "say hi")
    scheduler.request_stop(task.id)

    await clock.advance(61)
    t = scheduler.get(task.id)
    assert (t.run_count, t.failure_count) == (0, 0)
    assert "marked stop, skipping" in caplog.text

    # Resuming clears the stop request.
    scheduler.resume(task.id)
    assert not scheduler.is_stopped(task.id)
    await clock.advance(61)
    assert scheduler.get(task.id).run_count == 1
    scheduler.shutdown()


@pytest.mark.asyncio
async def test_restart_round_trip_rearms(settings, scheduler: TaskScheduler, clock: ManualClock) -> None:
    task = scheduler.add(
        "digest",
        "every 1 hour",
        "summarize",
        TaskOptions(skill="email", context=[{"role": "user", "content": "be brief"}]),
    )
    await clock.advance(3601)
    before = scheduler.get(task.id)
    scheduler.shutdown()

    restarted, clock2, _ = _restart(settings.tasks_db_path, clock.now())
    after = restarted.get(task.id)

    # next_run is re-estimated on re-arm; everything else must survive as-is.
    expected = before.to_record() | {"nextRun": None}
    assert after.to_record() | {"nextRun": None} == expected
    assert restarted.is_armed(task.id)

    await clock2.advance(3601)
    assert restarted.get(task.id).run_count == before.run_count + 1
    restarted.shutdown()


@pytest.mark.asyncio
async def test_paused_task_stays_paused_after_restart(settings, scheduler: TaskScheduler) -> None:
    task = scheduler.add("ping", "every 1 minute", "say hi")
    scheduler.pause(task.id)
    scheduler.shutdown()

    restarted, clock, _ = _restart(settings.tasks_db_path, datetime(2026, 10, 20, 8, 0))
    assert not restarted.is_armed(task.id)
    await clock.advance(600)
    assert restarted.get(task.id).run_count == 0
    restarted.shutdown()


@pytest.mark.asyncio
async def test_invalid_schedule_persists_nothing(scheduler: TaskScheduler, store: TaskStore) -> None:
    with pytest.raises(InvalidScheduleFormat):
        scheduler.add("bad", "whenever you like", "noop")
    assert scheduler.list() == []
    assert store.count_tasks() == 0


@pytest.mark.asyncio
async def test_remove_disarms_and_deletes(scheduler: TaskScheduler, store: TaskStore, clock: ManualClock) -> None:
    task = scheduler.add("ping", "every 1 minute", "say hi")
    scheduler.remove(task.id)

    assert scheduler.get(task.id) is None
    assert not scheduler.is_armed(task.id)
    assert store.load_all() == []

    await clock.advance(120)
    with pytest.raises(UnknownTask):
        scheduler.remove(task.id)


@pytest.mark.asyncio
async def test_unknown_ids_raise(scheduler: TaskScheduler) -> None:
    for op in (scheduler.pause, scheduler.resume, scheduler.request_stop, scheduler.run_now):
        with pytest.raises(UnknownTask):
            op("task_nope")
    assert scheduler.is_running("task_nope") is False
    assert scheduler.is_stopped("task_nope") is False


@pytest.mark.asyncio
async def test_run_now_and_list(scheduler: TaskScheduler) -> None:
    task = scheduler.add("report", "weekly on friday at 17:00", "send report")
    job = scheduler.run_now(task.id)
    assert await job is True

    [summary] = scheduler.list()
    assert summary.id == task.id
    assert summary.type == TaskType.RECURRING
    assert summary.run_count == 1
    assert not hasattr(summary, "cron")
    scheduler.shutdown()


@pytest.mark.asyncio
async def test_shutdown_disarms_everything(scheduler: TaskScheduler, clock: ManualClock) -> None:
    ids = [
        scheduler.add("a", "every 1 minute", "x").id,
        scheduler.add("b", "daily at 9:30", "y").id,
        scheduler.add("c", "at 2026-10-19 09:00", "z").id,
    ]
    assert all(scheduler.is_armed(i) for i in ids)

    scheduler.shutdown()
    await clock.settle()
    assert not any(scheduler.is_armed(i) for i in ids)

    await clock.advance(3 * 3600)
    assert all(scheduler.get(i).run_count == 0 for i in ids)


@pytest.mark.asyncio
async def test_add_rolls_back_when_arming_fails(
    scheduler: TaskScheduler, store: TaskStore, monkeypatch
) -> None:
    def broken_arm(_task) -> bool:
        raise OverflowError("date value out of range")

    monkeypatch.setattr(scheduler._dispatch, "arm", broken_arm)
    with pytest.raises(OverflowError):
        scheduler.add("ping", "every 1 minute", "say hi")

    assert scheduler.list() == []
    assert store.count_tasks() == 0


@pytest.mark.asyncio
async def test_stored_out_of_range_interval_is_left_dormant(settings, store: TaskStore, clock: ManualClock) -> None:
    store.save(
        Task(
            id="task_huge",
            name="huge",
            type=TaskType.HEARTBEAT,
            schedule="every 3000000 days",
            command="hi",
            interval_ms=3_000_000 * 86_400_000,
            created_at=clock.now(),
        )
    )

    restarted, _, _ = _restart(settings.tasks_db_path, clock.now())
    assert [t.id for t in restarted.list()] == ["task_huge"]
    assert not restarted.is_armed("task_huge")
    restarted.shutdown()


@pytest.mark.asyncio
async def test_weekly_cron_fires_only_on_its_weekday(
    scheduler: TaskScheduler, clock: ManualClock, processor: FakeProcessor
) -> None:
    # The clock starts on Monday 2026-10-19 08:00.
    monday = scheduler.add("mon", "weekly on monday at 8:05", "monday report")
    tuesday = scheduler.add("tue", "weekly on tue at 8:05", "tuesday report")
    assert tuesday.cron == "0 5 8 * * 2"

    await clock.advance(10 * 60)
    assert scheduler.get(monday.id).run_count == 1
    assert scheduler.get(tuesday.id).run_count == 0

    await clock.advance(24 * 3600)
    assert scheduler.get(monday.id).run_count == 1
    assert scheduler.get(tuesday.id).run_count == 1
    assert [c.command for c in processor.calls] == ["monday report", "tuesday report"]
    assert processor.calls[1].at == datetime(2026, 10, 20, 8, 5)
    scheduler.shutdown()


@pytest.mark.asyncio
async def test_monthly_cron_fires_only_on_its_day(scheduler: TaskScheduler, clock: ManualClock) -> None:
    today = scheduler.add("today", "monthly on 19 at 8:05", "bill")
    tomorrow = scheduler.add("tomorrow", "monthly on 20 at 8:05", "rent")

    await clock.advance(10 * 60)
    assert scheduler.get(today.id).run_count == 1
    assert scheduler.get(tomorrow.id).run_count == 0
    scheduler.shutdown()


@pytest.mark.asyncio
async def test_pause_and_resume_recurring_task(store: TaskStore) -> None:
    clock = ManualClock(datetime(2026, 10, 19, 9, 28, 30))
    processor = FakeProcessor(clock=clock)
    scheduler = TaskScheduler(store, processor, clock=clock, cron_poll_seconds=60.0)
    task = scheduler.add("daily", "daily at 9:30", "report")

    scheduler.pause(task.id)
    assert not scheduler.is_armed(task.id)
    await clock.advance(3 * 60)  # 9:30 passes while paused
    assert scheduler.get(task.id).run_count == 0

    scheduler.resume(task.id)
    assert scheduler.is_armed(task.id)
    await clock.advance(24 * 3600)

    assert scheduler.get(task.id).run_count == 1
    [call] = processor.calls
    assert call.at == datetime(2026, 10, 20, 9, 30, 30)
    scheduler.shutdown()
