# src/genagent/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (LLM/agent/store/scheduler).
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.agent import Agent
from ..core.ports import LLMClient
from ..core.state import AppState
from ..llm.client import OpenAIChatClient
from ..llm.offline import OfflineLLMClient
from ..tasks.task_scheduler import TaskScheduler
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    The scheduler is built but not started: call state.scheduler.start() inside the event loop.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    llm_client: LLMClient
    try:
        llm_client = OpenAIChatClient(settings)
    except RuntimeError as e:
        # Fallback for demos / local runs without external services.
        logger.warning("LLM unavailable (%s); using offline client.", e)
        llm_client = OfflineLLMClient()

    agent = Agent(llm_client, app_name=settings.app_name)
    scheduler = TaskScheduler(
        TaskStore(settings.tasks_db_path),
        agent,
        cron_poll_seconds=settings.cron_poll_seconds,
        default_max_attempts=settings.default_max_attempts,
    )

    return AppState(settings=settings, agent=agent, scheduler=scheduler)
