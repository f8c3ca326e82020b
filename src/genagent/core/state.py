# src/genagent/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .ports import ChatMessage, MessageProcessor

if TYPE_CHECKING:
    from ..tasks.task_scheduler import TaskScheduler


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    agent: MessageProcessor
    scheduler: TaskScheduler

    conversation: list[ChatMessage] = field(default_factory=list)
