# src/genagent/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The scheduler depends on Protocols instead of concrete implementations.
This keeps the collaborator/LLM providers swappable and makes testing easier.
"""

from dataclasses import dataclass
from typing import Protocol

ChatMessage = dict[str, str]
# OpenAI-style chat messages: {"role": "...", "content": "..."}.


@dataclass(slots=True, frozen=True)
class ProcessResult:
    """
    Outcome of one collaborator call.

    A present `error` means the call failed without raising.
    """

    response: str | None = None
    error: str | None = None
    skill: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class LLMClient(Protocol):
    """Non-streaming chat completion client (OpenAI-compatible)."""

    async def complete(self, messages: list[ChatMessage], system_prompt: str) -> str: ...


class MessageProcessor(Protocol):
    """
    The external entrypoint a scheduled task invokes.

    Implementations should report failures through ProcessResult.error;
    the task runner also tolerates raised exceptions.
    """

    async def process_message(
            self,
            command: str,
            *,
            skill_name: str | None = None,
            context: list[ChatMessage] | None = None,
    ) -> ProcessResult: ...
