# src/genagent/core/agent.py

"""
Message processor used by scheduled tasks and the console.

Resolves the optional skill, builds the prompt (seed context + command),
calls the LLM client and folds any failure into ProcessResult.error.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from ..llm.client import friendly_llm_error_message
from .persona import get_system_prompt
from .ports import ChatMessage, LLMClient, ProcessResult

logger = logging.getLogger(__name__)


class Agent:
    def __init__(
        self,
        llm: LLMClient,
        *,
        app_name: str = "genagent",
        skills: Mapping[str, str] | None = None,
    ) -> None:
        self._llm = llm
        self._app_name = app_name
        # skill name -> extra system instructions; None means "accept any skill name".
        self._skills = dict(skills) if skills is not None else None

    async def process_message(
        self,
        command: str,
        *,
        skill_name: str | None = None,
        context: list[ChatMessage] | None = None,
    ) -> ProcessResult:
        instructions: str | None = None
        if skill_name and self._skills is not None:
            if skill_name not in self._skills:
                return ProcessResult(error=f"Skill '{skill_name}' not found")
            instructions = self._skills[skill_name]

        system_prompt = get_system_prompt(
            self._app_name,
            skill_name=skill_name,
            skill_instructions=instructions,
        )
        messages: list[ChatMessage] = [*(context or []), {"role": "user", "content": command}]

        try:
            text = await self._llm.complete(messages, system_prompt)
        except Exception as e:
            logger.warning("Error processing message: %s", e, exc_info=True)
            return ProcessResult(error=friendly_llm_error_message(e), skill=skill_name)

        return ProcessResult(response=text, skill=skill_name)
