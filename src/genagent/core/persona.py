# src/genagent/core/persona.py

from __future__ import annotations

from datetime import datetime
from typing import Final

BASE_PERSONA_PROMPT: Final[str] = """
You are "{app_name}", an AI assistant that carries out tasks on behalf of the user.
Some requests arrive from scheduled tasks rather than a live conversation.

Truthfulness:
- If you are unsure, say you are unsure.
- Do not fabricate results of actions you did not perform.

Style:
- Match the user's language.
- Keep replies short unless the task asks for depth.
""".strip()


def get_system_prompt(
    app_name: str = "genagent",
    *,
    skill_name: str | None = None,
    skill_instructions: str | None = None,
) -> str:
    parts = [BASE_PERSONA_PROMPT.format(app_name=app_name)]
    if skill_name:
        parts.append(f"Active skill: {skill_name}")
    if skill_instructions:
        parts.append(skill_instructions.strip())
    parts.append(f"Current local time: {datetime.now().strftime('%Y-%m-%d %H:%M')}")
    return "\n\n".join(parts)
