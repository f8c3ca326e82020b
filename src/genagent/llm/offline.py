# src/genagent/llm/offline.py

from __future__ import annotations

from ..core.ports import ChatMessage


class OfflineLLMClient:
    """
    Offline deterministic LLM client used for demos when no external API is configured.

    Echoes the latest user message so scheduled tasks still complete (and count as successes).
    """

    async def complete(self, messages: list[ChatMessage], system_prompt: str) -> str:
        user_text = ""
        for m in reversed(messages):
            if m["role"] == "user":
                user_text = m["content"]
                break

        return (
            "Offline demo mode: no external LLM is configured.\n"
            "Set GENAGENT_LLM_API_KEY (and GENAGENT_LLM_MODELS) to enable real responses.\n\n"
            f"You said: {user_text}"
        )
