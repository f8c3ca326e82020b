# tests/test_agent.py

from __future__ import annotations

from types import SimpleNamespace

import httpx
import openai
import pytest

from genagent.core.agent import Agent
from genagent.llm.client import OpenAIChatClient
from genagent.llm.offline import OfflineLLMClient


class _RecordingLLM:
    def __init__(self, reply: str = "done", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[tuple[list[dict[str, str]], str]] = []

    async def complete(self, messages, system_prompt):
        self.calls.append((messages, system_prompt))
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.mark.asyncio
async def test_agent_builds_prompt_from_context_and_command() -> None:
    llm = _RecordingLLM()
    agent = Agent(llm, app_name="Robo", skills={"email": "Write like a concise assistant."})
    context = [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}]

    result = await agent.process_message("summarize inbox", skill_name="email", context=context)

    assert result.ok
    assert (result.response, result.skill) == ("done", "email")
    [(messages, system_prompt)] = llm.calls
    assert messages == [*context, {"role": "user", "content": "summarize inbox"}]
    assert '"Robo"' in system_prompt
    assert "Active skill: email" in system_prompt
    assert "Write like a concise assistant." in system_prompt


@pytest.mark.asyncio
async def test_agent_reports_unknown_skill_without_calling_llm() -> None:
    llm = _RecordingLLM()
    agent = Agent(llm, skills={"email": ""})

    result = await agent.process_message("x", skill_name="calendar")

    assert not result.ok
    assert result.error == "Skill 'calendar' not found"
    assert llm.calls == []


@pytest.mark.asyncio
async def test_agent_folds_llm_failures_into_error() -> None:
    agent = Agent(_RecordingLLM(error=RuntimeError("All LLM models failed.")))
    result = await agent.process_message("x", skill_name="anything")
    assert result.response is None
    assert result.error == "All LLM models failed."


@pytest.mark.asyncio
async def test_offline_client_echoes_last_user_message() -> None:
    text = await OfflineLLMClient().complete(
        [{"role": "user", "content": "first"}, {"role": "assistant", "content": "a"}, {"role": "user", "content": "ping"}],
        "system",
    )
    assert text.endswith("You said: ping")


def test_openai_client_requires_key_and_models() -> None:
    with pytest.raises(RuntimeError, match="API key"):
        OpenAIChatClient(SimpleNamespace(llm_api_key="", llm_models=["m"]))
    with pytest.raises(RuntimeError, match="model list"):
        OpenAIChatClient(SimpleNamespace(llm_api_key="sk-test", llm_models=[]))


def _client_with(create) -> OpenAIChatClient:
    client = OpenAIChatClient(
        SimpleNamespace(llm_api_key="sk-test", llm_base_url="http://llm.invalid/v1", llm_models=["a", "b"])
    )
    client._client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    return client


def _response(content: str | None):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.mark.asyncio
async def test_openai_client_falls_back_and_skips_missing_models() -> None:
    request = httpx.Request("POST", "http://llm.invalid/v1/chat/completions")
    tried: list[str] = []

    async def create(*, model, messages):
        tried.append(model)
        assert messages[0] == {"role": "system", "content": "sys"}
        if model == "a":
            raise openai.NotFoundError("no such model", response=httpx.Response(404, request=request), body=None)
        return _response("from b")

    client = _client_with(create)
    assert await client.complete([{"role": "user", "content": "hi"}], "sys") == "from b"
    assert await client.complete([{"role": "user", "content": "hi"}], "sys") == "from b"
    # "a" is remembered as unavailable after the first 404.
    assert tried == ["a", "b", "b"]


@pytest.mark.asyncio
async def test_openai_client_reports_network_failure() -> None:
    request = httpx.Request("POST", "http://llm.invalid/v1/chat/completions")

    async def create(*, model, messages):
        raise openai.APIConnectionError(request=request)

    with pytest.raises(RuntimeError, match="network/timeout"):
        await _client_with(create).complete([{"role": "user", "content": "hi"}], "sys")
