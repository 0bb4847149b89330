"""Tests for src/agents.py: prompt building, reply parsing, context requests, registry."""

from dataclasses import replace
from unittest.mock import AsyncMock

import pytest

from src.agents import AgentRegistry, DebateAgent
from src.models import ModelResponse
from src.providers.base import ProviderError
from src.toolkit import AgentToolkit
from tests.conftest import MockProvider, json_reply, make_response


def _agent(content: str, agent_id: str = "claude", system_prompt: str | None = None) -> DebateAgent:
    return DebateAgent(agent_id, agent_id.title(), MockProvider(agent_id, content), system_prompt)


async def test_generate_response_parses_json(sample_context):
    agent = _agent(json_reply("Use YAML.", confidence=0.9, stance="yes"))
    response = await agent.generate_response(sample_context)

    assert response.agent_id == "claude"
    assert response.agent_name == "Claude"
    assert response.position == "Use YAML."
    assert response.confidence == 0.9
    assert response.stance == "YES"


async def test_generate_response_clamps_confidence(sample_context):
    agent = _agent(json_reply("Use YAML.", confidence=7))
    response = await agent.generate_response(sample_context)
    assert response.confidence == 1.0


async def test_generate_response_defaults_missing_confidence(sample_context):
    agent = _agent('{"position": "Use JSON.", "reasoning": "Tooling."}')
    response = await agent.generate_response(sample_context)
    assert response.confidence == 0.5
    assert response.stance is None


async def test_generate_response_fenced_and_repaired(sample_context):
    agent = _agent('```json\n{"position": "Use TOML.", "reasoning": "Typed", "confidence": 0.6,}\n```')
    response = await agent.generate_response(sample_context)
    assert response.position == "Use TOML."
    assert response.confidence == 0.6


async def test_generate_response_plain_text_fallback(sample_context, caplog):
    agent = _agent("YAML wins.\nIt is easier to read and supports comments.")
    response = await agent.generate_response(sample_context)

    assert response.position == "YAML wins."
    assert "supports comments" in response.reasoning
    assert response.confidence == 0.5
    assert "non-JSON" in caplog.text


async def test_generate_response_parses_citations(sample_context):
    citations = [{"title": "YAML spec", "url": "https://yaml.org"}, {"title": "no url"}]
    agent = _agent(json_reply("Use YAML.", citations=citations))
    response = await agent.generate_response(sample_context)
    assert [c.title for c in response.citations] == ["YAML spec"]


async def test_prompts_carry_mode_prompt_and_previous_responses(sample_context):
    agent = _agent(json_reply("Use YAML."), system_prompt="You are a careful reviewer.")
    context = replace(
        sample_context,
        mode_prompt="Mode: Adversarial",
        focus_question="What about comments?",
        previous_responses=[make_response("gemini", "Use JSON everywhere.")],
    )
    await agent.generate_response(context)

    call = agent.provider.generate.await_args
    user_message = call.args[0]
    system_prompt = call.kwargs["system_prompt"]
    assert call.kwargs["round_number"] == 1
    assert "You are a careful reviewer." in system_prompt
    assert "Mode: Adversarial" in system_prompt
    assert "Focus question: What about comments?" in system_prompt
    assert "Use JSON everywhere." in user_message


async def test_context_request_goes_to_toolkit(sample_context):
    toolkit = AgentToolkit()
    request = {"query": "Benchmark numbers?", "reason": "Performance claim"}
    agent = _agent(json_reply("Use JSON.", contextRequest=request))
    agent.set_toolkit(toolkit)

    response = await agent.generate_response(sample_context)

    (pending,) = toolkit.get_pending_context_requests()
    assert pending.agent_id == "claude"
    assert pending.query == "Benchmark numbers?"
    assert response.tool_calls[0].tool_name == "request_context"
    assert response.tool_calls[0].output["success"] is True


async def test_context_request_ignored_without_toolkit(sample_context):
    agent = _agent(json_reply("Use JSON.", contextRequest={"query": "q"}))
    response = await agent.generate_response(sample_context)
    assert response.tool_calls == []


async def test_provider_error_propagates(sample_context):
    agent = _agent("unused")
    agent.provider.generate = AsyncMock(side_effect=ProviderError("claude", "rate limited"))
    with pytest.raises(ProviderError, match="rate limited"):
        await agent.generate_response(sample_context)


async def test_generate_raw_completion_returns_text():
    agent = _agent("raw text")
    assert await agent.generate_raw_completion("prompt", system_prompt="sys") == "raw text"
    assert agent.provider.generate.await_args.kwargs["system_prompt"] == "sys"


async def test_health_check_ok_and_failure():
    agent = _agent("OK")
    assert await agent.health_check() == (True, "")

    agent.provider.generate = AsyncMock(side_effect=ProviderError("claude", "bad key"))
    ok, err = await agent.health_check()
    assert ok is False
    assert "bad key" in err


def test_get_info():
    info = _agent("x").get_info()
    assert (info.id, info.provider, info.model) == ("claude", "claude", "mock-model")


def test_registry_active_order_and_lookup():
    registry = AgentRegistry()
    for agent_id in ("claude", "chatgpt", "gemini"):
        registry.register(_agent("x", agent_id))

    assert registry.get_active_agent_ids() == ["claude", "chatgpt", "gemini"]
    registry.set_active("chatgpt", False)
    assert registry.get_active_agent_ids() == ["claude", "gemini"]
    assert registry.find_by_provider("gemini").id == "gemini"
    assert registry.find_by_provider("chatgpt") is None
    assert len(registry) == 3


def test_registry_remove_and_unknown():
    registry = AgentRegistry()
    registry.register(_agent("x"))
    assert registry.remove("claude") is True
    assert registry.remove("claude") is False
    assert registry.get_agent("claude") is None
    with pytest.raises(KeyError):
        registry.set_active("claude", True)


def test_mock_provider_response_shape():
    provider = MockProvider("p", "content")
    assert isinstance(provider.generate.return_value, ModelResponse)
