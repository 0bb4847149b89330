"""Tests for src/engine.py."""

from dataclasses import replace
from unittest.mock import AsyncMock

import pytest

from src.agents import AgentRegistry
from src.ai_consensus import AIConsensusAnalyzer
from src.engine import DebateEngine
from src.errors import ConfigurationError, ConsensusAnalyzerUnavailableError
from src.models import ConsensusResult, ContextResult
from src.modes.base import ModeStrategy
from src.modes.registry import ModeRegistry
from src.toolkit import AgentToolkit
from tests.conftest import ScriptedAgent, make_response


@pytest.fixture
def engine(toolkit) -> DebateEngine:
    return DebateEngine(toolkit)


def test_toolkit_required():
    with pytest.raises(ConfigurationError, match="AgentToolkit must be provided"):
        DebateEngine(None)


def test_toolkit_accessors(engine, toolkit):
    assert engine.get_toolkit() is toolkit
    replacement = AgentToolkit()
    engine.set_toolkit(replacement)
    assert engine.get_toolkit() is replacement


def test_register_mode_rejects_empty_name(engine):
    with pytest.raises(ValueError):
        engine.register_mode("", ModeStrategy(name="x", build_prompt=lambda ctx: ""))


async def test_register_mode_overwrites(engine, sample_context):
    custom = AsyncMock()
    custom.execute_round = AsyncMock(return_value=[make_response("custom")])
    custom.needs_groupthink_detection = False
    engine.register_mode("collaborative", custom)

    result = await engine.execute_round([ScriptedAgent("alpha")], sample_context)

    assert [r.agent_id for r in result.responses] == ["custom"]
    custom.execute_round.assert_awaited_once()


async def test_execute_round_delegates_to_mode(engine, sample_context):
    context = replace(sample_context, mode="devils-advocate")
    agents = [ScriptedAgent("alpha", stance="YES"), ScriptedAgent("beta", stance="NO"), ScriptedAgent("gamma")]

    result = await engine.execute_round(agents, context)

    assert result.round_number == 1
    assert [a.contexts[0].aux["agent_role"] for a in agents] == ["PRIMARY", "OPPOSITION", "EVALUATOR"]
    assert result.consensus.summary.startswith("Analysis of 3 responses")


async def test_unknown_mode_falls_back_to_sequential(engine, sample_context, caplog):
    context = replace(sample_context, mode="fishbowl")
    agents = [ScriptedAgent("alpha"), ScriptedAgent("broken", fail=True), ScriptedAgent("gamma")]

    result = await engine.execute_round(agents, context)

    assert [r.agent_id for r in result.responses] == ["alpha", "gamma"]
    assert [r.agent_id for r in agents[2].contexts[0].previous_responses] == ["alpha"]
    assert agents[0].toolkit is engine.get_toolkit()
    assert "No mode strategy registered for fishbowl" in caplog.text
    assert "Agent broken failed in round 1" in caplog.text


async def test_all_agents_failing_gives_empty_round(engine, sample_context):
    result = await engine.execute_round([ScriptedAgent("a", fail=True), ScriptedAgent("b", fail=True)], sample_context)
    assert result.responses == []
    assert result.consensus.agreement_level == 0
    assert result.consensus.summary == "No responses to analyze"


async def test_round_complete_logged(engine, sample_context, caplog):
    caplog.set_level("INFO")
    await engine.execute_round([ScriptedAgent("a"), ScriptedAgent("b", fail=True)], sample_context)
    assert "Round 1 complete: 1/2 agents succeeded" in caplog.text


async def test_execute_rounds_two_agents_two_rounds(engine, sample_session, two_agents):
    results = await engine.execute_rounds(two_agents, sample_session, 2)

    assert len(results) == 2
    assert [r.round_number for r in results] == [1, 2]
    assert len(sample_session.responses) == 4
    assert sample_session.current_round == 2


async def test_execute_rounds_continues_from_session_round(engine, sample_session, two_agents):
    sample_session.current_round = 3
    sample_session.responses = [make_response("alpha"), make_response("beta")]

    results = await engine.execute_rounds(two_agents, sample_session, 1, focus_question="Latency?")

    assert results[0].round_number == 4
    assert sample_session.current_round == 4
    seen = two_agents[0].contexts[0]
    assert seen.current_round == 4
    assert seen.focus_question == "Latency?"
    assert len(seen.previous_responses) == 2


async def test_execute_rounds_context_results_first_round_only(engine, sample_session, two_agents):
    context_results = [ContextResult(request_id="ctx-1", success=True, result="42 ms p99")]

    await engine.execute_rounds(two_agents, sample_session, 2, context_results=context_results)

    agent = two_agents[0]
    assert agent.contexts[0].context_results == context_results
    assert agent.contexts[1].context_results is None
    # round 2 sees every round-1 response
    assert len(agent.contexts[1].previous_responses) == 2


async def test_context_requests_collected_and_cleared(engine, sample_context, toolkit):
    await toolkit.execute_tool("request_context", {"query": "stale request"})

    class Requester(ScriptedAgent):
        async def generate_response(self, context):
            await self.toolkit.execute_tool("request_context", {"query": "Pricing?", "agent_id": self.id})
            return await super().generate_response(context)

    result = await engine.execute_round([Requester("alpha"), ScriptedAgent("beta")], sample_context)

    assert [req.query for req in result.context_requests] == ["Pricing?"]
    assert result.to_dict()["contextRequests"][0]["agentId"] == "alpha"

    plain = await engine.execute_round([ScriptedAgent("beta")], sample_context)
    assert plain.context_requests is None


async def test_groupthink_flagged_for_modes_that_ask(engine, sample_context):
    agents = [
        ScriptedAgent("alpha", "Adopt YAML configuration", confidence=0.95, stance="YES"),
        ScriptedAgent("beta", "Adopt YAML configuration", confidence=0.9, stance="YES"),
    ]
    collaborative = await engine.execute_round(agents, sample_context)
    assert collaborative.consensus.groupthink_warning["detected"] is True

    adversarial = await engine.execute_round(agents, replace(sample_context, mode="adversarial"))
    assert adversarial.consensus.groupthink_warning is None


def test_analyze_consensus_is_rule_based(engine):
    assert engine.analyze_consensus([]).summary == "No responses to analyze"
    assert engine.analyze_consensus([make_response("alpha")]).agreement_level == 1


async def test_analyze_consensus_with_ai_requires_analyzer(engine):
    with pytest.raises(ConsensusAnalyzerUnavailableError) as excinfo:
        await engine.analyze_consensus_with_ai([make_response("a"), make_response("b")], "topic")
    assert excinfo.value.code == "CONSENSUS_ANALYZER_UNAVAILABLE"


async def test_analyze_consensus_with_ai_delegates(toolkit):
    analyzer = AIConsensusAnalyzer(AgentRegistry())
    analyzer.analyze = AsyncMock(return_value=ConsensusResult(agreement_level=0.7, summary="ai"))
    engine = DebateEngine(toolkit, ai_consensus_analyzer=analyzer)

    responses = [make_response("a"), make_response("b")]
    result = await engine.analyze_consensus_with_ai(responses, "topic")

    assert result.summary == "ai"
    analyzer.analyze.assert_awaited_once_with(responses, "topic")


async def test_custom_registry(toolkit, sample_context):
    engine = DebateEngine(toolkit, modes=ModeRegistry(register_defaults=False))
    agents = [ScriptedAgent("alpha"), ScriptedAgent("beta")]

    await engine.execute_round(agents, sample_context)

    # without a registered collaborative mode the in-order fallback runs
    assert [r.agent_id for r in agents[1].contexts[0].previous_responses] == ["alpha"]


async def test_execute_rounds_stamps_round_numbers(engine, sample_session):
    alpha, beta = ScriptedAgent("alpha"), ScriptedAgent("beta")

    await engine.execute_rounds([alpha, beta], sample_session, 1)
    alpha.fail = True
    await engine.execute_rounds([alpha, beta], sample_session, 1)
    alpha.fail = False
    await engine.execute_rounds([alpha, beta], sample_session, 1)

    assert [(r.agent_id, r.round_number) for r in sample_session.responses] == [
        ("alpha", 1), ("beta", 1), ("beta", 2), ("alpha", 3), ("beta", 3),
    ]
    assert sample_session.responses[2].to_dict()["roundNumber"] == 2
