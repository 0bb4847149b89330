"""Debate orchestration: mode dispatch, multi-round loop, consensus scoring."""

import logging
from dataclasses import replace
from datetime import datetime

from src.agents import DebateAgent
from src.ai_consensus import AIConsensusAnalyzer
from src.consensus import analyze_consensus
from src.errors import ConfigurationError, ConsensusAnalyzerUnavailableError
from src.groupthink import detect_groupthink
from src.models import AgentResponse, ConsensusResult, ContextResult, DebateContext, RoundResult, Session
from src.modes.base import DebateMode
from src.modes.registry import ModeRegistry
from src.toolkit import AgentToolkit

logger = logging.getLogger(__name__)


class DebateEngine:
    """Runs rounds through the registered mode strategies.

    The engine keeps no per-debate state: everything a round needs travels
    in the DebateContext it builds, so one engine can serve many sessions.
    """

    def __init__(
        self,
        toolkit: AgentToolkit | None,
        modes: ModeRegistry | None = None,
        ai_consensus_analyzer: AIConsensusAnalyzer | None = None,
    ) -> None:
        if toolkit is None:
            raise ConfigurationError("AgentToolkit must be provided")
        self._toolkit = toolkit
        self._modes = modes if modes is not None else ModeRegistry()
        self._ai_consensus_analyzer = ai_consensus_analyzer

    def register_mode(self, name: str, strategy: DebateMode) -> None:
        """Register or overwrite the strategy used for context.mode == name."""
        if not name:
            raise ValueError("Mode name must be a non-empty string")
        self._modes.register(strategy, name=name)

    def get_toolkit(self) -> AgentToolkit:
        return self._toolkit

    def set_toolkit(self, toolkit: AgentToolkit) -> None:
        self._toolkit = toolkit

    @property
    def modes(self) -> ModeRegistry:
        return self._modes

    async def execute_round(self, agents: list[DebateAgent], context: DebateContext) -> RoundResult:
        """Run one round and score it with the rule-based analyzer.

        Failed agents are left out of the responses; the result may hold
        none at all, which the caller must check.
        """
        self._toolkit.clear_pending_requests()
        logger.info("Starting round %d (%s) with %d agents", context.current_round, context.mode, len(agents))

        if self._modes.has_mode(context.mode):
            strategy = self._modes.get_mode(context.mode)
            responses = await strategy.execute_round(agents, context, self._toolkit)
        else:
            strategy = None
            logger.warning("No mode strategy registered for %s, running agents in order", context.mode)
            responses = await self._execute_in_order(agents, context)

        for response in responses:
            response.round_number = context.current_round

        logger.info(
            "Round %d complete: %d/%d agents succeeded",
            context.current_round,
            len(responses),
            len(agents),
        )

        consensus = self.analyze_consensus(responses)
        if strategy is not None and getattr(strategy, "needs_groupthink_detection", False):
            consensus = self._flag_groupthink(responses, consensus)

        pending = self._toolkit.get_pending_context_requests()
        return RoundResult(
            round_number=context.current_round,
            responses=responses,
            consensus=consensus,
            context_requests=pending or None,
        )

    async def _execute_in_order(self, agents: list[DebateAgent], context: DebateContext) -> list[AgentResponse]:
        responses: list[AgentResponse] = []
        for agent in agents:
            agent.set_toolkit(self._toolkit)
            seen = replace(context, previous_responses=[*context.previous_responses, *responses])
            try:
                responses.append(await agent.generate_response(seen))
            except Exception as exc:
                logger.warning("Agent %s failed in round %d: %s", agent.id, context.current_round, exc)
        return responses

    async def execute_rounds(
        self,
        agents: list[DebateAgent],
        session: Session,
        num_rounds: int,
        focus_question: str | None = None,
        context_results: list[ContextResult] | None = None,
    ) -> list[RoundResult]:
        """Run num_rounds rounds, advancing session.current_round by one per round.

        Each round's responses are appended to session.responses. Context
        results are shown to the first round of this call only.
        """
        results: list[RoundResult] = []

        for i in range(num_rounds):
            round_number = session.current_round + 1
            context = DebateContext(
                session_id=session.id,
                topic=session.topic,
                mode=session.mode,
                current_round=round_number,
                total_rounds=session.total_rounds,
                previous_responses=list(session.responses),
                focus_question=focus_question,
                context_results=context_results if i == 0 else None,
            )

            result = await self.execute_round(agents, context)
            results.append(result)

            session.responses.extend(result.responses)
            session.current_round = round_number
            session.updated_at = datetime.now()

        return results

    def analyze_consensus(self, responses: list[AgentResponse]) -> ConsensusResult:
        return analyze_consensus(responses)

    async def analyze_consensus_with_ai(self, responses: list[AgentResponse], topic: str) -> ConsensusResult:
        """Delegate consensus scoring to the configured AI analyzer.

        Raises:
            ConsensusAnalyzerUnavailableError: If the engine was built without one.
        """
        if self._ai_consensus_analyzer is None:
            raise ConsensusAnalyzerUnavailableError()
        return await self._ai_consensus_analyzer.analyze(responses, topic)

    def _flag_groupthink(self, responses: list[AgentResponse], consensus: ConsensusResult) -> ConsensusResult:
        check = detect_groupthink(responses)
        if not check.detected:
            return consensus
        logger.warning("Possible groupthink: %s", "; ".join(check.indicators))
        return replace(
            consensus,
            groupthink_warning={
                "detected": True,
                "indicators": check.indicators,
                "recommendation": check.recommendation,
            },
        )
