"""Debate agents: a provider plus prompt building and reply parsing, and the agent registry."""

import asyncio
import logging
from datetime import datetime
from typing import Any

from src.json_utils import clamp_unit, parse_json_reply
from src.models import AgentInfo, AgentResponse, Citation, DebateContext, ToolCallRecord
from src.providers.base import AIProvider
from src.toolkit import AgentToolkit

logger = logging.getLogger(__name__)

_VALID_STANCES = ("YES", "NO", "NEUTRAL")
_PING_PROMPT = "Reply with the word OK only."
_HEALTH_TIMEOUT_SEC = 15.0
_FALLBACK_POSITION_CHARS = 200


class DebateAgent:
    """A named debate participant backed by one AIProvider."""

    def __init__(
        self,
        agent_id: str,
        name: str,
        provider: AIProvider,
        system_prompt: str | None = None,
    ) -> None:
        self.id = agent_id
        self.name = name
        self.provider = provider
        self.system_prompt = system_prompt
        self.toolkit: AgentToolkit | None = None

    def set_toolkit(self, toolkit: AgentToolkit) -> None:
        self.toolkit = toolkit

    def get_info(self) -> AgentInfo:
        return AgentInfo(
            id=self.id,
            name=self.name,
            provider=self.provider.name(),
            model=self.provider.model_string(),
        )

    async def generate_response(self, context: DebateContext) -> AgentResponse:
        """Produce this agent's response for one round.

        Raises:
            ProviderError: If the backing provider call fails.
        """
        if self.toolkit is not None:
            self.toolkit.set_context(context)

        reply = await self.provider.generate(
            self._build_user_message(context),
            round_number=context.current_round,
            system_prompt=self._build_system_prompt(context),
        )
        parsed = parse_json_reply(reply.content)
        response = self._parse_response(reply.content, parsed)

        request = (parsed or {}).get("contextRequest")
        if isinstance(request, dict) and self.toolkit is not None:
            tool_input = {**request, "agent_id": self.id}
            output = await self.toolkit.execute_tool("request_context", tool_input)
            response.tool_calls.append(
                ToolCallRecord(tool_name="request_context", input=tool_input, output=output)
            )
        return response

    async def generate_raw_completion(self, prompt: str, system_prompt: str | None = None) -> str:
        """Send a free-form prompt and return the raw text (used by analyzers and synthesis)."""
        reply = await self.provider.generate(prompt, round_number=0, system_prompt=system_prompt)
        return reply.content

    async def health_check(self) -> tuple[bool, str]:
        """Ping the backing provider. Returns (ok, error_message)."""
        try:
            await asyncio.wait_for(
                self.provider.generate(_PING_PROMPT, round_number=0),
                timeout=_HEALTH_TIMEOUT_SEC,
            )
            return True, ""
        except Exception as exc:
            return False, str(exc) or type(exc).__name__

    def _default_system_prompt(self) -> str:
        return (
            f"You are {self.name}, an AI participating in a structured roundtable discussion.\n"
            "Your role is to provide thoughtful, well-reasoned perspectives on the topic at hand.\n"
            "Be respectful of other participants' views while clearly articulating your own position."
        )

    def _build_system_prompt(self, context: DebateContext) -> str:
        parts = [self.system_prompt or self._default_system_prompt()]
        if context.mode_prompt:
            parts.append(context.mode_prompt)

        details = [
            f"Current debate topic: {context.topic}",
            f"Debate mode: {context.mode}",
            f"Round {context.current_round} of {context.total_rounds}",
        ]
        if context.focus_question:
            details.append(f"Focus question: {context.focus_question}")
        details += [
            "",
            "Instructions:",
            "- Provide your position clearly and concisely",
            "- Support your position with logical reasoning",
            "- Express your confidence level (0-1) in your position",
            "- If you rely on sources, cite them",
        ]
        parts.append("\n".join(details))
        return "\n\n".join(parts)

    def _build_user_message(self, context: DebateContext) -> str:
        parts: list[str] = []

        if context.previous_responses:
            parts.append("Previous responses:")
            for resp in context.previous_responses:
                parts.append(
                    f"--- {resp.agent_name} ---\n"
                    f"Position: {resp.position}\n"
                    f"Reasoning: {resp.reasoning}\n"
                    f"Confidence: {resp.confidence * 100:.0f}%"
                )

        if context.context_results:
            parts.append("Context you requested:")
            for result in context.context_results:
                if result.success:
                    parts.append(f"[{result.request_id}] {result.result or ''}")
                else:
                    parts.append(f"[{result.request_id}] unavailable: {result.error or 'unknown error'}")

        parts.append(
            "Reply with JSON only, in this format:\n"
            "{\n"
            '  "position": "Your clear position statement",\n'
            '  "reasoning": "Your detailed reasoning and arguments",\n'
            '  "confidence": 0.0 to 1.0,\n'
            '  "stance": "YES" | "NO" | "NEUTRAL",\n'
            '  "citations": [{"title": "...", "url": "..."}],\n'
            '  "contextRequest": {"query": "...", "reason": "...", "priority": "required"}\n'
            "}\n"
            "stance, citations and contextRequest are optional."
        )
        return "\n\n".join(parts)

    def _parse_response(self, raw: str, parsed: dict[str, Any] | None) -> AgentResponse:
        if parsed is None:
            logger.warning("Agent %s returned non-JSON reply, using raw text", self.id)
            text = raw.strip()
            first_line = next((line for line in text.splitlines() if line.strip()), "")
            return AgentResponse(
                agent_id=self.id,
                agent_name=self.name,
                position=first_line[:_FALLBACK_POSITION_CHARS] or "Unable to determine position",
                reasoning=text or "Unable to determine reasoning",
                confidence=0.5,
                timestamp=datetime.now(),
            )

        return AgentResponse(
            agent_id=self.id,
            agent_name=self.name,
            position=str(parsed.get("position") or "Unable to determine position"),
            reasoning=str(parsed.get("reasoning") or "Unable to determine reasoning"),
            confidence=clamp_unit(parsed.get("confidence"), default=0.5),
            timestamp=datetime.now(),
            stance=_parse_stance(parsed.get("stance")),
            citations=_parse_citations(parsed.get("citations")),
        )


def _parse_stance(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    stance = value.strip().upper()
    return stance if stance in _VALID_STANCES else None


def _parse_citations(value: Any) -> list[Citation]:
    if not isinstance(value, list):
        return []
    citations: list[Citation] = []
    for item in value:
        if isinstance(item, dict) and item.get("title") and item.get("url"):
            citations.append(Citation(title=str(item["title"]), url=str(item["url"]), snippet=item.get("snippet")))
    return citations


class AgentRegistry:
    """In-memory agent lookup. Registration order defines the default delegate."""

    def __init__(self) -> None:
        self._agents: dict[str, DebateAgent] = {}
        self._inactive: set[str] = set()

    def register(self, agent: DebateAgent) -> None:
        self._agents[agent.id] = agent
        self._inactive.discard(agent.id)

    def remove(self, agent_id: str) -> bool:
        self._inactive.discard(agent_id)
        return self._agents.pop(agent_id, None) is not None

    def get_agent(self, agent_id: str) -> DebateAgent | None:
        return self._agents.get(agent_id)

    def set_active(self, agent_id: str, active: bool) -> None:
        if agent_id not in self._agents:
            raise KeyError(agent_id)
        if active:
            self._inactive.discard(agent_id)
        else:
            self._inactive.add(agent_id)

    def get_active_agent_ids(self) -> list[str]:
        return [agent_id for agent_id in self._agents if agent_id not in self._inactive]

    def get_active_agents(self) -> list[DebateAgent]:
        return [self._agents[agent_id] for agent_id in self.get_active_agent_ids()]

    def find_by_provider(self, provider_name: str) -> DebateAgent | None:
        """Return the first active agent whose backing provider has the given name."""
        for agent in self.get_active_agents():
            if agent.provider.name() == provider_name:
                return agent
        return None

    def __len__(self) -> int:
        return len(self._agents)
