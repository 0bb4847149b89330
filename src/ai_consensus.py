"""AI-backed consensus: delegate semantic agreement analysis to one registered agent."""

import logging
import re
from typing import Any

from src.agents import AgentRegistry, DebateAgent
from src.errors import ConfigurationError
from src.json_utils import clamp_unit, parse_json_reply, string_list, strip_code_fences
from src.models import AgentResponse, ConsensusResult
from src.transcript import format_rounds, group_responses_by_round

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "You are an AI assistant that analyzes debate positions. "
    "You must respond with valid JSON only, no additional text before or after the JSON object."
)

_ANALYSIS_PROMPT = """You are analyzing debate positions from multiple AI agents. Analyze meaning, not keywords.

## Debate Topic
{topic}

## Agent Positions
{positions}

## Your Analysis Task
Return a JSON object with this exact structure:
{{
  "agreementLevel": <number 0-1, where 1 = complete agreement>,
  "clusters": [{{"theme": "<name>", "agentIds": ["<ids>"], "summary": "<cluster position>"}}],
  "commonGround": ["<points ALL agents agree on>"],
  "disagreementPoints": ["<key points of disagreement>"],
  "nuances": {{
    "partialAgreements": ["<mostly agreed, with caveats>"],
    "conditionalPositions": ["<positions that depend on conditions>"],
    "uncertainties": ["<areas of expressed uncertainty>"]
  }},
  "groupthinkWarning": {{"detected": <boolean>, "indicators": ["<indicator>"], "recommendation": "<action>"}},
  "summary": "<2-3 sentence overall summary>",
  "reasoning": "<brief explanation of your analysis>"
}}

Important:
- "Developers need better tools" and "Software engineers require improved tooling" are THE SAME position
- "AI is dangerous" and "AI is not dangerous" are OPPOSITE positions
- Flag groupthink when every agent is highly confident and no alternative was explored

Return ONLY the JSON object."""

_LEVEL_RE = re.compile(r'"agreementLevel"\s*:\s*([\d.]+)')
_SUMMARY_RE = re.compile(r'"summary"\s*:\s*"((?:[^"\\]|\\.)*)"')


def build_analysis_prompt(responses: list[AgentResponse], topic: str) -> str:
    positions = format_rounds(group_responses_by_round(responses))
    return _ANALYSIS_PROMPT.format(topic=topic, positions=positions)


def _dict_or_none(value: Any) -> dict[str, Any] | None:
    return value if isinstance(value, dict) else None


def parse_analysis_reply(raw: str) -> ConsensusResult:
    """Turn the delegate's reply into a ConsensusResult. Never raises.

    Falls back to regex extraction, then to the raw text as summary with
    agreement 0.5.
    """
    parsed = parse_json_reply(raw)
    if parsed is not None:
        clusters = parsed.get("clusters")
        return ConsensusResult(
            agreement_level=clamp_unit(parsed.get("agreementLevel"), default=0.5),
            common_ground=string_list(parsed.get("commonGround")),
            disagreement_points=string_list(parsed.get("disagreementPoints")),
            summary=str(parsed.get("summary") or "Analysis completed"),
            clusters=[c for c in clusters if isinstance(c, dict)] if isinstance(clusters, list) else None,
            nuances=_dict_or_none(parsed.get("nuances")),
            groupthink_warning=_dict_or_none(parsed.get("groupthinkWarning")),
            reasoning=str(parsed["reasoning"]) if parsed.get("reasoning") else None,
        )

    cleaned = strip_code_fences(raw)
    level_match = _LEVEL_RE.search(cleaned)
    summary_match = _SUMMARY_RE.search(cleaned)
    logger.warning("Consensus reply was not parseable JSON (%d chars), using fallback values", len(raw))

    if level_match is not None:
        return ConsensusResult(
            agreement_level=clamp_unit(level_match.group(1), default=0.5),
            summary=summary_match.group(1) if summary_match else raw.strip(),
            reasoning="Parsed from partial/malformed response",
        )
    return ConsensusResult(
        agreement_level=0.5,
        common_ground=["Unable to determine common ground"],
        summary=summary_match.group(1) if summary_match else (raw.strip() or "Analysis failed"),
        reasoning="Parsed from partial/malformed response",
    )


class AIConsensusAnalyzer:
    """Semantic consensus analysis performed by a delegate agent from the registry."""

    def __init__(
        self,
        registry: AgentRegistry,
        preferred_agent_id: str | None = None,
        preferred_provider: str | None = None,
    ) -> None:
        self._registry = registry
        self._preferred_agent_id = preferred_agent_id
        self._preferred_provider = preferred_provider

    def select_delegate(self) -> DebateAgent:
        """Pick the analysis agent: preferred id, then preferred provider, then first active.

        Raises:
            ConfigurationError: If the registry has no active agents.
        """
        active = self._registry.get_active_agents()
        if not active:
            raise ConfigurationError(
                f"AI consensus analysis unavailable: no active agents ({len(self._registry)} registered)"
            )

        if self._preferred_agent_id:
            agent = self._registry.get_agent(self._preferred_agent_id)
            if agent is not None and agent in active:
                return agent
            logger.debug("Preferred consensus agent %s not active", self._preferred_agent_id)

        if self._preferred_provider:
            agent = self._registry.find_by_provider(self._preferred_provider)
            if agent is not None:
                return agent
            logger.debug("Preferred provider %s not available, using first agent", self._preferred_provider)

        return active[0]

    async def analyze(self, responses: list[AgentResponse], topic: str) -> ConsensusResult:
        """Run the delegate analysis.

        Raises:
            ConfigurationError: If no delegate agent is available.
            ProviderError: If the delegate's provider call fails.
        """
        if not responses:
            return ConsensusResult(agreement_level=0.0, summary="No responses to analyze")
        if len(responses) == 1:
            only = responses[0]
            return ConsensusResult(
                agreement_level=1.0,
                common_ground=[only.position],
                summary=f"Single response from {only.agent_name}",
            )

        delegate = self.select_delegate()
        logger.info("Running AI consensus analysis via %s over %d responses", delegate.id, len(responses))

        raw = await delegate.generate_raw_completion(
            build_analysis_prompt(responses, topic),
            system_prompt=_SYSTEM_PROMPT,
        )
        result = parse_analysis_reply(raw)

        if result.groupthink_warning and result.groupthink_warning.get("detected"):
            logger.warning(
                "Groupthink detected by AI consensus analysis: %s",
                result.groupthink_warning.get("indicators"),
            )
        return result
