"""Final synthesis: build the transcript, ask one agent to summarize, parse its reply."""

import logging

from src.agents import AgentRegistry, DebateAgent
from src.errors import ConfigurationError, SessionError
from src.json_utils import clamp_unit, parse_json_reply, string_list
from src.models import AgentResponse, Session, SynthesisResult
from src.transcript import format_rounds, group_responses_by_round

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "You are a neutral moderator summarizing a structured debate. "
    "Respond with valid JSON only."
)

_SYNTHESIS_PROMPT = """Synthesize the following {rounds}-round debate.

## Topic
{topic}

## Mode
{mode}

## Transcript
{transcript}

Return a JSON object with this exact structure:
{{
  "commonGround": ["<points every participant accepts>"],
  "keyDifferences": ["<unresolved disagreements>"],
  "evolutionSummary": "<how positions changed across rounds>",
  "conclusion": "<the best-supported answer to the topic>",
  "recommendation": "<what the reader should do next>",
  "confidence": <number 0-1>
}}

Return ONLY the JSON object."""


def _select_synthesizer(registry: AgentRegistry, synthesizer_id: str | None) -> DebateAgent:
    if synthesizer_id:
        agent = registry.get_agent(synthesizer_id)
        if agent is None:
            raise ConfigurationError(f"Synthesizer agent '{synthesizer_id}' is not registered")
        return agent
    active = registry.get_active_agents()
    if not active:
        raise ConfigurationError("No active agents available for synthesis")
    return active[0]


def parse_synthesis_reply(raw: str, synthesizer_id: str) -> SynthesisResult:
    """Never raises: unparseable replies become the conclusion with confidence 0.5."""
    parsed = parse_json_reply(raw)
    if parsed is None:
        logger.warning("Synthesis reply from %s was not JSON, keeping raw text", synthesizer_id)
        return SynthesisResult(
            common_ground=[],
            key_differences=[],
            evolution_summary="",
            conclusion=raw.strip(),
            recommendation="",
            confidence=0.5,
            synthesizer_id=synthesizer_id,
        )
    return SynthesisResult(
        common_ground=string_list(parsed.get("commonGround")),
        key_differences=string_list(parsed.get("keyDifferences")),
        evolution_summary=str(parsed.get("evolutionSummary") or ""),
        conclusion=str(parsed.get("conclusion") or ""),
        recommendation=str(parsed.get("recommendation") or ""),
        confidence=clamp_unit(parsed.get("confidence"), default=0.5),
        synthesizer_id=synthesizer_id,
    )


async def synthesize(
    session: Session,
    responses: list[AgentResponse],
    registry: AgentRegistry,
    synthesizer_id: str | None = None,
) -> SynthesisResult:
    """Run synthesis over a finished debate.

    Args:
        session: The debated session (topic, mode).
        responses: Chronological responses of every round.
        registry: Agents to pick the synthesizer from.
        synthesizer_id: Explicit synthesizer; defaults to the first active agent.

    Raises:
        SessionError: If there are no responses to synthesize.
        ConfigurationError: If no synthesizer agent is available.
        ProviderError: If the synthesizer call fails.
    """
    if not responses:
        raise SessionError(f"Session {session.id} has no responses to synthesize")

    synthesizer = _select_synthesizer(registry, synthesizer_id)
    rounds = group_responses_by_round(responses)
    prompt = _SYNTHESIS_PROMPT.format(
        rounds=len(rounds),
        topic=session.topic,
        mode=session.mode,
        transcript=format_rounds(rounds),
    )

    logger.info("Running synthesis via %s", synthesizer.id)
    raw = await synthesizer.generate_raw_completion(prompt, system_prompt=_SYSTEM_PROMPT)
    return parse_synthesis_reply(raw, synthesizer.id)
