"""Delphi mode: parallel rounds over anonymized prior answers plus aggregate statistics."""

import re
from collections import Counter
from dataclasses import dataclass, field, replace

from src.agents import DebateAgent
from src.models import AgentResponse, DebateContext
from src.modes.base import ModeHooks, ModeStrategy, append_mode_prompt
from src.modes.prompts import behavioral_contract, focus_section, join_sections, output_structure, role_anchor
from src.transcript import latest_round

_KEY_POSITION_CHARS = 100
_MAX_LISTED_POSITIONS = 5
_SENTENCE_END_RE = re.compile(r"[.!?]")

_FIRST_ROUND = [
    ("[INDEPENDENT ESTIMATE]", "Your position, formed without reference to others"),
    ("[KEY REASONING]", "The 2-3 considerations that drive your estimate"),
    ("[CONFIDENCE RATIONALE]", "Why your confidence is what it is"),
]
_LATER_ROUNDS = [
    ("[REVISED ESTIMATE]", "Your position after seeing the anonymous panel"),
    ("[RESPONSE TO GROUP]", "Where and why you move toward or away from the panel"),
    ("[OUTLIER CHECK]", "If you differ from the majority, defend or revise"),
]


@dataclass
class RoundStatistics:
    participant_count: int
    average_confidence: float                   # percent
    stance_distribution: dict[str, int] = field(default_factory=dict)
    position_distribution: dict[str, int] = field(default_factory=dict)
    consensus_level: float = 0.0                # percent sharing the most common position


def anonymize_responses(responses: list[AgentResponse]) -> list[AgentResponse]:
    """Replace agent identity with "Participant N" labels, in order."""
    return [
        replace(resp, agent_id=f"participant-{i}", agent_name=f"Participant {i}")
        for i, resp in enumerate(responses, start=1)
    ]


def _key_position(position: str) -> str:
    if not position.strip():
        return "(No position)"
    first_sentence = _SENTENCE_END_RE.split(position, maxsplit=1)[0].strip()
    if first_sentence and len(first_sentence) <= _KEY_POSITION_CHARS:
        return first_sentence
    return position[:_KEY_POSITION_CHARS].strip() + "..."


def calculate_statistics(responses: list[AgentResponse]) -> RoundStatistics:
    if not responses:
        return RoundStatistics(participant_count=0, average_confidence=0.0)

    stances = Counter({"YES": 0, "NO": 0, "NEUTRAL": 0})
    stances.update(r.stance for r in responses if r.stance)
    positions = Counter(_key_position(r.position) for r in responses)

    return RoundStatistics(
        participant_count=len(responses),
        average_confidence=sum(r.confidence for r in responses) / len(responses) * 100,
        stance_distribution=dict(stances),
        position_distribution=dict(positions.most_common()),
        consensus_level=max(positions.values()) / len(responses) * 100,
    )


def format_statistics(stats: RoundStatistics) -> str:
    lines = [
        f"- Participants: {stats.participant_count}",
        f"- Average Confidence: {stats.average_confidence:.1f}%",
        f"- Consensus Level: {stats.consensus_level:.1f}%",
    ]
    if sum(stats.stance_distribution.values()):
        dist = stats.stance_distribution
        lines.append(
            f"- Stance Distribution: YES={dist.get('YES', 0)}, NO={dist.get('NO', 0)}, "
            f"NEUTRAL={dist.get('NEUTRAL', 0)}"
        )
    if stats.position_distribution:
        lines.append("- Position Distribution:")
        for position, count in list(stats.position_distribution.items())[:_MAX_LISTED_POSITIONS]:
            lines.append(f'  - {count} participant(s): "{position}"')
    return "\n".join(lines)


def _transform_context(context: DebateContext, agent: DebateAgent) -> DebateContext:
    if not context.previous_responses:
        return context
    stats = calculate_statistics(latest_round(context.previous_responses))
    anonymized = replace(context, previous_responses=anonymize_responses(context.previous_responses))
    return append_mode_prompt(anonymized, f"Previous Round Statistics:\n{format_statistics(stats)}")


def build_delphi_prompt(context: DebateContext) -> str:
    if context.previous_responses:
        structure = output_structure(_LATER_ROUNDS)
    else:
        structure = output_structure(_FIRST_ROUND, heading="REQUIRED OUTPUT STRUCTURE (First Round):")
        structure += "\n\nYour response will be anonymized and shared with aggregate statistics."
    return join_sections(
        "Mode: Delphi Method",
        role_anchor(
            "YOU ARE AN ANONYMOUS PANEL EXPERT",
            "You give independent estimates that the panel refines over rounds.",
            "Converge on the best-supported answer through iterative, anonymous feedback.",
            "giving honest, calibrated estimates",
        ),
        behavioral_contract(
            must=["Give a concrete estimate or position", "Explain any revision from your previous answer"],
            must_not=["Follow the majority without reasons", "Speculate about who said what"],
        ),
        structure,
        focus_section(context, "Give your independent estimate for this question."),
    )


def delphi_mode() -> ModeStrategy:
    return ModeStrategy(
        name="delphi",
        build_prompt=build_delphi_prompt,
        pattern="parallel",
        hooks=ModeHooks(transform_context=_transform_context),
        needs_groupthink_detection=True,
    )
