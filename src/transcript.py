"""Helpers for turning a flat response history into per-round transcripts."""

from src.models import AgentResponse


def group_responses_by_round(responses: list[AgentResponse]) -> list[tuple[int, list[AgentResponse]]]:
    """Split a chronological response list into (round number, responses) pairs.

    Responses stamped with a round number are grouped by it, so a round in
    which some agents failed keeps only the agents that answered. For
    unstamped responses a new round starts whenever an agent that already
    spoke in the current round speaks again.
    """
    rounds: list[tuple[int, list[AgentResponse]]] = []
    seen: set[str] = set()
    for resp in responses:
        current = rounds[-1] if rounds else None
        if resp.round_number is not None:
            if current is None or current[0] != resp.round_number:
                rounds.append((resp.round_number, [resp]))
            else:
                current[1].append(resp)
            continue
        if current is None or resp.agent_id in seen:
            rounds.append((current[0] + 1 if current else 1, [resp]))
            seen = set()
        else:
            current[1].append(resp)
        seen.add(resp.agent_id)
    return rounds


def latest_round(responses: list[AgentResponse]) -> list[AgentResponse]:
    """Responses of the most recent round in the history, or [] if there is none."""
    rounds = group_responses_by_round(responses)
    return rounds[-1][1] if rounds else []


def format_rounds(rounds: list[tuple[int, list[AgentResponse]]]) -> str:
    """Render rounds as plain text blocks for analysis and synthesis prompts."""
    parts: list[str] = []
    for round_number, round_responses in rounds:
        parts.append(f"--- Round {round_number} ---")
        for resp in round_responses:
            lines = [
                f"{resp.agent_name} ({resp.agent_id}):",
                f"Position: {resp.position}",
                f"Reasoning: {resp.reasoning}",
                f"Confidence: {resp.confidence * 100:.0f}%",
            ]
            if resp.stance:
                lines.append(f"Stance: {resp.stance}")
            if resp.citations:
                lines.append(f"Citations: {', '.join(c.title for c in resp.citations)}")
            parts.append("\n".join(lines))
        parts.append("")
    return "\n\n".join(parts).rstrip()
