"""Groupthink heuristics: flag rounds where agents agree too easily."""

from itertools import combinations

from src.consensus import salient_tokens
from src.models import AgentResponse, GroupthinkResult

_MIN_INDICATORS = 2
_HIGH_CONFIDENCE = 0.8
_MEAN_CONFIDENCE = 0.85
_POSITION_SIMILARITY = 0.5

RECOMMENDATION = "Consider additional rounds with devil's advocate role or manual review"


def _mean_pairwise_similarity(responses: list[AgentResponse]) -> float:
    token_sets = [salient_tokens(r.position) for r in responses]
    scores = [
        len(a & b) / len(a | b)
        for a, b in combinations(token_sets, 2)
        if a | b
    ]
    return sum(scores) / len(scores) if scores else 0.0


def detect_groupthink(responses: list[AgentResponse]) -> GroupthinkResult:
    """Check three indicators; groupthink is detected when at least two fire."""
    if len(responses) < 2:
        return GroupthinkResult(detected=False)

    indicators: list[str] = []

    mean_confidence = sum(r.confidence for r in responses) / len(responses)
    if all(r.confidence >= _HIGH_CONFIDENCE for r in responses) and mean_confidence >= _MEAN_CONFIDENCE:
        indicators.append("All agents show high confidence (>=80%)")

    stances = {r.stance for r in responses if r.stance}
    if len(stances) == 1:
        indicators.append("No dissenting stances detected")

    if _mean_pairwise_similarity(responses) >= _POSITION_SIMILARITY:
        indicators.append("Position similarity is unusually high")

    detected = len(indicators) >= _MIN_INDICATORS
    return GroupthinkResult(
        detected=detected,
        indicators=indicators,
        recommendation=RECOMMENDATION if detected else None,
    )
