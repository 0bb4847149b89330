"""Rule-based consensus scoring from lexical overlap between agent positions."""

import logging
import re
from collections import Counter

from src.models import AgentResponse, ConsensusResult

logger = logging.getLogger(__name__)

STOPWORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "from", "is", "are", "was", "were", "be", "been", "being",
    "have", "has", "had", "do", "does", "did", "will", "would", "should", "could",
    "may", "might", "must", "can", "this", "that", "these", "those", "i", "you",
    "he", "she", "it", "we", "they", "not", "its", "our", "their", "than", "then",
    "also", "more", "most", "very", "into", "about", "there", "which", "what",
})

_NON_WORD_RE = re.compile(r"[^\w\s]")
_MIN_TOKEN_LEN = 3
_MAX_THEMES = 5
_MAX_UNIQUE_PER_AGENT = 5
_HIGH_CONFIDENCE = 0.8
_LOW_CONFIDENCE = 0.5
_CONFIDENCE_OUTLIER_GAP = 0.3
_POSITION_PREVIEW_CHARS = 100


def salient_tokens(text: str) -> set[str]:
    """Lowercased words of text without punctuation, stopwords, or very short words."""
    words = _NON_WORD_RE.sub(" ", text.lower()).split()
    return {w for w in words if len(w) >= _MIN_TOKEN_LEN and w not in STOPWORDS}


def _preview(text: str) -> str:
    if len(text) <= _POSITION_PREVIEW_CHARS:
        return text
    return text[:_POSITION_PREVIEW_CHARS] + "..."


def _agreement_label(level: float) -> str:
    if level >= 0.8:
        return "Strong consensus"
    if level >= 0.6:
        return "Moderate consensus"
    if level >= 0.4:
        return "Partial agreement"
    return "Diverse perspectives"


def analyze_consensus(responses: list[AgentResponse]) -> ConsensusResult:
    """Score agreement across responses from shared position vocabulary.

    A token is shared when a strict majority of responses use it and
    minority-only when at most half do. agreement_level is the share of
    distinct salient tokens that are shared.
    """
    if not responses:
        return ConsensusResult(agreement_level=0.0, summary="No responses to analyze")

    if len(responses) == 1:
        only = responses[0]
        return ConsensusResult(
            agreement_level=1.0,
            common_ground=[only.position or "(no position)"],
            summary=f"Single response from {only.agent_name}",
        )

    token_sets = [salient_tokens(r.position) for r in responses]
    frequency: Counter[str] = Counter()
    for tokens in token_sets:
        frequency.update(tokens)

    total = len(responses)
    shared = {tok for tok, count in frequency.items() if count * 2 > total}

    if frequency:
        agreement = len(shared) / len(frequency)
    else:
        # No salient vocabulary at all: fall back to exact text comparison
        normalized = {" ".join(r.position.lower().split()) for r in responses}
        agreement = 1.0 if len(normalized) == 1 else 0.0

    common_ground: list[str] = []
    if shared:
        themes = sorted(shared, key=lambda tok: (-frequency[tok], tok))[:_MAX_THEMES]
        common_ground.append(f"Common themes: {', '.join(themes)}")
        common_ground += [
            f"{r.agent_name} ({r.confidence * 100:.0f}%): {_preview(r.position)}"
            for r in responses
            if r.confidence >= _HIGH_CONFIDENCE
        ][:2]

    disagreement_points: list[str] = []
    for resp, tokens in zip(responses, token_sets):
        unique = sorted(tok for tok in tokens if frequency[tok] * 2 <= total)
        if unique:
            disagreement_points.append(
                f"{resp.agent_name} alone emphasizes: {', '.join(unique[:_MAX_UNIQUE_PER_AGENT])}"
            )

    uncertain = [r for r in responses if r.confidence < _LOW_CONFIDENCE]
    if uncertain:
        disagreement_points.append(
            f"{len(uncertain)} agent(s) expressed uncertainty (confidence < 50%)"
        )

    mean_confidence = sum(r.confidence for r in responses) / total
    outliers = [r for r in responses if abs(r.confidence - mean_confidence) > _CONFIDENCE_OUTLIER_GAP]
    if outliers:
        disagreement_points.append(
            "Divergent confidence levels: "
            + ", ".join(f"{r.agent_name} ({r.confidence * 100:.0f}%)" for r in outliers)
        )

    names = ", ".join(r.agent_name for r in responses)
    summary = (
        f"Analysis of {total} responses from {names}. "
        f"{_agreement_label(agreement)} ({agreement * 100:.0f}% agreement). "
        + ("Key common points identified. " if common_ground else "")
        + ("Areas of disagreement noted." if disagreement_points else "No major disagreements.")
    )

    logger.debug("Rule-based consensus over %d responses: %.2f", total, agreement)

    return ConsensusResult(
        agreement_level=agreement,
        common_ground=common_ground,
        disagreement_points=disagreement_points,
        summary=summary,
    )
