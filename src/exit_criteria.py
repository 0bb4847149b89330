"""Early-exit decisions for multi-round debates: consensus, convergence, confidence, max rounds."""

import logging
import re

from src.models import AgentResponse, ConsensusResult, ExitCheckResult, ExitCriteria

logger = logging.getLogger(__name__)

DEFAULT_CONSENSUS_THRESHOLD = 0.9
DEFAULT_CONVERGENCE_ROUNDS = 2
DEFAULT_CONFIDENCE_THRESHOLD = 0.85
# Consecutive positions must be at least this similar for an agent to count as stable
POSITION_SIMILARITY_FLOOR = 0.7

_NON_WORD_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")


def create_default_exit_criteria(max_rounds: int) -> ExitCriteria:
    return ExitCriteria(
        max_rounds=max_rounds,
        consensus_threshold=DEFAULT_CONSENSUS_THRESHOLD,
        convergence_rounds=DEFAULT_CONVERGENCE_ROUNDS,
        confidence_threshold=DEFAULT_CONFIDENCE_THRESHOLD,
    )


def validate_exit_criteria(criteria: ExitCriteria) -> list[str]:
    """Return a list of problems with criteria. An empty list means valid."""
    errors: list[str] = []
    if criteria.max_rounds < 1:
        errors.append("maxRounds must be at least 1")
    if criteria.consensus_threshold is not None and not 0 <= criteria.consensus_threshold <= 1:
        errors.append("consensusThreshold must be between 0 and 1")
    if criteria.convergence_rounds is not None and criteria.convergence_rounds < 1:
        errors.append("convergenceRounds must be at least 1")
    if criteria.confidence_threshold is not None and not 0 <= criteria.confidence_threshold <= 1:
        errors.append("confidenceThreshold must be between 0 and 1")
    return errors


def _normalize(text: str) -> str:
    text = _NON_WORD_RE.sub(" ", text.lower())
    return _WHITESPACE_RE.sub(" ", text).strip()


def calculate_position_similarity(a: str, b: str) -> float:
    """Jaccard similarity over words longer than two characters, in [0, 1]."""
    words_a = {w for w in _normalize(a).split(" ") if len(w) > 2}
    words_b = {w for w in _normalize(b).split(" ") if len(w) > 2}
    if not words_a and not words_b:
        return 1.0
    if not words_a or not words_b:
        return 0.0
    return len(words_a & words_b) / len(words_a | words_b)


def _check_convergence(
    current: list[AgentResponse],
    history: list[list[AgentResponse]],
    convergence_rounds: int,
) -> tuple[bool, str]:
    window = history[-convergence_rounds:] + [current]

    positions: dict[str, list[str]] = {}
    for round_responses in window:
        for resp in round_responses:
            positions.setdefault(resp.agent_id, []).append(resp.position)

    tracked = 0
    stable = 0
    for agent_positions in positions.values():
        # Agents missing from part of the window are not tracked
        if len(agent_positions) < len(window):
            continue
        tracked += 1
        if all(
            calculate_position_similarity(prev, nxt) >= POSITION_SIMILARITY_FLOOR
            for prev, nxt in zip(agent_positions, agent_positions[1:])
        ):
            stable += 1

    if tracked == 0:
        return False, "No agents present in every round of the convergence window"
    if stable == tracked:
        return True, f"All {tracked} agents maintained stable positions"
    return False, f"{tracked - stable}/{tracked} agents still changing positions"


def check_exit_criteria(
    current_responses: list[AgentResponse],
    prior_rounds: list[list[AgentResponse]],
    criteria: ExitCriteria,
    current_round: int,
    consensus: ConsensusResult | None = None,
) -> ExitCheckResult:
    """Decide whether the debate should stop after the current round.

    Checks run in priority order and the first match wins: consensus,
    convergence, confidence, then max rounds.

    Args:
        current_responses: Responses from the round that just finished.
        prior_rounds: Responses of earlier rounds, oldest first.
        criteria: Thresholds; unset thresholds fall back to module defaults.
        current_round: 1-based number of the round that just finished.
        consensus: Consensus computed for the current round, if any.

    Returns:
        ExitCheckResult with the reason that triggered, or reason None.
    """
    if not current_responses:
        return ExitCheckResult(should_exit=False, reason=None, details="No responses to evaluate")

    consensus_threshold = (
        criteria.consensus_threshold if criteria.consensus_threshold is not None else DEFAULT_CONSENSUS_THRESHOLD
    )
    convergence_rounds = (
        criteria.convergence_rounds if criteria.convergence_rounds is not None else DEFAULT_CONVERGENCE_ROUNDS
    )
    confidence_threshold = (
        criteria.confidence_threshold if criteria.confidence_threshold is not None else DEFAULT_CONFIDENCE_THRESHOLD
    )

    if consensus is not None and consensus.agreement_level >= consensus_threshold:
        return ExitCheckResult(
            should_exit=True,
            reason="consensus",
            details=(
                f"Consensus reached: {consensus.agreement_level * 100:.1f}% agreement "
                f"(threshold {consensus_threshold * 100:.1f}%)"
            ),
        )

    if len(prior_rounds) >= convergence_rounds:
        converged, details = _check_convergence(current_responses, prior_rounds, convergence_rounds)
        logger.debug("Convergence check: %s", details)
        if converged:
            return ExitCheckResult(should_exit=True, reason="convergence", details=details)

    mean_confidence = sum(r.confidence for r in current_responses) / len(current_responses)
    if mean_confidence >= confidence_threshold:
        return ExitCheckResult(
            should_exit=True,
            reason="confidence",
            details=(
                f"Average confidence {mean_confidence * 100:.1f}% "
                f"meets threshold {confidence_threshold * 100:.1f}%"
            ),
        )

    if current_round >= criteria.max_rounds:
        return ExitCheckResult(
            should_exit=True,
            reason="max_rounds",
            details=f"Maximum rounds reached ({current_round}/{criteria.max_rounds})",
        )

    return ExitCheckResult(
        should_exit=False,
        reason=None,
        details=f"Continue debate: round {current_round}/{criteria.max_rounds}",
    )
