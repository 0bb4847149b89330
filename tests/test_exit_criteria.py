"""Tests for src/exit_criteria.py."""

import pytest

from src.exit_criteria import (
    calculate_position_similarity,
    check_exit_criteria,
    create_default_exit_criteria,
    validate_exit_criteria,
)
from src.models import ConsensusResult, ExitCriteria
from tests.conftest import make_response

STABLE = "Adopt YAML for configuration because humans edit it"


def _round(confidence: float = 0.5, position: str = STABLE, agents=("alpha", "beta")):
    return [make_response(agent_id, position, confidence) for agent_id in agents]


def test_default_criteria():
    criteria = create_default_exit_criteria(5)
    assert criteria == ExitCriteria(
        max_rounds=5, consensus_threshold=0.9, convergence_rounds=2, confidence_threshold=0.85
    )
    assert validate_exit_criteria(criteria) == []


def test_validate_reports_every_problem():
    errors = validate_exit_criteria(
        ExitCriteria(max_rounds=0, consensus_threshold=1.5, convergence_rounds=0, confidence_threshold=-0.1)
    )
    assert len(errors) == 4
    assert any("maxRounds" in e for e in errors)
    assert any("convergenceRounds" in e for e in errors)


def test_similarity_edges():
    assert calculate_position_similarity("", "") == 1.0
    assert calculate_position_similarity("yaml is good", "") == 0.0
    assert calculate_position_similarity("Use YAML files!", "use yaml files") == 1.0
    # words of two letters or fewer are ignored
    assert calculate_position_similarity("go on", "to be") == 1.0


def test_no_responses():
    result = check_exit_criteria([], [], create_default_exit_criteria(3), 1)
    assert result.should_exit is False
    assert result.details == "No responses to evaluate"


def test_all_criteria_met_reports_consensus():
    history = [_round(0.95), _round(0.95)]
    result = check_exit_criteria(
        _round(0.95),
        history,
        create_default_exit_criteria(3),
        current_round=3,
        consensus=ConsensusResult(agreement_level=0.95),
    )
    assert result.should_exit is True
    assert result.reason == "consensus"


def test_convergence_before_confidence_and_max_rounds():
    history = [_round(0.95), _round(0.95)]
    result = check_exit_criteria(
        _round(0.95),
        history,
        create_default_exit_criteria(3),
        current_round=3,
        consensus=ConsensusResult(agreement_level=0.2),
    )
    assert result.reason == "convergence"


def test_confidence_before_max_rounds():
    history = [_round(0.95, "Use JSON everywhere now"), _round(0.95, "Prefer TOML instead")]
    result = check_exit_criteria(_round(0.95), history, create_default_exit_criteria(3), current_round=3)
    assert result.reason == "confidence"


def test_consensus_threshold_is_inclusive():
    result = check_exit_criteria(
        _round(0.1),
        [],
        create_default_exit_criteria(5),
        1,
        ConsensusResult(agreement_level=0.9),
    )
    assert result.reason == "consensus"


def test_confidence_threshold_is_inclusive():
    criteria = ExitCriteria(max_rounds=5, confidence_threshold=0.8)
    result = check_exit_criteria(_round(0.8), [], criteria, 1)
    assert result.should_exit is True
    assert result.reason == "confidence"


def test_convergence_needs_enough_history():
    result = check_exit_criteria(_round(0.1), [_round(0.1)], create_default_exit_criteria(5), 2)
    assert result.should_exit is False
    assert result.details == "Continue debate: round 2/5"


def test_convergence_blocked_by_changing_agent():
    history = [_round(0.1), _round(0.1)]
    current = [
        make_response("alpha", STABLE, 0.1),
        make_response("beta", "Completely different stance on databases", 0.1),
    ]
    result = check_exit_criteria(current, history, create_default_exit_criteria(5), 3)
    assert result.should_exit is False


def test_convergence_skips_agents_missing_from_history():
    history = [_round(0.1, agents=("alpha",)), _round(0.1)]
    current = _round(0.1, agents=("alpha", "beta", "gamma"))
    result = check_exit_criteria(current, history, create_default_exit_criteria(5), 3)
    assert result.reason == "convergence"


def test_convergence_requires_a_trackable_agent():
    history = [_round(0.1, agents=("alpha",)), _round(0.1, agents=("beta",))]
    current = _round(0.1, agents=("gamma",))
    result = check_exit_criteria(current, history, create_default_exit_criteria(5), 3)
    assert result.should_exit is False


def test_max_rounds():
    result = check_exit_criteria(_round(0.1), [], create_default_exit_criteria(2), 2)
    assert result.reason == "max_rounds"


@pytest.mark.parametrize("rounds", [1, 3])
def test_custom_convergence_window(rounds):
    criteria = ExitCriteria(max_rounds=10, convergence_rounds=rounds)
    history = [_round(0.1) for _ in range(rounds)]
    assert check_exit_criteria(_round(0.1), history, criteria, rounds + 1).reason == "convergence"
