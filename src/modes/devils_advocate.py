"""Devil's-advocate mode: affirmative and opposition debaters, judged by neutral evaluators.

Debaters speak in turn; the trailing evaluators answer concurrently after
hearing every debater.
"""

from src.models import DebateContext, Stance
from src.modes.base import ModeStrategy, index_agents
from src.modes.prompts import behavioral_contract, join_sections, role_anchor, verification_loop
from src.modes.role_based import role_based_hooks

PRIMARY = "PRIMARY"
OPPOSITION = "OPPOSITION"
EVALUATOR = "EVALUATOR"

EXPECTED_STANCES: dict[str, Stance] = {
    PRIMARY: "YES",
    OPPOSITION: "NO",
    EVALUATOR: "NEUTRAL",
}


def role_distribution(total_agents: int) -> tuple[int, int, int]:
    """Return (primary, opposition, evaluator) counts for a round of total_agents.

    From three agents up, debaters are split evenly and the evaluator count
    (1 or 2) absorbs the parity: an even panel gets two evaluators.
    """
    if total_agents < 2:
        return 1, 0, 0
    if total_agents == 2:
        return 1, 1, 0
    evaluators = 2 if total_agents % 2 == 0 else 1
    debaters = (total_agents - evaluators) // 2
    return debaters, debaters, evaluators


def role_for_index(index: int, total_agents: int) -> str:
    primary, opposition, _ = role_distribution(total_agents)
    if index < primary:
        return PRIMARY
    if index < primary + opposition:
        return OPPOSITION
    return EVALUATOR


def _primary_prompt() -> str:
    return join_sections(
        "Mode: Devil's Advocate - PRIMARY POSITION (AFFIRMATIVE)",
        role_anchor(
            "YOU ARE THE PRIMARY POSITION HOLDER - AFFIRMATIVE STANCE",
            "You present the AFFIRMATIVE/YES/PRO position to be challenged.",
            "Argue IN FAVOR of the topic proposition with conviction and evidence.",
            "presenting a strong AFFIRMATIVE position",
        ),
        behavioral_contract(
            must=[
                "Take the AFFIRMATIVE/PRO/YES stance unconditionally",
                "Present exactly 3 strong supporting arguments with evidence",
                'Declare "stance": "YES" in your reply',
            ],
            must_not=[
                "Argue AGAINST the topic proposition",
                'Present "both sides"',
            ],
        ),
    )


def _opposition_prompt() -> str:
    return join_sections(
        "Mode: Devil's Advocate - OPPOSITION ROLE",
        role_anchor(
            "DEVIL'S ADVOCATE - YOUR ASSIGNED STANCE IS NO",
            "You are the designated opposition in this structured debate exercise.",
            "Argue AGAINST the affirmative position with full conviction.",
            "strongly OPPOSING the affirmative position",
        ),
        behavioral_contract(
            must=[
                "Contradict the affirmative position",
                "Present exactly 3 counter-arguments attacking it",
                'Declare "stance": "NO" in your reply',
            ],
            must_not=[
                "Agree with ANY part of the affirmative position",
                'Conclude that "both sides have merit"',
            ],
            failure_mode="If your final position matches the affirmative one, you have failed.",
        ),
    )


def _evaluator_prompt() -> str:
    return join_sections(
        "Mode: Devil's Advocate - EVALUATOR ROLE",
        role_anchor(
            "YOU ARE THE NEUTRAL EVALUATOR",
            "You objectively assess both positions.",
            "Identify which arguments are stronger and why.",
            "judging fairly",
        ),
        behavioral_contract(
            must=[
                "Weigh the strongest affirmative and opposition arguments",
                "Name the argument that decides the question, if any",
                'Declare "stance": "NEUTRAL" in your reply',
            ],
            must_not=["Introduce a new position of your own", "Favor a side without explaining why"],
        ),
        verification_loop(["Did I assess both sides on evidence?", "Is my verdict justified?"]),
    )


_ROLE_PROMPTS = {
    PRIMARY: _primary_prompt,
    OPPOSITION: _opposition_prompt,
    EVALUATOR: _evaluator_prompt,
}


def build_role_prompt(context: DebateContext, role: str) -> str:
    parts = [_ROLE_PROMPTS[role]()]
    if context.current_round > 1:
        parts.append(
            f"ROUND {context.current_round} CONTEXT:\n"
            "Strengthen or reassess your role's case based on prior exchanges."
        )
    if context.focus_question:
        parts.append(f"FOCUS: {context.focus_question}")
    return join_sections(*parts)


def build_devils_advocate_prompt(context: DebateContext) -> str:
    return (
        "Mode: Devil's Advocate\n"
        "Participants hold assigned roles: an affirmative position, an opposition that must "
        "argue against it, and neutral evaluators who judge the exchange."
    )


def devils_advocate_mode() -> ModeStrategy:
    return ModeStrategy(
        name="devils-advocate",
        build_prompt=build_devils_advocate_prompt,
        pattern="last_only",
        hooks=role_based_hooks(role_for_index, build_role_prompt, EXPECTED_STANCES),
        prepare_round=index_agents,
    )
