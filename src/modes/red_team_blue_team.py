"""Red-team/blue-team mode: alternating attackers and defenders answering in parallel."""

from dataclasses import replace

from src.agents import DebateAgent
from src.models import AgentResponse, DebateContext
from src.modes.base import ModeHooks, ModeStrategy, agent_index, append_mode_prompt, index_agents
from src.modes.prompts import (
    behavioral_contract,
    focus_section,
    join_sections,
    output_structure,
    role_anchor,
    verification_loop,
)

RED = "red"
BLUE = "blue"


def team_for_index(index: int) -> str:
    return RED if index % 2 == 0 else BLUE


def responses_for_team(responses: list[AgentResponse], team: str) -> list[AgentResponse]:
    """Earlier responses of one team; teams alternate in response order."""
    return [resp for i, resp in enumerate(responses) if team_for_index(i) == team]


def _red_prompt(context: DebateContext) -> str:
    parts = [
        "Mode: Red Team/Blue Team - RED TEAM",
        role_anchor(
            "YOU ARE RED TEAM - THE ATTACKER",
            "You exist to ATTACK, CRITICIZE, and BREAK things.",
            "Find every vulnerability, risk, and failure mode.",
            "finding more problems",
        ),
        behavioral_contract(
            must=[
                "Identify at least 5 risks, vulnerabilities, or problems",
                "Challenge every assumption",
                "Find edge cases and failure modes",
            ],
            must_not=["Propose solutions or mitigations (that is Blue Team's job)", "Soften criticism"],
            failure_mode="If you propose ANY solution or mitigation, you have failed.",
        ),
        output_structure([
            ("[CRITICAL VULNERABILITIES]", "3+ specific design flaws"),
            ("[ATTACK VECTORS]", "How an adversary could exploit this"),
            ("[FAILURE MODES]", "What could go wrong, edge cases"),
            ("[HIDDEN COSTS]", "Trade-offs and risks not mentioned"),
        ]),
    ]
    if responses_for_team(context.previous_responses, BLUE):
        parts.append(
            "BLUE TEAM HAS PROPOSED SOLUTIONS. YOUR JOB: BREAK THEM.\n"
            "- Find holes in their defenses\n"
            "- Show how their mitigations fail"
        )
    parts.append(verification_loop(["Did I identify at least 5 distinct problems?", "Did I AVOID proposing solutions?"]))
    parts.append(focus_section(context, "Attack this question. What are ALL the risks and problems?"))
    return join_sections(*parts)


def _blue_prompt(context: DebateContext) -> str:
    parts = [
        "Mode: Red Team/Blue Team - BLUE TEAM",
        role_anchor(
            "YOU ARE BLUE TEAM - THE DEFENDER",
            "You exist to BUILD, DEFEND, and SOLVE.",
            "Propose robust solutions and defend against attacks.",
            "building stronger defenses",
        ),
        behavioral_contract(
            must=[
                "Propose at least 3 concrete solutions or mitigations",
                "Address EVERY attack from Red Team specifically",
                "Build layered defenses",
            ],
            must_not=["Concede that attacks are valid without defending", "Leave any attack unanswered"],
            failure_mode="If you concede ANY attack without defense, you have failed.",
        ),
        output_structure([
            ("[PROPOSED SOLUTIONS]", "3+ concrete approaches to the problem"),
            ("[DEFENSE AGAINST ATTACKS]", "Specific rebuttals to each Red Team criticism"),
            ("[SAFEGUARDS & MITIGATIONS]", "How risks are addressed and managed"),
            ("[RESILIENCE DEMONSTRATION]", "Why this approach survives attacks"),
        ]),
    ]
    if responses_for_team(context.previous_responses, RED):
        parts.append(
            "RED TEAM HAS ATTACKED. YOUR JOB: DEFEND AND BUILD.\n"
            "- Counter every attack with a defense\n"
            "- Propose solutions for identified risks"
        )
    parts.append(verification_loop(["Did I propose at least 3 concrete solutions?", "Did I address every attack?"]))
    parts.append(focus_section(context, "Solve this. Propose robust solutions that withstand attacks."))
    return join_sections(*parts)


def _get_agent_role(agent: DebateAgent, index: int, context: DebateContext) -> str:
    return team_for_index(agent_index(agent.id, context, index))


def _transform_context(context: DebateContext, agent: DebateAgent) -> DebateContext:
    team = team_for_index(agent_index(agent.id, context))
    stamped = replace(context, aux={**context.aux, "agent_team": team})
    return append_mode_prompt(stamped, _red_prompt(context) if team == RED else _blue_prompt(context))


def build_red_team_blue_team_prompt(context: DebateContext) -> str:
    return "Mode: Red Team/Blue Team\nRed Team attacks the proposal; Blue Team defends and builds it."


def red_team_blue_team_mode() -> ModeStrategy:
    return ModeStrategy(
        name="red-team-blue-team",
        build_prompt=build_red_team_blue_team_prompt,
        pattern="parallel",
        hooks=ModeHooks(get_agent_role=_get_agent_role, transform_context=_transform_context),
        prepare_round=index_agents,
    )
