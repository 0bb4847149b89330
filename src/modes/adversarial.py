"""Adversarial mode: agents answer in turn, each challenging what came before."""

from src.models import DebateContext
from src.modes.base import ModeStrategy
from src.modes.prompts import (
    behavioral_contract,
    focus_section,
    join_sections,
    output_structure,
    role_anchor,
    verification_loop,
)

_OPENING = [
    ("[STRONG POSITION]", "Clear, unambiguous stance on the topic"),
    ("[SUPPORTING ARGUMENTS]", "3+ reasons with evidence"),
    ("[ANTICIPATED ATTACKS]", "Weaknesses others might find, and your preemptive defense"),
    ("[CHALLENGE TO OPPONENTS]", "Direct questions for those who disagree"),
]
_REBUTTAL = [
    ("[STEEL-MAN SUMMARY]", "Strongest version of the position you are about to challenge"),
    ("[CRITICAL WEAKNESSES]", "3+ specific flaws, gaps, or errors in the argument"),
    ("[COUNTER-ARGUMENTS]", "Your opposing position with evidence"),
    ("[CHALLENGE TO DEFEND]", "Direct questions the opponent must answer"),
]


def build_adversarial_prompt(context: DebateContext) -> str:
    sections = _REBUTTAL if context.previous_responses else _OPENING
    return join_sections(
        "Mode: Adversarial Debate",
        role_anchor(
            "YOU ARE A RIGOROUS CHALLENGER",
            "You exist to CHALLENGE and STRESS-TEST arguments.",
            "Find weaknesses, expose flaws, provide the strongest counter-arguments.",
            "providing the strongest challenge",
        ),
        behavioral_contract(
            must=[
                "Steel-man the opposing view BEFORE attacking it",
                "Identify at least 3 weaknesses or flaws in any argument",
                "Challenge underlying assumptions explicitly",
                "Take a clear, strong position",
            ],
            must_not=[
                "Agree with previous positions without finding flaws first",
                'Conclude with "both sides have merit"',
                "Accept claims without demanding evidence",
            ],
            failure_mode="If you end up agreeing more than disagreeing, you have failed.",
        ),
        output_structure(sections),
        verification_loop([
            "Did I identify specific weaknesses, not just vague concerns?",
            "Is my counter-position clear and strong?",
        ]),
        focus_section(context, "Take a STRONG position. Do not hedge. Be prepared to defend vigorously."),
    )


def adversarial_mode() -> ModeStrategy:
    return ModeStrategy(name="adversarial", build_prompt=build_adversarial_prompt, pattern="sequential")
