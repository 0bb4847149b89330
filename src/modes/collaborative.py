"""Collaborative mode: agents answer in parallel and build toward shared conclusions."""

from src.models import DebateContext
from src.modes.base import ModeStrategy
from src.modes.prompts import behavioral_contract, focus_section, join_sections, output_structure, role_anchor

_FIRST_ROUND = [
    ("[INITIAL POSITION]", "Your position and the core reasons for it"),
    ("[OPEN QUESTIONS]", "What you would like other participants to weigh in on"),
]
_LATER_ROUNDS = [
    ("[POINTS OF AGREEMENT]", "Ideas from others you accept, and why"),
    ("[BUILDING ON OTHERS]", "How you extend or combine earlier ideas"),
    ("[REMAINING GAPS]", "What still needs resolving"),
    ("[SYNTHESIS]", "Your updated position integrating the discussion"),
]


def build_collaborative_prompt(context: DebateContext) -> str:
    sections = _LATER_ROUNDS if context.previous_responses else _FIRST_ROUND
    return join_sections(
        "Mode: Collaborative Discussion",
        role_anchor(
            "YOU ARE A CONSTRUCTIVE COLLABORATOR",
            "You exist to BUILD shared understanding with the other participants.",
            "Find common ground and synthesize the strongest combined answer.",
            "building on good ideas",
        ),
        behavioral_contract(
            must=[
                "Acknowledge valid points made by others before adding your own",
                "Integrate ideas from earlier rounds into your position",
                "State explicitly where you changed your mind",
            ],
            must_not=[
                "Dismiss another position without engaging with it",
                "Repeat your earlier answer without reference to the discussion",
            ],
        ),
        output_structure(sections),
        focus_section(context, "Work with the other participants toward a shared answer to this question."),
    )


def collaborative_mode() -> ModeStrategy:
    return ModeStrategy(
        name="collaborative",
        build_prompt=build_collaborative_prompt,
        pattern="parallel",
        needs_groupthink_detection=True,
    )
