"""Socratic mode: agents take turns probing assumptions through questions."""

from src.models import DebateContext
from src.modes.base import ModeStrategy
from src.modes.prompts import behavioral_contract, focus_section, join_sections, output_structure, role_anchor

_FIRST_SPEAKER = [
    ("[FRAMING QUESTION]", "The central question this topic raises, NOT a statement"),
    ("[FOUNDATIONAL QUESTIONS]", "3-5 questions that must be explored before any answer"),
    ("[CHALLENGING THE OBVIOUS]", "2-3 questions about what we assume we know"),
]
_FOLLOWING = [
    ("[QUESTIONING THE POSITION]", "2-3 questions challenging the core argument"),
    ("[EXAMINING ASSUMPTIONS]", "2-3 questions exposing hidden premises"),
    ("[EXPLORING IMPLICATIONS]", "2-3 questions about consequences"),
    ("[INVITATION TO INQUIRY]", "1-2 questions inviting others to question further"),
]


def build_socratic_prompt(context: DebateContext) -> str:
    if context.previous_responses:
        structure = output_structure(_FOLLOWING)
    else:
        structure = output_structure(_FIRST_SPEAKER, heading="REQUIRED OUTPUT STRUCTURE (First Speaker):")
    return join_sections(
        "Mode: Socratic Dialogue",
        role_anchor(
            "YOU ARE A SOCRATIC QUESTIONER",
            "You exist to ASK QUESTIONS, not to provide answers.",
            "Elicit understanding through inquiry, never through explanation.",
            "asking better questions",
        ),
        behavioral_contract(
            must=[
                "Include at least 3 probing questions in every response",
                'Challenge assumptions with "why" and "how" questions',
                "Build question chains that lead to deeper insights",
            ],
            must_not=[
                "Provide direct answers or solutions",
                "Accept any claim at face value",
                "Conclude with a definitive position",
            ],
            failure_mode="If your response has more statements than questions, you have failed.",
        ),
        structure,
        focus_section(context, "Question this from every angle before anyone answers it."),
    )


def socratic_mode() -> ModeStrategy:
    return ModeStrategy(name="socratic", build_prompt=build_socratic_prompt, pattern="sequential")
