"""Shared building blocks for mode prompts."""

from src.models import DebateContext

SEPARATOR = "═" * 67


def layer(title: str) -> str:
    return f"{SEPARATOR}\n{title}\n{SEPARATOR}"


def role_anchor(title: str, definition: str, mission: str, helpful_means: str) -> str:
    return "\n".join([
        layer("LAYER 1: ROLE ANCHOR"),
        "",
        title,
        "",
        f"ROLE DEFINITION: {definition}",
        f"MISSION: {mission}",
        f'In this mode, "being helpful" = "{helpful_means}"',
    ])


def behavioral_contract(must: list[str], must_not: list[str], failure_mode: str | None = None) -> str:
    lines = [layer("LAYER 2: BEHAVIORAL CONTRACT"), "", "MUST (Required Behaviors):"]
    lines += [f"□ {item}" for item in must]
    lines += ["", "MUST NOT (Prohibited Behaviors):"]
    lines += [f"✗ {item}" for item in must_not]
    if failure_mode:
        lines += ["", f"⛔ FAILURE MODE: {failure_mode}"]
    return "\n".join(lines)


def output_structure(sections: list[tuple[str, str]], heading: str = "REQUIRED OUTPUT STRUCTURE:") -> str:
    lines = [layer("LAYER 3: STRUCTURAL ENFORCEMENT"), "", heading, ""]
    for header, description in sections:
        lines += [header, f"({description})", ""]
    return "\n".join(lines).rstrip()


def verification_loop(checks: list[str]) -> str:
    lines = [layer("LAYER 4: VERIFICATION LOOP"), "", "Before finalizing, verify:"]
    lines += [f"☐ {check}" for check in checks]
    lines += ["", "If ANY check fails, REWRITE before submitting."]
    return "\n".join(lines)


def focus_section(context: DebateContext, instructions: str) -> str:
    if not context.focus_question:
        return ""
    return f"{SEPARATOR}\nFOCUS QUESTION: {context.focus_question}\n{SEPARATOR}\n\n{instructions}"


def join_sections(*sections: str) -> str:
    return "\n\n".join(s for s in sections if s)
