"""Expert-panel mode: independent parallel analyses, one assigned perspective per agent."""

from dataclasses import replace

from src.agents import DebateAgent
from src.models import DebateContext, Perspective
from src.modes.base import ModeHooks, ModeStrategy, agent_index, append_mode_prompt, index_agents
from src.modes.prompts import behavioral_contract, focus_section, join_sections, role_anchor

PERSPECTIVE_ANCHORS = ["technical", "economic", "ethical", "social"]

PERSPECTIVE_DESCRIPTIONS = {
    "technical": "Focus on technical feasibility, implementation challenges, and engineering trade-offs.",
    "economic": "Focus on costs, benefits, market dynamics, and resource allocation.",
    "ethical": "Focus on moral implications, fairness, and who benefits or is harmed.",
    "social": "Focus on user impact, community effects, and human behavior.",
}

DEFAULT_PERSPECTIVES = [
    Perspective(
        name="Technical perspective",
        description=PERSPECTIVE_DESCRIPTIONS["technical"],
        focus_areas=["Implementation feasibility", "Technical constraints", "System requirements"],
        evidence_types=["Technical documentation", "Case studies", "Expert analysis"],
        key_questions=["Is this technically feasible?", "What are the technical challenges?"],
        anti_patterns=["Ignoring practical limitations", "Overly theoretical analysis"],
    ),
    Perspective(
        name="Economic perspective",
        description=PERSPECTIVE_DESCRIPTIONS["economic"],
        focus_areas=["Cost-benefit analysis", "Market dynamics", "Resource allocation"],
        evidence_types=["Economic data", "Market research", "Financial analysis"],
        key_questions=["What are the economic implications?", "Is this economically viable?"],
        anti_patterns=["Ignoring non-monetary factors", "Short-term thinking only"],
    ),
    Perspective(
        name="Ethical perspective",
        description=PERSPECTIVE_DESCRIPTIONS["ethical"],
        focus_areas=["Moral implications", "Stakeholder impact", "Long-term consequences"],
        evidence_types=["Ethical frameworks", "Philosophical arguments", "Case precedents"],
        key_questions=["Is this ethically sound?", "Who benefits and who is harmed?"],
        anti_patterns=["Moral absolutism", "Ignoring cultural context"],
    ),
    Perspective(
        name="Social perspective",
        description=PERSPECTIVE_DESCRIPTIONS["social"],
        focus_areas=["Community impact", "Social dynamics", "Human behavior"],
        evidence_types=["Social research", "Survey data", "Behavioral studies"],
        key_questions=["How does this affect society?", "What are the social implications?"],
        anti_patterns=["Ignoring diverse viewpoints", "Assuming homogeneous society"],
    ),
]

_DEFAULTS_BY_ANCHOR = dict(zip(PERSPECTIVE_ANCHORS, DEFAULT_PERSPECTIVES))


def resolve_perspectives(raw: list[str | Perspective] | None) -> list[Perspective]:
    """Normalize caller-supplied perspectives; None or empty gives the four defaults.

    Plain names matching a default anchor ("technical", ...) reuse its full description.
    """
    if not raw:
        return list(DEFAULT_PERSPECTIVES)
    resolved: list[Perspective] = []
    for item in raw:
        if isinstance(item, Perspective):
            resolved.append(item)
        elif item.strip().lower() in _DEFAULTS_BY_ANCHOR:
            resolved.append(_DEFAULTS_BY_ANCHOR[item.strip().lower()])
        else:
            resolved.append(Perspective(name=item, description=f"Analyze the topic from the {item} perspective."))
    return resolved


def assign_perspective(index: int, perspectives: list[Perspective]) -> Perspective:
    """Round-robin: agent at index i gets perspectives[i % len(perspectives)]."""
    return perspectives[index % len(perspectives)]


def _prepare_round(agents: list[DebateAgent], context: DebateContext) -> DebateContext:
    indexed = index_agents(agents, context)
    return replace(indexed, aux={**indexed.aux, "perspectives": resolve_perspectives(context.perspectives)})


def _perspectives(context: DebateContext) -> list[Perspective]:
    return context.aux.get("perspectives") or resolve_perspectives(context.perspectives)


def _bullets(title: str, items: list[str]) -> str:
    if not items:
        return ""
    return "\n".join([title, *(f"- {item}" for item in items)])


def build_perspective_prompt(perspective: Perspective, others: list[Perspective]) -> str:
    parts = [
        f"## Your Perspective Assignment: {perspective.name}",
        perspective.description,
        _bullets("Focus areas:", perspective.focus_areas),
        _bullets("Preferred evidence:", perspective.evidence_types),
        _bullets("Key questions:", perspective.key_questions),
        _bullets("Avoid:", perspective.anti_patterns),
    ]
    other_names = [p.name for p in others if p.name != perspective.name]
    if other_names:
        parts.append(f"Other panelists cover {', '.join(dict.fromkeys(other_names))}. Stay within your lens.")
    return join_sections(*parts)


def _get_agent_role(agent: DebateAgent, index: int, context: DebateContext) -> str:
    return assign_perspective(agent_index(agent.id, context, index), _perspectives(context)).name


def _transform_context(context: DebateContext, agent: DebateAgent) -> DebateContext:
    perspectives = _perspectives(context)
    assigned = assign_perspective(agent_index(agent.id, context), perspectives)
    stamped = replace(context, aux={**context.aux, "assigned_perspective": assigned})
    return append_mode_prompt(stamped, build_perspective_prompt(assigned, perspectives))


def build_expert_panel_prompt(context: DebateContext) -> str:
    return join_sections(
        "Mode: Expert Panel",
        role_anchor(
            "YOU ARE AN INDEPENDENT DOMAIN EXPERT",
            "You provide professional, evidence-based expert analysis.",
            "Deliver objective assessment grounded in domain expertise and evidence.",
            "providing accurate, well-sourced expertise",
        ),
        behavioral_contract(
            must=[
                "Analyze strictly from your assigned perspective",
                "Support every claim with evidence or reasoning",
                "State the limits of your perspective",
            ],
            must_not=["Speculate beyond your domain", "Defer to other panelists without analysis"],
        ),
        focus_section(context, "Answer from your assigned perspective."),
    )


def expert_panel_mode() -> ModeStrategy:
    return ModeStrategy(
        name="expert-panel",
        build_prompt=build_expert_panel_prompt,
        pattern="parallel",
        hooks=ModeHooks(get_agent_role=_get_agent_role, transform_context=_transform_context),
        prepare_round=_prepare_round,
    )
