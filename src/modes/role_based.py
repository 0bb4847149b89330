"""Hooks for modes that assign each agent a role from its position in the round."""

import logging
from collections.abc import Callable
from dataclasses import replace

from src.agents import DebateAgent
from src.models import AgentResponse, DebateContext, RoleViolation, Stance
from src.modes.base import ModeHooks, agent_index, append_mode_prompt

logger = logging.getLogger(__name__)

RoleForIndex = Callable[[int, int], str]
RolePrompt = Callable[[DebateContext, str], str]


def role_based_hooks(
    role_for_index: RoleForIndex,
    role_prompt: RolePrompt,
    expected_stances: dict[str, Stance] | None = None,
) -> ModeHooks:
    """Build a hook set from a role distribution, role prompts and expected stances.

    Roles are derived from the agent index map placed in context.aux by
    index_agents, so the hooks hold no state of their own.

    Args:
        role_for_index: Maps (agent_index, total_agents) to a role name.
        role_prompt: Builds the prompt text appended for a role.
        expected_stances: Stance each role must declare. Roles absent from the
            mapping are not validated.
    """
    expected_stances = expected_stances or {}

    def _role(agent_id: str, fallback_index: int, context: DebateContext) -> str:
        index = agent_index(agent_id, context, fallback_index)
        total = context.aux.get("total_agents", index + 1)
        return role_for_index(index, total)

    def get_agent_role(agent: DebateAgent, index: int, context: DebateContext) -> str:
        return _role(agent.id, index, context)

    def transform_context(context: DebateContext, agent: DebateAgent) -> DebateContext:
        role = _role(agent.id, 0, context)
        stamped = replace(context, aux={**context.aux, "agent_role": role})
        return append_mode_prompt(stamped, role_prompt(context, role))

    def validate_response(response: AgentResponse, context: DebateContext) -> AgentResponse:
        if response.agent_id not in context.aux.get("agent_index_map", {}):
            return response
        role = _role(response.agent_id, 0, context)
        expected = expected_stances.get(role)
        if expected is None or response.stance == expected:
            return response

        logger.warning(
            "Agent %s (%s) declared stance %s, expected %s for its role",
            response.agent_id,
            role,
            response.stance or "(missing)",
            expected,
        )
        return replace(response, role_violation=RoleViolation(expected=expected, actual=response.stance))

    return ModeHooks(
        get_agent_role=get_agent_role,
        transform_context=transform_context,
        validate_response=validate_response,
    )
