"""Mode strategy contract, hook set, and the three execution patterns.

A ModeStrategy is composed of plain functions rather than subclassed:
a prompt builder, role/transform/validate hooks, and an optional
prepare_round step that stores per-call state in DebateContext.aux.
Strategy objects carry no per-round state, so one instance can serve
many concurrent debates.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Literal, Protocol

from src.agents import DebateAgent
from src.models import AgentResponse, DebateContext
from src.toolkit import AgentToolkit

logger = logging.getLogger(__name__)

ExecutionPattern = Literal["sequential", "parallel", "last_only"]

RoleFn = Callable[[DebateAgent, int, DebateContext], str | None]
TransformFn = Callable[[DebateContext, DebateAgent], DebateContext]
ValidateFn = Callable[[AgentResponse, DebateContext], AgentResponse]
PrepareFn = Callable[[list[DebateAgent], DebateContext], DebateContext]
PromptFn = Callable[[DebateContext], str]


class DebateMode(Protocol):
    """What the engine needs from a mode."""

    name: str

    async def execute_round(
        self,
        agents: list[DebateAgent],
        context: DebateContext,
        toolkit: AgentToolkit,
    ) -> list[AgentResponse]: ...

    def build_agent_prompt(self, context: DebateContext) -> str: ...


def no_role(agent: DebateAgent, index: int, context: DebateContext) -> str | None:
    return None


def keep_context(context: DebateContext, agent: DebateAgent) -> DebateContext:
    return context


def accept_response(response: AgentResponse, context: DebateContext) -> AgentResponse:
    return response


@dataclass(frozen=True)
class ModeHooks:
    get_agent_role: RoleFn = no_role
    transform_context: TransformFn = keep_context
    validate_response: ValidateFn = accept_response


def index_agents(agents: list[DebateAgent], context: DebateContext) -> DebateContext:
    """prepare_round step: record each agent's position and the round size in aux."""
    return replace(
        context,
        aux={
            **context.aux,
            "agent_index_map": {agent.id: i for i, agent in enumerate(agents)},
            "total_agents": len(agents),
        },
    )


def agent_index(agent_id: str, context: DebateContext, fallback: int = 0) -> int:
    return context.aux.get("agent_index_map", {}).get(agent_id, fallback)


def append_mode_prompt(context: DebateContext, addition: str) -> DebateContext:
    """Return a copy of context whose mode_prompt has addition appended."""
    if not addition:
        return context
    existing = context.mode_prompt or ""
    joined = f"{existing}\n\n{addition}" if existing else addition
    return replace(context, mode_prompt=joined)


@dataclass(frozen=True)
class ModeStrategy:
    name: str
    build_prompt: PromptFn
    pattern: ExecutionPattern = "parallel"
    hooks: ModeHooks = field(default_factory=ModeHooks)
    prepare_round: PrepareFn | None = None
    needs_groupthink_detection: bool = False

    def build_agent_prompt(self, context: DebateContext) -> str:
        return self.build_prompt(context)

    async def execute_round(
        self,
        agents: list[DebateAgent],
        context: DebateContext,
        toolkit: AgentToolkit,
    ) -> list[AgentResponse]:
        if not agents:
            return []
        if self.prepare_round is not None:
            context = self.prepare_round(agents, context)

        if self.pattern == "sequential":
            return await execute_sequential(self, agents, context, toolkit)
        if self.pattern == "last_only":
            return await execute_last_only(self, agents, context, toolkit)
        return await execute_parallel(self, agents, context, toolkit)


async def _call_agent(
    agent: DebateAgent,
    context: DebateContext,
    toolkit: AgentToolkit,
) -> AgentResponse | Exception:
    """Run one agent turn. Never raises: failures are logged and returned."""
    agent.set_toolkit(toolkit)
    try:
        return await agent.generate_response(context)
    except Exception as exc:
        logger.warning("Agent %s failed in round %d: %s", agent.id, context.current_round, exc)
        return exc


def _log_role(strategy: ModeStrategy, agent: DebateAgent, index: int, context: DebateContext) -> None:
    role = strategy.hooks.get_agent_role(agent, index, context)
    if role:
        logger.debug("Agent %s assigned role %s (index %d)", agent.id, role, index)


async def _run_concurrently(
    strategy: ModeStrategy,
    agents: list[DebateAgent],
    base_context: DebateContext,
    toolkit: AgentToolkit,
    first_index: int = 0,
) -> list[AgentResponse]:
    hooks = strategy.hooks
    tasks = []
    for offset, agent in enumerate(agents):
        _log_role(strategy, agent, first_index + offset, base_context)
        tasks.append(_call_agent(agent, hooks.transform_context(base_context, agent), toolkit))

    results = await asyncio.gather(*tasks)

    return [
        hooks.validate_response(result, base_context)
        for result in results
        if isinstance(result, AgentResponse)
    ]


async def execute_parallel(
    strategy: ModeStrategy,
    agents: list[DebateAgent],
    context: DebateContext,
    toolkit: AgentToolkit,
) -> list[AgentResponse]:
    """All agents at once; each sees prior rounds only, never same-round peers."""
    if not agents:
        return []
    base = append_mode_prompt(context, strategy.build_agent_prompt(context))
    return await _run_concurrently(strategy, agents, base, toolkit)


async def execute_sequential(
    strategy: ModeStrategy,
    agents: list[DebateAgent],
    context: DebateContext,
    toolkit: AgentToolkit,
) -> list[AgentResponse]:
    """Strict array order; each agent sees every same-round response before it."""
    hooks = strategy.hooks
    responses: list[AgentResponse] = []

    for index, agent in enumerate(agents):
        _log_role(strategy, agent, index, context)
        seen = replace(context, previous_responses=[*context.previous_responses, *responses])
        base = append_mode_prompt(seen, strategy.build_agent_prompt(seen))

        result = await _call_agent(agent, hooks.transform_context(base, agent), toolkit)
        if isinstance(result, AgentResponse):
            responses.append(hooks.validate_response(result, base))

    return responses


def final_block_start(strategy: ModeStrategy, agents: list[DebateAgent], context: DebateContext) -> int:
    """Index where the trailing run of same-role agents begins.

    Agents without a role never group, so the block is then the last agent alone.
    """
    roles = [strategy.hooks.get_agent_role(agent, i, context) for i, agent in enumerate(agents)]
    start = len(agents) - 1
    last_role = roles[-1]
    if last_role is None:
        return start
    while start > 0 and roles[start - 1] == last_role:
        start -= 1
    return start


async def execute_last_only(
    strategy: ModeStrategy,
    agents: list[DebateAgent],
    context: DebateContext,
    toolkit: AgentToolkit,
) -> list[AgentResponse]:
    """Earlier roles run sequentially; the final same-role block runs concurrently.

    Every agent of the final block sees all earlier responses but none of its
    block peers.
    """
    if len(agents) <= 1:
        return await execute_sequential(strategy, agents, context, toolkit)

    split = final_block_start(strategy, agents, context)
    head = await execute_sequential(strategy, agents[:split], context, toolkit)

    seen = replace(context, previous_responses=[*context.previous_responses, *head])
    base = append_mode_prompt(seen, strategy.build_agent_prompt(seen))
    tail = await _run_concurrently(strategy, agents[split:], base, toolkit, first_index=split)

    return head + tail
