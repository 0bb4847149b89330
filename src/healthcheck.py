"""Agent health checks: ping every agent's backend before starting a debate."""

import asyncio
import logging

from src.agents import DebateAgent

logger = logging.getLogger(__name__)


async def run_health_checks(agents: list[DebateAgent]) -> dict[str, tuple[bool, str]]:
    """Ping all agents in parallel.

    Returns:
        Dict mapping agent id -> (ok, error_message).
        error_message is "" when ok is True.
    """
    results = await asyncio.gather(*(agent.health_check() for agent in agents))
    checks = {agent.id: result for agent, result in zip(agents, results)}
    for agent_id, (ok, err) in checks.items():
        if not ok:
            logger.warning("Health check failed for %s: %s", agent_id, err)
    return checks
