"""Agent toolkit: callable tools exposed to agents, plus out-of-band context-request bookkeeping."""

import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from src.models import ContextRequest, DebateContext

logger = logging.getLogger(__name__)

ToolExecutor = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]


@dataclass
class AgentTool:
    name: str
    description: str
    parameters: dict[str, dict[str, str]] = field(default_factory=dict)


@dataclass
class _ToolDefinition:
    tool: AgentTool
    executor: ToolExecutor


class AgentToolkit:
    """Tools available to agents during a round.

    Pending context requests are shared by every agent using this toolkit. The
    engine clears them at round start and reads them back when the round ends.
    """

    def __init__(self) -> None:
        self._tools: dict[str, _ToolDefinition] = {}
        self._context: DebateContext | None = None
        self._pending_requests: list[ContextRequest] = []
        self._register_default_tools()

    def _register_default_tools(self) -> None:
        self.register_tool(
            AgentTool(
                name="get_context",
                description="Get the current debate context: topic, round number and earlier responses.",
            ),
            self._get_context,
        )
        self.register_tool(
            AgentTool(
                name="submit_response",
                description="Submit a structured response with position, reasoning and confidence.",
                parameters={
                    "position": {"type": "string", "description": "Your clear position statement"},
                    "reasoning": {"type": "string", "description": "Your detailed reasoning"},
                    "confidence": {"type": "number", "description": "Confidence from 0.0 to 1.0"},
                },
            ),
            self._submit_response,
        )
        self.register_tool(
            AgentTool(
                name="request_context",
                description=(
                    "Ask the caller for information you cannot look up yourself. "
                    "The answer arrives in the next round."
                ),
                parameters={
                    "query": {"type": "string", "description": "What information you need"},
                    "reason": {"type": "string", "description": "Why it matters for your argument"},
                    "priority": {"type": "string", "description": "'required' or 'optional'"},
                },
            ),
            self._request_context,
        )

    def register_tool(self, tool: AgentTool, executor: ToolExecutor) -> None:
        self._tools[tool.name] = _ToolDefinition(tool=tool, executor=executor)

    def get_tools(self) -> list[AgentTool]:
        return [definition.tool for definition in self._tools.values()]

    async def execute_tool(self, name: str, tool_input: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run a tool by name. Never raises: failures come back as {"success": False, "error": ...}."""
        definition = self._tools.get(name)
        if definition is None:
            return {"success": False, "error": f'Tool "{name}" not found'}
        try:
            return await definition.executor(tool_input or {})
        except Exception as exc:
            logger.warning("Tool %s failed: %s", name, exc)
            return {"success": False, "error": str(exc) or "Tool execution failed"}

    def set_context(self, context: DebateContext) -> None:
        self._context = context

    def get_pending_context_requests(self) -> list[ContextRequest]:
        return list(self._pending_requests)

    def clear_pending_requests(self) -> None:
        self._pending_requests.clear()

    def has_pending_requests(self) -> bool:
        return bool(self._pending_requests)

    async def _get_context(self, _tool_input: dict[str, Any]) -> dict[str, Any]:
        if self._context is None:
            return {"success": False, "error": "No debate context available"}
        ctx = self._context
        return {
            "success": True,
            "data": {
                "topic": ctx.topic,
                "mode": ctx.mode,
                "currentRound": ctx.current_round,
                "totalRounds": ctx.total_rounds,
                "previousResponses": [
                    {"agentName": r.agent_name, "position": r.position, "confidence": r.confidence}
                    for r in ctx.previous_responses
                ],
                "focusQuestion": ctx.focus_question,
            },
        }

    async def _submit_response(self, tool_input: dict[str, Any]) -> dict[str, Any]:
        position = tool_input.get("position")
        reasoning = tool_input.get("reasoning")
        if not position or not isinstance(position, str):
            return {"success": False, "error": "Position is required and must be a string"}
        if not reasoning or not isinstance(reasoning, str):
            return {"success": False, "error": "Reasoning is required and must be a string"}

        confidence = tool_input.get("confidence", 0.5)
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            return {"success": False, "error": "Confidence must be a number between 0 and 1"}

        return {
            "success": True,
            "data": {
                "position": position,
                "reasoning": reasoning,
                "confidence": min(1.0, max(0.0, float(confidence))),
            },
        }

    async def _request_context(self, tool_input: dict[str, Any]) -> dict[str, Any]:
        query = tool_input.get("query")
        if not query or not isinstance(query, str):
            return {"success": False, "error": "Query is required"}

        priority = tool_input.get("priority") or "required"
        if priority not in ("required", "optional"):
            return {"success": False, "error": "Priority must be 'required' or 'optional'"}

        request = ContextRequest(
            id=f"ctx-{uuid.uuid4().hex[:12]}",
            agent_id=str(tool_input.get("agent_id", "unknown")),
            query=query,
            reason=str(tool_input.get("reason", "")),
            priority=priority,
        )
        self._pending_requests.append(request)
        logger.info("Context requested (%s): %s", request.priority, request.query)

        return {
            "success": True,
            "data": {
                "requestId": request.id,
                "message": "Context request recorded; the answer will be provided in the next round.",
            },
        }
