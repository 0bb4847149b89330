"""Dataclasses shared by the engine, modes, analyzers and agents. No logic beyond serialization."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

Stance = Literal["YES", "NO", "NEUTRAL"]
ContextPriority = Literal["required", "optional"]
ExitReason = Literal["consensus", "convergence", "confidence", "max_rounds"]


@dataclass
class ModelResponse:
    provider: str          # "gemini", "openai", "claude", "grok"
    model: str             # actual model string used
    round_number: int
    content: str
    latency_sec: float
    token_count: int | None


@dataclass
class Citation:
    title: str
    url: str
    snippet: str | None = None


@dataclass
class ToolCallRecord:
    tool_name: str
    input: Any
    output: Any = None
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class RoleViolation:
    expected: Stance
    actual: Stance | None  # None when the agent declared no stance


@dataclass
class AgentResponse:
    agent_id: str
    agent_name: str
    position: str
    reasoning: str
    confidence: float      # clamped to [0, 1] by the agent layer
    timestamp: datetime = field(default_factory=datetime.now)
    stance: Stance | None = None
    citations: list[Citation] = field(default_factory=list)
    tool_calls: list[ToolCallRecord] = field(default_factory=list)
    role_violation: RoleViolation | None = None
    round_number: int | None = None  # stamped by the engine

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "agentId": self.agent_id,
            "agentName": self.agent_name,
            "position": self.position,
            "reasoning": self.reasoning,
            "confidence": self.confidence,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.round_number is not None:
            data["roundNumber"] = self.round_number
        if self.stance is not None:
            data["stance"] = self.stance
        if self.citations:
            data["citations"] = [
                {"title": c.title, "url": c.url, "snippet": c.snippet} for c in self.citations
            ]
        if self.tool_calls:
            data["toolCalls"] = [{"toolName": t.tool_name, "input": t.input} for t in self.tool_calls]
        if self.role_violation is not None:
            data["_roleViolation"] = {
                "expected": self.role_violation.expected,
                "actual": self.role_violation.actual,
            }
        return data


@dataclass
class ContextRequest:
    id: str
    agent_id: str
    query: str
    reason: str
    priority: ContextPriority = "required"
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class ContextResult:
    request_id: str
    success: bool
    result: str | None = None
    error: str | None = None


@dataclass
class Perspective:
    name: str
    description: str
    focus_areas: list[str] = field(default_factory=list)
    evidence_types: list[str] = field(default_factory=list)
    key_questions: list[str] = field(default_factory=list)
    anti_patterns: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class DebateContext:
    """Per-round view handed to agents. Hooks derive new values with dataclasses.replace."""

    session_id: str
    topic: str
    mode: str
    current_round: int
    total_rounds: int
    previous_responses: list[AgentResponse] = field(default_factory=list)
    focus_question: str | None = None
    mode_prompt: str | None = None
    perspectives: list[str | Perspective] | None = None
    context_results: list[ContextResult] | None = None
    # Owned by the strategy executing the current call; never outlives it.
    aux: dict[str, Any] = field(default_factory=dict)


@dataclass
class ConsensusResult:
    agreement_level: float
    common_ground: list[str] = field(default_factory=list)
    disagreement_points: list[str] = field(default_factory=list)
    summary: str = ""
    clusters: list[dict[str, Any]] | None = None
    nuances: dict[str, Any] | None = None
    groupthink_warning: dict[str, Any] | None = None
    reasoning: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "agreementLevel": self.agreement_level,
            "commonGround": list(self.common_ground),
            "disagreementPoints": list(self.disagreement_points),
            "summary": self.summary,
        }
        if self.clusters is not None:
            data["clusters"] = self.clusters
        if self.nuances is not None:
            data["nuances"] = self.nuances
        if self.groupthink_warning is not None:
            data["groupthinkWarning"] = self.groupthink_warning
        if self.reasoning is not None:
            data["reasoning"] = self.reasoning
        return data


@dataclass
class RoundResult:
    round_number: int      # 1-based
    responses: list[AgentResponse]
    consensus: ConsensusResult
    context_requests: list[ContextRequest] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "roundNumber": self.round_number,
            "responses": [r.to_dict() for r in self.responses],
            "consensus": self.consensus.to_dict(),
        }
        if self.context_requests:
            data["contextRequests"] = [
                {
                    "id": req.id,
                    "agentId": req.agent_id,
                    "query": req.query,
                    "reason": req.reason,
                    "priority": req.priority,
                }
                for req in self.context_requests
            ]
        return data


@dataclass
class ExitCriteria:
    max_rounds: int
    consensus_threshold: float | None = None     # default 0.9
    convergence_rounds: int | None = None        # default 2
    confidence_threshold: float | None = None    # default 0.85


@dataclass
class ExitCheckResult:
    should_exit: bool
    reason: ExitReason | None
    details: str


@dataclass
class Session:
    id: str
    topic: str
    mode: str
    agent_ids: list[str]
    total_rounds: int
    status: str = "active"  # "active", "completed", "failed"
    current_round: int = 0
    responses: list[AgentResponse] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)


@dataclass
class AgentInfo:
    id: str
    name: str
    provider: str
    model: str


@dataclass
class GroupthinkResult:
    detected: bool
    indicators: list[str] = field(default_factory=list)
    recommendation: str | None = None


@dataclass
class SynthesisResult:
    common_ground: list[str]
    key_differences: list[str]
    evolution_summary: str
    conclusion: str
    recommendation: str
    confidence: float
    synthesizer_id: str
    timestamp: datetime = field(default_factory=datetime.now)
