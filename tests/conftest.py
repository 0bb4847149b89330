"""Shared pytest fixtures."""

import asyncio
import json
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from config.config_loader import AgentConfig, AppConfig, DefaultsConfig, ExitCriteriaConfig, ModelConfig
from src.agents import DebateAgent
from src.models import AgentResponse, DebateContext, ModelResponse, Session
from src.providers.base import AIProvider, ProviderError
from src.toolkit import AgentToolkit


def json_reply(
    position: str,
    reasoning: str = "Because it follows from the evidence.",
    confidence: float = 0.8,
    stance: str | None = None,
    **extra,
) -> str:
    """A well-formed agent reply as a model would send it."""
    payload = {"position": position, "reasoning": reasoning, "confidence": confidence, **extra}
    if stance is not None:
        payload["stance"] = stance
    return json.dumps(payload)


def make_response(
    agent_id: str,
    position: str = "Use YAML for configuration files.",
    confidence: float = 0.8,
    stance: str | None = None,
) -> AgentResponse:
    return AgentResponse(
        agent_id=agent_id,
        agent_name=agent_id.title(),
        position=position,
        reasoning=f"Reasoning from {agent_id}",
        confidence=confidence,
        stance=stance,
    )


class MockProvider(AIProvider):
    """Test double AIProvider."""

    def __init__(self, provider_name: str = "mock", response_content: str = "Mock response") -> None:
        self._name = provider_name
        self._response_content = response_content
        # Shadow the class method with an AsyncMock at the instance level.
        # ABC check passes because generate is defined in the class body below.
        self.generate = AsyncMock(  # type: ignore[assignment]
            return_value=ModelResponse(
                provider=provider_name,
                model="mock-model",
                round_number=1,
                content=response_content,
                latency_sec=0.1,
                token_count=10,
            )
        )

    def name(self) -> str:
        return self._name

    def model_string(self) -> str:
        return "mock-model"

    async def generate(  # type: ignore[override]
        self, prompt: str, round_number: int, system_prompt: str | None = None
    ) -> ModelResponse:
        """Default implementation; replaced by AsyncMock in __init__."""
        return ModelResponse(
            provider=self._name,
            model="mock-model",
            round_number=round_number,
            content=self._response_content,
            latency_sec=0.1,
            token_count=10,
        )


class ScriptedAgent(DebateAgent):
    """Agent double that records every context it receives and answers without a provider call."""

    def __init__(
        self,
        agent_id: str,
        position: str | None = None,
        confidence: float = 0.8,
        stance: str | None = None,
        fail: bool = False,
        delay: float = 0.0,
    ) -> None:
        super().__init__(agent_id, agent_id.title(), MockProvider(agent_id))
        self.position = position or f"Position of {agent_id}"
        self.confidence = confidence
        self.stance = stance
        self.fail = fail
        self.delay = delay
        self.contexts: list[DebateContext] = []

    async def generate_response(self, context: DebateContext) -> AgentResponse:
        self.contexts.append(context)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ProviderError(self.id, "simulated outage")
        return make_response(self.id, self.position, self.confidence, self.stance)


@pytest.fixture
def toolkit() -> AgentToolkit:
    return AgentToolkit()


@pytest.fixture
def sample_context() -> DebateContext:
    return DebateContext(
        session_id="session-1",
        topic="Should we use YAML or JSON for config?",
        mode="collaborative",
        current_round=1,
        total_rounds=3,
    )


@pytest.fixture
def sample_session() -> Session:
    return Session(
        id="session-1",
        topic="Should we use YAML or JSON for config?",
        mode="collaborative",
        agent_ids=["alpha", "beta"],
        total_rounds=3,
    )


@pytest.fixture
def sample_model_config() -> ModelConfig:
    return ModelConfig(
        name="test_model",
        sdk="test",
        model="test-model-1",
        api_key_env="TEST_API_KEY",
        timeout_sec=30,
        max_tokens=1024,
        base_url=None,
    )


@pytest.fixture
def sample_defaults_config(tmp_path: Path) -> DefaultsConfig:
    return DefaultsConfig(
        rounds=2,
        max_rounds=5,
        mode="collaborative",
        output_dir=tmp_path / "output",
        synthesizer="claude",
    )


@pytest.fixture
def sample_app_config(sample_defaults_config: DefaultsConfig) -> AppConfig:
    claude_model = ModelConfig(
        name="claude",
        sdk="anthropic",
        model="claude-sonnet-4-20250514",
        api_key_env="ANTHROPIC_API_KEY",
        timeout_sec=60,
        max_tokens=4096,
    )
    openai_model = ModelConfig(
        name="openai",
        sdk="openai",
        model="gpt-4o",
        api_key_env="OPENAI_API_KEY",
        timeout_sec=60,
        max_tokens=4096,
    )
    return AppConfig(
        defaults=sample_defaults_config,
        models={"claude": claude_model, "openai": openai_model},
        agents={
            "claude": AgentConfig(id="claude", name="Claude", model="claude"),
            "chatgpt": AgentConfig(id="chatgpt", name="ChatGPT", model="openai"),
        },
        exit_criteria=ExitCriteriaConfig(),
        available_agents=["claude", "chatgpt"],
    )


@pytest.fixture
def two_agents() -> list[ScriptedAgent]:
    return [ScriptedAgent("alpha"), ScriptedAgent("beta")]
