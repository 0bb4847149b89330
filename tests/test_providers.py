"""Tests for the shared SDK provider behaviour in src/providers/base.py, no real API calls."""

import asyncio

import pytest

from config.config_loader import ModelConfig
from src.providers.base import ProviderError, SDKProvider
from src.providers.openai_provider import build_chat_messages


class FakeProvider(SDKProvider):
    """SDKProvider whose completion call is scripted per attempt."""

    label = "Fake"

    def __init__(self, config: ModelConfig, script: list) -> None:
        self.script = list(script)
        self.calls: list[tuple[str, str | None]] = []
        super().__init__(config)

    def _make_client(self, api_key: str) -> str:
        return f"client:{api_key}"

    async def _complete(self, prompt, system_prompt):
        self.calls.append((prompt, system_prompt))
        step = self.script.pop(0)
        if isinstance(step, Exception):
            raise step
        if isinstance(step, float):
            await asyncio.sleep(step)
            return "late", None
        return step


@pytest.fixture
def fake_config(monkeypatch, sample_model_config) -> ModelConfig:
    monkeypatch.setenv("TEST_API_KEY", "sk-test")
    return sample_model_config


async def test_generate_returns_model_response(fake_config):
    provider = FakeProvider(fake_config, [("Hello", 12)])

    result = await provider.generate("prompt", round_number=2, system_prompt="be brief")

    assert result.content == "Hello"
    assert result.token_count == 12
    assert result.round_number == 2
    assert result.provider == "test_model"
    assert result.model == "test-model-1"
    assert provider.calls == [("prompt", "be brief")]


def test_missing_api_key_raises(monkeypatch, sample_model_config):
    monkeypatch.delenv("TEST_API_KEY", raising=False)
    with pytest.raises(ProviderError, match="Missing API key: TEST_API_KEY"):
        FakeProvider(sample_model_config, [])


async def test_sdk_errors_are_wrapped(fake_config):
    provider = FakeProvider(fake_config, [RuntimeError("rate limited")])

    with pytest.raises(ProviderError) as excinfo:
        await provider.generate("prompt", round_number=1)

    assert "API call failed: rate limited" in str(excinfo.value)
    assert excinfo.value.timed_out is False
    assert len(provider.calls) == 1


async def test_empty_content_rejected(fake_config):
    provider = FakeProvider(fake_config, [("", 3)])
    with pytest.raises(ProviderError, match="Empty response content"):
        await provider.generate("prompt", round_number=1)


async def test_timeout_retried_once(fake_config, caplog):
    fake_config.timeout_sec = 0.05
    provider = FakeProvider(fake_config, [1.0, ("Recovered", 5)])

    result = await provider.generate("prompt", round_number=3)

    assert result.content == "Recovered"
    assert len(provider.calls) == 2
    assert "timed out in round 3, retrying" in caplog.text
    assert fake_config.timeout_sec == 0.05


async def test_second_timeout_propagates(fake_config):
    fake_config.timeout_sec = 0.02
    provider = FakeProvider(fake_config, [1.0, 1.0])

    with pytest.raises(ProviderError) as excinfo:
        await provider.generate("prompt", round_number=1)

    assert excinfo.value.timed_out is True
    assert excinfo.value.retryable is True
    assert len(provider.calls) == 2


def test_build_chat_messages():
    assert build_chat_messages("hi", None) == [{"role": "user", "content": "hi"}]
    assert build_chat_messages("hi", "sys")[0] == {"role": "system", "content": "sys"}
