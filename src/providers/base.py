"""Abstract base for the model backends that power debate agents."""

import asyncio
import logging
import os
import time
from abc import ABC, abstractmethod
from typing import Any

from config.config_loader import ModelConfig
from src.errors import AgentError
from src.models import ModelResponse

logger = logging.getLogger(__name__)

RETRY_TIMEOUT_FACTOR = 1.5


class ProviderError(AgentError):
    """Raised when a provider call fails."""

    def __init__(self, provider_name: str, message: str, timed_out: bool = False) -> None:
        self.provider_name = provider_name
        self.timed_out = timed_out
        super().__init__(f"[{provider_name}] {message}", provider=provider_name, retryable=True)


class AIProvider(ABC):
    """Abstract base for all AI model providers."""

    @abstractmethod
    def name(self) -> str:
        """Return the short provider name (e.g. 'gemini', 'claude')."""
        ...

    @abstractmethod
    def model_string(self) -> str:
        """Return the actual model identifier string."""
        ...

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        round_number: int,
        system_prompt: str | None = None,
    ) -> ModelResponse:
        """Generate a completion for the given prompt.

        Args:
            prompt: The user message to send.
            round_number: The debate round number (1-indexed, 0 for out-of-round calls).
            system_prompt: Optional system instructions sent ahead of the prompt.

        Returns:
            ModelResponse dataclass with content and metadata.

        Raises:
            ProviderError: On API failure, timeout, or invalid response.
        """
        ...


class SDKProvider(AIProvider):
    """AIProvider backed by a vendor SDK client, configured from one ModelConfig.

    Subclasses build the client and perform a single completion call;
    this class owns timing, timeouts and the one retry on timeout.
    """

    label = "Provider"

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = self._make_client(api_key)

    @abstractmethod
    def _make_client(self, api_key: str) -> Any:
        ...

    @abstractmethod
    async def _complete(self, prompt: str, system_prompt: str | None) -> tuple[str, int | None]:
        """Run one completion. Returns (text, total token count or None)."""
        ...

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    async def generate(
        self,
        prompt: str,
        round_number: int,
        system_prompt: str | None = None,
    ) -> ModelResponse:
        """Call the backend, retrying once with 1.5x the timeout if the first call times out."""
        timeout = self._config.timeout_sec
        try:
            return await self._timed_generate(prompt, round_number, system_prompt, timeout)
        except ProviderError as exc:
            if not exc.timed_out:
                raise
            retry_timeout = timeout * RETRY_TIMEOUT_FACTOR
            logger.warning(
                "%s timed out in round %d, retrying with %gs",
                self._config.name, round_number, retry_timeout,
            )
            return await self._timed_generate(prompt, round_number, system_prompt, retry_timeout)

    async def _timed_generate(
        self,
        prompt: str,
        round_number: int,
        system_prompt: str | None,
        timeout: float,
    ) -> ModelResponse:
        start = time.monotonic()
        try:
            text, token_count = await asyncio.wait_for(self._complete(prompt, system_prompt), timeout=timeout)
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {timeout}s", timed_out=True) from exc
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start
        if not text:
            raise ProviderError(self._config.name, "Empty response content")

        logger.info("%s round %d: %.2fs, %s tokens", self.label, round_number, latency, token_count)

        return ModelResponse(
            provider=self._config.name,
            model=self._config.model,
            round_number=round_number,
            content=text,
            latency_sec=latency,
            token_count=token_count,
        )
