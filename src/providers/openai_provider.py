"""OpenAI-compatible chat provider. Serves OpenAI itself and xAI Grok through base_url."""

from openai import AsyncOpenAI

from src.providers.base import SDKProvider


def build_chat_messages(prompt: str, system_prompt: str | None) -> list[dict[str, str]]:
    messages: list[dict[str, str]] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": prompt})
    return messages


class OpenAIProvider(SDKProvider):
    """OpenAI provider via openai SDK."""

    label = "OpenAI"

    def _make_client(self, api_key: str) -> AsyncOpenAI:
        return AsyncOpenAI(api_key=api_key, base_url=self._config.base_url)

    async def _complete(self, prompt: str, system_prompt: str | None) -> tuple[str, int | None]:
        response = await self._client.chat.completions.create(
            model=self._config.model,
            messages=build_chat_messages(prompt, system_prompt),
            max_tokens=self._config.max_tokens,
            temperature=self._config.temperature,
        )
        choice = response.choices[0] if response.choices else None
        text = choice.message.content if choice else None
        token_count = response.usage.total_tokens if response.usage else None
        return text or "", token_count
