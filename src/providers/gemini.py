"""Gemini provider using google-genai SDK with native async."""

from google import genai
from google.genai import types as genai_types

from src.providers.base import SDKProvider


class GeminiProvider(SDKProvider):
    """Google Gemini provider via google-genai SDK."""

    label = "Gemini"

    def _make_client(self, api_key: str) -> genai.Client:
        return genai.Client(api_key=api_key)

    async def _complete(self, prompt: str, system_prompt: str | None) -> tuple[str, int | None]:
        response = await self._client.aio.models.generate_content(
            model=self._config.model,
            contents=prompt,
            config=genai_types.GenerateContentConfig(
                system_instruction=system_prompt,
                max_output_tokens=self._config.max_tokens,
                temperature=self._config.temperature,
            ),
        )
        token_count = response.usage_metadata.total_token_count if response.usage_metadata else None
        return response.text or "", token_count
