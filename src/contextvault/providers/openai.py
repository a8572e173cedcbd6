"""
OpenAI LLM Provider.
"""

from typing import Any

from contextvault.exceptions import LLMError
from contextvault.providers.base import LLMProvider


class OpenAIProvider(LLMProvider):
    """
    LLM Provider for the OpenAI chat completions API.

    Returns the response as a plain dict (``choices`` list shape).
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: str | None = None,
        base_url: str | None = None,
        organization: str | None = None
    ):
        self.model = model
        self.api_key = api_key
        self.base_url = base_url
        self.organization = organization
        self._client = None

    def _get_client(self):
        """Get or create OpenAI client."""
        if self._client is None:
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                organization=self.organization
            )
        return self._client

    async def complete(
        self,
        messages: list[dict[str, Any]],
        *,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        **kwargs: Any
    ) -> Any:
        """Get a completion from OpenAI."""
        client = self._get_client()

        params: dict[str, Any] = {
            "model": kwargs.pop("model", self.model),
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        params.update(kwargs)

        try:
            response = await client.chat.completions.create(**params)
        except Exception as e:
            raise LLMError(f"OpenAI completion failed: {e}") from e

        return response.model_dump()
