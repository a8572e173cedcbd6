"""
Cloudflare Workers AI REST client and LLM provider.
"""

import logging
import os
from typing import Any

import httpx

from contextvault.exceptions import LLMError
from contextvault.providers.base import LLMProvider

logger = logging.getLogger(__name__)

API_BASE = "https://api.cloudflare.com/client/v4/accounts/{account_id}/ai/run/"


class WorkersAIClient:
    """
    Thin async client for ``POST /accounts/{id}/ai/run/{model}``.

    Credentials default to the ``CLOUDFLARE_ACCOUNT_ID`` and
    ``CLOUDFLARE_API_TOKEN`` environment variables.
    """

    def __init__(
        self,
        account_id: str | None = None,
        api_token: str | None = None,
        base_url: str | None = None,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None
    ):
        self.account_id = account_id or os.environ.get("CLOUDFLARE_ACCOUNT_ID", "")
        self.api_token = api_token or os.environ.get("CLOUDFLARE_API_TOKEN", "")
        self.base_url = base_url or API_BASE.format(account_id=self.account_id)
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Authorization": f"Bearer {self.api_token}"},
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport
            )
        return self._client

    async def run(self, model: str, payload: dict[str, Any]) -> Any:
        """
        Run a model and return the ``result`` member of the envelope.

        Raises:
            httpx.HTTPError: On transport failures or non-2xx responses
            ValueError: When the envelope reports ``success: false``
        """
        response = await self._get_client().post(model, json=payload)
        response.raise_for_status()
        body = response.json()

        if isinstance(body, dict) and "result" in body:
            if body.get("success") is False:
                raise ValueError(f"Workers AI error: {body.get('errors')}")
            return body["result"]
        return body

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None


class WorkersAIProvider(LLMProvider):
    """
    LLM Provider for Workers AI text-generation models.
    """

    def __init__(
        self,
        model: str = "@cf/meta/llama-3.1-70b-instruct",
        account_id: str | None = None,
        api_token: str | None = None,
        client: WorkersAIClient | None = None
    ):
        self.model = model
        self.client = client or WorkersAIClient(account_id=account_id, api_token=api_token)

    async def complete(
        self,
        messages: list[dict[str, Any]],
        *,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        **kwargs: Any
    ) -> Any:
        """Get a completion from Workers AI."""
        payload = {
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
            **kwargs,
        }
        try:
            return await self.client.run(self.model, payload)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Workers AI completion failed: {e}")
            raise LLMError(f"Workers AI completion failed: {e}") from e
