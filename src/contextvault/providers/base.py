"""
Base LLM Provider interface.
"""

from abc import ABC, abstractmethod
from typing import Any


class LLMProvider(ABC):
    """
    Abstract base class for language-model services.
    """

    @abstractmethod
    async def complete(
        self,
        messages: list[dict[str, Any]],
        *,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        **kwargs: Any
    ) -> Any:
        """
        Get a completion from the LLM.

        Args:
            messages: List of messages in chat format
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            **kwargs: Additional provider-specific options

        Returns:
            The raw response; its shape varies by service and is decoded
            with :func:`contextvault.providers.response.extract_answer`

        Raises:
            LLMError: If the service call fails
        """
        pass

    def count_tokens(self, text: str) -> int:
        """Estimate token count for text (simple implementation)."""
        # Simple estimation: ~4 characters per token
        return len(text) // 4
