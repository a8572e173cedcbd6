"""
Language-model providers.
"""

from contextvault.providers.base import LLMProvider
from contextvault.providers.openai import OpenAIProvider
from contextvault.providers.response import (
    ChoiceListResponse,
    NamedFieldResponse,
    extract_answer,
)
from contextvault.providers.workers_ai import WorkersAIClient, WorkersAIProvider

__all__ = [
    "LLMProvider",
    "OpenAIProvider",
    "WorkersAIClient",
    "WorkersAIProvider",
    "ChoiceListResponse",
    "NamedFieldResponse",
    "extract_answer",
]
