"""Shared utilities: logging and configuration."""

from contextvault.utils.config import (
    Config,
    EmbeddingConfig,
    LLMConfig,
    StorageConfig,
    VaultConfig,
    load_config,
)
from contextvault.utils.logging import get_logger, set_log_level

__all__ = [
    "Config",
    "EmbeddingConfig",
    "LLMConfig",
    "StorageConfig",
    "VaultConfig",
    "load_config",
    "get_logger",
    "set_log_level",
]
