"""
Configuration utilities.
"""

import json
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, model_validator


class Config(BaseModel):
    """Base configuration class."""

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load configuration from YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    @classmethod
    def from_file(cls, path: str | Path) -> "Config":
        """Load configuration from file (YAML or JSON)."""
        path = Path(path)

        if path.suffix in (".yaml", ".yml"):
            return cls.from_yaml(path)
        elif path.suffix == ".json":
            with open(path) as f:
                data = json.load(f)
            return cls(**data)
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")


class EmbeddingConfig(BaseModel):
    """Embedding service settings."""
    provider: Literal["openai", "workers_ai", "local", "fake"] = "openai"
    model: str | None = None
    api_key: str | None = None
    base_url: str | None = None
    account_id: str | None = None
    dimension: int | None = None


class LLMConfig(BaseModel):
    """Language-model service settings."""
    provider: Literal["openai", "workers_ai"] = "openai"
    model: str | None = None
    api_key: str | None = None
    base_url: str | None = None
    account_id: str | None = None


class StorageConfig(BaseModel):
    """Backing store for passages, the file registry and conversation memory."""
    backend: Literal["memory", "sqlite", "redis"] = "memory"
    path: str = "contextvault.db"
    redis_url: str = "redis://localhost:6379"
    key_prefix: str = "contextvault:"


class VaultConfig(Config):
    """Configuration for a ContextVault instance."""
    chunk_size: int = Field(default=500, gt=0)
    chunk_overlap: int = Field(default=50, ge=0)
    top_k: int = Field(default=5, gt=0)
    max_turns: int = Field(default=10, gt=0)
    scan_batch_size: int = Field(default=100, gt=0)
    snippet_length: int = Field(default=200, gt=0)
    max_tokens: int = 1000
    temperature: float = 0.7
    log_level: str = "INFO"

    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    @model_validator(mode="after")
    def _check_overlap(self) -> "VaultConfig":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be less than chunk_size")
        return self


def load_config(path: str | Path = "contextvault.yaml") -> VaultConfig:
    """
    Load vault configuration from file.

    Args:
        path: Path to config file

    Returns:
        VaultConfig instance (defaults when the file does not exist)
    """
    path = Path(path)

    if not path.exists():
        return VaultConfig()

    return VaultConfig.from_file(path)
