"""File registry tracking each ingested document's lifecycle."""

from contextvault.registry.file_registry import (
    FileMetadata,
    FileRegistry,
    FileStatus,
    RegistryState,
)

__all__ = [
    "FileMetadata",
    "FileRegistry",
    "FileStatus",
    "RegistryState",
]
