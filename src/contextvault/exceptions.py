"""
ContextVault exceptions.
"""


class VaultError(Exception):
    """Base exception for ContextVault errors."""

    def __init__(self, message: str, code: int | None = None):
        self.message = message
        self.code = code
        super().__init__(self.message)


class ValidationError(VaultError, ValueError):
    """Raised for empty input, missing fields or mismatched vector dimensions."""

    def __init__(self, message: str):
        super().__init__(message, code=400)


class NotFoundError(VaultError):
    """Raised when a document (or other keyed entry) does not exist."""

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} '{key}' not found", code=404)


class EmbeddingError(VaultError):
    """Raised when the embedding service fails or returns an unexpected shape."""

    def __init__(self, message: str):
        super().__init__(message, code=502)


class LLMError(VaultError):
    """Raised when the language-model service fails or its response is unusable."""

    def __init__(self, message: str):
        super().__init__(message, code=502)


class PartialIngestionError(VaultError):
    """Raised when some passages of a document could not be embedded or stored."""

    def __init__(self, document_id: str, errors: list[str]):
        self.document_id = document_id
        self.errors = errors
        super().__init__(
            f"Document '{document_id}' ingested with {len(errors)} failed passage(s): "
            + "; ".join(errors),
            code=207,
        )


class StoreInconsistencyError(VaultError):
    """Raised when passage keys survive a delete and its retry pass."""

    def __init__(self, document_id: str, residual_keys: list[str]):
        self.document_id = document_id
        self.residual_keys = residual_keys
        super().__init__(
            f"{len(residual_keys)} passage(s) still stored for '{document_id}' after deletion",
            code=500,
        )
