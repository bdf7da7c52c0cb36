"""Exception hierarchy for the RAG pipeline.

Each pipeline stage raises exactly one error type for its external
collaborator, so callers can tell a bad input file from an unreachable
service without inspecting messages.
"""
from typing import Any, Optional


class PdfRagError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class LoadError(PdfRagError):
    """Raised when the source document is missing, unreadable or unparsable."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message, {"path": path} if path else None)


class _ChunkScopedError(PdfRagError):
    def __init__(
        self,
        message: str,
        chunk_index: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        details = details or {}
        if chunk_index is not None:
            details["chunk_index"] = chunk_index
        self.chunk_index = chunk_index
        super().__init__(message, details)


class EmbeddingError(_ChunkScopedError):
    """Raised when the embedding service is unreachable or returns bad output."""


class StoreError(_ChunkScopedError):
    """Raised when the vector database is unreachable or rejects a request."""


class GenerationError(PdfRagError):
    """Raised when the inference service fails or the model is unknown."""

    def __init__(self, message: str, model: Optional[str] = None):
        self.model = model
        super().__init__(message, {"model": model} if model else None)
