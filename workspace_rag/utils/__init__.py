"""Shared utilities: structured logging and the error hierarchy."""

from workspace_rag.utils.errors import (
    ConfigurationError,
    EmbeddingError,
    LLMError,
    NotFoundTransient,
    ParseError,
    ProviderError,
    RerankError,
    ValidationError,
    VectorStoreError,
    WorkspaceRAGError,
)
from workspace_rag.utils.logging import configure_logging

__all__ = [
    "ConfigurationError",
    "EmbeddingError",
    "LLMError",
    "NotFoundTransient",
    "ParseError",
    "ProviderError",
    "RerankError",
    "ValidationError",
    "VectorStoreError",
    "WorkspaceRAGError",
    "configure_logging",
]
