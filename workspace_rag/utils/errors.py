"""Custom exception hierarchy for workspace-rag.

All application exceptions inherit from :class:`WorkspaceRAGError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "voyage", "chromadb", "anthropic") caused the failure.

The hierarchy is organized by where the failure originates:

    WorkspaceRAGError  (base -- catch-all for any workspace-rag error)
    +-- ProviderError            (an outbound provider call failed)
    |   +-- EmbeddingError       (embedding API; carries HTTP status/body)
    |   +-- VectorStoreError     (vector database call)
    |   +-- RerankError          (reranker API)
    |   +-- LLMError             (topic-segmentation LLM)
    +-- NotFoundTransient        (namespace/document absent on delete)
    +-- ParseError               (chunking input malformed)
    +-- ValidationError          (document missing required data)
    +-- ConfigurationError       (missing credentials / settings)

Ingestion and retrieval services catch these at their boundary; only the
embedding client and vector store raise them to direct callers.
"""


class WorkspaceRAGError(Exception):
    """Base exception for all workspace-rag errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name``.  ``__str__`` prefixes the provider name in brackets,
    e.g. ``[voyage] Embedding request failed``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# External provider errors
# ---------------------------------------------------------------------------

class ProviderError(WorkspaceRAGError):
    """Raised when an embedding, vector-store, reranker or LLM call fails."""

    def __init__(
        self,
        message: str = "Provider call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmbeddingError(ProviderError):
    """Raised when the embedding API rejects or fails a request.

    Carries the HTTP ``status_code``, ``status_text`` and raw response
    ``body`` when the failure came from a non-2xx response, so callers can
    tell limit violations (400) from auth (401) or quota (429) problems.
    """

    def __init__(
        self,
        message: str = "Embedding request failed",
        provider_name: str | None = None,
        status_code: int | None = None,
        status_text: str = "",
        body: str = "",
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self.status_code = status_code
        self.status_text = status_text
        self.body = body

    @property
    def is_limit_error(self) -> bool:
        """``True`` when the provider refused the batch for size/token limits."""
        if self.status_code == 400:
            return True
        # Auth and quota bodies often mention an API "token".
        if self.status_code in (401, 403, 429):
            return False
        return "token" in self.message.lower() or "token" in self.body.lower()


class VectorStoreError(ProviderError):
    """Raised when a vector database operation fails."""

    def __init__(
        self,
        message: str = "Vector store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RerankError(ProviderError):
    """Raised when the reranking API call fails."""

    def __init__(
        self,
        message: str = "Rerank request failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class LLMError(ProviderError):
    """Raised when an LLM API call fails or returns an unparseable response."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Data errors
# ---------------------------------------------------------------------------

class NotFoundTransient(WorkspaceRAGError):
    """Raised when a namespace or document does not exist on delete.

    Never escapes the vector store: a delete against something that was
    never indexed is reported as success.
    """

    def __init__(
        self,
        message: str = "Namespace or document not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ParseError(WorkspaceRAGError):
    """Raised when document content cannot be parsed for chunking."""

    def __init__(
        self,
        message: str = "Could not parse document content",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ValidationError(WorkspaceRAGError):
    """Raised when a document lacks data required for indexing."""

    def __init__(
        self,
        message: str = "Document failed validation",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(WorkspaceRAGError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
