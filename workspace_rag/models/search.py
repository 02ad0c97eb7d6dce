"""Search request and response models for the retrieval service.

``QueryRequest`` is what the calling agent sends; ``SearchResponse`` is the
structured tool result it receives back, on success and on failure.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from workspace_rag.models.rag import QueryMatch, RAGMetadata

ContentType = Literal["transcript", "summary", "all"]


class DateRange(BaseModel):
    """Inclusive creation-date window; open-ended when a bound is ``None``."""

    model_config = ConfigDict(frozen=True)

    start: datetime | None = None
    end: datetime | None = None


class SearchFilter(BaseModel):
    """Optional structured narrowing applied on top of the content type."""

    model_config = ConfigDict(frozen=True)

    source: str | None = Field(default=None, description="Restrict to one source document id.")
    topics: list[str] | None = Field(default=None, description="Match any of these topics.")
    speakers: list[str] | None = Field(default=None, description="Match any of these speakers.")
    date_range: DateRange | None = None


class QueryRequest(BaseModel):
    """One semantic-search call against a workspace namespace."""

    model_config = ConfigDict(frozen=True)

    query: str = Field(min_length=1, description="Natural-language search text.")
    namespace: str = Field(min_length=1, description="Workspace id to search in.")
    content_type: ContentType = "all"
    top_k: int = Field(default=5, ge=1, le=20)
    filter: SearchFilter | None = None
    expand_context: bool = False
    use_reranking: bool = True

    def cache_key(self) -> str:
        """Serialize every field; two requests share a key only if identical."""
        return self.model_dump_json()


class MatchPreview(BaseModel):
    """A match with its content capped for compact tool output."""

    model_config = ConfigDict(frozen=True)

    id: str
    score: float
    content: str
    metadata: RAGMetadata


class SearchResponse(BaseModel):
    """Structured search outcome.

    Successful responses carry the formatted ``content`` block, the full
    ``matches`` and truncated ``previews``.  Failed responses only carry
    ``error`` and the original ``query``.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    query: str
    namespace: str | None = None
    match_count: int = 0
    duration: str | None = None
    content: str = ""
    matches: list[QueryMatch] = Field(default_factory=list)
    previews: list[MatchPreview] = Field(default_factory=list)
    error: str | None = None

    def to_tool_result(self) -> dict[str, Any]:
        """Return the camelCase payload handed back to the calling agent."""
        if not self.success:
            return {"success": False, "error": self.error, "query": self.query}
        return {
            "success": True,
            "query": self.query,
            "matchCount": self.match_count,
            "namespace": self.namespace,
            "duration": self.duration,
            "content": self.content,
            "matches": [
                {
                    "id": p.id,
                    "score": p.score,
                    "content": p.content,
                    "metadata": p.metadata.model_dump(by_alias=True, exclude_none=True, mode="json"),
                }
                for p in self.previews
            ],
        }
