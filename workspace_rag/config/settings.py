"""Application settings loaded from environment variables via pydantic-settings.

Values come from, in priority order:

  1. Environment variables, e.g. ``EMBEDDING_API_KEY=pa-...``
  2. A ``.env`` file in the working directory (local development)

Field ``embedding_api_key`` maps to env var ``EMBEDDING_API_KEY``; matching is
case-insensitive.  Defaults apply when neither source defines a value.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """workspace-rag settings.

    Environment variables override defaults.  Loaded from .env when present.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # === Embedding provider ===
    embedding_api_key: str = ""
    embedding_base_url: str = "https://api.voyageai.com/v1"
    embedding_model: str = "voyage-3-large"
    embedding_dimension: int = 1024
    embedding_output_dtype: str = "float"
    embedding_max_batch_size: int = 1000
    embedding_max_batch_tokens: int = 120_000
    embedding_batch_delay_seconds: float = 0.1
    embedding_timeout_seconds: float = 60.0

    # === Vector store ===
    vector_store_api_key: str = ""
    vector_store_index_name: str = "workspace-rag"
    # Empty host = embedded PersistentClient at vector_store_persist_dir.
    vector_store_host: str = ""
    vector_store_port: int = 8000
    vector_store_ssl: bool = False
    vector_store_persist_dir: str = "./data/chromadb"
    vector_store_write_batch_size: int = 100

    # === Reranker ===
    rerank_enabled: bool = True
    rerank_model: str = "rerank-2"
    rerank_min_score: float = 0.5

    # === Topic segmentation LLM ===
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    openai_api_key: str = ""
    openai_base_url: str = ""
    openai_text_model: str = "gpt-4o-mini"

    # === Retrieval ===
    rag_min_score: float = 0.5
    rag_cache_ttl_seconds: int = 300
    rag_cache_max_entries: int = 100_000
    rag_neighbor_score_factor: float = 0.8

    # === App ===
    app_env: str = "development"
    log_level: str = "INFO"
