"""Configuration module: exports Settings and a module-level singleton."""

from workspace_rag.config.settings import Settings

settings = Settings()

__all__ = ["Settings", "settings"]
