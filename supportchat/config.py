"""
Support Chat Configuration
==========================

PURPOSE:
    Pydantic-Settings based configuration for the support chat backend.
    All settings can be overridden via environment variables (SUPPORTCHAT_ prefix)
    or a local .env file.

NOTES:
    Missing provider credentials are not a startup error. The chat endpoint
    reports them per request, before any streamed byte is sent.
"""

from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings for the chat widget backend and client."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SUPPORTCHAT_",
        extra="ignore",
    )

    debug: bool = False

    # Upstream chat-completion provider
    llm_provider: Literal["anthropic", "openai"] = "anthropic"
    llm_model: Optional[str] = None  # provider default when unset
    llm_max_tokens: int = 1024
    anthropic_api_key: Optional[str] = None
    anthropic_base_url: str = "https://api.anthropic.com"
    anthropic_version: str = "2023-06-01"
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com"
    upstream_timeout_s: float = 130.0  # slightly over the provider's own 120s ceiling
    upstream_connect_timeout_s: float = 10.0

    # Embeddings (knowledge enrichment + store)
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536

    # Knowledge store (Qdrant). Enrichment runs only when this AND openai_api_key are set.
    qdrant_url: Optional[str] = None
    qdrant_api_key: Optional[str] = None
    knowledge_collection: str = "website_content"
    rag_match_count: int = 3
    rag_match_threshold: float = 0.5
    search_match_count: int = 5

    # Widget access. When set, the widget must send `Authorization: Bearer <widget_key>`.
    widget_key: Optional[str] = None

    # Client side (used by the Python widget / CLI)
    chat_url: str = "http://localhost:8000/api/chat"

    # Logging
    log_dir: str = "logs"
    log_file: str = "supportchat.jsonl"
    log_level: str = "INFO"

    # CORS
    cors_origins: List[str] = ["*"]

    @property
    def knowledge_enabled(self) -> bool:
        """Whether knowledge-base enrichment has everything it needs."""
        return bool(self.openai_api_key and self.qdrant_url)

    def provider_api_key(self) -> Optional[str]:
        """Return the credential for the configured chat provider."""
        if self.llm_provider == "openai":
            return self.openai_api_key
        return self.anthropic_api_key


settings = Settings()
