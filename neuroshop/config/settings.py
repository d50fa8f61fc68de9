"""Configuration settings for the NeuroShop aggregation engine."""

from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # LLM (OpenAI-compatible; Groq takes precedence when its key is set)
    openai_api_key: Optional[str] = Field(
        default=None,
        description="OpenAI API key used for query rewriting and product info",
    )
    groq_api_key: Optional[str] = Field(
        default=None,
        description="Groq API key (OpenAI-compatible endpoint)",
    )
    groq_base_url: str = Field(
        default="https://api.groq.com/openai/v1",
        description="Base URL used when the Groq key is configured",
    )
    openai_model: str = Field(default="gpt-3.5-turbo", description="OpenAI model")
    groq_model: str = Field(
        default="llama-3.3-70b-versatile", description="Groq model"
    )

    # Timeouts
    provider_timeout_seconds: float = Field(
        default=10.0,
        description="Default time budget for a single provider call",
    )
    gateway_timeout_seconds: float = Field(
        default=12.0,
        description="Global deadline for the whole provider fan-out",
    )
    pipeline_timeout_seconds: float = Field(
        default=15.0,
        description="Wall-clock budget for one aggregation request",
    )
    classifier_timeout_seconds: float = Field(
        default=5.0, description="Time budget for query classification"
    )
    enrichment_timeout_seconds: float = Field(
        default=8.0, description="Time budget for product info generation"
    )

    # Cache settings
    cache_enabled: bool = Field(default=True, description="Enable caching")
    search_cache_ttl_seconds: float = Field(
        default=300.0, description="TTL for aggregated search responses"
    )
    llm_cache_ttl_seconds: float = Field(
        default=600.0, description="TTL for search term and category outputs"
    )
    product_info_cache_ttl_seconds: float = Field(
        default=1800.0, description="TTL for generated product info"
    )

    # Matching
    dedup_similarity_threshold: float = Field(
        default=0.8, description="Title similarity above which offers may be duplicates"
    )
    dedup_price_tolerance: float = Field(
        default=0.10,
        description="Max relative price difference (of the higher price) for duplicates",
    )

    # Query validation
    max_query_length: int = Field(default=200, description="Maximum query length")

    # Enrichment
    enrichment_enabled: bool = Field(
        default=True, description="Generate descriptive product info"
    )

    # API
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=5000, description="API port")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"], description="Allowed CORS origins"
    )
    environment: str = Field(
        default="development",
        description="Environment: 'development' or 'production'",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_format: Optional[str] = Field(
        default=None,
        description="'json' or 'text'; defaults to json in production",
    )
    log_to_file: bool = Field(default=False, description="Also write rotating log files")
    log_dir: str = Field(default="logs", description="Directory for log files")
    log_file_max_bytes: int = Field(default=10 * 1024 * 1024, description="Rotate at this size")
    log_file_backup_count: int = Field(default=5, description="Rotated files to keep")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def llm_api_key(self) -> Optional[str]:
        """API key for whichever LLM backend is configured."""
        return self.groq_api_key or self.openai_api_key

    @property
    def llm_model(self) -> str:
        """Model name matching the configured backend."""
        return self.groq_model if self.groq_api_key else self.openai_model

    @property
    def json_logs(self) -> bool:
        if self.log_format:
            return self.log_format.lower() == "json"
        return self.environment == "production"


settings = Settings()
