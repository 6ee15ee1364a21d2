"""Application configuration using Pydantic Settings.

All configuration is loaded from environment variables.
No secrets are hardcoded.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class GitHubSettings(BaseSettings):
    """GitHub App configuration.

    The app authenticates per installation, so the installation ID is not
    part of the configuration; it travels with every work item instead.
    """

    model_config = SettingsConfigDict(env_prefix="GITHUB_APP_")

    slug: str = Field(
        default="issuedigger",
        description="App slug, used as the mention token in app commands",
    )
    id: int = Field(
        default=0,
        description="Numeric GitHub App ID",
    )
    private_key: SecretStr = Field(
        default=SecretStr(""),
        description="PEM-encoded app private key",
    )
    webhook_secret: SecretStr = Field(
        default=SecretStr(""),
        description="Shared secret for webhook signature verification",
    )
    owner: str = Field(
        default="",
        description="Login allowed to issue owner-restricted commands",
    )
    api_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL",
    )
    onboarding_lookback_limit: int = Field(
        default=1000,
        ge=0,
        description="Maximum number of items backfilled per repository",
    )
    per_page: int = Field(
        default=30,
        ge=1,
        le=100,
        description="Page size for paginated API listings",
    )
    timeout: float = Field(
        default=30.0,
        description="Request timeout in seconds",
    )


class EmbeddingSettings(BaseSettings):
    """Embedding service configuration."""

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_")

    base_url: str = Field(
        default="http://localhost:8080",
        description="Embedding service base URL",
    )
    model: str = Field(
        default="BAAI/bge-large-en-v1.5",
        description="Embedding model name",
    )
    batch_size: int = Field(
        default=32,
        description="Batch size for embedding requests",
    )
    timeout: float = Field(
        default=60.0,
        description="Request timeout in seconds",
    )


class SummarizationSettings(BaseSettings):
    """Summarization model configuration.

    Any OpenAI-compatible chat completions endpoint works (Ollama, vLLM, OpenAI).
    """

    model_config = SettingsConfigDict(env_prefix="SUMMARIZATION_")

    base_url: str = Field(
        default="http://localhost:11434/v1",
        description="Chat completions API base URL (Ollama default)",
    )
    model: str = Field(
        default="llama3:8b",
        description="Model name to use for summaries",
    )
    api_key: SecretStr = Field(
        default=SecretStr("not-required"),
        description="API key (not required for Ollama)",
    )
    timeout: float = Field(
        default=120.0,
        description="Request timeout in seconds",
    )
    max_tokens: int = Field(
        default=256,
        description="Maximum tokens in a summary",
    )
    temperature: float = Field(
        default=0.0,
        description="Sampling temperature",
    )


class QdrantSettings(BaseSettings):
    """Qdrant vector database configuration."""

    model_config = SettingsConfigDict(env_prefix="QDRANT_")

    url: str = Field(
        default="http://localhost:6333",
        description="Qdrant server URL",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Qdrant API key (optional for local)",
    )
    collection_name: str = Field(
        default="issuedigger",
        description="Collection holding all issue vectors",
    )
    dimensions: int = Field(
        default=1024,
        description="Vector dimensions of the collection",
    )


class RedisSettings(BaseSettings):
    """Redis configuration for vector ID bookkeeping."""

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )
    scan_count: int = Field(
        default=100,
        description="Page size hint for key listings",
    )


class QueueSettings(BaseSettings):
    """Work queue configuration."""

    model_config = SettingsConfigDict(env_prefix="QUEUE_")

    max_size: int = Field(
        default=1000,
        ge=1,
        description="Maximum number of pending messages",
    )
    max_batch_size: int = Field(
        default=10,
        ge=1,
        description="Maximum messages consumed per batch",
    )
    batch_timeout: float = Field(
        default=1.0,
        description="Seconds to wait for a batch to fill up",
    )
    send_timeout: float = Field(
        default=5.0,
        description="Seconds a sender waits on a full queue before failing",
    )
    max_attempts: int = Field(
        default=3,
        ge=1,
        description="Deliveries per message before it is dropped",
    )
    max_concurrency: int = Field(
        default=10,
        ge=1,
        description="Messages handled at once, not counting backfill producers",
    )


class Settings(BaseSettings):
    """Main application settings.

    Aggregates all configuration sections.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application settings
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # API settings
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host",
    )
    api_port: int = Field(
        default=8000,
        description="API server port",
    )
    homepage_url: str = Field(
        default="https://github.com/alexpovel/issuedigger",
        description="Where the root path redirects to",
    )

    # Retrieval settings
    n_similar_issues: int = Field(
        default=3,
        ge=1,
        description="Number of similar issues listed per response",
    )

    # Nested settings
    github: GitHubSettings = Field(default_factory=GitHubSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    summarization: SummarizationSettings = Field(default_factory=SummarizationSettings)
    qdrant: QdrantSettings = Field(default_factory=QdrantSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    queue: QueueSettings = Field(default_factory=QueueSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()
