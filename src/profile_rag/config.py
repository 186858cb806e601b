"""Configuration management using pydantic-settings."""

import warnings
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class VectorStoreBackend(str, Enum):
    """Vector store backend selection."""

    AUTO = "auto"
    QDRANT = "qdrant"
    MEMORY = "memory"


class StoreBackend(str, Enum):
    """Persistence backend for profiles, resources, chunks and jobs."""

    MEMORY = "memory"
    DATABASE = "database"


class OllamaSettings(BaseSettings):
    """Ollama embedding backend configuration."""

    model_config = SettingsConfigDict(env_prefix="OLLAMA_", case_sensitive=False)

    url: str = Field(
        default="http://localhost:11434",
        description="Ollama base URL. Env var: OLLAMA_URL",
    )
    timeout: float = Field(
        default=30.0,
        description="Per-request timeout in seconds for embedding calls. Env var: OLLAMA_TIMEOUT",
    )
    availability_timeout: float = Field(
        default=5.0,
        description="Timeout for the availability probe. Env var: OLLAMA_AVAILABILITY_TIMEOUT",
    )


class EmbeddingSettings(BaseSettings):
    """Embedding model configuration."""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    embedding_model: str = Field(
        default="nomic-embed-text",
        description="Default embedding model. Env var: EMBEDDING_MODEL",
    )
    embedding_dimension: Optional[int] = Field(
        default=None,
        description="Overrides the known dimension of the default model (collection sizing). "
        "Env var: EMBEDDING_DIMENSION",
    )
    embedding_max_retries: int = Field(
        default=3,
        description="Max attempts for a single embedding request. Env var: EMBEDDING_MAX_RETRIES",
    )
    embedding_retry_max_wait: float = Field(
        default=10.0,
        description="Upper bound of the exponential backoff in seconds. Env var: EMBEDDING_RETRY_MAX_WAIT",
    )

    @field_validator("embedding_max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        """At least one attempt is always made."""
        if v < 1:
            raise ValueError("EMBEDDING_MAX_RETRIES must be >= 1")
        return v

    @property
    def default_model(self) -> str:
        """Get the default embedding model id."""
        return self.embedding_model

    @property
    def max_retries(self) -> int:
        """Get max retries."""
        return self.embedding_max_retries


class QdrantSettings(BaseSettings):
    """Qdrant vector database configuration."""

    model_config = SettingsConfigDict(env_prefix="QDRANT_", case_sensitive=False)

    url: Optional[str] = Field(
        default=None, description="Qdrant connection URL (unset = in-memory fallback). Env var: QDRANT_URL"
    )
    api_key: Optional[str] = Field(
        default=None, description="Qdrant API key (for Qdrant Cloud). Env var: QDRANT_API_KEY"
    )
    timeout: int = Field(default=30, description="Request timeout in seconds")

    @property
    def is_configured(self) -> bool:
        """Check if a Qdrant URL is set."""
        return bool(self.url and self.url.strip())

    @property
    def is_cloud(self) -> bool:
        """Check if using Qdrant Cloud (has API key)."""
        return bool(self.api_key)


class VectorStoreSettings(BaseSettings):
    """Vector store selection."""

    model_config = SettingsConfigDict(env_prefix="VECTOR_STORE_", case_sensitive=False)

    backend: VectorStoreBackend = Field(
        default=VectorStoreBackend.AUTO,
        description="auto (Qdrant when reachable, else memory), qdrant or memory. Env var: VECTOR_STORE_BACKEND",
    )


class ChunkingSettings(BaseSettings):
    """Text chunking configuration."""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    chunk_size: int = Field(
        default=500, description="Chunk size in characters. Env var: CHUNK_SIZE"
    )
    chunk_overlap: int = Field(
        default=50, description="Overlap between chunks in characters. Env var: CHUNK_OVERLAP"
    )

    @model_validator(mode="after")
    def validate_sizes(self) -> "ChunkingSettings":
        """Validate chunk size and overlap."""
        if self.chunk_size <= 0:
            raise ValueError("CHUNK_SIZE must be > 0")
        if self.chunk_overlap < 0:
            raise ValueError("CHUNK_OVERLAP must be >= 0")
        return self


class RetrievalSettings(BaseSettings):
    """Query-time retrieval defaults (used when a profile has no rag settings)."""

    model_config = SettingsConfigDict(env_prefix="RAG_", case_sensitive=False)

    default_top_k: int = Field(default=5, description="Env var: RAG_DEFAULT_TOP_K")
    default_similarity_threshold: float = Field(
        default=0.7, description="Env var: RAG_DEFAULT_SIMILARITY_THRESHOLD"
    )


class StorageSettings(BaseSettings):
    """Local raw-file storage configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_", case_sensitive=False)

    base_dir: str = Field(
        default="data/profiles",
        description="Root directory for raw resource files. Env var: STORAGE_BASE_DIR",
    )
    max_file_size_mb: int = Field(
        default=10, description="Maximum upload size in MB. Env var: STORAGE_MAX_FILE_SIZE_MB"
    )

    @property
    def max_file_size_bytes(self) -> int:
        """Get the maximum upload size in bytes."""
        return self.max_file_size_mb * 1024 * 1024


class DatabaseSettings(BaseSettings):
    """Persistence configuration."""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    store_backend: StoreBackend = Field(
        default=StoreBackend.MEMORY,
        description="memory or database. Env var: STORE_BACKEND",
    )
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/profile_rag.db",
        description="SQLAlchemy async database URL. Env var: DATABASE_URL",
    )
    database_echo: bool = Field(
        default=False, description="Log SQL statements. Env var: DATABASE_ECHO"
    )

    @property
    def url(self) -> str:
        """Get the database URL."""
        return self.database_url


class ServerSettings(BaseSettings):
    """Server configuration."""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    host: str = Field(default="127.0.0.1", description="Server host. Env var: HOST")
    port: int = Field(default=3001, description="HTTP server port. Env var: PORT")
    reload: bool = Field(
        default=False, description="Enable auto-reload (development only). Env var: RELOAD"
    )


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = Field(default="profile-rag", description="Application name. Env var: APP_NAME")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment. Env var: ENVIRONMENT",
    )
    debug: bool = Field(default=False, description="Enable debug mode. Env var: DEBUG")
    log_level: str = Field(default="INFO", description="Logging level. Env var: LOG_LEVEL")

    # Sub-settings
    ollama: Optional[OllamaSettings] = None
    embedding: Optional[EmbeddingSettings] = None
    qdrant: Optional[QdrantSettings] = None
    vector_store: Optional[VectorStoreSettings] = None
    chunking: Optional[ChunkingSettings] = None
    retrieval: Optional[RetrievalSettings] = None
    storage: Optional[StorageSettings] = None
    database: Optional[DatabaseSettings] = None
    server: Optional[ServerSettings] = None

    @model_validator(mode="after")
    def initialize_nested_settings(self) -> "Settings":
        """Initialize nested settings to ensure they read from environment."""
        if self.ollama is None:
            self.ollama = OllamaSettings()
        if self.embedding is None:
            self.embedding = EmbeddingSettings()
        if self.qdrant is None:
            self.qdrant = QdrantSettings()
        if self.vector_store is None:
            self.vector_store = VectorStoreSettings()
        if self.chunking is None:
            self.chunking = ChunkingSettings()
        if self.retrieval is None:
            self.retrieval = RetrievalSettings()
        if self.storage is None:
            self.storage = StorageSettings()
        if self.database is None:
            self.database = DatabaseSettings()
        if self.server is None:
            self.server = ServerSettings()
        return self

    @field_validator("environment", mode="before")
    @classmethod
    def parse_environment(cls, v):
        """Parse environment from string."""
        if isinstance(v, str):
            try:
                return Environment(v.lower())
            except ValueError:
                return Environment.DEVELOPMENT
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION

    def validate_configuration(self) -> None:
        """Warn about configuration that degrades to a fallback."""
        if self.vector_store.backend == VectorStoreBackend.QDRANT and not self.qdrant.is_configured:
            warnings.warn(
                "VECTOR_STORE_BACKEND=qdrant but QDRANT_URL is not set. "
                "Vector operations will fail until QDRANT_URL is configured.",
                UserWarning,
            )

    def validate_production_settings(self) -> None:
        """Validate that production settings are sane."""
        if self.is_production:
            if self.debug:
                raise ValueError("DEBUG must be False in production")
            if self.vector_store.backend == VectorStoreBackend.MEMORY:
                raise ValueError(
                    "The in-memory vector store is a development fallback. "
                    "Set QDRANT_URL and VECTOR_STORE_BACKEND=qdrant in production."
                )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
        _settings.validate_configuration()
        try:
            _settings.validate_production_settings()
        except ValueError as e:
            import logging

            logging.error(f"Configuration validation failed: {e}")
            if _settings.is_production:
                raise  # Fail fast in production
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
