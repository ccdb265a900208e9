"""Configuration management using Pydantic Settings"""

from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="VAULTSYNC_",
        extra="ignore",
    )

    # === Vault ===
    vault_path: Path = Field(
        default=Path("./vault"),
        description="Path to the markdown vault to keep in sync"
    )

    # === Chroma Server ===
    chroma_host: str = Field(default="localhost", description="Chroma server host")
    chroma_port: int = Field(default=8000, description="Chroma server port")
    chroma_ssl: bool = Field(default=False, description="Use https for Chroma")
    chroma_tenant: str = Field(default="default_tenant")
    chroma_database: str = Field(default="default_database")
    collection_name: str = Field(
        default="vaultsync_chunks",
        description="Collection holding note chunks for every vault"
    )
    health_timeout: float = Field(
        default=5.0,
        description="Timeout in seconds for health and provisioning requests"
    )

    # === Sync Behaviour ===
    settle_delay: float = Field(
        default=1.0,
        description="Seconds to wait after ingestion before verifying metadata"
    )
    reject_concurrent: bool = Field(
        default=False,
        description="Reject a second activation of a busy vault instead of waiting"
    )

    # === Embedding Configuration ===
    embedding_provider: str = Field(
        default="openai",
        description="Embedding provider: openai | ollama"
    )
    embedding_model: str = Field(
        default="text-embedding-3-small",
        description="Embedding model name"
    )
    openai_api_key: str = Field(default="", description="OpenAI API key")
    openai_base_url: str | None = Field(
        default=None,
        description="Override for OpenAI-compatible endpoints"
    )
    ollama_base_url: str = Field(
        default="http://localhost:11434",
        description="Ollama server URL"
    )

    # === Chunking ===
    chunk_size: int = Field(
        default=1000,
        description="Maximum chunk size in characters"
    )
    chunk_overlap: int = Field(
        default=100,
        description="Chunk overlap in characters"
    )

    # === Storage Configuration ===
    data_dir: Path = Field(
        default=Path("./data"),
        description="Directory for the SQLite metadata store"
    )

    @property
    def sqlite_path(self) -> Path:
        return self.data_dir / "vaultsync.db"

    @property
    def chroma_url(self) -> str:
        scheme = "https" if self.chroma_ssl else "http"
        return f"{scheme}://{self.chroma_host}:{self.chroma_port}"

    # === Server Configuration ===
    log_level: str = Field(default="INFO")
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8100)
    cors_origins: list[str] = Field(default=["app://obsidian.md", "http://localhost:3000"])


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create settings singleton"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Force reload settings"""
    global _settings
    _settings = Settings()
    return _settings
