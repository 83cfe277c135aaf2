"""
Configuration for the DocChat document service.

This module contains all configurable parameters for the application.
Values can be overridden with environment variables (or a .env file)
prefixed with DOCCHAT_, using "__" for nested sections:

    DOCCHAT_DOCUMENT__CHUNK_SIZE=3000
    DOCCHAT_GEMINI__MODEL=gemini-1.5-flash

The Gemini keys are also read from the plain GEMINI_API_KEY and
GEMINI_API_KEY_BACKUP variables.
"""

from typing import List

from pydantic import AliasChoices, BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeminiConfig(BaseModel):
    """Configuration for the Gemini generative-language API."""

    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    model: str = "gemini-pro"
    api_key: str = ""
    backup_api_key: str = ""
    timeout: int = 60  # seconds
    key_cooldown: int = 300  # seconds a rate-limited key is skipped

    @property
    def api_keys(self) -> List[str]:
        return [k for k in (self.api_key, self.backup_api_key) if k]


class RetryConfig(BaseModel):
    """Backoff policy around model calls."""

    max_retries: int = 3
    base_delay: float = 1.0  # seconds
    max_delay: float = 30.0
    jitter: float = 1.0


class DocumentConfig(BaseModel):
    """Configuration for document processing."""

    chunk_size: int = 2500  # Characters per chunk
    chunk_overlap: int = 200  # Overlap between chunks for context
    min_text_length: int = 30  # Reject files with less usable text
    max_file_size: int = 10 * 1024 * 1024  # bytes
    max_chunks_per_query: int = 4  # Max chunks used as answer context


class SummaryConfig(BaseModel):
    """
    Configuration for summarization.

    - concurrency: parallel chunk summaries (1 = one after another)
    - time_budget: seconds for the whole map+reduce, 0 disables it
    """

    concurrency: int = 1
    time_budget: float = 0.0
    bullet_max_chars: int = 30000


class SessionConfig(BaseModel):
    """Configuration for the chat session cache."""

    ttl: int = 3600  # seconds
    capacity: int = 1000
    max_history: int = 20  # messages kept per session


class DatabaseConfig(BaseModel):
    """Configuration for the document database."""

    url: str = "sqlite+aiosqlite:///./data/docchat.db"


class Settings(BaseSettings):
    """Main settings container."""

    model_config = SettingsConfigDict(
        env_prefix="DOCCHAT_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    gemini: GeminiConfig = GeminiConfig()
    retry: RetryConfig = RetryConfig()
    document: DocumentConfig = DocumentConfig()
    summary: SummaryConfig = SummaryConfig()
    session: SessionConfig = SessionConfig()
    database: DatabaseConfig = DatabaseConfig()

    # Plain GEMINI_API_KEY / GEMINI_API_KEY_BACKUP, copied into the gemini section
    gemini_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("GEMINI_API_KEY", "DOCCHAT_GEMINI_API_KEY"),
    )
    gemini_api_key_backup: str = Field(
        default="",
        validation_alias=AliasChoices("GEMINI_API_KEY_BACKUP", "DOCCHAT_GEMINI_API_KEY_BACKUP"),
    )

    # Logging
    log_level: str = "INFO"
    log_file: str = ""

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    @model_validator(mode="after")
    def _apply_plain_api_keys(self) -> "Settings":
        if self.gemini_api_key and not self.gemini.api_key:
            self.gemini.api_key = self.gemini_api_key
        if self.gemini_api_key_backup and not self.gemini.backup_api_key:
            self.gemini.backup_api_key = self.gemini_api_key_backup
        return self


# Global settings instance
settings = Settings()
