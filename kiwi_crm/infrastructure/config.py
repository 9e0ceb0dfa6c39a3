from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables / .env file.

    Every field can be set with a ``KIWI_`` prefixed variable, e.g.
    ``KIWI_DATABASE_URL`` or ``KIWI_GOOGLE_API_KEY``.
    """

    model_config = SettingsConfigDict(
        env_prefix="KIWI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    database_url: str = Field(
        "sqlite+aiosqlite:///./kiwi.db",
        description="SQLAlchemy async database URL (asyncpg for Postgres, aiosqlite for local runs).",
    )
    database_echo: bool = Field(False, description="Echo SQL statements to the log.")

    # LLM
    google_api_key: Optional[str] = Field(None, description="API key for the Gemini model.")
    llm_model: str = Field("gemini-2.5-flash", description="Chat model used by the agent.")
    llm_max_output_tokens: int = Field(24000, ge=1, description="Maximum output tokens per model response.")
    llm_disable_thinking: bool = Field(
        True,
        description="Disable the model's extended reasoning phase (thinking budget 0).",
    )
    max_agent_steps: int = Field(20, ge=1, description="Maximum model steps per user turn.")

    # Identity provider
    jwt_secret: str = Field(min_length=1, description="Key used to verify identity-provider tokens.")
    jwt_algorithms: List[str] = Field(default_factory=lambda: ["HS256"])
    jwt_audience: Optional[str] = None
    jwt_issuer: Optional[str] = None

    # Observability
    log_level: str = "INFO"
    log_format: str = Field("json", description="'json' or 'console'.")
    service_name: str = "kiwi-crm"
    langfuse_public_key: Optional[str] = None
    langfuse_secret_key: Optional[str] = None
    langfuse_host: Optional[str] = None

    # HTTP
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    @property
    def tracing_enabled(self) -> bool:
        return bool(self.langfuse_public_key and self.langfuse_secret_key)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance"""
    return Settings()
