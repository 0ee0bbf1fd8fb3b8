"""Application configuration using Pydantic Settings.

Environment variables are loaded with the DOCNEX_ prefix. The Gemini key is
also accepted under the names used by the Google SDK and the web app.
"""

from functools import lru_cache

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Service configuration
    service_name: str = "docnex"
    port: int = 8090
    environment: str = Field(default="development", description="Runtime environment")
    log_level: str = Field(default="INFO", description="Logging level")

    # Gemini
    gemini_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "DOCNEX_GEMINI_API_KEY",
            "GOOGLE_GENERATIVE_AI_API_KEY",
            "GEMINI_API_KEY",
        ),
        description="Google Gemini API key",
    )
    gemini_model: str = Field(default="gemini-2.5-flash", description="Gemini model id")
    gemini_temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    gemini_max_output_tokens: int = Field(default=8192, ge=1)
    llm_timeout_seconds: float = Field(default=60.0, gt=0, description="LLM request timeout")
    split_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for AI document splitting before regex fallback",
    )

    # Supabase
    supabase_url: str = Field(default="http://localhost:54321", description="Supabase project URL")
    supabase_key: SecretStr = Field(
        default=SecretStr(""),
        description="Supabase service or anon key",
    )
    supabase_timeout_seconds: float = Field(default=30.0, gt=0)

    # Input limits
    max_input_length: int = Field(default=5 * 1024 * 1024, description="Max text input (chars)")
    max_file_size: int = Field(default=100 * 1024 * 1024, description="Max upload size (bytes)")
    rate_limit_requests: int = Field(default=10, ge=1)
    rate_limit_window_seconds: float = Field(default=60.0, gt=0)

    # History
    snapshot_retention: int = Field(default=50, ge=1, description="Snapshots kept per document")
    snapshot_interval_seconds: float = Field(default=300.0, ge=0)

    # Agents
    librarian_max_iterations: int = Field(default=3, ge=1)
    librarian_text_limit: int = Field(default=30000, ge=1)
    split_text_limit: int = Field(default=50000, ge=1)
    research_context_limit: int = Field(default=10, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="DOCNEX_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings singleton
    """
    return Settings()
