from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings sourced from environment variables."""

    project_name: str = "Question Ingest Service"
    api_prefix: str = "/api/v1"
    cors_origins: list[str] = Field(
        default=["*"],
        description="Comma-separated origins allowed for CORS (use '*' for all)",
        validation_alias=AliasChoices("QINGEST_CORS_ORIGINS", "CORS_ORIGINS"),
    )

    # Extraction oracle (OpenAI-compatible chat completions endpoint)
    oracle_api_key: str | None = Field(
        default=None, validation_alias=AliasChoices("GROQ_API_KEY", "QINGEST_ORACLE_API_KEY")
    )
    oracle_api_url: str = Field(
        default="https://api.groq.com/openai/v1/chat/completions",
        validation_alias=AliasChoices("GROQ_API_URL", "QINGEST_ORACLE_API_URL"),
    )
    oracle_model: str = Field(
        default="llama-3.3-70b-versatile",
        validation_alias=AliasChoices("GROQ_MODEL", "QINGEST_ORACLE_MODEL"),
    )
    oracle_timeout_seconds: float = Field(
        default=60.0, gt=0, validation_alias=AliasChoices("QINGEST_ORACLE_TIMEOUT", "ORACLE_TIMEOUT")
    )
    oracle_max_tokens: int = Field(default=4096, ge=256, validation_alias=AliasChoices("QINGEST_ORACLE_MAX_TOKENS"))

    # Input ceilings for a single oracle call
    max_input_chars: int = Field(default=50_000, ge=1, validation_alias=AliasChoices("QINGEST_MAX_INPUT_CHARS"))
    max_bulk_blocks: int = Field(default=30, ge=1, validation_alias=AliasChoices("QINGEST_MAX_BULK_BLOCKS"))
    max_parallel_sections: int = Field(
        default=4, ge=1, validation_alias=AliasChoices("QINGEST_MAX_PARALLEL_SECTIONS")
    )

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, value):
        """Allow comma-separated or JSON array strings for CORS origins."""

        if isinstance(value, str):
            if value.strip() == "":
                return []
            if value.strip().startswith("["):
                return value
            return [item.strip() for item in value.split(",") if item.strip()]
        return value


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()
