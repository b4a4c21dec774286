"""Application settings powered by Pydantic BaseSettings."""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ScoringProvider(str, Enum):
    """Which language model backs the relevance scoring oracle."""

    AUTO = "auto"
    OPENAI = "openai"
    GEMINI = "gemini"


class AppSettings(BaseSettings):
    """Centralized environment configuration for external services."""

    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, env_file=".env", env_file_encoding="utf-8"
    )

    openai_api_key: str | None = Field(default=None, validation_alias="OPENAI_API_KEY")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1", validation_alias="OPENAI_BASE_URL"
    )
    gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
    supabase_url: str | None = Field(default=None, validation_alias="SUPABASE_URL")
    supabase_key: str | None = Field(default=None, validation_alias="SUPABASE_KEY")
    scoring_provider: ScoringProvider = Field(
        default=ScoringProvider.AUTO, validation_alias="SCORING_PROVIDER"
    )

    def missing_for_pipeline(self) -> list[str]:
        """List the environment variables required to run the pipeline.

        The scoring oracle is optional (its absence triggers the fallback
        ranking), so only the embedding oracle and store are required.

        Returns:
            Names of unset required variables.
        """
        required = {
            "OPENAI_API_KEY": self.openai_api_key,
            "SUPABASE_URL": self.supabase_url,
            "SUPABASE_KEY": self.supabase_key,
        }
        return [name for name, value in required.items() if not value]


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
