"""
Settings configuration for the Slide Deck Generator.
"""
import os
from typing import List, Optional
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields in .env
        populate_by_name=True,
    )

    # App settings
    APP_ENV: str = Field("development")
    DEBUG: bool = Field(False)
    LOG_LEVEL: str = Field("INFO")

    # API settings
    API_HOST: str = Field("0.0.0.0")
    API_PORT: int = Field(8000, validation_alias=AliasChoices("API_PORT", "PORT"))
    CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"],
        description="Origins allowed to call the HTTP API from a browser"
    )

    # Gemini Developer API (API key mode)
    GOOGLE_API_KEY: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("GOOGLE_API_KEY", "API_KEY"),
    )

    # Vertex AI mode (service account or Application Default Credentials)
    GCP_ENABLED: bool = Field(False)
    GCP_PROJECT_ID: Optional[str] = Field(None)
    GCP_LOCATION: str = Field("us-central1")
    # GCP_SERVICE_ACCOUNT_JSON is required in production (Railway)
    # For local development, use: gcloud auth application-default login
    GCP_SERVICE_ACCOUNT_JSON: Optional[str] = Field(None)

    # Models
    # Note: model names should NOT include a 'models/' prefix
    GEMINI_TEXT_MODEL: str = Field("gemini-2.5-flash")
    GEMINI_CHAT_MODEL: str = Field("gemini-2.5-flash")
    IMAGEN_MODEL: str = Field("imagen-4.0-generate-001")
    IMAGE_ASPECT_RATIO: str = Field("1:1")
    IMAGE_MIME_TYPE: str = Field("image/jpeg")

    # Deck generation
    DECK_TOPIC_COUNT: int = Field(
        5,
        ge=1,
        le=10,
        description="Number of topic slides requested from the planner (cover excluded)"
    )
    DECK_WORKER_POOL_WIDTH: int = Field(
        2,
        ge=1,
        description="Concurrent image renders per deck request"
    )

    # Logging
    LOGFIRE_TOKEN: Optional[str] = Field(None)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment (Railway)."""
        return os.environ.get('RAILWAY_PROJECT_ID') is not None

    @property
    def uses_vertex(self) -> bool:
        """Vertex AI is used only when enabled and no API key is configured."""
        return self.GCP_ENABLED and not self.GOOGLE_API_KEY

    def validate_settings(self) -> None:
        """
        Validate that an upstream credential is configured.

        Raises:
            ConfigurationError: If no credential source is available
        """
        if self.GOOGLE_API_KEY:
            return

        if not self.GCP_ENABLED:
            raise ConfigurationError(
                "No AI credential configured. Please either:\n"
                "  1. Set GOOGLE_API_KEY (or API_KEY) in your .env file\n"
                "  2. Enable Vertex AI (GCP_ENABLED=true) and set GCP_PROJECT_ID"
            )

        if not self.GCP_PROJECT_ID:
            raise ConfigurationError(
                "GCP_ENABLED is true but GCP_PROJECT_ID is not set."
            )

        if self.is_production and not self.GCP_SERVICE_ACCOUNT_JSON:
            raise ConfigurationError(
                "PRODUCTION SECURITY ERROR:\n"
                "GCP_ENABLED is true but GCP_SERVICE_ACCOUNT_JSON is not set.\n"
                "Railway production deployments MUST have GCP_SERVICE_ACCOUNT_JSON configured."
            )


def get_settings() -> Settings:
    """Get settings instance."""
    return Settings()
