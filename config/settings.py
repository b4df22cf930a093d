"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
The OCR credential may also be set at runtime through the session API.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # OCR SERVICE
    # ===================
    anthropic_api_key: Optional[str] = Field(
        None,
        description="Initial OCR credential (can be replaced per session)"
    )
    ocr_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Vision model used for text extraction"
    )
    ocr_max_tokens: int = Field(
        default=1024,
        ge=64,
        le=8192,
        description="Maximum tokens for the OCR response"
    )

    # ===================
    # MAPPING TABLE
    # ===================
    mapping_col_game_name: str = Field(
        default="Name",
        description="Header of the required game name column"
    )
    mapping_col_code: str = Field(
        default="IMS Game Code",
        description="Header of the required game code column"
    )
    mapping_col_provider: str = Field(
        default="Game Provider",
        description="Header of the optional provider column"
    )

    # ===================
    # OUTPUT NAMING
    # ===================
    output_extension: str = Field(
        default=".webp",
        pattern=r"^\.[A-Za-z0-9]+$",
        description="Extension appended to renamed files"
    )
    max_filename_length: int = Field(
        default=50,
        ge=8,
        le=255,
        description="Maximum length of a sanitized name (without extension)"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def ocr_configured(self) -> bool:
        """Check if an OCR credential is present in the environment."""
        return bool(self.anthropic_api_key and self.anthropic_api_key.strip())


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
