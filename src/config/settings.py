"""
Centralized settings management using pydantic-settings.

All environment variables and configuration values are defined here.
Use get_settings() to access the singleton settings instance.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


PACKAGE_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Required environment variables:
        - JWT_SECRET: Secret used to sign and verify access tokens

    Optional environment variables:
        - SUPABASE_URL / SUPABASE_SERVICE_KEY: enable the Supabase backend
        - OPENAI_API_KEY: enable the vision analysis requester
        - STORAGE_BACKEND: auto, memory or supabase (default: auto)
        - ENVIRONMENT: Environment name (development, staging, production)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Environment
    # ==========================================================================
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Debug mode")

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in ("development", "dev", "local")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in ("production", "prod")

    # ==========================================================================
    # Server Configuration
    # ==========================================================================
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")
    workers: int = Field(default=4, description="Number of uvicorn workers")

    # CORS Configuration
    cors_origins: List[str] = Field(
        default=[
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
        ],
        description="Allowed CORS origins"
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # ==========================================================================
    # Authentication
    # ==========================================================================
    jwt_secret: str = Field(..., description="Secret for signing access tokens (HS256)")
    jwt_audience: str = Field(default="authenticated", description="Audience claim for access tokens")
    access_token_ttl_seconds: int = Field(
        default=86400,
        description="Access token lifetime in seconds (24 hours)"
    )

    # Federated sign-in (Firebase ID tokens)
    firebase_project_id: str = Field(default="", description="Firebase project ID (token audience)")
    identity_jwks_url: str = Field(
        default="https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com",
        description="JWKS endpoint for federated ID token signatures"
    )

    # ==========================================================================
    # Supabase / Storage Configuration
    # ==========================================================================
    supabase_url: str = Field(default="", description="Supabase project URL")
    supabase_service_key: str = Field(default="", description="Supabase service role key")
    storage_backend: str = Field(
        default="auto",
        description="Persistence backend: 'auto' (supabase when configured), 'memory' or 'supabase'"
    )

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key)

    # ==========================================================================
    # Catalog & Tutorial Data
    # ==========================================================================
    catalog_source: str = Field(
        default="file",
        description="Where the product catalog is loaded from: 'file' or 'supabase'"
    )
    catalog_path: Optional[Path] = Field(default=None, description="Path to the product catalog JSON")
    tutorials_path: Optional[Path] = Field(default=None, description="Path to the tutorial tables JSON")

    @field_validator("catalog_path", "tutorials_path", mode="before")
    @classmethod
    def parse_data_path(cls, v):
        if isinstance(v, str):
            return Path(v) if v.strip() else None
        return v

    @property
    def catalog_file(self) -> Path:
        if self.catalog_path:
            return self.catalog_path
        return PACKAGE_ROOT / "catalog" / "data" / "products.json"

    @property
    def tutorials_file(self) -> Path:
        if self.tutorials_path:
            return self.tutorials_path
        return PACKAGE_ROOT / "tutorials" / "data" / "tutorials.json"

    recommendation_limit: int = Field(
        default=6,
        ge=1,
        description="Maximum number of products returned by the matcher"
    )

    # ==========================================================================
    # OpenAI (vision analysis)
    # ==========================================================================
    openai_api_key: str = Field(default="", description="OpenAI API key for selfie analysis")
    analysis_model: str = Field(default="gpt-4o", description="Vision-capable chat model")
    analysis_timeout_seconds: float = Field(
        default=60.0,
        description="Timeout for the analysis call (seconds)"
    )
    analysis_max_tokens: int = Field(default=4096, description="Max tokens for the analysis reply")
    analysis_temperature: float = Field(default=0.5, description="Sampling temperature for the analysis")
    max_image_mb: float = Field(default=20.0, description="Upper bound for uploaded image size (MB)")

    # ==========================================================================
    # Tutorial liveness checks
    # ==========================================================================
    youtube_oembed_url: str = Field(
        default="https://www.youtube.com/oembed",
        description="oEmbed endpoint used to probe video availability"
    )
    liveness_timeout_seconds: float = Field(
        default=5.0,
        description="Timeout for a single liveness probe (seconds)"
    )
    liveness_max_workers: int = Field(
        default=4,
        description="Thread pool size for concurrent liveness probes"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Uses lru_cache to ensure only one instance is created.
    Settings are loaded from environment variables and .env file.

    Returns:
        Settings: The application settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    # Try to find .env file in project root
    env_file = PACKAGE_ROOT.parent / ".env"
    if env_file.exists():
        os.environ.setdefault("ENV_FILE", str(env_file))

    return Settings(_env_file=env_file if env_file.exists() else None)


def get_settings_for_testing(**overrides) -> Settings:
    """
    Create a settings instance for testing with optional overrides.

    This bypasses the cache to allow different settings in tests.

    Args:
        **overrides: Setting values to override

    Returns:
        Settings: A new settings instance with overrides applied
    """
    test_defaults = {
        "jwt_secret": "test-secret-key-with-enough-length-0123",
        "environment": "testing",
        "debug": True,
        "storage_backend": "memory",
    }
    test_defaults.update(overrides)

    return Settings(**test_defaults)
