"""
Application configuration using Pydantic settings.
"""
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Image Acquisition
    image_fetch_timeout: float = Field(
        default=1.0,
        description="Timeout in seconds for a single image download attempt"
    )
    image_fetch_max_attempts: int = Field(
        default=2,
        description="Total download attempts on timeout or transport failure"
    )
    image_fetch_retry_delay: float = Field(
        default=0.1,
        description="Fixed delay in seconds before retrying a failed download"
    )

    # Text Generation Service
    text_generation_base_url: str = Field(
        default="https://api.cloudflare.com/client/v4",
        description="Base URL for the text generation API"
    )
    text_generation_account_id: str = Field(
        default="",
        description="Account identifier used in the text generation endpoint path"
    )
    text_generation_api_token: str = Field(
        default="",
        description="API token for the text generation service"
    )
    text_generation_model: str = Field(
        default="@cf/meta/llama-3.1-8b-instruct",
        description="Model identifier used for diameter extraction"
    )
    text_generation_timeout: float = Field(
        default=15.0,
        description="Upper bound in seconds for a single model invocation"
    )

    # Diameter Validation
    diameter_min_cm: float = Field(
        default=1.0,
        description="Smallest accepted diameter in centimeters"
    )
    diameter_max_cm: float = Field(
        default=1000.0,
        description="Largest accepted diameter in centimeters"
    )

    # Tree Grouping
    tree_grouping_threshold_m: float = Field(
        default=3.0,
        description="Maximum distance in meters from a cluster seed to join its tree"
    )

    # Pipeline
    max_concurrent_images: int = Field(
        default=8,
        description="Maximum number of images processed concurrently per submission"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # CORS Configuration
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins (use specific origins in production)"
    )

    # Rate Limiting
    rate_limit_requests: int = Field(
        default=60,
        description="Maximum requests per minute per client"
    )

    # Application Settings
    app_name: str = Field(
        default="Tree Spotter",
        description="Application name"
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version"
    )
    debug: bool = Field(
        default=False,
        description="Debug mode"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
