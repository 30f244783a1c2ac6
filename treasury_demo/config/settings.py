"""Application settings using Pydantic for environment-based configuration."""
from functools import lru_cache
from typing import Dict, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from treasury_demo.core.models import FinancialProduct


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Stripe Configuration
    stripe_secret_key: str = Field(..., description="Default platform secret key (sk_test_...)")
    stripe_platform_secret_keys: Dict[str, str] = Field(
        default_factory=dict,
        description="Secret key per platform identifier (JSON object)",
    )
    stripe_api_version: str = Field(default="2023-10-16", description="Stripe API version")
    stripe_max_network_retries: int = Field(
        default=0, description="Network retries performed by the Stripe SDK"
    )

    # Demo behaviour
    demo_mode: bool = Field(default=False, description="Fabricate KYC data and allow onboarding skip")
    default_financial_product: FinancialProduct = Field(
        default=FinancialProduct.EMBEDDED_FINANCE,
        description="Product used when the session does not carry one",
    )
    app_base_url: str = Field(
        default="http://localhost:3000",
        description="Public URL of the front end, used for onboarding redirects",
    )

    # Session store
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis connection URL")
    session_cookie_name: str = Field(default="session_id", description="Session cookie name")
    session_key_prefix: str = Field(default="session:", description="Redis key prefix for sessions")
    session_ttl: int = Field(default=86400, description="Session TTL (seconds)")

    # Application Configuration
    app_name: str = Field(default="treasury-demo", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/production)")
    log_level: str = Field(default="INFO", description="Logging level")
    debug: bool = Field(default=False, description="Debug mode")

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    allowed_origins: str = Field(
        default="http://localhost:3000",
        description="CORS allowed origins (comma-separated)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("stripe_secret_key")
    @classmethod
    def validate_stripe_key(cls, v: str) -> str:
        """Validate that Stripe secret key starts with sk_test_ or sk_live_."""
        if not v.startswith("sk_test_") and not v.startswith("sk_live_"):
            raise ValueError(
                "Invalid Stripe secret key format. Must start with 'sk_test_' or 'sk_live_'"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v.upper()

    def get_allowed_origins_list(self) -> List[str]:
        """Parse allowed origins from comma-separated string."""
        return [origin.strip() for origin in self.allowed_origins.split(",")]

    def secret_key_for(self, platform: str) -> str:
        """Secret key of the given platform, falling back to the default key."""
        return self.stripe_platform_secret_keys.get(platform, self.stripe_secret_key)

    @property
    def is_test_mode(self) -> bool:
        """Check if using Stripe test mode."""
        return self.stripe_secret_key.startswith("sk_test_")


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
