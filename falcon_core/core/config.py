"""Application configuration loaded from environment variables.

Settings for the portal API, magic-link tokens, the monitoring service,
and rate limiting. Uses pydantic-settings for validation and .env file support.
"""

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # API
    # 0.0.0.0 binds to all network interfaces (required for Docker containers)
    api_host: str = "0.0.0.0"  # nosec B104
    api_port: int = 8000

    # CORS
    # The portal front-end is served from several preview domains, so the
    # default is any origin. Sessions travel in the request body, not in
    # cookies, so credentials stay disabled.
    allowed_origins: list[str] = ["*"]
    cors_allow_credentials: bool = False

    # Application
    environment: str = "development"
    log_level: str = "INFO"

    # Portal links
    # Magic links point at the front-end portal page: {site_url}/portal?token=...
    site_url: str = "https://falconcore.us"
    magic_link_ttl_minutes: int = 15
    session_ttl_hours: int = 24

    # Returns the raw token and link in the request-link response.
    # Honored only when environment == "development".
    expose_debug_tokens: bool = False

    # Monitoring dashboard access (X-Admin-Key header). Empty disables it.
    admin_api_key: SecretStr = SecretStr("")

    # Monitoring
    monitoring_enabled: bool = False
    monitoring_target_url: str = "https://falconcore.us"
    monitoring_interval_seconds: int = 5 * 60
    monitoring_timeout_seconds: float = 5.0
    monitoring_history_size: int = 1000

    # Rate Limiting
    # Format: "count/period" (e.g., "10/minute", "5/hour")
    rate_limit_magic_link: str = "5/hour"
    rate_limit_verify: str = "10/minute"
    rate_limit_enabled: bool = True  # Disable for testing

    @property
    def debug_tokens_enabled(self) -> bool:
        """Whether request-link responses may carry the raw token."""
        return self.expose_debug_tokens and self.environment == "development"

    @model_validator(mode="after")
    def check_production_security(self) -> "Settings":
        """Validate configuration invariants.

        Checks:
        - CORS wildcard origin is incompatible with credentials (all environments)
        - Token TTLs, monitoring interval, timeout and history size are positive
        - Debug token exposure is never enabled in production
        - Portal links use https in production
        """
        if self.cors_allow_credentials and "*" in self.allowed_origins:
            msg = (
                "ALLOWED_ORIGINS must not contain '*' (wildcard) when "
                "CORS_ALLOW_CREDENTIALS=true. Browsers reject credentialed "
                "requests to wildcard origins."
            )
            raise ValueError(msg)

        positive_fields = {
            "MAGIC_LINK_TTL_MINUTES": self.magic_link_ttl_minutes,
            "SESSION_TTL_HOURS": self.session_ttl_hours,
            "MONITORING_INTERVAL_SECONDS": self.monitoring_interval_seconds,
            "MONITORING_TIMEOUT_SECONDS": self.monitoring_timeout_seconds,
            "MONITORING_HISTORY_SIZE": self.monitoring_history_size,
        }
        for name, value in positive_fields.items():
            if value <= 0:
                msg = f"{name} must be positive. Got: {value}"
                raise ValueError(msg)

        if self.environment == "production":
            if self.expose_debug_tokens:
                msg = (
                    "EXPOSE_DEBUG_TOKENS must be false in production. "
                    "Magic-link tokens must never appear in API responses."
                )
                raise ValueError(msg)

            if not self.site_url.startswith("https://"):
                msg = (
                    "SITE_URL must use https in production. "
                    f"Got: {self.site_url}"
                )
                raise ValueError(msg)

        return self


settings = Settings()
