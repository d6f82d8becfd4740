"""Configuration management for the application."""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = Field(default="sqlite:///./notes.db")
    auto_create_tables: bool = Field(default=True)

    # Redis (only used when otp_backend == "redis")
    redis_url: str = Field(default="redis://localhost:6379/0")

    # One-time codes
    otp_backend: str = Field(default="memory")
    otp_ttl_seconds: int = Field(default=120)
    otp_length: int = Field(default=6)
    phone_country_code: str = Field(default="+91")

    # JWT
    jwt_secret: str = Field(default="change-me-in-production")
    jwt_algorithm: str = Field(default="HS256")
    jwt_expiration_minutes: int = Field(default=60)
    reset_token_expiration_minutes: int = Field(default=5)

    # Email (SMTP)
    smtp_host: str | None = Field(default=None)
    smtp_port: int = Field(default=587)
    smtp_username: str | None = Field(default=None)
    smtp_password: str | None = Field(default=None)
    smtp_from_email: str | None = Field(default=None)
    smtp_from_name: str = Field(default="Notes App")

    # Twilio (SMS)
    twilio_account_sid: str | None = Field(default=None)
    twilio_auth_token: str | None = Field(default=None)
    twilio_phone_number: str | None = Field(default=None)

    # API
    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")
    cors_allow_origins: str = Field(default="*")

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Validate that production has secure settings."""
        if self.environment == "production":
            if self.jwt_secret == "change-me-in-production":  # noqa: S105
                raise ValueError("JWT_SECRET must be changed in production")
        if self.otp_backend not in ("memory", "redis"):
            raise ValueError("OTP_BACKEND must be 'memory' or 'redis'")
        return self

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_allow_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
