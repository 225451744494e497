"""
Application configuration settings loaded from environment variables.
Uses pydantic_settings for validation and type conversion.
"""
from typing import List, Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings

DEV_JWT_SECRET = "fallback_jwt_secret_for_dev_only"
DEV_JWT_REFRESH_SECRET = "fallback_refresh_secret_for_dev_only"


class Settings(BaseSettings):
    """
    Application settings class with environment variable validation.

    Attributes:
        environment: Deployment environment (development, staging, production, testing)
        database_url: SQLAlchemy connection string

        # JWT settings
        jwt_secret: Secret used to sign access tokens
        jwt_refresh_secret: Secret used to sign refresh tokens (must differ in production)
        access_token_expire_minutes: Access token lifetime in minutes
        refresh_token_expire_days: Refresh token lifetime in days
        jwt_issuer: Issuer claim pinned on every token
        jwt_audience: Audience claim pinned on every token

        # Account security
        admin_secret_key: Shared secret required to self-register an admin
        bcrypt_rounds: Cost factor for password hashing
        max_login_attempts: Failed logins before the account is locked
        lock_time_hours: How long a locked account stays locked
        login_rate_limit_attempts: Login requests allowed per IP per window
        login_rate_limit_window_seconds: Length of the login rate limit window

        # Bootstrap admin settings (optional)
        bootstrap_admin_email: Optional admin email for first admin creation
        bootstrap_admin_password: Optional admin password for first admin creation
    """
    environment: str = "development"

    # Database settings
    database_url: str = "sqlite:///./spark_therapy.db"

    # JWT settings
    jwt_secret: str = DEV_JWT_SECRET
    jwt_refresh_secret: str = DEV_JWT_REFRESH_SECRET
    access_token_expire_minutes: int = 24 * 60
    refresh_token_expire_days: int = 7
    jwt_issuer: str = "spark-therapy-api"
    jwt_audience: str = "spark-therapy-client"

    # Account security
    admin_secret_key: Optional[str] = None
    bcrypt_rounds: int = 12
    max_login_attempts: int = 5
    lock_time_hours: int = 2
    login_rate_limit_attempts: int = 5
    login_rate_limit_window_seconds: int = 15 * 60

    # HTTP settings
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:19006",
        "http://localhost:8081",
    ]
    log_level: str = "INFO"

    # Bootstrap admin settings (optional - only used for first admin creation)
    bootstrap_admin_email: Optional[str] = None
    bootstrap_admin_password: Optional[str] = None

    class Config:
        """Configuration for environment variables loading"""
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @model_validator(mode="after")
    def check_production_secrets(self):
        """Refuse to start a production deployment on development secrets."""
        if not self.is_production:
            return self

        errors = []
        if self.jwt_secret == DEV_JWT_SECRET:
            errors.append("JWT_SECRET must be changed from default value in production")
        if self.jwt_refresh_secret == DEV_JWT_REFRESH_SECRET:
            errors.append("JWT_REFRESH_SECRET must be changed from default value in production")
        if self.jwt_secret == self.jwt_refresh_secret:
            errors.append("JWT_SECRET and JWT_REFRESH_SECRET must differ")
        if not self.cors_origins:
            errors.append("CORS_ORIGINS must be configured in production")

        if errors:
            raise ValueError("; ".join(errors))
        return self


# Create settings instance
settings = Settings()
