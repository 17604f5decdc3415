"""
Application settings loaded from environment variables.
Uses pydantic-settings for type-safe configuration.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with defaults for development."""

    # Database
    database_url: str = "sqlite:///./taqueria.db"

    # JWT Configuration
    jwt_secret: str = "dev-secret-change-me-in-production"
    jwt_issuer: str = "taqueria-pos"
    jwt_audience: str = "taqueria-pos-users"
    jwt_access_token_expire_minutes: int = 480  # One service shift

    # CORS: comma-separated list of allowed origins (empty uses localhost list)
    allowed_origins: str = ""

    # Server
    rest_api_port: int = 3001

    # Environment
    environment: str = "development"
    debug: bool = True

    # Inventory
    # When enabled, orders decrement stock on creation and restore it on cancellation
    stock_control_enabled: bool = True
    default_product_stock: int = 100
    default_stock_minimum: int = 20

    # Seed admin user, tables and menu when the store is empty
    seed_on_startup: bool = True
    seed_admin_password: str = "admin123"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    def validate_production_secrets(self) -> list[str]:
        """
        Validate that secrets are properly configured for production.
        Returns a list of validation errors. Empty list means all checks pass.
        """
        errors = []

        WEAK_SECRETS = {
            "dev-secret-change-me-in-production",
            "secret",
            "password",
            "changeme",
            "default",
        }

        if self.environment == "production":
            if self.jwt_secret in WEAK_SECRETS or len(self.jwt_secret) < 32:
                errors.append(
                    "JWT_SECRET must be at least 32 characters and not a default value in production"
                )

            if self.debug:
                errors.append("DEBUG must be False in production")

            if self.seed_on_startup and self.seed_admin_password == "admin123":
                errors.append(
                    "SEED_ADMIN_PASSWORD must be changed when seeding in production"
                )

            if not self.allowed_origins:
                errors.append(
                    "ALLOWED_ORIGINS must be set in production (comma-separated list of allowed domains)"
                )

        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience exports
settings = get_settings()

# Direct access to commonly used settings
DATABASE_URL = settings.database_url
JWT_SECRET = settings.jwt_secret
JWT_ISSUER = settings.jwt_issuer
JWT_AUDIENCE = settings.jwt_audience
