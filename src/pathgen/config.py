"""Configuration settings for the learning path service."""

from functools import lru_cache
from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "change-me"
INSECURE_ENVIRONMENTS = ("development", "test")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PG_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Application
    app_name: str = "Pathgen Learning Paths"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"
    api_prefix: str = "/api"

    # Database
    # Default to Postgres; tests override via PG_DB_URL
    db_url: str = "postgresql+asyncpg://localhost/pathgen"
    db_pool_size: int = 10
    db_max_overflow: int = 20

    # Auth
    jwt_secret_key: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "pathgen"
    jwt_audience: str = "pathgen-app"
    session_ttl_hours: int = 24
    session_cookie_name: str = "pathgen_session"
    session_cookie_secure: bool = False
    bcrypt_rounds: int = 12

    # Gemini
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_timeout: float = 60.0
    gemini_temperature: float = 0.4
    modules_per_level: int = 5

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8000",
    ]

    @model_validator(mode="after")
    def require_real_jwt_secret(self) -> "Settings":
        """Refuse the placeholder signing key outside development and test."""
        if (
            self.environment not in INSECURE_ENVIRONMENTS
            and self.jwt_secret_key == DEFAULT_JWT_SECRET
        ):
            raise ValueError(
                f"PG_JWT_SECRET_KEY must be set when environment is {self.environment!r}"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
