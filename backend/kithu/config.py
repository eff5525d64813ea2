"""Application configuration."""
from collections import Counter
from functools import lru_cache
import math

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings

from kithu.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Instances are immutable; build one at startup with ``load_settings()``
    and pass it to whatever needs it.
    """

    # App
    app_name: str = "Kithu"
    debug: bool = False
    cors_origins: list[str] = ["http://localhost:3000"]

    # Database
    database_url: str = "sqlite:///./data/kithu.db"
    database_timeout_seconds: float = 5.0

    # Auth
    secret_key: str
    algorithm: str = "HS256"
    jwt_issuer: str
    jwt_audience: str
    access_token_expire_minutes: int
    refresh_token_expire_days: int
    refresh_cookie_name: str = "kithu_refresh"
    refresh_cookie_path: str = "/api/auth"
    refresh_cookie_samesite: str = "lax"
    refresh_cookie_secure: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        frozen = True

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, value: str) -> str:
        """Fail closed if SECRET_KEY is weak or placeholder quality."""
        if not value:
            raise ValueError("SECRET_KEY must be set.")

        if len(value) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")

        weak_values = {"changeme", "changeme-in-production", "secret", "password", "test"}
        lowered = value.lower()
        if lowered in weak_values or "changeme" in lowered:
            raise ValueError("SECRET_KEY must not be a placeholder value.")

        counts = Counter(value)
        entropy_per_char = -sum((count / len(value)) * math.log2(count / len(value)) for count in counts.values())
        estimated_entropy_bits = entropy_per_char * len(value)
        if estimated_entropy_bits < 100:
            raise ValueError("SECRET_KEY entropy is too low; use a cryptographically random value.")

        return value

    @field_validator("jwt_issuer", "jwt_audience")
    @classmethod
    def validate_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("JWT issuer and audience must not be blank.")
        return value

    @field_validator("access_token_expire_minutes", "refresh_token_expire_days")
    @classmethod
    def validate_positive_ttl(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("Token lifetimes must be positive.")
        return value

    @field_validator("refresh_cookie_samesite")
    @classmethod
    def validate_samesite(cls, value: str) -> str:
        lowered = value.lower()
        if lowered not in {"lax", "strict", "none"}:
            raise ValueError("REFRESH_COOKIE_SAMESITE must be lax, strict or none.")
        return lowered


def load_settings(**overrides) -> Settings:
    """Build settings, turning validation failures into a startup error."""
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance for the process entrypoint."""
    return load_settings()
