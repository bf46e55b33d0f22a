from pydantic import validator
from pydantic_settings import BaseSettings
import os

class Settings(BaseSettings):
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite:///./fpl_challenge.db"
    )
    ADMIN_PASSWORD: str
    SECRET_KEY: str = os.getenv("SECRET_KEY", "your-secret-key")
    DEBUG: bool = os.getenv("DEBUG", "True") == "True"

    # Only honour X-Forwarded-For / X-Real-IP when a trusted proxy sets them
    TRUST_PROXY_HEADERS: bool = False

    # Inbound rate limiting (default limiter, per client)
    RATE_LIMIT_REQUESTS: int = 100
    RATE_LIMIT_WINDOW_SECONDS: int = 900

    # Upstream FPL API
    FPL_API_BASE_URL: str = "https://fantasy.premierleague.com/api"
    FPL_API_TIMEOUT_SECONDS: float = 10.0
    FPL_CACHE_TTL_SECONDS: int = 300
    FPL_HISTORY_CACHE_TTL_SECONDS: int = 120
    FPL_MAX_RETRIES: int = 3
    FPL_OUTBOUND_REQUESTS: int = 10
    FPL_OUTBOUND_WINDOW_SECONDS: int = 60
    FPL_MAX_WORKERS: int = 8

    ADMIN_SESSION_SECONDS: int = 3600

    @validator("ADMIN_PASSWORD")
    def admin_password_length(cls, v):
        if len(v) < 8:
            raise ValueError("ADMIN_PASSWORD must be at least 8 characters")
        return v

    def summary(self) -> dict:
        """Non-secret view of the configuration for health reporting."""
        return {
            "rate_limit_requests": self.RATE_LIMIT_REQUESTS,
            "rate_limit_window_seconds": self.RATE_LIMIT_WINDOW_SECONDS,
            "fpl_timeout_seconds": self.FPL_API_TIMEOUT_SECONDS,
            "fpl_cache_ttl_seconds": self.FPL_CACHE_TTL_SECONDS,
        }

    class Config:
        env_file = ".env"

settings = Settings()
