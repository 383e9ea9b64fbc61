from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = ConfigDict(env_file=".env", case_sensitive=True)

    DATABASE_URL: str
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Redis configuration for caching the active rubric snapshot
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_CACHE_TTL: int = 300  # 5 minutes

    # Reasoning service (Anthropic Messages API via the anthropic SDK)
    ANTHROPIC_API_KEY: str = ""
    ANTHROPIC_MODEL: str = "claude-sonnet-4-20250514"
    ANTHROPIC_BASE_URL: str = "https://api.anthropic.com"
    ANALYSIS_MAX_RETRIES: int = 2
    ANALYSIS_MAX_TOKENS: int = 4096
    ANALYSIS_TEMPERATURE: float = 0.1
    ANALYSIS_TIMEOUT_SECONDS: float = 120.0

    # Script sync workflow
    SYNC_ANALYSIS_INLINE: bool = False
    SYNC_RATE_LIMIT: str = "10/minute"
    RATE_LIMIT_ENABLED: bool = True

    # CORS configuration — comma-separated origins
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:8080"


settings = Settings()
