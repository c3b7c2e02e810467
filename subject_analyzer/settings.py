# ==== APPLICATION SETTINGS CONFIGURATION ==== #

"""
Application settings configuration for the subject analyzer.

Every tunable of the service lives on one pydantic-settings model read from
the environment and an optional `.env` file. The rate limiter, cache and
admission gate receive plain config dataclasses built from it.
"""

import logging
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# ==== MAIN SETTINGS CLASS ==== #


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    
    Covers the HTTP server, the upstream text-generation provider, and the
    admission-control layer (rate limiting, caching, concurrency gate).
    """
    
    model_config = SettingsConfigDict(
        env_file='.env', 
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra='ignore'
    )
    
    # --► CORE APPLICATION SETTINGS
    APP_ENV: str = "development"
    SERVICE_NAME: str = "subject-analyzer"
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = Field(3001, ge=1, le=65535)
    
    # --► CORS CONFIGURATION
    CORS_ORIGIN: str = "*"
    
    # --► AI SERVICE CONFIGURATION
    AI_PROVIDER_BASE_URL: str = "https://api.openai.com/v1"
    AI_MODEL: str = "gpt-3.5-turbo"
    AI_API_KEY: str | None = None
    AI_TEMPERATURE: float = 0.7
    AI_MAX_TOKENS: int = 500
    
    # --► RATE LIMITING
    RATE_LIMIT_REQUESTS: int = Field(10, ge=1)
    RATE_LIMIT_WINDOW_MS: int = Field(60_000, ge=1)
    RATE_LIMIT_SWEEP_INTERVAL_SECONDS: float = 60.0
    
    # --► RESPONSE CACHE
    CACHE_TTL_SECONDS: float = 300.0
    CACHE_MAX_SIZE: int = Field(1000, ge=1)
    CACHE_SWEEP_INTERVAL_SECONDS: float = 60.0
    
    # --► ADMISSION GATE
    GATE_MAX_CONCURRENT: int = Field(5, ge=1)
    GATE_REQUEST_TIMEOUT_SECONDS: float = 30.0
    GATE_RETRY_ATTEMPTS: int = Field(2, ge=0)
    GATE_BACKOFF_MULTIPLIER: float = 1.5
    GATE_BACKOFF_BASE_SECONDS: float = 1.0
    GATE_CAPACITY_RETRY_AFTER_SECONDS: int = 5
    
    # --► PERFORMANCE METRICS
    METRICS_WINDOW_SIZE: int = Field(1000, ge=1)
    
    # --► OBSERVABILITY CONFIGURATION
    OTEL_EXPORTER_OTLP_ENDPOINT: str | None = None
    OTEL_EXPORTER_OTLP_HEADERS: str | None = None
    OTEL_SERVICE_NAME: str | None = None
    OTEL_RESOURCE_ATTRIBUTES: str | None = None

    @property
    def is_production(self) -> bool:
        """Whether the service runs with production defaults."""
        return self.APP_ENV == "production"

    @property
    def effective_log_level(self) -> str:
        """Minimum log level, never below WARNING in production."""
        level = self.LOG_LEVEL.upper()
        numeric = logging.getLevelNamesMapping().get(level, logging.INFO)
        if self.is_production and numeric < logging.WARNING:
            return "WARNING"
        return level

    @property
    def cors_origins(self) -> List[str]:
        """Allowed CORS origins parsed from the comma separated setting."""
        origins = [origin.strip() for origin in self.CORS_ORIGIN.split(",")]
        return [origin for origin in origins if origin] or ["*"]

    @property
    def ai_enabled(self) -> bool:
        """Whether upstream suggestion generation is configured."""
        return bool(self.AI_API_KEY) and self.AI_PROVIDER_BASE_URL != "disabled"


# ==== GLOBAL SETTINGS INSTANCE ==== #


settings = Settings()


def get_settings() -> Settings:
    """
    Get global settings instance.
    
    Returns:
        Settings: Global application settings instance
    """
    return settings
