"""
Configuration management for CabbageSEO
Environment-based settings with secure defaults
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import field_validator


DATA_DIR = Path(__file__).parent / "data"


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "cabbageseo"
    APP_ENV: str = "development"  # development, staging, production
    DEBUG: bool = False
    API_VERSION: str = "v1"
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    WORKERS: int = 4

    # Database
    DATABASE_URL: str = "postgresql://localhost:5432/cabbageseo"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10

    # Provider API Keys (absent key = platform unavailable, never a startup failure)
    OPENAI_API_KEY: Optional[str] = None
    GOOGLE_AI_API_KEY: Optional[str] = None
    PERPLEXITY_API_KEY: Optional[str] = None

    # Provider Default Models
    OPENAI_DEFAULT_MODEL: str = "gpt-4o-mini"
    GOOGLE_DEFAULT_MODEL: str = "gemini-2.5-flash"
    PERPLEXITY_DEFAULT_MODEL: str = "sonar"

    # Provider Execution Settings
    PROVIDER_DEFAULT_TEMPERATURE: float = 0.2
    PROVIDER_DEFAULT_MAX_TOKENS: int = 1000
    PROVIDER_REQUEST_TIMEOUT: int = 25  # seconds, single HTTP request
    PROVIDER_MAX_RETRIES: int = 1
    PROVIDER_RETRY_DELAY: float = 1.5  # seconds
    PROVIDER_MAX_CONCURRENCY: int = 5  # in-flight calls per adapter

    # Scan Settings
    SCAN_CALL_TIMEOUT: float = 30.0  # seconds per call incl. retry, from slot acquisition
    SCAN_MAX_QUERIES: int = 20
    PROMPT_TEMPLATE_VERSION: str = "v1"
    COMPETITORS_FILE: str = str(DATA_DIR / "competitors.yaml")

    # Scoring Constants
    MARKET_CROWDING_K: float = 0.35
    MAX_EXPECTED_MENTIONS: int = 10

    # Celery
    CELERY_BROKER_URL: str = "redis://localhost:6379/1"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/2"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    @field_validator("PROVIDER_MAX_RETRIES")
    @classmethod
    def cap_retries(cls, v: int) -> int:
        # Every provider call is billed; never more than one retry
        return max(0, min(v, 1))

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Cached settings loader"""
    return Settings()


# Scoring weights configuration (sum = 100)
VISIBILITY_SCORE_WEIGHTS = {
    "citation_presence": 40,
    "domain_visibility": 25,
    "position_bonus": 12,
    "mention_depth": 10,
    "brand_echo": 8,
    "market_crowding": 5,
}

# Query intents, in the order scans cycle through them
QUERY_INTENTS = [
    "best-of",
    "vs",
    "alternatives",
    "informational",
    "brand",
]

# Tiered summary messages keyed by upper score bound
SCORE_SUMMARY_MESSAGES = [
    (15, "AI doesn't know your brand yet. You need to build your presence."),
    (40, "AI has limited awareness of your brand. There's room to grow."),
    (60, "AI recognizes you but doesn't consistently cite you yet."),
    (101, "AI actively recommends you. Keep building on this momentum."),
]
