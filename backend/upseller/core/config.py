"""
Application configuration using pydantic-settings.

WHAT: Centralized config from environment variables
WHY: Type-safe, validated config with sensible defaults
HOW: Pydantic BaseSettings reads from .env and environment
"""

from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import Literal
from pathlib import Path


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App metadata
    APP_NAME: str = "Upseller"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # LLM Provider Selection ("none" forces rule-based negotiation)
    LLM_PROVIDER: Literal["none", "openai", "lm_studio"] = "openai"

    # OpenAI Configuration
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_MODEL: str = "gpt-4o-mini"

    # LM Studio Configuration
    LM_STUDIO_BASE_URL: str = "http://localhost:1234/v1"
    LM_STUDIO_DEFAULT_MODEL: str = "qwen/qwen3-1.7b"

    # LLM Request Configuration
    LLM_TIMEOUT_SECONDS: float = 20.0  # Hard ceiling for one negotiation call
    LLM_MAX_RETRIES: int = 1  # 1 = single attempt
    LLM_RETRY_DELAY: float = 1.0  # seconds, base for exponential backoff
    LLM_TEMPERATURE: float = 0.7
    LLM_MAX_TOKENS: int = 500

    # Calendar Configuration
    CALENDAR_PROVIDER: Literal["local", "google"] = "local"
    CALENDAR_TIMEOUT_SECONDS: float = 10.0
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_REDIRECT_URI: str = "http://localhost:8000/api/v1/oauth/callback"
    GOOGLE_CALENDAR_ID: str = "primary"
    GOOGLE_CALENDAR_BASE_URL: str = "https://www.googleapis.com/calendar/v3"
    GOOGLE_TOKEN_FILE: str = "./data/google_token.json"
    TIMEZONE: str = "America/Denver"
    ICS_DIR: str = "./data/ics"

    # Scheduling
    SLOT_DURATION_MINUTES: int = 45
    SLOT_GRID_MINUTES: int = 30
    SLOT_LEAD_MINUTES: int = 30
    SLOT_WINDOW_COUNT: int = 2

    # Negotiation
    CONVERSATION_HISTORY_LIMIT: int = 10
    DEFAULT_MODE: Literal["mock", "shadow"] = "mock"
    DEFAULT_SELL_TIMEFRAME: Literal["one_day", "one_week", "one_month"] = "one_week"
    DEFAULT_TARGET_PRICE: float = 100.0  # Used only when neither request nor listing gives prices
    DEFAULT_FLOOR_PRICE: float = 80.0
    DEFAULT_MEET_SPOTS: str = "Provo Police Department Lobby,Provo Towne Centre Main Entrance,BYU Wilkinson Student Center"

    # CORS - accepts comma-separated string or list
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:3001"

    @field_validator("CORS_ORIGINS", "DEFAULT_MEET_SPOTS", mode="before")
    @classmethod
    def parse_comma_separated(cls, v):
        """Accept comma-separated strings or lists."""
        if isinstance(v, list):
            return ",".join(v)
        return v

    def get_cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    def get_default_meet_spots(self) -> list[str]:
        """Get fallback meet spots as a list."""
        return [spot.strip() for spot in self.DEFAULT_MEET_SPOTS.split(",") if spot.strip()]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "./data/logs/app.log"

    class Config:
        # Look for .env in project root first, then backend/.env
        env_file = [
            str(Path(__file__).parent.parent.parent.parent / ".env"),
            str(Path(__file__).parent.parent.parent / ".env"),
        ]
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


# Singleton instance
settings = Settings()
