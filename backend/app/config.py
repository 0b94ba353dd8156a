"""
backend/app/config.py

Purpose:
    Central settings loading for the survivor backend (fixtures provider,
    caching windows, local timezone, logging).

Dependencies:
    - pydantic-settings
    - pathlib
"""

from pathlib import Path

from pydantic_settings import BaseSettings

# Prefer backend/.env, fallback to project-root .env.
_BACKEND_ENV_FILE = Path(__file__).resolve().parent.parent / ".env"
_ROOT_ENV_FILE = Path(__file__).resolve().parent.parent.parent / ".env"


class Settings(BaseSettings):
    # API-Football (RapidAPI). Empty key disables outbound fetches.
    FOOTBALL_API_URL: str = "https://api-football-v1.p.rapidapi.com/v3"
    FOOTBALL_API_KEY: str = ""

    FIXTURES_CACHE_TTL_SECONDS: int = 1800  # 30 minutes
    ROUNDS_CACHE_TTL_SECONDS: int = 3600  # 1 hour

    API_FOOTBALL_TIMEOUT_SECONDS: float = 15.0
    API_FOOTBALL_MAX_RETRIES: int = 3
    API_FOOTBALL_BASE_DELAY_SECONDS: float = 2.0
    API_FOOTBALL_RATE_LIMIT_RPM: int = 30

    # Liga MX by default; round deadlines are judged in this timezone.
    DEFAULT_LEAGUE_ID: str = "262"
    LOCAL_TIMEZONE: str = "America/Mexico_City"

    BACKEND_CORS_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    model_config = {
        "env_file": (str(_BACKEND_ENV_FILE), str(_ROOT_ENV_FILE)),
        "extra": "ignore",
    }


settings = Settings()
