"""
PetCheck Backend – Configuration Loader
Loads all secrets and settings from .env via environment variables.
No secret may be hard-coded anywhere in the codebase.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env from project root
_env_path = Path(__file__).resolve().parent.parent.parent / ".env"
load_dotenv(dotenv_path=_env_path)


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


class Config:
    """Base configuration – values sourced exclusively from environment."""

    # --- Secrets ---
    FLASK_SECRET_KEY: str = os.environ.get("FLASK_SECRET_KEY", "")
    JWT_SECRET: str = os.environ.get("JWT_SECRET", "")
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "sqlite:///petcheck.db")

    # --- App ---
    APP_ENV: str = os.environ.get("APP_ENV", "development")
    DEBUG: bool = APP_ENV == "development"
    APP_VERSION: str = os.environ.get("APP_VERSION", "1.0.0")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")
    CORS_ORIGINS: list[str] = [
        o.strip() for o in os.environ.get("CORS_ORIGINS", "http://localhost:5173").split(",") if o.strip()
    ]
    ENABLE_SCHEDULER: bool = os.environ.get("ENABLE_SCHEDULER", "false").lower() == "true"

    # --- OpenFDA ---
    OPENFDA_BASE_URL: str = os.environ.get("OPENFDA_BASE_URL", "https://api.fda.gov")
    OPENFDA_API_KEY: str = os.environ.get("OPENFDA_API_KEY", "")
    OPENFDA_TIMEOUT: int = _int_env("OPENFDA_TIMEOUT", 30)
    # Seconds between requests; 40 req/min without a key, 240 with one
    OPENFDA_DELAY: float = _float_env("OPENFDA_DELAY", 0.25 if OPENFDA_API_KEY else 1.5)

    # --- Cache TTLs (seconds) ---
    CACHE_TTL_ADVERSE_EVENTS: int = _int_env("CACHE_TTL_ADVERSE_EVENTS", 3600)
    CACHE_STALE_ADVERSE_EVENTS: int = _int_env("CACHE_STALE_ADVERSE_EVENTS", 86400)
    CACHE_TTL_RECALLS: int = _int_env("CACHE_TTL_RECALLS", 1800)
    CACHE_STALE_RECALLS: int = _int_env("CACHE_STALE_RECALLS", 7200)
    CACHE_TTL_INTERACTIONS: int = _int_env("CACHE_TTL_INTERACTIONS", 86400)

    # --- Rate limiting ---
    RATE_LIMIT_DEFAULT: str = os.environ.get("RATE_LIMIT_DEFAULT", "100/minute")
    RATE_LIMIT_SEARCH: str = os.environ.get("RATE_LIMIT_SEARCH", "30/minute")
    RATE_LIMIT_INTERACTIONS: str = os.environ.get("RATE_LIMIT_INTERACTIONS", "20/minute")

    # --- Validation ---
    @classmethod
    def validate(cls) -> None:
        """Raise on missing critical environment variables."""
        if cls.APP_ENV in ("development", "testing"):
            return
        required = ["FLASK_SECRET_KEY", "JWT_SECRET", "DATABASE_URL"]
        missing = [k for k in required if not getattr(cls, k)]
        if missing:
            raise EnvironmentError(
                f"Missing required environment variables: {', '.join(missing)}. "
                "Ensure a .env file exists with all required values."
            )
