"""
Application Configuration
"""
import json
from typing import List

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    # MongoDB
    MONGODB_URL: str = "mongodb://localhost:27017"
    MONGODB_DB_NAME: str = "micro_loan"

    # Security
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Stripe Checkout
    STRIPE_SECRET_KEY: str = ""
    CLIENT_URL: str = "http://localhost:5173"
    APPLICATION_FEE_CENTS: int = 1000
    PAYMENT_CURRENCY: str = "usd"

    # Dashboards
    DASHBOARD_RECENT_LIMIT: int = 5
    DASHBOARD_RECENT_LOANS_LIMIT: int = 5
    DASHBOARD_TOP_LOANS_LIMIT: int = 5
    HOME_LOANS_LIMIT: int = 6

    # Application
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # IMPORTANT: Keep this as `str` so pydantic-settings doesn't try to JSON-parse it
    # when loaded from environment variables. We'll parse it below into a `list[str]`.
    # Supported env formats:
    # - Comma-separated:  http://localhost:5173,http://localhost:3000
    # - JSON list:        ["http://localhost:5173", "http://localhost:3000"]
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:5174"


    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()

# Parse CORS origins from string to list
def _parse_cors_origins(value) -> List[str]:
    if value is None:
        return []

    if isinstance(value, list):
        return [str(v).strip() for v in value if str(v).strip()]

    # String: allow JSON list or comma-separated
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return []

        if s.startswith("["):
            try:
                data = json.loads(s)
                if isinstance(data, list):
                    return [str(v).strip() for v in data if str(v).strip()]
            except json.JSONDecodeError:
                # Fall back to comma-splitting
                pass

        return [origin.strip().strip('"').strip("'") for origin in s.split(",") if origin.strip()]

    return []

settings.CORS_ORIGINS = _parse_cors_origins(settings.CORS_ORIGINS)

# The configured client must always be able to call the API
cors_set = set(settings.CORS_ORIGINS)
if settings.CLIENT_URL:
    cors_set.add(settings.CLIENT_URL.rstrip("/"))

if settings.DEBUG:
    for port in ["3000", "5173", "5174"]:
        cors_set.add(f"http://localhost:{port}")

settings.CORS_ORIGINS = sorted(cors_set)
