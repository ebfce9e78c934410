import logging
import os

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

INSECURE_JWT_SECRET_KEY = "change-me"


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if value is None:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DATABASE_URL = os.getenv("DATABASE_URL")

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY") or os.getenv("JWT_SECRET") or INSECURE_JWT_SECRET_KEY
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", str(24 * 60)))

CORS_ALLOW_ORIGINS = _get_list(os.getenv("CORS_ALLOW_ORIGINS"), ["http://localhost:5173"])


def get_database_url() -> str:
    if not DATABASE_URL:
        raise RuntimeError("DATABASE_URL is not set. Add it to the environment or the .env file.")
    return DATABASE_URL


def validate_runtime_config() -> None:
    if JWT_SECRET_KEY != INSECURE_JWT_SECRET_KEY:
        return
    if APP_ENV.lower() == "production":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    logger.warning("JWT_SECRET_KEY is not set; tokens are signed with the public fallback key.")
