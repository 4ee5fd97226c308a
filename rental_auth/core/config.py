# rental_auth/core/config.py
from loguru import logger
from pathlib import Path
from typing import List, Optional

from pydantic import EmailStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent.parent
ENV_FILE_PATH = BASE_DIR / ".env"


class Settings(BaseSettings):

    # Core
    PROJECT_NAME: str = "Rental Auth API"
    API_PREFIX: str = "/api/v1"
    DATABASE_URL: str
    SECRET_KEY: str
    # Pinned: the decoder only ever accepts this algorithm
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Refresh Token (opaque, stored on the user row)
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Password hashing
    BCRYPT_ROUNDS: int = 12

    # Users
    ALLOW_SELF_REGISTRATION: bool = False
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # Seed admin (rental_auth.db.initial_data)
    FIRST_ADMIN_EMAIL: Optional[EmailStr] = None
    FIRST_ADMIN_PASSWORD: Optional[str] = None

    # Internal API key for /mgmt
    INTERNAL_API_KEY: str = ""

    # HTTP
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://localhost:8000",
    ]
    DEFAULT_RATE_LIMIT: str = "60/minute"
    LOGIN_RATE_LIMIT: str = "10/minute"
    RATE_LIMIT_ENABLED: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=ENV_FILE_PATH,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("SECRET_KEY")
    @classmethod
    def validate_secret_key(cls, value: str) -> str:
        if len(value) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return value

    @field_validator("ALGORITHM")
    @classmethod
    def validate_algorithm(cls, value: str) -> str:
        # Only symmetric HMAC algorithms make sense with a single shared secret
        if value not in {"HS256", "HS384", "HS512"}:
            raise ValueError("ALGORITHM must be one of HS256, HS384, HS512.")
        return value


try:
    settings = Settings()
except Exception as e:
    logger.error(f"FATAL: Erro ao carregar 'settings' a partir do .env em {ENV_FILE_PATH}: {e}")
    raise e
