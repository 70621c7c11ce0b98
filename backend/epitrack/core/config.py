"""Application configuration.

Environment variables override all defaults.
SECRET_KEY must be set in production - startup fails fast if it is missing.
"""

import os
import warnings
from pathlib import Path
from typing import List


# Load .env for local development (safe no-op when the file is absent)
from dotenv import load_dotenv

_BACKEND_DIR = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=_BACKEND_DIR / ".env", override=False)


def _split_csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


class Settings:
    PROJECT_NAME: str = os.getenv("PROJECT_NAME", "EPI Track API")
    API_V1_STR: str = "/v1"

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = ENVIRONMENT == "development"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./epitrack.db")

    # JWT
    SECRET_KEY: str = os.getenv("SECRET_KEY", "")
    if not SECRET_KEY:
        if ENVIRONMENT == "production":
            raise ValueError(
                "SECRET_KEY must be set in production environment. "
                "Generate with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
            )
        warnings.warn(
            "SECRET_KEY not set in environment. Using development default. "
            "Set SECRET_KEY in .env before deploying.",
            RuntimeWarning,
        )
        SECRET_KEY = "development-only-weak-default-change-in-production"

    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

    # Header carrying the tenant API key
    API_KEY_HEADER: str = "x-api-token"

    # CORS / hosts
    CORS_ORIGINS: List[str] = _split_csv(
        os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
    )
    ALLOWED_HOSTS: List[str] = _split_csv(os.getenv("ALLOWED_HOSTS", "*"))

    # Rate limiting
    RATE_LIMIT_REQUESTS: int = int(os.getenv("RATE_LIMIT_REQUESTS", "100"))
    RATE_LIMIT_WINDOW_SECONDS: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))
    LOGIN_RATE_LIMIT_REQUESTS: int = int(os.getenv("LOGIN_RATE_LIMIT_REQUESTS", "5"))

    # Bootstrap tenant created on first start
    DEFAULT_COMPANY_NAME: str = os.getenv("DEFAULT_COMPANY_NAME", "Empresa Padrão")
    DEFAULT_ADMIN_EMAIL: str = os.getenv("DEFAULT_ADMIN_EMAIL", "admin@epitrack.com")

    # External CA (certificado de aprovação) registry
    CA_API_URL: str = os.getenv("CA_API_URL", "")
    CA_API_KEY: str = os.getenv("CA_API_KEY", "")
    CA_API_TOKEN: str = os.getenv("CA_API_TOKEN", "")
    CA_API_TIMEOUT_SECONDS: float = float(os.getenv("CA_API_TIMEOUT_SECONDS", "10"))

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


settings = Settings()
