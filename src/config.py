"""Configuration module for the Drawing Tutorial API.

This module provides centralized configuration management, including directory
paths, API server settings, storage, mail and authentication settings.
All configuration values can be overridden via environment variables.
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Directory Configuration ---

# Root directory of the project
ROOT_DIR = Path(__file__).parent.parent.resolve()

# Data directory name
DATA_DIR_NAME = "data"
DATA_DIR = ROOT_DIR / DATA_DIR_NAME

# Uploaded drawing images (local storage backend)
UPLOADS_DIR = Path(os.getenv("UPLOADS_DIR", str(ROOT_DIR / "uploads")))

# Email templates directory
TEMPLATE_DIR = ROOT_DIR / "src" / "templates"

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "8000"))

# "development" exposes internal error details in 500 responses
ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production").lower()
IS_DEVELOPMENT: bool = ENVIRONMENT == "development"

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# CORS allowed origins (comma-separated list)
_CORS_ALLOWED_ORIGINS_STR: str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000",
)
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

# Where the OAuth callback sends the browser after login
FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:5173").rstrip("/")

# --- Database Configuration ---

DATABASE_URL: str = os.getenv(
    "DATABASE_URL", f"sqlite:///{DATA_DIR}/drawing_tutorial.db"
)

# Upper bound for a single store operation (lock wait / connect)
DB_TIMEOUT_SECONDS: float = float(os.getenv("DB_TIMEOUT_SECONDS", "10"))

# --- Rate Limiting ---

RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
LOGIN_RATE_LIMIT: str = os.getenv("LOGIN_RATE_LIMIT", "5/minute")

# Peers allowed to set X-Forwarded-For (comma-separated addresses)
TRUSTED_PROXIES: List[str] = [
    proxy.strip()
    for proxy in os.getenv("TRUSTED_PROXIES", "").split(",")
    if proxy.strip()
]

# --- Image Storage Configuration ---

# "local" or "cloudinary"
STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "local").lower()
MAX_IMAGE_BYTES: int = int(os.getenv("MAX_IMAGE_BYTES", str(5 * 1024 * 1024)))

CLOUDINARY_CLOUD_NAME: Optional[str] = os.getenv("CLOUDINARY_CLOUD_NAME")
CLOUDINARY_API_KEY: Optional[str] = os.getenv("CLOUDINARY_API_KEY")
CLOUDINARY_API_SECRET: Optional[str] = os.getenv("CLOUDINARY_API_SECRET")
CLOUDINARY_FOLDER: str = os.getenv("CLOUDINARY_FOLDER", "drawings")

# --- Mail Configuration ---

SMTP_HOST: str = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
SMTP_USERNAME: Optional[str] = os.getenv("SMTP_USERNAME")
SMTP_PASSWORD: Optional[str] = os.getenv("SMTP_PASSWORD")
SMTP_USE_TLS: bool = os.getenv("SMTP_USE_TLS", "true").lower() == "true"
SMTP_FROM_EMAIL: str = os.getenv("SMTP_FROM_EMAIL", SMTP_USERNAME or "noreply@localhost")
SMTP_FROM_NAME: str = os.getenv("SMTP_FROM_NAME", "Drawing Tutorial")
SMTP_TIMEOUT_SECONDS: float = float(os.getenv("SMTP_TIMEOUT_SECONDS", "10"))

# Receives new-enrollment notifications
ADMIN_EMAIL: Optional[str] = os.getenv("ADMIN_EMAIL")

# --- Account Configuration ---

SECURITY_QUESTIONS: List[str] = [
    "What is your mother's maiden name?",
    "What was your first pet's name?",
    "What city were you born in?",
    "What is your favorite book?",
    "What was the name of your first school?",
]

DEFAULT_PAGE_SIZE: int = 10
MAX_PAGE_SIZE: int = 100


# --- Authentication Configuration ---


@dataclass(frozen=True)
class AuthSettings:
    """Secrets and token lifetimes used by the authentication layer.

    Built once from the environment by ``get_auth_settings`` and injected
    wherever tokens are signed or credentials hashed.
    """

    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    access_token_expire_days: int = 30
    admin_token_expire_days: int = 1
    oauth_state_expire_minutes: int = 10
    bcrypt_rounds: int = 12
    google_client_id: Optional[str] = None
    google_client_secret: Optional[str] = None
    google_redirect_uri: Optional[str] = None

    @property
    def google_enabled(self) -> bool:
        return bool(
            self.google_client_id
            and self.google_client_secret
            and self.google_redirect_uri
        )


@lru_cache(maxsize=1)
def get_auth_settings() -> AuthSettings:
    """Build the process-wide AuthSettings from environment variables."""
    return AuthSettings(
        jwt_secret_key=os.getenv("JWT_SECRET_KEY", "your-secret-key-change-in-production"),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        access_token_expire_days=int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "30")),
        admin_token_expire_days=int(os.getenv("ADMIN_TOKEN_EXPIRE_DAYS", "1")),
        bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "12")),
        google_client_id=os.getenv("GOOGLE_CLIENT_ID"),
        google_client_secret=os.getenv("GOOGLE_CLIENT_SECRET"),
        google_redirect_uri=os.getenv("GOOGLE_REDIRECT_URI"),
    )
