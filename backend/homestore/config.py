# backend/homestore/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/homestore.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///homestore.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Outbound email provider (Resend-compatible JSON API)
    EMAIL_API_KEY = os.environ.get("RESEND_API_KEY")
    EMAIL_API_URL = os.environ.get("EMAIL_API_URL", "https://api.resend.com/emails")
    EMAIL_FROM = os.environ.get("EMAIL_FROM", "HomeStore <noreply@homestore.local>")
    EMAIL_ADMIN_TO = os.environ.get("EMAIL_ADMIN_TO", "sales@homestore.local")
    EMAIL_SEND_ASYNC = _env_flag("EMAIL_SEND_ASYNC", True)
    EMAIL_TIMEOUT_SECONDS = 10.0

    STOREFRONT_BASE_URL = os.environ.get("STOREFRONT_BASE_URL", "http://localhost:5173")
    CURRENCY = os.environ.get("CURRENCY", "MVR")

    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if origin.strip()
    ]

    # Order/transaction number allocation retries on collision
    NUMBER_ALLOCATION_ATTEMPTS = 5
