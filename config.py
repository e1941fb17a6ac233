from __future__ import annotations

import os


def _env_str(name: str, default: str = "") -> str:
    return str(os.getenv(name, default) or default).strip()


def _env_int(name: str, default: int) -> int:
    try:
        return int(str(os.getenv(name, "") or "").strip() or default)
    except Exception:
        return default


def _env_bool(name: str, default: bool = False) -> bool:
    raw = str(os.getenv(name, "") or "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "y", "on"}


def _env_list(name: str, default: list[str] | None = None) -> list[str]:
    raw = str(os.getenv(name, "") or "").strip()
    if not raw:
        return list(default or [])
    return [x.strip() for x in raw.split(",") if x.strip()]


PROFILES = {"standard", "extended"}


class Config:
    """Runtime settings, read from the environment (and `.env`) at construction."""

    def __init__(self):
        self.ENV = _env_str("APP_ENV", "development").lower()
        self.IS_PRODUCTION = self.ENV in {"production", "prod"}
        self.APP_VERSION = _env_str("APP_VERSION", "1.0.0")
        self.LOG_LEVEL = _env_str("LOG_LEVEL", "INFO").upper()

        self.HOST = _env_str("HOST", "0.0.0.0")
        self.PORT = _env_int("PORT", 3023)

        self.DATABASE_URL = _env_str("DATABASE_URL", "sqlite:///./applications.db")
        self.UPLOAD_DIR = _env_str("UPLOAD_DIR", "./uploads")

        self.ALLOWED_ORIGINS = _env_list(
            "ALLOWED_ORIGINS",
            ["http://localhost:5500", "http://127.0.0.1:5500", "http://localhost:3023"],
        )

        # Uploads
        self.MAX_UPLOAD_MB = _env_int("MAX_UPLOAD_MB", 5)
        self.MAX_UPLOAD_BYTES = self.MAX_UPLOAD_MB * 1024 * 1024
        self.ALLOW_IMAGE_UPLOADS = _env_bool("ALLOW_IMAGE_UPLOADS", False)

        # Intake
        self.APPLICATION_PROFILE = _env_str("APPLICATION_PROFILE", "standard").lower()
        self.REFERENCE_ID_LENGTH = _env_int("REFERENCE_ID_LENGTH", 15)
        self.REFERENCE_ID_MAX_ATTEMPTS = _env_int("REFERENCE_ID_MAX_ATTEMPTS", 5)

        # Listing cache. Per worker process: another worker may serve a listing up to the TTL old.
        self.CACHE_TTL_SECONDS = _env_int("CACHE_TTL_SECONDS", 5)
        self.CACHE_MAX_ITEMS = _env_int("CACHE_MAX_ITEMS", 1000)

    @property
    def MAX_CONTENT_LENGTH(self) -> int:
        # Four intake documents plus form fields.
        return self.MAX_UPLOAD_BYTES * 4 + 1024 * 1024

    def validate(self) -> None:
        if self.APPLICATION_PROFILE not in PROFILES:
            raise RuntimeError(f"Invalid APPLICATION_PROFILE: {self.APPLICATION_PROFILE}")
        if not 15 <= self.REFERENCE_ID_LENGTH <= 50:
            raise RuntimeError("REFERENCE_ID_LENGTH must be between 15 and 50")
        if self.REFERENCE_ID_MAX_ATTEMPTS < 1:
            raise RuntimeError("REFERENCE_ID_MAX_ATTEMPTS must be positive")
        if self.MAX_UPLOAD_MB < 1:
            raise RuntimeError("MAX_UPLOAD_MB must be positive")
        if self.IS_PRODUCTION and not os.getenv("DATABASE_URL"):
            raise RuntimeError("DATABASE_URL is required in production")
