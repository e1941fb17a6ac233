from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any

from flask import jsonify


class ApiError(Exception):
    code = "BAD_REQUEST"
    http_status = 400

    def __init__(self, code: str | None = None, message: str = "", http_status: int | None = None, details: dict | None = None):
        super().__init__(message)
        if code:
            self.code = code
        if http_status:
            self.http_status = http_status
        self.message = message
        self.details = details or {}


class _DomainError(ApiError):
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(None, message, None, details)


class ValidationError(_DomainError):
    code = "BAD_REQUEST"
    http_status = 400


class UnsupportedMediaError(ValidationError):
    code = "UNSUPPORTED_MEDIA"


class PayloadTooLargeError(ValidationError):
    code = "PAYLOAD_TOO_LARGE"


class ConflictError(_DomainError):
    code = "CONFLICT"
    http_status = 409


class DuplicateReferenceError(ConflictError):
    """The generated reference id collided with an existing application."""


class ReferenceGenerationError(ConflictError):
    pass


class NotFoundError(_DomainError):
    code = "NOT_FOUND"
    http_status = 404


class InvalidStateError(_DomainError):
    code = "INVALID_STATE"
    http_status = 400


class StorageError(_DomainError):
    """Filesystem failure. The client only ever sees a generic message."""

    code = "STORAGE_ERROR"
    http_status = 500

    def __init__(self, message: str = "File storage error", details: dict | None = None):
        super().__init__(message, details)


def ok(data: Any = None, http_status: int = 200):
    return jsonify({"ok": True, "data": data}), http_status


def err(code: str, message: str, http_status: int = 400, details: dict | None = None):
    error = {"code": code, "message": message}
    if details:
        error.update(details)
    return jsonify({"ok": False, "error": error}), http_status


def iso_utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def now_monotonic() -> float:
    return time.monotonic()


def mask_email(email: str) -> str:
    """Mask email: test@example.com -> te***@example.com"""
    e = str(email or "").strip()
    if "@" not in e:
        return "****"
    local, domain = e.rsplit("@", 1)
    if len(local) <= 2:
        return local[:1] + "***@" + domain
    return local[:2] + "***@" + domain
