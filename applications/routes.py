"""
Application API routes.

Applicant-facing:
- POST /api/applications                  - submit form + documents (multipart)
- GET  /api/offer-letter                  - locate offer letter by reference_id + email
- GET  /api/documents/<filename>          - download a stored document

HR-facing:
- GET  /api/applications[?status=]        - list
- GET  /api/applications/<id>             - details
- PUT  /api/applications/<id>             - set status
- POST /api/applications/<id>/offer-letter - attach offer letter (multipart)
"""
from __future__ import annotations

import logging
import mimetypes
import re
from typing import Any, Callable

from flask import Blueprint, current_app, g, request, send_file
from sqlalchemy.exc import DBAPIError

from applications import ApplicationServices
from applications.status import set_status
from applications.validation import (
    OFFER_LETTER_FIELD,
    ApplicationSubmission,
    UploadedDocument,
    parse_application_id,
    parse_status,
)
from utils import ApiError, err, ok


applications_bp = Blueprint("applications", __name__)

_log = logging.getLogger("api")


def _services() -> ApplicationServices:
    return current_app.extensions["applications"]


def _internal_message(label: str, e: Exception) -> str:
    cfg = current_app.config["CFG"]
    request_id = str(getattr(g, "request_id", "") or "")
    if cfg.IS_PRODUCTION:
        return f"{label} (requestId: {request_id})"
    detail = re.sub(r"\s+", " ", str(getattr(e, "orig", None) or e) or type(e).__name__).strip()
    if len(detail) > 300:
        detail = detail[:300] + "..."
    return f"{label}: {detail} (requestId: {request_id})"


def _respond(fn: Callable[[], Any], *, http_status: int = 200):
    action = request.endpoint or ""
    try:
        return ok(fn(), http_status)
    except ApiError as e:
        if e.http_status >= 500:
            _log.error("request_id=%s action=%s code=%s", getattr(g, "request_id", ""), action, e.code)
        else:
            _log.info("request_id=%s action=%s rejected code=%s message=%s", getattr(g, "request_id", ""), action, e.code, e.message)
        return err(e.code, e.message, e.http_status, e.details)
    except DBAPIError as e:
        _log.exception("request_id=%s action=%s", getattr(g, "request_id", ""), action)
        return err("INTERNAL", _internal_message("Database error", e), 500)
    except Exception as e:
        _log.exception("request_id=%s action=%s", getattr(g, "request_id", ""), action)
        return err("INTERNAL", _internal_message("Unexpected error", e), 500)


@applications_bp.post("/api/applications")
def submit_application():
    def _run():
        submission = ApplicationSubmission.from_form(request.form, request.files)
        return _services().intake.submit(submission)

    return _respond(_run, http_status=201)


@applications_bp.get("/api/applications")
def list_applications():
    def _run():
        raw = str(request.args.get("status") or "").strip()
        status = parse_status(raw) if raw else None
        return _services().repository.list_summaries(status)

    return _respond(_run)


@applications_bp.get("/api/applications/<application_id>")
def get_application(application_id: str):
    return _respond(lambda: _services().repository.fetch(parse_application_id(application_id)))


@applications_bp.put("/api/applications/<application_id>")
def update_application_status(application_id: str):
    def _run():
        app_id = parse_application_id(application_id)
        body = request.get_json(silent=True) or request.form
        if not hasattr(body, "get"):
            body = {}
        return set_status(_services().repository, app_id, body.get("status"))

    return _respond(_run)


@applications_bp.post("/api/applications/<application_id>/offer-letter")
def upload_offer_letter(application_id: str):
    def _run():
        app_id = parse_application_id(application_id)
        upload = UploadedDocument.from_file_storage(OFFER_LETTER_FIELD, request.files.get(OFFER_LETTER_FIELD))
        return _services().offer_letters.issue(app_id, upload)

    return _respond(_run)


@applications_bp.get("/api/offer-letter")
def locate_offer_letter():
    return _respond(
        lambda: _services().offer_letters.locate(request.args.get("reference_id"), request.args.get("email"))
    )


@applications_bp.get("/api/documents/<filename>")
def download_document(filename: str):
    store = _services().store
    try:
        path = store.resolve(filename)
    except ApiError as e:
        _log.info("request_id=%s document not found file=%s", getattr(g, "request_id", ""), filename)
        return err(e.code, e.message, e.http_status)

    mime = mimetypes.guess_type(filename)[0] or "application/octet-stream"
    resp = send_file(path, mimetype=mime, as_attachment=True, download_name=filename)
    resp.headers["X-Content-Type-Options"] = "nosniff"
    return resp
