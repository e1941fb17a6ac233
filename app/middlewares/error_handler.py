from __future__ import annotations

import logging

from flask import Flask, g, request

from utils import err


def init_error_handlers(app: Flask) -> None:
    log = logging.getLogger("api")

    @app.errorhandler(404)
    def not_found(_e):
        return err("NOT_FOUND", f"Unknown endpoint: {request.path}", http_status=404)

    @app.errorhandler(405)
    def method_not_allowed(_e):
        return err("BAD_REQUEST", f"Method {request.method} not allowed for {request.path}", http_status=405)

    @app.errorhandler(413)
    def request_too_large(_e):
        cfg = app.config["CFG"]
        return err(
            "PAYLOAD_TOO_LARGE",
            f"Request body too large (max {cfg.MAX_UPLOAD_MB}MB per file)",
            http_status=413,
        )

    @app.errorhandler(500)
    def internal_error(e):
        log.error("request_id=%s unhandled error path=%s error=%s", getattr(g, "request_id", ""), request.path, e)
        request_id = str(getattr(g, "request_id", "") or "")
        return err("INTERNAL", f"Unexpected error (requestId: {request_id})", http_status=500)
