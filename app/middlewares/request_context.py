from __future__ import annotations

import logging
import os
import re

from flask import Flask, g, request

from utils import now_monotonic


_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9\-_.]{8,64}$")


def init_request_context(app: Flask) -> None:
    """
    Per-request id, access log line and baseline security headers.

    An incoming X-Request-ID is reused when it looks sane so ids line up with
    the reverse proxy's logs.
    """
    log = logging.getLogger("api")

    @app.before_request
    def _before():
        incoming = str(request.headers.get("X-Request-ID") or "").strip()
        g.request_id = incoming if _REQUEST_ID_RE.fullmatch(incoming) else os.urandom(8).hex()
        g.start_ts = now_monotonic()

    @app.after_request
    def _after(resp):
        resp.headers["X-Request-ID"] = str(getattr(g, "request_id", "") or "")
        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        resp.headers.setdefault("X-Frame-Options", "DENY")
        resp.headers.setdefault("Referrer-Policy", "no-referrer")
        resp.headers.setdefault("Cache-Control", "no-store")

        start = getattr(g, "start_ts", None)
        latency_ms = int((now_monotonic() - start) * 1000) if start is not None else -1
        log.info(
            "request_id=%s method=%s path=%s status=%s latency_ms=%s",
            getattr(g, "request_id", ""),
            request.method,
            request.path,
            resp.status_code,
            latency_ms,
        )
        return resp
