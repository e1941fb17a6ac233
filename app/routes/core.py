from __future__ import annotations

import os

from flask import Blueprint, current_app, jsonify

from cache_layer import cache_stats
from db import get_pool_stats, ping_db
from utils import iso_utc_now, ok

core_bp = Blueprint("core", __name__)


@core_bp.get("/health")
def health():
    """Lightweight health check (process alive)."""
    cfg = current_app.config["CFG"]
    return ok({
        "status": "ok",
        "time": iso_utc_now(),
        "version": cfg.APP_VERSION,
        "cache": cache_stats(),
    })


@core_bp.get("/ready")
def ready():
    """
    Readiness check for load balancers.
    Checks database connectivity and that the upload directory is writable.
    """
    engine = current_app.extensions.get("db_engine")
    db_ok = ping_db(engine)
    store = current_app.extensions["applications"].store
    storage_ok = os.path.isdir(store.root) and os.access(store.root, os.W_OK)

    cfg = current_app.config["CFG"]
    all_ok = db_ok and storage_ok
    status = 200 if all_ok else 503

    return (
        jsonify({
            "status": "ok" if all_ok else "degraded",
            "time": iso_utc_now(),
            "version": cfg.APP_VERSION,
            "checks": {
                "db": "ok" if db_ok else "error",
                "storage": "ok" if storage_ok else "error",
            },
            "db_pool": get_pool_stats(engine),
        }),
        status,
    )
