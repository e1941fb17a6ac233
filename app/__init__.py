from __future__ import annotations

import logging

from dotenv import load_dotenv
from flask import Flask
from flask_cors import CORS

from app.middlewares.error_handler import init_error_handlers
from app.middlewares.request_context import init_request_context
from app.routes.core import core_bp
from applications import build_services
from applications.routes import applications_bp
from cache_layer import configure_cache
from config import Config
from db import init_engine, make_session_factory
from schema import ensure_schema


def _configure_logging(level: str):
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def create_app(cfg: Config | None = None) -> Flask:
    load_dotenv()

    if cfg is None:
        cfg = Config()
    cfg.validate()
    _configure_logging(cfg.LOG_LEVEL)

    engine = init_engine(cfg.DATABASE_URL)
    ensure_schema(engine)

    configure_cache(cfg.CACHE_TTL_SECONDS, cfg.CACHE_MAX_ITEMS)

    app = Flask(__name__)
    app.config["CFG"] = cfg
    app.config["MAX_CONTENT_LENGTH"] = cfg.MAX_CONTENT_LENGTH
    app.json.sort_keys = False

    CORS(
        app,
        origins=cfg.ALLOWED_ORIGINS,
        supports_credentials=False,
        allow_headers=["Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
        methods=["GET", "POST", "PUT", "OPTIONS"],
        max_age=3600,
    )

    init_request_context(app)
    init_error_handlers(app)

    app.extensions["db_engine"] = engine
    app.extensions["applications"] = build_services(cfg, make_session_factory(engine))

    app.register_blueprint(core_bp)
    app.register_blueprint(applications_bp)

    logging.getLogger("api").info(
        "app ready env=%s profile=%s upload_dir=%s",
        cfg.ENV,
        cfg.APPLICATION_PROFILE,
        app.extensions["applications"].store.root,
    )
    return app
