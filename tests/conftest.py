from __future__ import annotations

import pytest

from cache_layer import cache_clear


@pytest.fixture()
def app_client(tmp_path, monkeypatch):
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'test.db'}")
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    for name in ("APPLICATION_PROFILE", "ALLOW_IMAGE_UPLOADS", "MAX_UPLOAD_MB", "REFERENCE_ID_LENGTH"):
        monkeypatch.delenv(name, raising=False)

    from app import create_app

    cache_clear()
    app = create_app()
    app.config["TESTING"] = True

    with app.test_client() as client:
        yield app, client

    app.extensions["db_engine"].dispose()
