"""
Persistence for job applications.

Sessions are opened per operation through `session()`; callers that need a
read-check-write sequence keep one session open for the whole sequence and
finish with `commit()`, which maps constraint and version failures onto the
API error taxonomy.
"""
from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from applications.models import STATUS_APPROVED, STATUS_PENDING, SUMMARY_FIELDS, JobApplication
from cache_layer import cache_get_or_set, cache_invalidate_prefix, make_cache_key
from utils import ConflictError, DuplicateReferenceError, NotFoundError, iso_utc_now


_log = logging.getLogger("applications")

_CACHE_NS = "APPLICATIONS"
_UNIQUE_COLUMN_RE = re.compile(r"job_applications[._](reference_id|mobile_number|email)")

_CONFLICT_MESSAGES = {
    "email": "Email already exists",
    "mobile_number": "Mobile number already exists",
}


def translate_integrity_error(e: IntegrityError) -> ConflictError:
    msg = str(getattr(e, "orig", None) or e)
    m = _UNIQUE_COLUMN_RE.search(msg)
    column = m.group(1) if m else ""
    if column == "reference_id":
        return DuplicateReferenceError("Reference ID already exists", {"field": column})
    if column in _CONFLICT_MESSAGES:
        return ConflictError(_CONFLICT_MESSAGES[column], {"field": column})
    return ConflictError("Application conflicts with an existing record")


class ApplicationRepository:
    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def commit(self, db: Session) -> None:
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            conflict = translate_integrity_error(e)
            _log.info("write rejected code=%s field=%s", conflict.code, conflict.details.get("field", ""))
            raise conflict from e
        except StaleDataError as e:
            db.rollback()
            _log.warning("stale write rejected error=%s", e)
            raise ConflictError("Application was modified concurrently, retry the request") from e
        cache_invalidate_prefix(_CACHE_NS)

    def get(self, db: Session, application_id: int) -> JobApplication:
        row = db.execute(select(JobApplication).where(JobApplication.id == application_id)).scalar_one_or_none()
        if row is None:
            raise NotFoundError("Application not found")
        return row

    def create(self, values: dict[str, Any]) -> JobApplication:
        """Insert a new Pending application. Raises ConflictError on any unique violation."""
        now = iso_utc_now()
        with self.session() as db:
            row = JobApplication(**values)
            row.status = STATUS_PENDING
            row.created_at = now
            row.updated_at = now
            db.add(row)
            self.commit(db)
            return row

    def fetch(self, application_id: int) -> dict[str, Any]:
        with self.session() as db:
            return self.get(db, application_id).to_dict()

    def list_summaries(self, status: str | None = None) -> list[dict[str, Any]]:
        key = make_cache_key(_CACHE_NS, params={"status": status or ""})
        return cache_get_or_set(key, lambda: self._list_summaries(status))

    def _list_summaries(self, status: str | None) -> list[dict[str, Any]]:
        cols = [getattr(JobApplication, name) for name in SUMMARY_FIELDS]
        q = select(*cols).order_by(JobApplication.created_at.desc(), JobApplication.id.desc())
        if status:
            q = q.where(JobApplication.status == status)
        with self.session() as db:
            return [dict(r._mapping) for r in db.execute(q).all()]

    def find_approved(self, db: Session, reference_id: str, email: str) -> JobApplication | None:
        return db.execute(
            select(JobApplication).where(
                JobApplication.reference_id == reference_id,
                JobApplication.email == email,
                JobApplication.status == STATUS_APPROVED,
            )
        ).scalar_one_or_none()
