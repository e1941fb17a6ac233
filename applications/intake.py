"""
Application intake.

Submission protocol:
1. validate fields and uploads (no side effects),
2. stage every document in the store,
3. insert the row, regenerating the reference id on collision,
4. on any failure after step 2, delete everything staged for this submission.

The store never keeps a file that no application points at.
"""
from __future__ import annotations

import logging
from typing import Any, Callable

from applications.reference import DEFAULT_REFERENCE_LENGTH, generate_reference_id
from applications.repository import ApplicationRepository
from applications.validation import (
    DOCUMENT_COLUMNS,
    ApplicationSubmission,
    check_document,
    check_required_documents,
    check_required_fields,
    normalize_fields,
)
from storage import DocumentStore
from utils import DuplicateReferenceError, ReferenceGenerationError, mask_email


_log = logging.getLogger("applications")


class IntakeHandler:
    def __init__(
        self,
        repository: ApplicationRepository,
        store: DocumentStore,
        *,
        profile: str = "standard",
        max_upload_bytes: int = 5 * 1024 * 1024,
        allow_images: bool = False,
        reference_length: int = DEFAULT_REFERENCE_LENGTH,
        max_attempts: int = 5,
        reference_factory: Callable[[int], str] = generate_reference_id,
    ):
        self.repository = repository
        self.store = store
        self.profile = profile
        self.max_upload_bytes = max_upload_bytes
        self.allow_images = allow_images
        self.reference_length = reference_length
        self.max_attempts = max(1, int(max_attempts))
        self.reference_factory = reference_factory

    def validate(self, submission: ApplicationSubmission) -> dict[str, Any]:
        check_required_fields(submission.fields, self.profile)
        check_required_documents(submission.documents)
        for doc in submission.documents.values():
            check_document(doc, max_bytes=self.max_upload_bytes, allow_images=self.allow_images)
        return normalize_fields(submission.fields)

    def submit(self, submission: ApplicationSubmission) -> dict[str, Any]:
        values = self.validate(submission)

        staged = self._stage(submission)
        try:
            row = self._insert(values, staged)
        except Exception:
            self.store.discard(staged.values())
            raise

        _log.info(
            "application created id=%s reference_id=%s email=%s documents=%s",
            row.id,
            row.reference_id,
            mask_email(row.email),
            len(staged),
        )
        return {"id": row.id, "reference_id": row.reference_id}

    def _stage(self, submission: ApplicationSubmission) -> dict[str, str]:
        """Write uploads to the store. Returns {column: stored filename}."""
        staged: dict[str, str] = {}
        try:
            for field_name, doc in submission.documents.items():
                column = DOCUMENT_COLUMNS[field_name]
                staged[column] = self.store.save(field_name, doc.filename, doc.data)
        except Exception:
            self.store.discard(staged.values())
            raise
        return staged

    def _insert(self, values: dict[str, Any], staged: dict[str, str]):
        for attempt in range(1, self.max_attempts + 1):
            reference_id = self.reference_factory(self.reference_length)
            try:
                return self.repository.create({**values, **staged, "reference_id": reference_id})
            except DuplicateReferenceError:
                _log.warning("reference id collision attempt=%s/%s", attempt, self.max_attempts)
        raise ReferenceGenerationError("Could not generate a unique reference ID, please retry")
