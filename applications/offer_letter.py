"""
Offer letters.

Issue: only for Approved applications; replaces any previous letter.
Concurrent issues for the same application are serialized by the row's
version column: the loser gets a ConflictError and its file is removed.

Locate: applicant-side lookup by (reference_id, email). This pair is a weak
shared secret, not authentication. Anyone holding both can fetch the letter.
"""
from __future__ import annotations

import logging
from typing import Any

from applications.models import STATUS_APPROVED
from applications.reference import looks_like_reference_id
from applications.repository import ApplicationRepository
from applications.validation import OFFER_LETTER_FIELD, UploadedDocument, check_document, normalize_email
from storage import DocumentStore
from utils import InvalidStateError, NotFoundError, StorageError, ValidationError, iso_utc_now


_log = logging.getLogger("applications")


class OfferLetterIssuer:
    def __init__(
        self,
        repository: ApplicationRepository,
        store: DocumentStore,
        *,
        max_upload_bytes: int = 5 * 1024 * 1024,
        allow_images: bool = False,
    ):
        self.repository = repository
        self.store = store
        self.max_upload_bytes = max_upload_bytes
        self.allow_images = allow_images

    def issue(self, application_id: int, upload: UploadedDocument | None) -> dict[str, Any]:
        if upload is None:
            raise ValidationError("No file uploaded", {"missingDocuments": [OFFER_LETTER_FIELD]})
        check_document(upload, max_bytes=self.max_upload_bytes, allow_images=self.allow_images)

        with self.repository.session() as db:
            row = self.repository.get(db, application_id)
            if row.status != STATUS_APPROVED:
                raise InvalidStateError(
                    "Application must be approved to upload an offer letter",
                    {"status": row.status},
                )

            previous = row.offer_letter_path
            filename = self.store.save(OFFER_LETTER_FIELD, upload.filename, upload.data)
            try:
                row.offer_letter_path = filename
                row.updated_at = iso_utc_now()
                self.repository.commit(db)
            except Exception:
                self.store.discard([filename])
                raise

        _log.info("offer letter issued id=%s file=%s replaced=%s", application_id, filename, previous or "")
        if previous and previous != filename:
            self._remove_superseded(application_id, previous)
        return {"id": application_id, "offer_letter_path": filename}

    def _remove_superseded(self, application_id: int, filename: str) -> None:
        # The pointer is already committed; a leftover file is only wasted space.
        try:
            self.store.delete(filename)
        except StorageError:
            _log.warning("could not delete superseded offer letter id=%s file=%s", application_id, filename)

    def locate(self, reference_id: Any, email: Any) -> dict[str, Any]:
        ref = str(reference_id or "").strip()
        em = normalize_email(email)
        missing = [name for name, v in (("reference_id", ref), ("email", em)) if not v]
        if missing:
            raise ValidationError("Reference ID and email are required", {"missing": missing})
        if not looks_like_reference_id(ref):
            raise NotFoundError("Application not found or not approved", {"reason": "APPLICATION"})

        with self.repository.session() as db:
            row = self.repository.find_approved(db, ref, em)
            pointer = row.offer_letter_path if row is not None else None

        if row is None:
            raise NotFoundError("Application not found or not approved", {"reason": "APPLICATION"})
        if not pointer:
            raise NotFoundError("Offer letter not found", {"reason": "OFFER_LETTER"})
        if not self.store.exists(pointer):
            _log.error("offer letter missing from store reference_id=%s file=%s", ref, pointer)
            raise NotFoundError("Offer letter file not found on server", {"reason": "FILE"})
        return {"offer_letter_path": pointer}
