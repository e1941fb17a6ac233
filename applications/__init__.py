"""
Job application intake and lifecycle.

Submission -> Pending -> Approved/Rejected, with an offer letter attachable
to Approved applications and retrievable by (reference_id, email).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from sqlalchemy.orm import Session

from applications.intake import IntakeHandler
from applications.offer_letter import OfferLetterIssuer
from applications.repository import ApplicationRepository
from storage import DocumentStore


@dataclass
class ApplicationServices:
    repository: ApplicationRepository
    store: DocumentStore
    intake: IntakeHandler
    offer_letters: OfferLetterIssuer


def build_services(cfg, session_factory: Callable[[], Session]) -> ApplicationServices:
    repository = ApplicationRepository(session_factory)
    store = DocumentStore(cfg.UPLOAD_DIR)
    intake = IntakeHandler(
        repository,
        store,
        profile=cfg.APPLICATION_PROFILE,
        max_upload_bytes=cfg.MAX_UPLOAD_BYTES,
        allow_images=cfg.ALLOW_IMAGE_UPLOADS,
        reference_length=cfg.REFERENCE_ID_LENGTH,
        max_attempts=cfg.REFERENCE_ID_MAX_ATTEMPTS,
    )
    offer_letters = OfferLetterIssuer(
        repository,
        store,
        max_upload_bytes=cfg.MAX_UPLOAD_BYTES,
        allow_images=cfg.ALLOW_IMAGE_UPLOADS,
    )
    return ApplicationServices(repository=repository, store=store, intake=intake, offer_letters=offer_letters)
