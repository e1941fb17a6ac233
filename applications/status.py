from __future__ import annotations

import logging
from typing import Any

from applications.models import STATUS_APPROVED, STATUS_PENDING, STATUS_REJECTED
from applications.repository import ApplicationRepository
from applications.validation import parse_status
from utils import InvalidStateError, iso_utc_now


_log = logging.getLogger("applications")

# Approved and Rejected are terminal.
TRANSITIONS = {
    STATUS_PENDING: {STATUS_APPROVED, STATUS_REJECTED},
    STATUS_APPROVED: set(),
    STATUS_REJECTED: set(),
}


def can_transition(current: str, target: str) -> bool:
    return current == target or target in TRANSITIONS.get(current, set())


def set_status(repository: ApplicationRepository, application_id: int, status: Any) -> dict[str, Any]:
    """
    Move an application to `status`.

    Re-applying the current status is a no-op. Leaving a terminal state
    (or going back to Pending) raises InvalidStateError.
    """
    target = parse_status(status)

    with repository.session() as db:
        row = repository.get(db, application_id)
        current = str(row.status or STATUS_PENDING)

        if not can_transition(current, target):
            raise InvalidStateError(
                f"Cannot change status from {current} to {target}",
                {"from": current, "to": target},
            )
        if current == target:
            return row.to_dict()

        row.status = target
        row.updated_at = iso_utc_now()
        repository.commit(db)

        _log.info("status changed id=%s from=%s to=%s", application_id, current, target)
        return row.to_dict()
