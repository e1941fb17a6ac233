from __future__ import annotations

import re
import secrets
import string


REFERENCE_ALPHABET = string.ascii_uppercase + string.digits
DEFAULT_REFERENCE_LENGTH = 15
MAX_REFERENCE_LENGTH = 50  # job_applications.reference_id column width

_REFERENCE_RE = re.compile(rf"[A-Z0-9]{{{DEFAULT_REFERENCE_LENGTH},{MAX_REFERENCE_LENGTH}}}")


def generate_reference_id(length: int = DEFAULT_REFERENCE_LENGTH) -> str:
    """Random applicant-facing id, e.g. "7QK2ZD0M4XW1B9A". Uniqueness is the caller's job."""
    n = max(DEFAULT_REFERENCE_LENGTH, min(MAX_REFERENCE_LENGTH, int(length or DEFAULT_REFERENCE_LENGTH)))
    return "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(n))


def looks_like_reference_id(value: str) -> bool:
    return bool(_REFERENCE_RE.fullmatch(str(value or "")))
