"""
Input objects and checks for the application endpoints.

Everything here runs before any file is written or any row is touched.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import Any, Mapping

from dateutil import parser as dt_parser

from applications.models import STATUSES
from utils import PayloadTooLargeError, UnsupportedMediaError, ValidationError


STANDARD_REQUIRED_FIELDS = ("full_name", "email", "mobile_number", "department", "job_role")

# Stricter profile used by deployments that collect the full form up front.
EXTENDED_REQUIRED_FIELDS = STANDARD_REQUIRED_FIELDS + (
    "dob",
    "father_name",
    "permanent_address",
    "expected_salary",
    "employment_type",
    "branch_location",
    "ssc_year",
    "ssc_percentage",
    "intermediate_year",
    "intermediate_percentage",
    "college_name",
    "register_number",
    "graduation_year",
    "graduation_percentage",
    "experience_status",
)

REQUIRED_FIELDS_BY_PROFILE = {
    "standard": STANDARD_REQUIRED_FIELDS,
    "extended": EXTENDED_REQUIRED_FIELDS,
}

TEXT_FIELDS = {
    "full_name": 100,
    "email": 100,
    "mobile_number": 20,
    "department": 50,
    "job_role": 50,
    "father_name": 100,
    "permanent_address": 2000,
    "employment_type": 50,
    "branch_location": 100,
    "ssc_percentage": 10,
    "intermediate_percentage": 10,
    "college_name": 100,
    "register_number": 50,
    "graduation_percentage": 10,
    "additional_certifications": 4000,
    "experience_status": 20,
    "previous_company": 100,
    "previous_job_role": 100,
}
INT_FIELDS = ("expected_salary", "ssc_year", "intermediate_year", "graduation_year", "years_of_experience")
DATE_FIELDS = ("dob", "interview_date", "joining_date")

# Upload field name -> column holding the stored filename.
DOCUMENT_COLUMNS = {
    "sscDoc": "ssc_doc_path",
    "intermediateDoc": "intermediate_doc_path",
    "graduationDoc": "graduation_doc_path",
    "additional_files": "additional_files_path",
}
REQUIRED_DOCUMENTS = ("sscDoc", "intermediateDoc", "graduationDoc")
OFFER_LETTER_FIELD = "offerLetter"

PDF_TYPES = {".pdf": {"application/pdf"}}
IMAGE_TYPES = {
    ".jpg": {"image/jpeg"},
    ".jpeg": {"image/jpeg"},
    ".png": {"image/png"},
}

_MOBILE_RE = re.compile(r"\+?\d{10,15}")
_INT_PREFIX_RE = re.compile(r"\s*[+-]?\d+")

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


@dataclass
class UploadedDocument:
    field: str
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_file_storage(cls, field_name: str, up: Any) -> "UploadedDocument | None":
        """Build from a werkzeug FileStorage; None when the part is absent or empty-named."""
        if up is None:
            return None
        filename = str(getattr(up, "filename", "") or "").strip()
        if not filename:
            return None
        content_type = str(getattr(up, "mimetype", "") or getattr(up, "content_type", "") or "").strip().lower()
        return cls(field=field_name, filename=filename, content_type=content_type, data=up.read() or b"")


@dataclass
class ApplicationSubmission:
    fields: dict[str, str] = field(default_factory=dict)
    documents: dict[str, UploadedDocument] = field(default_factory=dict)

    @classmethod
    def from_form(cls, form: Mapping[str, Any], files: Mapping[str, Any]) -> "ApplicationSubmission":
        known = set(TEXT_FIELDS) | set(INT_FIELDS) | set(DATE_FIELDS)
        fields = {k: str(form.get(k) or "").strip() for k in known if k in form}
        documents = {}
        for name in DOCUMENT_COLUMNS:
            doc = UploadedDocument.from_file_storage(name, files.get(name))
            if doc is not None:
                documents[name] = doc
        return cls(fields=fields, documents=documents)


def _is_blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def check_required_fields(fields: Mapping[str, Any], profile: str = "standard") -> None:
    required = REQUIRED_FIELDS_BY_PROFILE.get(profile, STANDARD_REQUIRED_FIELDS)
    missing = [name for name in required if _is_blank(fields.get(name))]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", {"missing": missing})


def check_required_documents(documents: Mapping[str, UploadedDocument]) -> None:
    missing = [name for name in REQUIRED_DOCUMENTS if documents.get(name) is None]
    if missing:
        raise ValidationError("Missing required documents", {"missingDocuments": missing})


def allowed_types(allow_images: bool = False) -> dict[str, set[str]]:
    types = dict(PDF_TYPES)
    if allow_images:
        types.update(IMAGE_TYPES)
    return types


def check_document(doc: UploadedDocument, *, max_bytes: int, allow_images: bool = False) -> None:
    types = allowed_types(allow_images)
    ext = os.path.splitext(doc.filename.lower())[1]
    label = "PDF, JPEG or PNG" if allow_images else "PDF"
    if ext not in types or doc.content_type not in types[ext]:
        raise UnsupportedMediaError(
            f"Only {label} files are allowed",
            {"field": doc.field, "contentType": doc.content_type},
        )
    if doc.size <= 0:
        raise ValidationError("Empty file", {"field": doc.field})
    if doc.size > max_bytes:
        raise PayloadTooLargeError(
            f"File exceeds the {max_bytes // (1024 * 1024)}MB limit",
            {"field": doc.field, "maxBytes": max_bytes},
        )


def parse_date_yyyy_mm_dd(value: Any) -> str | None:
    s = str(value or "").strip()
    if not s:
        return None
    try:
        return dt_parser.parse(s).date().isoformat()
    except (ValueError, OverflowError):
        raise ValidationError("Invalid date", {"invalid": [s]})


def parse_int(value: Any) -> int | None:
    """Leading-digits parse: "12abc" -> 12, "1e3" -> 1, "abc" -> None. Out of INTEGER range raises."""
    m = _INT_PREFIX_RE.match(str(value or ""))
    if not m:
        return None
    n = int(m.group(0))
    if not INT32_MIN <= n <= INT32_MAX:
        raise ValidationError("Integer out of range", {"invalid": [str(value).strip()]})
    return n


def normalize_email(value: Any) -> str:
    return str(value or "").strip().lower()


def normalize_mobile(value: Any) -> str:
    return str(value or "").strip().replace(" ", "").replace("-", "")


def normalize_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Coerce raw form strings into column values; blanks become None."""
    out: dict[str, Any] = {}
    invalid: list[str] = []

    for name, max_len in TEXT_FIELDS.items():
        raw = str(fields.get(name) or "").strip()
        if name == "email":
            raw = normalize_email(raw)
        elif name == "mobile_number":
            raw = normalize_mobile(raw)
        if raw and len(raw) > max_len:
            invalid.append(name)
        out[name] = raw or None

    for name in INT_FIELDS:
        try:
            out[name] = parse_int(fields.get(name))
        except ValidationError:
            invalid.append(name)

    for name in DATE_FIELDS:
        try:
            out[name] = parse_date_yyyy_mm_dd(fields.get(name))
        except ValidationError:
            invalid.append(name)

    email = out.get("email") or ""
    if email and ("@" not in email or len(email) < 5):
        invalid.append("email")
    mobile = out.get("mobile_number") or ""
    if mobile and not _MOBILE_RE.fullmatch(mobile):
        invalid.append("mobile_number")

    if invalid:
        invalid = sorted(set(invalid))
        raise ValidationError(f"Invalid fields: {', '.join(invalid)}", {"invalid": invalid})
    return out


def parse_status(value: Any) -> str:
    s = str(value or "").strip()
    if s not in STATUSES:
        raise ValidationError("Invalid status", {"allowed": list(STATUSES)})
    return s


def parse_application_id(value: Any) -> int:
    s = str(value or "").strip()
    if not s.isdigit():
        raise ValidationError("Invalid application ID")
    return int(s)
