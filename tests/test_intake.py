from __future__ import annotations

import io
import re

import pytest

from applications.intake import IntakeHandler
from applications.validation import ApplicationSubmission, UploadedDocument, parse_int
from helpers import stored_files
from storage import DocumentStore
from utils import StorageError, ValidationError


PDF = b"%PDF-1.4\n1 0 obj <<>> endobj\ntrailer <<>>\n%%EOF\n"


def _fields(**overrides) -> dict:
    data = {
        "full_name": "A",
        "email": "a@x.com",
        "mobile_number": "1111111111",
        "department": "Eng",
        "job_role": "Dev",
    }
    data.update(overrides)
    return data


def _pdf(name: str, body: bytes = PDF):
    return (io.BytesIO(body), name, "application/pdf")


def _documents(**extra) -> dict:
    docs = {
        "sscDoc": _pdf("ssc.pdf"),
        "intermediateDoc": _pdf("inter.pdf"),
        "graduationDoc": _pdf("grad.pdf"),
    }
    docs.update(extra)
    return docs


def _submit(client, fields: dict, documents: dict | None = None):
    payload = dict(fields)
    payload.update(_documents() if documents is None else documents)
    return client.post("/api/applications", data=payload, content_type="multipart/form-data")


def _stored_files(app) -> list[str]:
    return stored_files(app.extensions["applications"].store)


def test_submit_application_creates_pending_record_with_documents(app_client):
    app, client = app_client

    res = _submit(client, _fields())
    assert res.status_code == 201
    body = res.get_json()
    assert body["ok"] is True
    reference_id = body["data"]["reference_id"]
    assert re.fullmatch(r"[A-Z0-9]{15}", reference_id)

    res = client.get(f"/api/applications/{body['data']['id']}")
    assert res.status_code == 200
    record = res.get_json()["data"]
    assert record["reference_id"] == reference_id
    assert record["status"] == "Pending"
    assert record["offer_letter_path"] is None
    assert record["additional_files_path"] is None
    assert record["created_at"]
    assert record["updated_at"]

    files = _stored_files(app)
    assert len(files) == 3
    for column, prefix in (
        ("ssc_doc_path", "sscDoc"),
        ("intermediate_doc_path", "intermediateDoc"),
        ("graduation_doc_path", "graduationDoc"),
    ):
        assert record[column] in files
        assert re.fullmatch(rf"{prefix}-\d+-\d+\.pdf", record[column])


def test_submit_with_additional_files_and_profile_fields(app_client):
    app, client = app_client

    fields = _fields(
        dob="1999-02-03",
        expected_salary="45000",
        ssc_year="2014",
        ssc_percentage="88.5",
        years_of_experience="not a number",
        joining_date="March 5, 2025",
    )
    res = _submit(client, fields, _documents(additional_files=_pdf("certs.pdf")))
    assert res.status_code == 201
    app_id = res.get_json()["data"]["id"]

    record = client.get(f"/api/applications/{app_id}").get_json()["data"]
    assert record["dob"] == "1999-02-03"
    assert record["expected_salary"] == 45000
    assert record["ssc_year"] == 2014
    assert record["ssc_percentage"] == "88.5"
    assert record["years_of_experience"] is None
    assert record["joining_date"] == "2025-03-05"
    assert record["additional_files_path"].startswith("additional_files-")
    assert len(_stored_files(app)) == 4


def test_missing_fields_are_all_reported_and_nothing_is_written(app_client):
    app, client = app_client

    res = _submit(client, {"email": "a@x.com", "full_name": "  "})
    assert res.status_code == 400
    error = res.get_json()["error"]
    assert error["code"] == "BAD_REQUEST"
    assert error["missing"] == ["full_name", "mobile_number", "department", "job_role"]

    assert _stored_files(app) == []
    assert client.get("/api/applications").get_json()["data"] == []


def test_missing_documents_are_all_reported(app_client):
    app, client = app_client

    res = _submit(client, _fields(), {"sscDoc": _pdf("ssc.pdf")})
    assert res.status_code == 400
    error = res.get_json()["error"]
    assert error["missingDocuments"] == ["intermediateDoc", "graduationDoc"]
    assert _stored_files(app) == []


def test_non_pdf_document_is_rejected(app_client):
    app, client = app_client

    docs = _documents(graduationDoc=(io.BytesIO(b"hello"), "grad.txt", "text/plain"))
    res = _submit(client, _fields(), docs)
    assert res.status_code == 400
    error = res.get_json()["error"]
    assert error["code"] == "UNSUPPORTED_MEDIA"
    assert error["field"] == "graduationDoc"
    assert _stored_files(app) == []


def test_pdf_extension_with_wrong_content_type_is_rejected(app_client):
    app, client = app_client

    docs = _documents(sscDoc=(io.BytesIO(PDF), "ssc.pdf", "image/png"))
    res = _submit(client, _fields(), docs)
    assert res.status_code == 400
    assert res.get_json()["error"]["code"] == "UNSUPPORTED_MEDIA"
    assert _stored_files(app) == []


def test_oversized_document_is_rejected(app_client):
    app, client = app_client

    big = b"%PDF" + b"0" * (5 * 1024 * 1024)
    res = _submit(client, _fields(), _documents(intermediateDoc=_pdf("inter.pdf", big)))
    assert res.status_code == 400
    error = res.get_json()["error"]
    assert error["code"] == "PAYLOAD_TOO_LARGE"
    assert error["field"] == "intermediateDoc"
    assert _stored_files(app) == []


def test_invalid_email_and_date_are_rejected(app_client):
    app, client = app_client

    res = _submit(client, _fields(email="nope", dob="not-a-date"))
    assert res.status_code == 400
    assert res.get_json()["error"]["invalid"] == ["dob", "email"]

    # Well-formed but impossible calendar dates.
    res = _submit(client, _fields(dob="2024-02-30", joining_date="2024-13-45"))
    assert res.status_code == 400
    assert res.get_json()["error"]["invalid"] == ["dob", "joining_date"]
    assert _stored_files(app) == []


def test_duplicate_email_conflicts_and_leaves_no_orphaned_files(app_client):
    app, client = app_client

    assert _submit(client, _fields()).status_code == 201
    before = _stored_files(app)
    assert len(before) == 3

    res = _submit(client, _fields(mobile_number="2222222222"))
    assert res.status_code == 409
    error = res.get_json()["error"]
    assert error["code"] == "CONFLICT"
    assert error["message"] == "Email already exists"

    assert _stored_files(app) == before
    assert len(client.get("/api/applications").get_json()["data"]) == 1


def test_duplicate_email_is_case_insensitive(app_client):
    app, client = app_client

    assert _submit(client, _fields()).status_code == 201
    res = _submit(client, _fields(email=" A@X.COM ", mobile_number="2222222222"))
    assert res.status_code == 409
    assert len(_stored_files(app)) == 3


def test_duplicate_mobile_conflicts(app_client):
    app, client = app_client

    assert _submit(client, _fields()).status_code == 201
    res = _submit(client, _fields(email="b@x.com", mobile_number="111-111-1111"))
    assert res.status_code == 409
    assert res.get_json()["error"]["message"] == "Mobile number already exists"
    assert len(_stored_files(app)) == 3


def test_extended_profile_requires_full_form(app_client):
    app, _client = app_client
    services = app.extensions["applications"]
    handler = IntakeHandler(services.repository, services.store, profile="extended")

    docs = {
        name: UploadedDocument(field=name, filename=f"{name}.pdf", content_type="application/pdf", data=PDF)
        for name in ("sscDoc", "intermediateDoc", "graduationDoc")
    }
    with pytest.raises(ValidationError) as exc:
        handler.submit(ApplicationSubmission(fields=_fields(), documents=docs))

    missing = exc.value.details["missing"]
    assert "dob" in missing
    assert "experience_status" in missing
    assert "full_name" not in missing
    assert stored_files(services.store) == []


def test_images_accepted_only_when_enabled(app_client):
    app, _client = app_client
    services = app.extensions["applications"]

    docs = {
        "sscDoc": UploadedDocument(field="sscDoc", filename="ssc.png", content_type="image/png", data=b"\x89PNG"),
        "intermediateDoc": UploadedDocument(field="intermediateDoc", filename="i.pdf", content_type="application/pdf", data=PDF),
        "graduationDoc": UploadedDocument(field="graduationDoc", filename="g.jpg", content_type="image/jpeg", data=b"\xff\xd8"),
    }
    strict = IntakeHandler(services.repository, services.store)
    with pytest.raises(ValidationError):
        strict.submit(ApplicationSubmission(fields=_fields(), documents=docs))

    relaxed = IntakeHandler(services.repository, services.store, allow_images=True)
    out = relaxed.submit(ApplicationSubmission(fields=_fields(), documents=docs))
    assert out["reference_id"]
    names = stored_files(services.store)
    assert any(n.startswith("sscDoc-") and n.endswith(".png") for n in names)
    assert any(n.startswith("graduationDoc-") and n.endswith(".jpg") for n in names)


def test_integer_fields_take_leading_digits():
    assert parse_int("12abc") == 12
    assert parse_int("1e3") == 1
    assert parse_int(" -7 ") == -7
    assert parse_int("45000") == 45000
    assert parse_int("abc") is None
    assert parse_int("") is None
    assert parse_int(None) is None
    assert parse_int(str(2**31 - 1)) == 2**31 - 1

    with pytest.raises(ValidationError):
        parse_int(str(2**31))


def test_out_of_range_integer_is_reported_as_invalid(app_client):
    app, client = app_client

    res = _submit(client, _fields(years_of_experience="99999999999", expected_salary="1e30"))
    assert res.status_code == 400
    error = res.get_json()["error"]
    assert error["code"] == "BAD_REQUEST"
    assert error["invalid"] == ["years_of_experience"]
    assert _stored_files(app) == []

    res = _submit(client, _fields(expected_salary="1e30"))
    assert res.status_code == 201
    record = client.get(f"/api/applications/{res.get_json()['data']['id']}").get_json()["data"]
    assert record["expected_salary"] == 1


def test_cleanup_failure_does_not_mask_conflict(app_client, monkeypatch):
    app, client = app_client
    assert _submit(client, _fields()).status_code == 201

    def failing_delete(self, filename):
        raise StorageError()

    monkeypatch.setattr(DocumentStore, "delete", failing_delete)

    res = _submit(client, _fields(mobile_number="2222222222"))
    assert res.status_code == 409
    error = res.get_json()["error"]
    assert error["code"] == "CONFLICT"
    assert error["message"] == "Email already exists"
    # The staged files of the rejected submission could not be removed.
    assert len(_stored_files(app)) == 6
