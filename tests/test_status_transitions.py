from __future__ import annotations

import io

from applications.status import can_transition


PDF = b"%PDF-1.4\n%%EOF\n"


def _create(client, email: str = "a@x.com", mobile: str = "1111111111") -> int:
    data = {
        "full_name": "A",
        "email": email,
        "mobile_number": mobile,
        "department": "Eng",
        "job_role": "Dev",
        "sscDoc": (io.BytesIO(PDF), "ssc.pdf", "application/pdf"),
        "intermediateDoc": (io.BytesIO(PDF), "inter.pdf", "application/pdf"),
        "graduationDoc": (io.BytesIO(PDF), "grad.pdf", "application/pdf"),
    }
    res = client.post("/api/applications", data=data, content_type="multipart/form-data")
    assert res.status_code == 201
    return res.get_json()["data"]["id"]


def _set_status(client, app_id, status):
    return client.put(f"/api/applications/{app_id}", json={"status": status})


def _status_of(client, app_id) -> str:
    return client.get(f"/api/applications/{app_id}").get_json()["data"]["status"]


def test_approve_pending_application(app_client):
    _app, client = app_client
    app_id = _create(client)

    res = _set_status(client, app_id, "Approved")
    assert res.status_code == 200
    body = res.get_json()
    assert body["ok"] is True
    assert body["data"]["status"] == "Approved"
    assert _status_of(client, app_id) == "Approved"


def test_reject_pending_application(app_client):
    _app, client = app_client
    app_id = _create(client)

    assert _set_status(client, app_id, "Rejected").status_code == 200
    assert _status_of(client, app_id) == "Rejected"


def test_unknown_status_value_is_rejected_and_status_unchanged(app_client):
    _app, client = app_client
    app_id = _create(client)

    for value in ("Cancelled", "approved", "", None):
        res = _set_status(client, app_id, value)
        assert res.status_code == 400
        error = res.get_json()["error"]
        assert error["code"] == "BAD_REQUEST"
        assert error["allowed"] == ["Pending", "Approved", "Rejected"]

    assert _status_of(client, app_id) == "Pending"


def test_terminal_states_are_final(app_client):
    _app, client = app_client
    app_id = _create(client)
    assert _set_status(client, app_id, "Approved").status_code == 200

    for target in ("Rejected", "Pending"):
        res = _set_status(client, app_id, target)
        assert res.status_code == 400
        error = res.get_json()["error"]
        assert error["code"] == "INVALID_STATE"
        assert error["from"] == "Approved"

    # Re-applying the current status is accepted as a no-op.
    res = _set_status(client, app_id, "Approved")
    assert res.status_code == 200
    assert _status_of(client, app_id) == "Approved"


def test_status_update_for_unknown_or_invalid_id(app_client):
    _app, client = app_client

    res = _set_status(client, 999, "Approved")
    assert res.status_code == 404
    assert res.get_json()["error"]["code"] == "NOT_FOUND"

    res = _set_status(client, "abc", "Approved")
    assert res.status_code == 400
    assert res.get_json()["error"]["message"] == "Invalid application ID"

    assert client.get("/api/applications/999").status_code == 404


def test_list_filters_by_status_and_reflects_updates(app_client):
    _app, client = app_client
    first = _create(client)
    second = _create(client, email="b@x.com", mobile="2222222222")

    rows = client.get("/api/applications").get_json()["data"]
    assert [r["id"] for r in rows] == [second, first]
    assert set(rows[0]) == {
        "id",
        "reference_id",
        "full_name",
        "email",
        "mobile_number",
        "department",
        "job_role",
        "status",
        "created_at",
        "offer_letter_path",
    }

    # Warm the cache, then mutate; the listing must not serve the stale entry.
    assert len(client.get("/api/applications?status=Approved").get_json()["data"]) == 0
    assert _set_status(client, first, "Approved").status_code == 200

    approved = client.get("/api/applications?status=Approved").get_json()["data"]
    assert [r["id"] for r in approved] == [first]
    pending = client.get("/api/applications?status=Pending").get_json()["data"]
    assert [r["id"] for r in pending] == [second]

    res = client.get("/api/applications?status=Bogus")
    assert res.status_code == 400


def test_transition_table():
    assert can_transition("Pending", "Approved")
    assert can_transition("Pending", "Rejected")
    assert can_transition("Pending", "Pending")
    assert not can_transition("Approved", "Rejected")
    assert not can_transition("Rejected", "Approved")
    assert not can_transition("Rejected", "Pending")
