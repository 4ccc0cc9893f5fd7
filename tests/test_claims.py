import os

import pytest
from bson import ObjectId

import services
from errors import InvalidArgument, NotFound


def _claim_form(app_id, **overrides):
    form = {
        "applicationId": str(app_id),
        "policyName": "Secure Life",
        "email": "jane@example.com",
        "reason": "Hospitalisation",
    }
    form.update(overrides)
    return form


def test_claim_snapshots_coverage_at_creation(client, store, make_application):
    app_id = make_application(coverageAmount=500000, termDuration="20 years", policyType="Term")

    resp = client.post("/claims", data=_claim_form(app_id))
    assert resp.status_code == 201
    claim_id = ObjectId(resp.json()["insertedId"])

    claim = store.claims.find_one({"_id": claim_id})
    assert claim["coverageAmount"] == 500000
    assert claim["termDuration"] == "20 years"
    assert claim["status"] == "Pending"
    assert claim["filePath"] is None

    store.applications.update_one({"_id": app_id}, {"$set": {"coverageAmount": 750000}})
    assert store.claims.find_one({"_id": claim_id})["coverageAmount"] == 500000
    assert services.list_claims(store)[0]["coverageAmount"] == 500000


def test_legacy_claims_enriched_on_read_only(store, make_application):
    app_id = make_application(coverageAmount=300000, termDuration="10 years", policyType="Whole")
    legacy_id = store.claims.insert_one({"applicationId": app_id, "email": "jane@example.com"}).inserted_id
    store.claims.insert_one({"applicationId": app_id, "email": "jane@example.com"})

    claims = services.list_claims(store, email="JANE@EXAMPLE.COM")
    assert len(claims) == 2
    for claim in claims:
        assert claim["coverageAmount"] == 300000
        assert claim["termDuration"] == "10 years"
        assert claim["policyType"] == "Whole"
        assert claim["applicationId"] == str(app_id)

    stored = store.claims.find_one({"_id": legacy_id})
    assert "coverageAmount" not in stored


def test_orphaned_legacy_claim_returned_unchanged(store):
    store.claims.insert_one({"applicationId": ObjectId(), "email": "x@example.com", "reason": "r"})
    claims = services.list_claims(store)
    assert len(claims) == 1
    assert "coverageAmount" not in claims[0]


def test_list_claims_filters(client, store, make_application):
    app_a = make_application(coverageAmount=1)
    app_b = make_application(coverageAmount=2)
    services.create_claim(store, str(app_a), "P", "a@example.com", "r")
    services.create_claim(store, str(app_b), "P", "b@example.com", "r")

    resp = client.get("/claims", params={"applicationId": str(app_b)})
    assert [c["email"] for c in resp.json()] == ["b@example.com"]

    # an invalid applicationId is ignored rather than rejected
    resp = client.get("/claims", params={"applicationId": "bogus"})
    assert len(resp.json()) == 2


def test_create_claim_validation(store):
    with pytest.raises(InvalidArgument):
        services.create_claim(store, None, "P", "a@example.com", "r")
    with pytest.raises(InvalidArgument):
        services.create_claim(store, "bogus", "P", "a@example.com", "r")
    with pytest.raises(NotFound):
        services.create_claim(store, str(ObjectId()), "P", "a@example.com", "r")


def test_claim_with_attachment(client, store, settings, make_application):
    app_id = make_application(coverageAmount=1000)
    resp = client.post(
        "/claims",
        data=_claim_form(app_id),
        files={"file": ("report.pdf", b"%PDF-1.4 test", "application/pdf")},
    )
    assert resp.status_code == 201

    claim = store.claims.find_one({"_id": ObjectId(resp.json()["insertedId"])})
    assert claim["filePath"].startswith("/uploads/")
    assert claim["filePath"].endswith(".pdf")
    stored_name = claim["filePath"].rsplit("/", 1)[1]
    assert os.listdir(settings.UPLOAD_DIR) == [stored_name]

    served = client.get(claim["filePath"])
    assert served.status_code == 200
    assert served.content == b"%PDF-1.4 test"


def test_disallowed_attachment_rejected_before_write(client, store, settings, make_application):
    app_id = make_application()
    resp = client.post(
        "/claims",
        data=_claim_form(app_id),
        files={"file": ("run.exe", b"MZ", "application/octet-stream")},
    )
    assert resp.status_code == 400
    assert os.listdir(settings.UPLOAD_DIR) == []
    assert store.claims.count_documents({}) == 0


def test_oversized_attachment_rejected(client, store, settings, make_application):
    settings.MAX_UPLOAD_SIZE = 8
    app_id = make_application()
    resp = client.post(
        "/claims",
        data=_claim_form(app_id),
        files={"file": ("scan.png", b"0123456789abcdef", "image/png")},
    )
    assert resp.status_code == 400
    assert os.listdir(settings.UPLOAD_DIR) == []


def test_attachment_not_written_for_missing_application(client, settings):
    resp = client.post(
        "/claims",
        data=_claim_form(ObjectId()),
        files={"file": ("report.pdf", b"%PDF", "application/pdf")},
    )
    assert resp.status_code == 404
    assert os.listdir(settings.UPLOAD_DIR) == []


def test_claim_status_update(client, store, make_application):
    app_id = make_application()
    claim_id = services.create_claim(store, str(app_id), "P", "a@example.com", "r")

    resp = client.patch(f"/claims/{claim_id}/status", json={"status": "Approved"})
    assert resp.status_code == 200
    assert store.claims.find_one({"_id": ObjectId(claim_id)})["status"] == "Approved"

    assert client.patch(f"/claims/{claim_id}/status", json={"status": "Closed"}).status_code == 400
    assert client.patch(f"/claims/{ObjectId()}/status", json={"status": "Approved"}).status_code == 404
