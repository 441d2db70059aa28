import pytest

from clubhub.services import payments


@pytest.fixture
def athlete(org, athlete_factory):
    return athlete_factory(org)


def _create(client, headers, **data):
    res = client.post("/api/org/payments", json=data, headers=headers)
    assert res.status_code == 201, res.get_json()
    return res.get_json()["payment"]


def test_status_for():
    assert payments.status_for(1000, 1000) == "paid"
    assert payments.status_for(1000, 1500) == "paid"
    assert payments.status_for(1000, 400) == "partial"
    assert payments.status_for(1000, 0) is None


def test_create_payment_derives_status(client, admin_headers, athlete):
    pending = _create(client, admin_headers, athlete_id=athlete.id, amount=10000)
    assert pending["status"] == "pending"
    assert pending["outstanding"] == 10000

    partial = _create(client, admin_headers, athlete_id=athlete.id, amount=10000, paid_amount=2500)
    assert partial["status"] == "partial"

    explicit = _create(client, admin_headers, athlete_id=athlete.id, amount=10000,
                       paid_amount=2500, status="processing")
    assert explicit["status"] == "processing"


def test_amounts_must_be_integer_minor_units(client, admin_headers, athlete):
    res = client.post("/api/org/payments", json={"athlete_id": athlete.id, "amount": 10.5},
                      headers=admin_headers)
    assert res.status_code == 400
    assert "amount" in res.get_json()["errors"]


def test_record_payment_accumulates(client, admin_headers, athlete):
    payment = _create(client, admin_headers, athlete_id=athlete.id, amount=10000)
    url = f"/api/org/payments/{payment['id']}/record"

    res = client.post(url, json={"amount": 4000, "payment_method": "cash"}, headers=admin_headers)
    data = res.get_json()["payment"]
    assert data["status"] == "partial"
    assert data["paid_amount"] == 4000
    assert data["payment_date"] is not None

    data = client.post(url, json={"amount": 6000}, headers=admin_headers).get_json()["payment"]
    assert data["status"] == "paid"
    assert data["outstanding"] == 0
    assert data["payment_method"] == "cash"


def test_record_payment_rejects_zero(client, admin_headers, athlete):
    payment = _create(client, admin_headers, athlete_id=athlete.id, amount=10000)
    res = client.post(f"/api/org/payments/{payment['id']}/record", json={"amount": 0}, headers=admin_headers)
    assert res.status_code == 400


def test_payment_for_foreign_athlete_is_not_found(client, admin_headers, organization_factory, athlete_factory):
    outsider = athlete_factory(organization_factory())
    res = client.post("/api/org/payments", json={"athlete_id": outsider.id, "amount": 100}, headers=admin_headers)
    assert res.status_code == 404


def test_session_package(client, admin_headers, athlete):
    session = client.post("/api/org/sessions", json={
        "title": "Practice", "start_time": "2030-01-07T18:00:00", "end_time": "2030-01-07T19:00:00",
    }, headers=admin_headers).get_json()["session"]
    payment = _create(client, admin_headers, athlete_id=athlete.id, amount=5000, session_ids=[session["id"], session["id"]])
    assert payment["session_ids"] == [session["id"]]

    res = client.post("/api/org/payments", json={"athlete_id": athlete.id, "amount": 5000, "session_ids": [999]},
                      headers=admin_headers)
    assert res.status_code == 400
    assert res.get_json()["msg"] == "One or more sessions not found"


def test_summary(client, admin_headers, athlete):
    _create(client, admin_headers, athlete_id=athlete.id, amount=10000)
    partial = _create(client, admin_headers, athlete_id=athlete.id, amount=8000)
    client.post(f"/api/org/payments/{partial['id']}/record", json={"amount": 3000}, headers=admin_headers)
    paid = _create(client, admin_headers, athlete_id=athlete.id, amount=2000)
    client.post(f"/api/org/payments/{paid['id']}/record", json={"amount": 2000}, headers=admin_headers)

    summary = client.get("/api/org/payments/summary", headers=admin_headers).get_json()
    assert set(summary) == {"today", "week", "month", "pending", "total_collected"}
    assert summary["pending"] == {"total": 15000, "count": 2}
    assert summary["total_collected"] == {"total": 2000, "count": 1}
    assert summary["today"]["total"] == 2000


def test_delete_requires_admin(client, org, admin_headers, auth_headers, member_factory, athlete):
    payment = _create(client, admin_headers, athlete_id=athlete.id, amount=1000)
    staff_headers = auth_headers(member_factory(org, role="staff"), org)

    assert client.get(f"/api/org/payments/{payment['id']}", headers=staff_headers).status_code == 200
    assert client.delete(f"/api/org/payments/{payment['id']}", headers=staff_headers).status_code == 403
    assert client.delete(f"/api/org/payments/{payment['id']}", headers=admin_headers).status_code == 200


def test_bulk_status(client, admin_headers, athlete):
    ids = [_create(client, admin_headers, athlete_id=athlete.id, amount=1000)["id"] for _ in range(2)]
    res = client.post("/api/org/payments/bulk-status", json={"ids": ids, "status": "cancelled"}, headers=admin_headers)
    assert res.get_json()["count"] == 2
    res = client.post("/api/org/payments/bulk-status", json={"ids": ids, "status": "lost"}, headers=admin_headers)
    assert res.status_code == 400


def test_my_payments(client, org, auth_headers, admin_headers, athlete):
    _create(client, admin_headers, athlete_id=athlete.id, amount=10000, paid_amount=10000)
    _create(client, admin_headers, athlete_id=athlete.id, amount=6000, paid_amount=1000)

    res = client.get("/api/me/payments", headers=auth_headers(athlete.user, org))
    data = res.get_json()
    assert data["total"] == 2
    assert data["totals"] == {"total": 16000, "paid": 10000, "pending": 5000}
