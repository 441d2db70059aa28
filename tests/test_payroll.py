from datetime import datetime, timedelta

import pytest

from clubhub.errors import BadRequest
from clubhub.extensions import db
from clubhub.models import Expense
from clubhub.services import payroll, sessions

PERIOD = {"period_start": "2030-01-01T00:00:00", "period_end": "2030-01-31T23:59:59"}


def _completed_session(org, owner, coach, start):
    session = sessions.create_session(org.id, owner, {
        "title": "Practice",
        "start_time": start,
        "end_time": start + timedelta(hours=1),
        "coach_ids": [coach.id],
    })
    session.status = "completed"
    db.session.commit()
    return session


def test_per_session_payroll_counts_completed_sessions(client, org, owner, admin_headers, coach_factory):
    coach = coach_factory(org)
    _completed_session(org, owner, coach, datetime(2030, 1, 5, 18))
    _completed_session(org, owner, coach, datetime(2030, 1, 12, 18))
    sessions.create_session(org.id, owner, {
        "title": "Not done yet",
        "start_time": datetime(2030, 1, 19, 18),
        "end_time": datetime(2030, 1, 19, 19),
        "coach_ids": [coach.id],
    })

    res = client.post("/api/org/payroll", json=dict(
        PERIOD, staff_type="coach", coach_id=coach.id, coach_payment_type="per_session",
        rate_per_session=150000, bonuses=20000, deductions=5000,
    ), headers=admin_headers)
    assert res.status_code == 201, res.get_json()
    data = res.get_json()["payroll"]
    assert data["session_count"] == 2
    assert data["base_salary"] == 300000
    assert data["total_amount"] == 315000
    assert data["staff_name"] == coach.name
    assert data["status"] == "pending"


def test_per_session_requires_rate(client, org, admin_headers, coach_factory):
    coach = coach_factory(org)
    res = client.post("/api/org/payroll", json=dict(
        PERIOD, staff_type="coach", coach_id=coach.id, coach_payment_type="per_session",
    ), headers=admin_headers)
    assert res.status_code == 400
    assert res.get_json()["msg"] == "Rate per session is required for per_session payment type"


def test_coach_payroll_requires_coach_id(client, admin_headers):
    res = client.post("/api/org/payroll", json=dict(PERIOD, staff_type="coach"), headers=admin_headers)
    assert res.status_code == 400
    assert "coach_id" in res.get_json()["errors"]


def test_period_must_end_after_start(org, owner):
    with pytest.raises(BadRequest, match="Period end must be after period start"):
        payroll.create_payroll(org.id, owner, {
            "staff_type": "external",
            "external_name": "Referee",
            "period_start": datetime(2030, 1, 31),
            "period_end": datetime(2030, 1, 1),
            "base_salary": 1000,
        })


def _external(org, owner, amount=500000):
    return payroll.create_payroll(org.id, owner, {
        "staff_type": "external",
        "external_name": "Referee Co.",
        "period_start": datetime(2030, 1, 1),
        "period_end": datetime(2030, 1, 31),
        "base_salary": amount,
        "concept": "Referees for January",
    })


def test_approve_then_pay_creates_personnel_expense(client, org, owner, admin_headers):
    item = _external(org, owner)

    res = client.post(f"/api/org/payroll/{item.id}/pay", json={"payment_method": "cash"}, headers=admin_headers)
    assert res.status_code == 400
    assert res.get_json()["msg"] == "Can only mark approved payrolls as paid"

    assert client.post(f"/api/org/payroll/{item.id}/approve", headers=admin_headers).status_code == 200
    res = client.post(f"/api/org/payroll/{item.id}/pay", json={"payment_method": "bank_transfer"},
                      headers=admin_headers)
    assert res.status_code == 200
    data = res.get_json()["payroll"]
    assert data["status"] == "paid"

    expense = db.session.get(Expense, data["expense_id"])
    assert expense.amount == 500000
    assert expense.category.type == "personnel"
    assert expense.description == "Referees for January"
    assert expense.vendor == "Referee Co."


def test_pay_without_expense(org, owner):
    item = _external(org, owner)
    payroll.approve_payroll(org.id, item.id, owner)
    paid = payroll.mark_as_paid(org.id, item.id, owner, {"payment_method": "cash", "create_expense": False})
    assert paid.expense_id is None
    assert Expense.query.count() == 0


def test_pay_requires_method(client, org, owner, admin_headers):
    item = _external(org, owner)
    payroll.approve_payroll(org.id, item.id, owner)
    res = client.post(f"/api/org/payroll/{item.id}/pay", json={}, headers=admin_headers)
    assert res.status_code == 400
    assert "payment_method" in res.get_json()["errors"]


def test_status_transitions(org, owner):
    item = _external(org, owner)
    payroll.approve_payroll(org.id, item.id, owner)

    with pytest.raises(BadRequest, match="Can only update pending payrolls"):
        payroll.update_payroll(org.id, item.id, {"bonuses": 1000})
    with pytest.raises(BadRequest, match="Can only approve pending payrolls"):
        payroll.approve_payroll(org.id, item.id, owner)
    with pytest.raises(BadRequest, match="Can only delete pending or cancelled payrolls"):
        payroll.delete_payroll(org.id, item.id)

    payroll.mark_as_paid(org.id, item.id, owner, {"payment_method": "cash"})
    with pytest.raises(BadRequest, match="Cannot cancel paid payrolls"):
        payroll.cancel_payroll(org.id, item.id)


def test_update_recomputes_total(org, owner):
    item = _external(org, owner, amount=100000)
    updated = payroll.update_payroll(org.id, item.id, {"bonuses": 25000, "deductions": 5000})
    assert updated.total_amount == 120000


def test_bulk_approve_only_touches_pending(client, org, owner, admin_headers):
    pending = _external(org, owner)
    cancelled = _external(org, owner)
    payroll.cancel_payroll(org.id, cancelled.id)

    res = client.post("/api/org/payroll/bulk-approve", json={"ids": [pending.id, cancelled.id]},
                      headers=admin_headers)
    assert res.get_json()["count"] == 1
    assert payroll.get_payroll(org.id, cancelled.id).status == "cancelled"


def test_bulk_delete_skips_approved(org, owner):
    approved = _external(org, owner)
    payroll.approve_payroll(org.id, approved.id, owner)
    cancelled = _external(org, owner)
    payroll.cancel_payroll(org.id, cancelled.id)

    assert payroll.bulk_delete(org.id, [approved.id, cancelled.id]) == 1
    assert payroll.get_payroll(org.id, approved.id).status == "approved"


def test_payroll_is_admin_only(client, org, auth_headers, member_factory):
    staff = member_factory(org, role="staff")
    assert client.get("/api/org/payroll", headers=auth_headers(staff, org)).status_code == 403


def test_coach_sessions_endpoint(client, org, owner, admin_headers, coach_factory):
    coach = coach_factory(org)
    _completed_session(org, owner, coach, datetime(2030, 1, 5, 18))
    res = client.get(
        f"/api/org/payroll/coach-sessions?coach_id={coach.id}"
        "&from=2030-01-01T00:00:00&to=2030-01-31T00:00:00",
        headers=admin_headers,
    )
    assert res.status_code == 200
    assert res.get_json()["completed_sessions"] == 1
