from datetime import datetime, timedelta

import pytest

from clubhub.services import expenses
from clubhub.utils.dates import utcnow


@pytest.fixture
def category(client, admin_headers):
    res = client.post("/api/org/expenses/categories", json={"name": "Field rental", "type": "operational"},
                      headers=admin_headers)
    assert res.status_code == 201
    return res.get_json()["category"]


def _expense(client, headers, **data):
    data.setdefault("description", "Field rental")
    data.setdefault("expense_date", utcnow().isoformat())
    res = client.post("/api/org/expenses", json=data, headers=headers)
    assert res.status_code == 201, res.get_json()
    return res.get_json()["expense"]


def test_duplicate_category_name_conflicts(client, admin_headers, category):
    res = client.post("/api/org/expenses/categories", json={"name": "Field rental"}, headers=admin_headers)
    assert res.status_code == 409
    assert res.get_json()["msg"] == "A category with this name already exists"


def test_inactive_categories_hidden_by_default(client, admin_headers, category):
    client.patch(f"/api/org/expenses/categories/{category['id']}", json={"is_active": False}, headers=admin_headers)
    assert client.get("/api/org/expenses/categories", headers=admin_headers).get_json()["total"] == 0
    res = client.get("/api/org/expenses/categories?include_inactive=true", headers=admin_headers)
    assert res.get_json()["total"] == 1


def test_create_and_filter_expenses(client, admin_headers, category):
    _expense(client, admin_headers, amount=40000, category_id=category["id"], vendor="City Park")
    _expense(client, admin_headers, amount=12000, description="Cones", payment_method="cash")

    res = client.get(f"/api/org/expenses?category_id={category['id']}", headers=admin_headers)
    assert [e["amount"] for e in res.get_json()["items"]] == [40000]
    res = client.get("/api/org/expenses?query=park", headers=admin_headers)
    assert res.get_json()["total"] == 1
    res = client.get("/api/org/expenses?payment_method=cash", headers=admin_headers)
    assert res.get_json()["items"][0]["description"] == "Cones"


def test_foreign_category_is_not_found(client, admin_headers, organization_factory):
    other = organization_factory()
    foreign = expenses.create_category(other.id, {"name": "Theirs"})
    res = client.post("/api/org/expenses", json={
        "amount": 100, "description": "x", "expense_date": "2030-01-01T00:00:00", "category_id": foreign.id,
    }, headers=admin_headers)
    assert res.status_code == 404


def test_summary_groups_by_category(client, org, admin_headers, category):
    now = utcnow()
    _expense(client, admin_headers, amount=40000, category_id=category["id"], expense_date=now.isoformat())
    _expense(client, admin_headers, amount=10000, category_id=category["id"],
             expense_date=(now - timedelta(days=400)).isoformat())
    _expense(client, admin_headers, amount=5000, expense_date=now.isoformat())

    summary = expenses.summary(org.id, now=now)
    assert summary["today"] == {"total": 45000, "count": 2}
    assert summary["total"] == {"total": 55000, "count": 3}
    assert summary["top_category"]["name"] == "Field rental"
    assert summary["top_category"]["total"] == 50000


def test_export_csv(client, admin_headers, category):
    _expense(client, admin_headers, amount=40000, category_id=category["id"],
             expense_date=datetime(2030, 3, 1).isoformat(), vendor="City Park")
    res = client.get("/api/org/expenses/export", headers=admin_headers)
    assert res.status_code == 200
    assert res.headers["Content-Type"].startswith("text/csv")
    lines = res.get_data(as_text=True).strip().splitlines()
    assert lines[0].startswith("Date,Description,Category,Amount")
    assert lines[1] == "2030-03-01,Field rental,Field rental,40000,ARS,,City Park,"


def test_expenses_are_admin_only(client, org, auth_headers, member_factory):
    staff_headers = auth_headers(member_factory(org, role="staff"), org)
    assert client.get("/api/org/expenses", headers=staff_headers).status_code == 403
