from datetime import date, datetime

import pytest

from clubhub.errors import BadRequest, NotFound
from clubhub.extensions import db
from clubhub.models import CashMovement, CashRegister, Sale, StockTransaction
from clubhub.services import cash_register, payroll, stock

URL = "/api/org/cash-register"


@pytest.fixture
def staff_headers(org, auth_headers, member_factory):
    return auth_headers(member_factory(org, role="staff"), org)


@pytest.fixture
def opened(client, staff_headers):
    res = client.post(f"{URL}/open", json={"opening_balance": 10000}, headers=staff_headers)
    assert res.status_code == 201, res.get_json()
    return res.get_json()["cash_register"]


def _movements(reference_type=None):
    q = CashMovement.query
    if reference_type:
        q = q.filter_by(reference_type=reference_type)
    return q.order_by(CashMovement.id.asc()).all()


def test_open_once_per_day(client, staff_headers, opened):
    assert opened["status"] == "open"
    assert opened["opening_balance"] == 10000

    current = client.get(f"{URL}/current", headers=staff_headers).get_json()["cash_register"]
    assert current["id"] == opened["id"]

    res = client.post(f"{URL}/open", json={}, headers=staff_headers)
    assert res.status_code == 409
    assert res.get_json()["msg"] == "Cash register for today already exists"


def test_current_is_empty_before_opening(client, staff_headers):
    res = client.get(f"{URL}/current", headers=staff_headers)
    assert res.status_code == 200
    assert res.get_json()["cash_register"] is None


def test_close_register(client, staff_headers, opened):
    url = f"{URL}/{opened['id']}/close"
    res = client.post(url, json={"closing_balance": 12500, "notes": "All counted"}, headers=staff_headers)
    assert res.status_code == 200
    closed = res.get_json()["cash_register"]
    assert closed["status"] == "closed"
    assert closed["closing_balance"] == 12500
    assert closed["closed_at"] is not None

    res = client.post(url, json={"closing_balance": 1}, headers=staff_headers)
    assert res.status_code == 400
    assert res.get_json()["msg"] == "Cash register is already closed"


def test_close_requires_balance(client, staff_headers, opened):
    res = client.post(f"{URL}/{opened['id']}/close", json={}, headers=staff_headers)
    assert res.status_code == 400
    assert "closing_balance" in res.get_json()["errors"]


def test_manual_movement_needs_open_register(client, staff_headers):
    body = {"type": "income", "amount": 500, "description": "Donation"}
    res = client.post(f"{URL}/movements", json=body, headers=staff_headers)
    assert res.status_code == 404
    assert res.get_json()["msg"] == cash_register.NO_OPEN_REGISTER

    register = client.post(f"{URL}/open", json={}, headers=staff_headers).get_json()["cash_register"]
    client.post(f"{URL}/{register['id']}/close", json={"closing_balance": 0}, headers=staff_headers)
    res = client.post(f"{URL}/movements", json=body, headers=staff_headers)
    assert res.status_code == 400
    assert res.get_json()["msg"] == "Cash register is closed. Cannot add movements."


def test_manual_movement_sells_products(client, org, owner, staff_headers, opened):
    water = stock.create_product(org.id, owner, {"name": "Water", "selling_price": 1500, "current_stock": 3})

    res = client.post(f"{URL}/movements", json={
        "type": "income", "amount": 3000, "description": "Counter sale",
        "products": [{"product_id": water.id, "quantity": 2}],
    }, headers=staff_headers)
    assert res.status_code == 201, res.get_json()
    movement = res.get_json()["movement"]
    assert movement["reference_type"] == "manual"

    db.session.refresh(water)
    assert water.current_stock == 1
    sold = StockTransaction.query.filter_by(product_id=water.id, type="sale").one()
    assert sold.reference_type == "cash_movement"
    assert sold.reference_id == movement["id"]

    res = client.post(f"{URL}/movements", json={
        "type": "income", "amount": 3000, "description": "Counter sale",
        "products": [{"product_id": water.id, "quantity": 2}],
    }, headers=staff_headers)
    assert res.status_code == 400
    assert res.get_json()["msg"] == "Insufficient stock for: Water"
    assert len(_movements()) == 1


def test_cash_payments_post_income(client, org, admin_headers, athlete_factory, opened):
    athlete = athlete_factory(org)
    res = client.post("/api/org/payments", json={
        "athlete_id": athlete.id, "amount": 8000, "paid_amount": 3000, "payment_method": "cash",
    }, headers=admin_headers)
    payment = res.get_json()["payment"]
    client.post(f"/api/org/payments/{payment['id']}/record", json={"amount": 5000, "payment_method": "cash"},
                headers=admin_headers)
    client.post("/api/org/payments", json={
        "athlete_id": athlete.id, "amount": 8000, "paid_amount": 8000, "payment_method": "bank_transfer",
    }, headers=admin_headers)

    movements = _movements("payment")
    assert [(m.type, m.amount, m.reference_id) for m in movements] == [
        ("income", 3000, payment["id"]),
        ("income", 5000, payment["id"]),
    ]
    assert all(m.cash_register_id == opened["id"] for m in movements)


def test_nothing_posted_without_open_register(client, org, owner, admin_headers, athlete_factory):
    athlete = athlete_factory(org)
    res = client.post("/api/org/payments", json={
        "athlete_id": athlete.id, "amount": 8000, "paid_amount": 8000, "payment_method": "cash",
    }, headers=admin_headers)
    assert res.status_code == 201
    assert cash_register.record_cash_movement(org.id, "cash", "income", 100, "Tip", "manual", user=owner) is None
    assert _movements() == []


def test_completed_cash_sale_links_movement(client, org, owner, admin_headers, opened):
    shirt = stock.create_product(org.id, owner, {"name": "Shirt", "selling_price": 20000, "current_stock": 5})
    res = client.post("/api/org/stock/sales", json={"items": [{"product_id": shirt.id, "quantity": 2}]},
                      headers=admin_headers)
    sale = res.get_json()["sale"]

    res = client.post(f"/api/org/stock/sales/{sale['id']}/complete", json={"payment_method": "cash"},
                      headers=admin_headers)
    assert res.status_code == 200
    movement = _movements("product_sale")[0]
    assert movement.amount == 40000
    assert movement.reference_id == sale["id"]
    assert movement.recorded_by == owner.id
    assert res.get_json()["sale"]["cash_movement_id"] == movement.id
    assert db.session.get(Sale, sale["id"]).cash_movement_id == movement.id


def test_cash_expenses_and_payroll_post_expense(client, org, owner, admin_headers, opened):
    client.post("/api/org/expenses", json={
        "description": "Balls", "amount": 7000, "payment_method": "cash",
        "expense_date": datetime.utcnow().isoformat(),
    }, headers=admin_headers)
    item = payroll.create_payroll(org.id, owner, {
        "staff_type": "external",
        "external_name": "Referee Co.",
        "period_start": datetime(2030, 1, 1),
        "period_end": datetime(2030, 1, 31),
        "base_salary": 2000,
    })
    payroll.approve_payroll(org.id, item.id, owner)
    payroll.mark_as_paid(org.id, item.id, owner, {"payment_method": "cash"})

    movements = _movements("expense")
    assert [(m.type, m.amount) for m in movements] == [("expense", 7000), ("expense", 2000)]
    assert movements[1].reference_id == item.expense_id


def test_daily_summary(client, org, admin_headers, staff_headers, athlete_factory, opened):
    athlete = athlete_factory(org)
    payment = client.post("/api/org/payments", json={"athlete_id": athlete.id, "amount": 6000},
                          headers=admin_headers).get_json()["payment"]
    client.post(f"/api/org/payments/{payment['id']}/record", json={"amount": 6000, "payment_method": "cash"},
                headers=admin_headers)
    client.post(f"{URL}/movements", json={"type": "expense", "amount": 1000, "description": "Ice"},
                headers=staff_headers)
    client.post(f"{URL}/movements", json={"type": "adjustment", "amount": 200, "description": "Found"},
                headers=staff_headers)

    data = client.get(f"{URL}/summary", headers=staff_headers).get_json()
    assert data["cash_register"]["id"] == opened["id"]
    assert data["income"] == {"total": 6000, "count": 1}
    assert data["expense"] == {"total": 1000, "count": 1}
    assert data["adjustment"] == {"total": 200, "count": 1}
    assert data["payments_received"] == {"total": 6000, "count": 1}
    assert data["net_cash_flow"] == 5200
    assert data["expected_balance"] == 15200


def test_summary_of_day_without_register(client, staff_headers):
    data = client.get(f"{URL}/summary?date=2020-01-01", headers=staff_headers).get_json()
    assert data["date"] == "2020-01-01"
    assert data["cash_register"] is None
    assert data["net_cash_flow"] == 0


def test_history_and_movement_filters(client, org, staff_headers, opened):
    db.session.add(CashRegister(organization_id=org.id, date=date(2020, 1, 1), status="closed", closing_balance=0))
    db.session.commit()
    client.post(f"{URL}/movements", json={"type": "income", "amount": 100, "description": "A"}, headers=staff_headers)
    client.post(f"{URL}/movements", json={"type": "expense", "amount": 50, "description": "B"}, headers=staff_headers)

    data = client.get(f"{URL}/history", headers=staff_headers).get_json()
    assert data["total"] == 2
    assert data["items"][0]["id"] == opened["id"]
    data = client.get(f"{URL}/history?status=closed&to=2020-12-31", headers=staff_headers).get_json()
    assert [item["date"] for item in data["items"]] == ["2020-01-01"]

    data = client.get(f"{URL}/{opened['id']}/movements?type=expense", headers=staff_headers).get_json()
    assert data["total"] == 1
    assert data["items"][0]["description"] == "B"


def test_foreign_register_not_found(client, org, owner, organization_factory, staff_headers):
    other = organization_factory()
    register = cash_register.open_register(other.id, owner, {})
    res = client.get(f"{URL}/{register.id}", headers=staff_headers)
    assert res.status_code == 404
    assert res.get_json()["msg"] == "Cash register not found"
    with pytest.raises(NotFound):
        cash_register.close_register(org.id, register.id, owner, {"closing_balance": 0})


def test_members_cannot_use_register(client, org, auth_headers, member_factory):
    headers = auth_headers(member_factory(org), org)
    assert client.get(f"{URL}/current", headers=headers).status_code == 403


def test_record_ignores_non_cash_and_closed(org, owner):
    register = cash_register.open_register(org.id, owner, {})
    assert cash_register.record_cash_movement(org.id, "card", "income", 100, "Card", "payment", user=owner) is None
    cash_register.close_register(org.id, register.id, owner, {"closing_balance": 0})
    assert cash_register.record_cash_movement(org.id, "cash", "income", 100, "Late", "payment", user=owner) is None
    with pytest.raises(BadRequest, match="already closed"):
        cash_register.close_register(org.id, register.id, owner, {"closing_balance": 0})
