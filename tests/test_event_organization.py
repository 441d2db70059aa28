from datetime import datetime

import pytest

from clubhub.extensions import db
from clubhub.services import event_organization, events, expenses


@pytest.fixture
def event(org, owner):
    return events.create_event(org.id, owner, {
        "title": "Summer Showcase",
        "event_type": "showcase",
        "start_date": datetime(2030, 2, 1, 9),
        "end_date": datetime(2030, 2, 2, 18),
    })


@pytest.fixture
def vendor(client, admin_headers):
    res = client.post("/api/org/events/vendors", json={
        "name": "Sound & Light SA", "categories": ["audio", "lighting"], "rating": 4,
    }, headers=admin_headers)
    assert res.status_code == 201, res.get_json()
    return res.get_json()["vendor"]


def test_vendor_category_filter(client, admin_headers, vendor):
    client.post("/api/org/events/vendors", json={"name": "Catering Co", "categories": ["food"]}, headers=admin_headers)
    res = client.get("/api/org/events/vendors?category=audio", headers=admin_headers)
    assert [v["name"] for v in res.get_json()] == ["Sound & Light SA"]


def test_assignment_confirmation_timestamp(client, admin_headers, event, vendor):
    url = f"/api/org/events/{event.id}/vendors"
    res = client.post(url, json={"vendor_id": vendor["id"], "contract_value": 300000}, headers=admin_headers)
    assignment = res.get_json()["assignment"]
    assert assignment["confirmed_at"] is None

    res = client.patch(f"{url}/{assignment['id']}", json={"is_confirmed": True}, headers=admin_headers)
    assert res.get_json()["assignment"]["confirmed_at"] is not None

    res = client.post(url, json={"vendor_id": vendor["id"]}, headers=admin_headers)
    assert res.status_code == 409


def test_inventory_total_cost_defaults_from_unit_cost(client, admin_headers, event):
    res = client.post(f"/api/org/events/{event.id}/inventory", json={
        "name": "Cones", "category": "equipment", "quantity_needed": 20, "unit_cost": 1500, "zone": "Field A",
    }, headers=admin_headers)
    assert res.get_json()["item"]["total_cost"] == 30000

    res = client.get(f"/api/org/events/{event.id}/inventory?zone=Field%20B", headers=admin_headers)
    assert res.get_json() == []


def test_risk_score_and_logs(client, admin_headers, event):
    url = f"/api/org/events/{event.id}/risks"
    risk = client.post(url, json={"title": "Heavy rain", "severity": "high", "probability": "likely"},
                       headers=admin_headers).get_json()["risk"]
    assert risk["risk_score"] == 9
    assert risk["status"] == "identified"

    res = client.patch(f"{url}/{risk['id']}", json={"status": "mitigating", "severity": "critical"},
                       headers=admin_headers)
    assert res.get_json()["risk"]["risk_score"] == 12

    logs = client.get(f"{url}/{risk['id']}/logs", headers=admin_headers).get_json()
    assert [log["action"] for log in logs] == ["created", "status_change"]
    assert logs[1]["previous_status"] == "identified"
    assert logs[1]["new_status"] == "mitigating"


def test_risk_defaults():
    assert event_organization.risk_score("medium", "possible") == 4
    assert event_organization.risk_score("critical", "almost_certain") == 16


def test_risks_sorted_by_score(org, owner, event):
    event_organization.create_risk(org.id, event.id, owner, {"title": "Low", "severity": "low", "probability": "unlikely"})
    event_organization.create_risk(org.id, event.id, owner, {"title": "High", "severity": "high", "probability": "likely"})
    assert [r.title for r in event_organization.list_risks(org.id, event.id)] == ["High", "Low"]


def test_projection(client, org, owner, admin_headers, event):
    for n, paid in enumerate((100000, 40000)):
        events.create_registration(org.id, event.id, {
            "registrant_name": f"P{n}", "registrant_email": f"p{n}@x.com", "price": 100000, "paid_amount": paid,
        })
    cancelled = events.create_registration(org.id, event.id, {
        "registrant_name": "Gone", "registrant_email": "gone@x.com", "price": 100000,
    })
    events.cancel_registration(org.id, cancelled.id)

    event_organization.create_budget_line(org.id, event.id, owner, {
        "name": "Venue", "planned_amount": 80000, "actual_amount": 60000,
    })
    event_organization.create_budget_line(org.id, event.id, owner, {
        "name": "Sponsor", "planned_amount": 50000, "actual_amount": 50000, "is_revenue": True,
    })
    expenses.create_expense(org.id, owner, {
        "amount": 20000, "description": "Medals", "expense_date": datetime(2030, 2, 1), "event_id": event.id,
    })

    res = client.get(f"/api/org/events/{event.id}/projection", headers=admin_headers)
    data = res.get_json()
    assert data["registrations"]["total"] == 2
    assert data["registrations"]["by_status"]["cancelled"] == 1
    assert data["revenue"]["expected"] == 200000
    assert data["revenue"]["collected"] == 140000
    assert data["revenue"]["pending"] == 60000
    assert data["revenue"]["collection_rate"] == 70
    assert data["expenses"]["planned"] == 80000
    assert data["expenses"]["actual"] == 80000
    assert data["expenses"]["execution_rate"] == 100
    assert {"name": "Medals", "planned": 0, "actual": 20000, "variance": -20000} in data["expenses"]["breakdown"]
    assert data["profit"]["projected"] == 120000
    assert data["profit"]["current"] == 60000
    assert data["summary"]["current_balance"] == 110000


def test_projection_with_zero_bases(org, owner, event):
    empty = event_organization.get_projection(org.id, event.id)
    assert empty["revenue"]["collection_rate"] == 0
    assert empty["expenses"]["execution_rate"] == 0
    assert empty["profit"]["projected_margin"] == 0
    assert empty["profit"]["current_margin"] == 0

    expenses.create_expense(org.id, owner, {
        "amount": 5000, "description": "Water", "expense_date": datetime(2030, 2, 1), "event_id": event.id,
    })
    data = event_organization.get_projection(org.id, event.id)
    assert data["expenses"]["planned"] == 0
    assert data["expenses"]["actual"] == 5000
    assert data["expenses"]["execution_rate"] == 100
    assert data["profit"]["current"] == -5000
    assert data["profit"]["projected_margin"] == 0
    assert data["profit"]["current_margin"] == 0


def test_projection_by_registration_status(org, owner, event):
    rows = [
        ("confirmed", 100000, 0),
        ("pending_payment", 0, 10000),
        ("refunded", 50000, 0),
        ("waitlist", 0, 5000),
        ("no_show", 100000, 0),
        ("cancelled", 0, 2000),
    ]
    for n, (status, paid, discount) in enumerate(rows):
        registration = events.create_registration(org.id, event.id, {
            "registrant_name": f"R{n}", "registrant_email": f"r{n}@x.com",
            "price": 100000, "paid_amount": paid, "discount_amount": discount,
        })
        registration.status = status
    db.session.commit()

    data = event_organization.get_projection(org.id, event.id)
    assert data["registrations"]["total"] == 2
    assert data["registrations"]["by_status"] == {
        "confirmed": 1, "pending_payment": 1, "waitlist": 1, "cancelled": 1, "refunded": 1, "no_show": 1,
    }
    revenue = data["revenue"]
    assert revenue["expected"] == 200000
    assert revenue["collected"] == 100000
    assert revenue["pending"] == 100000
    assert revenue["refunded"] == 50000
    assert revenue["discounts"] == 17000
    assert revenue["collection_rate"] == 50


def test_logistics_of_foreign_event_not_found(client, admin_headers, organization_factory, user_factory):
    other_owner = user_factory()
    other = organization_factory(owner=other_owner)
    foreign = events.create_event(other.id, other_owner, {
        "title": "Elsewhere", "start_date": datetime(2030, 1, 1), "end_date": datetime(2030, 1, 1),
    })
    assert client.get(f"/api/org/events/{foreign.id}/budget", headers=admin_headers).status_code == 404
