from datetime import datetime

import pytest

from clubhub.errors import BadRequest
from clubhub.extensions import db
from clubhub.models import SportsEvent
from clubhub.services import events

EVENT = {
    "title": "Winter Camp",
    "event_type": "camp",
    "start_date": "2030-07-10T09:00:00",
    "end_date": "2030-07-13T18:00:00",
}


@pytest.fixture
def create_event(client, admin_headers):
    def create(**overrides):
        res = client.post("/api/org/events", json=dict(EVENT, **overrides), headers=admin_headers)
        assert res.status_code == 201, res.get_json()
        return res.get_json()["event"]
    return create


def _register(client, headers, event_id, n, **extra):
    return client.post(f"/api/org/events/{event_id}/registrations", json=dict({
        "registrant_name": f"Player {n}",
        "registrant_email": f"player{n}@example.com",
        "price": 100000,
    }, **extra), headers=headers)


def test_slug_generated_and_deduplicated(create_event):
    first = create_event()
    second = create_event()
    assert first["slug"] == "winter-camp"
    assert second["slug"] == "winter-camp-2"


def test_explicit_duplicate_slug_rejected(client, admin_headers, create_event):
    create_event(slug="camp")
    res = client.post("/api/org/events", json=dict(EVENT, slug="camp"), headers=admin_headers)
    assert res.status_code == 400


def test_end_before_start_rejected(client, admin_headers):
    res = client.post("/api/org/events", json=dict(EVENT, end_date="2030-07-01T00:00:00"), headers=admin_headers)
    assert res.status_code == 400


def test_events_managed_by_admins_only(client, org, auth_headers, member_factory, create_event):
    event = create_event()
    staff_headers = auth_headers(member_factory(org, role="staff"), org)
    assert client.get(f"/api/org/events/{event['id']}", headers=staff_headers).status_code == 200
    assert client.post("/api/org/events", json=EVENT, headers=staff_headers).status_code == 403


def test_status_endpoint(client, admin_headers, create_event):
    event = create_event()
    res = client.post(f"/api/org/events/{event['id']}/status", json={"status": "registration_open"},
                      headers=admin_headers)
    assert res.get_json()["event"]["status"] == "registration_open"
    res = client.post(f"/api/org/events/{event['id']}/status", json={"status": "open"}, headers=admin_headers)
    assert res.status_code == 400


def test_registration_numbers_and_waitlist(client, admin_headers, create_event):
    event = create_event(max_capacity=2, enable_waitlist=True)
    first = _register(client, admin_headers, event["id"], 1)
    second = _register(client, admin_headers, event["id"], 2)
    third = _register(client, admin_headers, event["id"], 3)
    fourth = _register(client, admin_headers, event["id"], 4)

    assert first.status_code == 201
    assert first.get_json()["msg"] == "Registration created"
    assert second.get_json()["registration"]["registration_number"] == 2
    assert third.get_json()["msg"] == "Added to waitlist"
    assert third.get_json()["registration"]["waitlist_position"] == 1
    assert fourth.get_json()["registration"]["waitlist_position"] == 2

    detail = client.get(f"/api/org/events/{event['id']}", headers=admin_headers).get_json()
    assert detail["current_registrations"] == 2


def test_full_event_without_waitlist(org, owner):
    event = events.create_event(org.id, owner, {
        "title": "Clinic", "start_date": datetime(2030, 1, 1), "end_date": datetime(2030, 1, 1),
        "max_capacity": 1, "enable_waitlist": False,
    })
    events.create_registration(org.id, event.id, {"registrant_name": "A", "registrant_email": "a@x.com", "price": 0})
    with pytest.raises(BadRequest, match="Event is full"):
        events.create_registration(org.id, event.id, {"registrant_name": "B", "registrant_email": "b@x.com", "price": 0})


def test_waitlist_size_limit(org, owner):
    event = events.create_event(org.id, owner, {
        "title": "Tryout", "start_date": datetime(2030, 1, 1), "end_date": datetime(2030, 1, 1),
        "max_capacity": 1, "enable_waitlist": True, "max_waitlist_size": 1,
    })
    for n in range(2):
        events.create_registration(org.id, event.id, {
            "registrant_name": f"R{n}", "registrant_email": f"r{n}@x.com", "price": 0,
        })
    with pytest.raises(BadRequest, match="Event is full"):
        events.create_registration(org.id, event.id, {
            "registrant_name": "Late", "registrant_email": "late@x.com", "price": 0,
        })


def test_cancel_frees_place_and_confirm_waitlist_shifts_positions(client, admin_headers, create_event):
    event = create_event(max_capacity=1, enable_waitlist=True)
    holder = _register(client, admin_headers, event["id"], 1).get_json()["registration"]
    waiting_first = _register(client, admin_headers, event["id"], 2).get_json()["registration"]
    waiting_second = _register(client, admin_headers, event["id"], 3).get_json()["registration"]

    res = client.post(f"/api/org/events/registrations/{holder['id']}/cancel", json={"reason": "Injured"},
                      headers=admin_headers)
    assert res.get_json()["registration"]["status"] == "cancelled"
    assert client.get(f"/api/org/events/{event['id']}", headers=admin_headers).get_json()["current_registrations"] == 0

    res = client.post(f"/api/org/events/registrations/{waiting_first['id']}/confirm-waitlist", headers=admin_headers)
    assert res.get_json()["registration"]["status"] == "pending_payment"
    assert res.get_json()["registration"]["waitlist_position"] is None

    moved = client.get(f"/api/org/events/registrations/{waiting_second['id']}", headers=admin_headers).get_json()
    assert moved["waitlist_position"] == 1

    res = client.post(f"/api/org/events/registrations/{holder['id']}/confirm-waitlist", headers=admin_headers)
    assert res.status_code == 404


def test_confirming_sets_timestamp(client, admin_headers, create_event):
    event = create_event()
    registration = _register(client, admin_headers, event["id"], 1).get_json()["registration"]
    res = client.patch(f"/api/org/events/registrations/{registration['id']}", json={"status": "confirmed"},
                       headers=admin_headers)
    assert res.get_json()["registration"]["confirmed_at"] is not None


def test_waitlist_filter_and_bulk_status(client, admin_headers, create_event):
    event = create_event(max_capacity=1, enable_waitlist=True)
    ids = [_register(client, admin_headers, event["id"], n).get_json()["registration"]["id"] for n in range(3)]

    res = client.get(f"/api/org/events/{event['id']}/registrations?is_waitlist=true", headers=admin_headers)
    assert res.get_json()["total"] == 2

    res = client.post("/api/org/events/registrations/bulk-status", json={"ids": ids, "status": "no_show"},
                      headers=admin_headers)
    assert res.get_json()["count"] == 3


def test_other_org_event_is_not_found(client, admin_headers, organization_factory, auth_headers, user_factory):
    other_owner = user_factory()
    other = organization_factory(owner=other_owner)
    foreign = client.post("/api/org/events", json=EVENT, headers=auth_headers(other_owner, other)).get_json()["event"]
    res = client.get(f"/api/org/events/{foreign['id']}/registrations", headers=admin_headers)
    assert res.status_code == 404


def _clinic(org, owner, **extra):
    return events.create_event(org.id, owner, dict({
        "title": "Clinic", "start_date": datetime(2030, 1, 1), "end_date": datetime(2030, 1, 1),
        "max_capacity": 1, "enable_waitlist": True,
    }, **extra))


def test_place_is_taken_against_the_stored_counter(org, owner):
    event = _clinic(org, owner)
    assert event.current_registrations == 0
    # Another worker takes the last place after this one loaded the event
    SportsEvent.query.filter_by(id=event.id).update({"current_registrations": 1}, synchronize_session=False)

    registration = events.create_registration(org.id, event.id, {
        "registrant_name": "Late", "registrant_email": "late@x.com", "price": 0,
    })
    assert registration.status == "waitlist"
    assert db.session.get(SportsEvent, event.id).current_registrations == 1


def test_counter_never_goes_negative(org, owner):
    event = _clinic(org, owner)
    registration = events.create_registration(org.id, event.id, {
        "registrant_name": "A", "registrant_email": "a@x.com", "price": 0,
    })
    SportsEvent.query.filter_by(id=event.id).update({"current_registrations": 0})
    db.session.commit()

    events.cancel_registration(org.id, registration.id)
    assert db.session.get(SportsEvent, event.id).current_registrations == 0
