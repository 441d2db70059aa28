from clubhub.extensions import db
from clubhub.models import Athlete, Member, NotificationLog, User


def test_create_athlete_creates_user_and_membership(client, org, admin_headers):
    res = client.post("/api/org/athletes", json={
        "name": "Martina Sosa", "email": "martina@example.com", "sport": "soccer", "level": "advanced",
    }, headers=admin_headers)
    assert res.status_code == 201
    athlete = res.get_json()["athlete"]
    assert athlete["name"] == "Martina Sosa"
    assert athlete["level"] == "advanced"

    user = User.query.filter_by(email="martina@example.com").one()
    assert Member.query.filter_by(organization_id=org.id, user_id=user.id).one().role == "member"
    # Welcome email is attempted and logged even when SMTP is not configured
    log = NotificationLog.query.filter_by(template="welcome").one()
    assert log.status == "failed"
    assert log.error_code == "not_configured"


def test_duplicate_athlete_in_organization(client, org, admin_headers, athlete_factory):
    athlete_factory(org, email="dup@example.com")
    res = client.post("/api/org/athletes", json={
        "name": "Dup", "email": "dup@example.com", "sport": "soccer",
    }, headers=admin_headers)
    assert res.status_code == 409


def test_invalid_phone_rejected(client, admin_headers):
    res = client.post("/api/org/athletes", json={
        "name": "Bad Phone", "email": "bad@example.com", "sport": "soccer", "phone": "555-1234",
    }, headers=admin_headers)
    assert res.status_code == 400
    assert "phone" in res.get_json()["errors"]


def test_list_filters_and_search(client, org, admin_headers, athlete_factory):
    athlete_factory(org, name="Alpha Runner", level="elite")
    athlete_factory(org, name="Beta Keeper", level="beginner")
    athlete_factory(org, name="Gamma Wing", level="elite", status="inactive")

    body = client.get("/api/org/athletes?level=elite", headers=admin_headers).get_json()
    assert body["total"] == 2

    body = client.get("/api/org/athletes?level=elite&status=active", headers=admin_headers).get_json()
    assert [a["name"] for a in body["items"]] == ["Alpha Runner"]

    body = client.get("/api/org/athletes?query=keeper", headers=admin_headers).get_json()
    assert [a["name"] for a in body["items"]] == ["Beta Keeper"]


def test_athletes_are_scoped_to_organization(client, organization_factory, admin_headers, athlete_factory):
    other = organization_factory()
    outsider = athlete_factory(other)
    res = client.get(f"/api/org/athletes/{outsider.id}", headers=admin_headers)
    assert res.status_code == 404
    assert res.get_json()["msg"] == "Athlete not found"


def test_update_athlete_changes_user_fields(client, org, admin_headers, athlete_factory):
    athlete = athlete_factory(org)
    res = client.patch(f"/api/org/athletes/{athlete.id}", json={
        "name": "Renamed", "position": "Striker",
    }, headers=admin_headers)
    assert res.status_code == 200
    assert res.get_json()["athlete"]["name"] == "Renamed"
    assert res.get_json()["athlete"]["position"] == "Striker"


def test_restricted_member_cannot_create(client, org, member_factory, auth_headers):
    member = member_factory(org, role="member")
    res = client.post("/api/org/athletes", json={
        "name": "X", "email": "x@example.com", "sport": "soccer",
    }, headers=auth_headers(member, org))
    assert res.status_code == 403


def test_bulk_status_and_delete(client, org, admin_headers, athlete_factory, organization_factory):
    a, b = athlete_factory(org), athlete_factory(org)
    foreign = athlete_factory(organization_factory())

    res = client.post("/api/org/athletes/bulk-status", json={
        "ids": [a.id, b.id, foreign.id], "status": "inactive",
    }, headers=admin_headers)
    assert res.get_json()["count"] == 2

    res = client.post("/api/org/athletes/bulk-delete", json={"ids": [a.id, foreign.id]}, headers=admin_headers)
    assert res.get_json()["count"] == 1
    assert db.session.get(Athlete, foreign.id) is not None


def test_export_csv(client, org, admin_headers, athlete_factory):
    athlete_factory(org, name="Csv Person")
    res = client.get("/api/org/athletes/export", headers=admin_headers)
    assert res.status_code == 200
    assert res.headers["Content-Type"].startswith("text/csv")
    text = res.get_data(as_text=True)
    assert text.splitlines()[0].startswith("Name,Email")
    assert "Csv Person" in text


def test_profile_sections(client, org, admin_headers, athlete_factory):
    athlete = athlete_factory(org)
    url = f"/api/org/athletes/{athlete.id}/career-history"
    res = client.post(url, json={"club_name": "Boca Juniors", "position": "Forward"}, headers=admin_headers)
    assert res.status_code == 201
    item_id = res.get_json()["id"]

    res = client.patch(f"{url}/{item_id}", json={"position": "Winger"}, headers=admin_headers)
    assert res.get_json()["position"] == "Winger"

    assert client.get(url, headers=admin_headers).get_json()["total"] == 1
    assert client.delete(f"{url}/{item_id}", headers=admin_headers).status_code == 200
    assert client.get(url, headers=admin_headers).get_json()["total"] == 0


def test_unknown_section(client, org, admin_headers, athlete_factory):
    athlete = athlete_factory(org)
    res = client.post(f"/api/org/athletes/{athlete.id}/hobbies", json={}, headers=admin_headers)
    assert res.status_code == 404
