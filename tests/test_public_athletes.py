from datetime import timedelta

from clubhub.extensions import db
from clubhub.models import Athlete
from clubhub.utils.dates import utcnow


def test_only_public_active_profiles_are_listed(client, org, athlete_factory):
    athlete_factory(org, name="Visible", is_public_profile=True)
    athlete_factory(org, name="Hidden")
    athlete_factory(org, name="Inactive", is_public_profile=True, status="inactive")

    body = client.get("/api/public/athletes").get_json()
    assert [a["name"] for a in body["items"]] == ["Visible"]
    assert "email" not in body["items"][0]


def test_age_and_level_filters(client, org, athlete_factory):
    now = utcnow()
    athlete_factory(org, name="Young", is_public_profile=True, birth_date=now - timedelta(days=365 * 15 + 10))
    athlete_factory(org, name="Older", is_public_profile=True, birth_date=now - timedelta(days=365 * 25 + 10),
                    level="elite")

    names = [a["name"] for a in client.get("/api/public/athletes?max_age=18").get_json()["items"]]
    assert names == ["Young"]
    names = [a["name"] for a in client.get("/api/public/athletes?min_age=20").get_json()["items"]]
    assert names == ["Older"]
    names = [a["name"] for a in client.get("/api/public/athletes?sort_by=level").get_json()["items"]]
    assert names == ["Older", "Young"]


def test_opportunity_type_filter(client, org, athlete_factory):
    athlete_factory(org, name="Scholar", is_public_profile=True, opportunity_types=["university_scholarship"])
    athlete_factory(org, name="Pro", is_public_profile=True, opportunity_types=["professional_team"])
    body = client.get("/api/public/athletes?opportunity_type=university_scholarship").get_json()
    assert body["total"] == 1
    assert body["items"][0]["name"] == "Scholar"


def test_invalid_sort(client):
    assert client.get("/api/public/athletes?sort_by=age").status_code == 400


def test_profile_hides_private_data(client, org, athlete_factory):
    athlete = athlete_factory(org, is_public_profile=True)
    body = client.get(f"/api/public/athletes/{athlete.id}").get_json()
    assert body["athlete"]["id"] == athlete.id
    assert body["references"] == []

    private = athlete_factory(org)
    res = client.get(f"/api/public/athletes/{private.id}")
    assert res.status_code == 404
    assert res.get_json()["msg"] == "Athlete profile not available"


def test_athletes_without_account_are_listed(client, org, athlete_factory):
    athlete_factory(org, name="Registered", is_public_profile=True)
    guest = Athlete(organization_id=org.id, sport="soccer", is_public_profile=True,
                    public_profile_enabled_at=utcnow() - timedelta(days=1))
    db.session.add(guest)
    db.session.commit()

    body = client.get("/api/public/athletes?sort_by=name").get_json()
    assert body["total"] == 2
    assert [a["id"] for a in body["items"]][-1] == guest.id
    assert client.get(f"/api/public/athletes/{guest.id}").status_code == 200
