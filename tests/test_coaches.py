from clubhub.models import Member


def test_create_coach_promotes_member_to_staff(client, org, admin_headers, member_factory):
    user = member_factory(org, role="member")
    res = client.post("/api/org/coaches", json={
        "name": user.name, "email": user.email, "specialty": "Goalkeeping",
    }, headers=admin_headers)
    assert res.status_code == 201
    assert Member.query.filter_by(organization_id=org.id, user_id=user.id).one().role == "staff"


def test_staff_cannot_manage_coaches(client, org, member_factory, auth_headers):
    staff = member_factory(org, role="staff")
    res = client.post("/api/org/coaches", json={
        "name": "C", "email": "c@example.com", "specialty": "Fitness",
    }, headers=auth_headers(staff, org))
    assert res.status_code == 403


def test_coach_sections_and_export(client, org, admin_headers, coach_factory):
    coach = coach_factory(org, name="Zoe Trainer")
    url = f"/api/org/coaches/{coach.id}/sports-experience"
    res = client.post(url, json={"role": "Head coach", "club_name": "River"}, headers=admin_headers)
    assert res.status_code == 201

    detail = client.get(f"/api/org/coaches/{coach.id}", headers=admin_headers).get_json()
    assert detail["id"] == coach.id

    export = client.get(f"/api/org/coaches/export?ids={coach.id}", headers=admin_headers)
    assert "Zoe Trainer" in export.get_data(as_text=True)


def test_my_coach_profile(client, org, coach_factory, auth_headers):
    coach = coach_factory(org)
    headers = auth_headers(coach.user, org)
    res = client.patch("/api/me/coach", json={"bio": "Former pro", "status": "inactive"}, headers=headers)
    assert res.status_code == 200
    body = res.get_json()["coach"]
    assert body["bio"] == "Former pro"
    assert body["status"] == "active"


def test_my_athlete_profile(client, org, athlete_factory, auth_headers, user_factory):
    athlete = athlete_factory(org)
    headers = auth_headers(athlete.user)
    assert client.get("/api/me/athlete", headers=headers).get_json()["id"] == athlete.id

    res = client.post("/api/me/athlete/languages", json={"language": "en", "level": "advanced"}, headers=headers)
    assert res.status_code == 201
    assert client.get("/api/me/athlete/languages", headers=headers).get_json()["total"] == 1

    nobody = auth_headers(user_factory())
    assert client.get("/api/me/athlete", headers=nobody).status_code == 404


def test_my_groups(client, org, admin_headers, athlete_factory, auth_headers):
    athlete = athlete_factory(org)
    client.post("/api/org/groups", json={"name": "Mine", "athlete_ids": [athlete.id]}, headers=admin_headers)
    body = client.get("/api/me/groups", headers=auth_headers(athlete.user, org)).get_json()
    assert [g["name"] for g in body["items"]] == ["Mine"]
