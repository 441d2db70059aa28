from clubhub.models import Member


def test_create_organization_makes_creator_owner(client, user_factory, auth_headers):
    user = user_factory()
    res = client.post("/api/organizations", json={"name": "River Club"}, headers=auth_headers(user))
    assert res.status_code == 201
    organization = res.get_json()["organization"]
    assert organization["slug"] == "river-club"
    assert organization["timezone"] == "America/Argentina/Buenos_Aires"
    assert Member.query.filter_by(organization_id=organization["id"], user_id=user.id).one().role == "owner"

    listed = client.get("/api/organizations", headers=auth_headers(user)).get_json()["organizations"]
    assert [o["role"] for o in listed] == ["owner"]


def test_rejects_unknown_timezone(client, user_factory, auth_headers):
    res = client.post(
        "/api/organizations",
        json={"name": "Club", "timezone": "Mars/Olympus"},
        headers=auth_headers(user_factory()),
    )
    assert res.status_code == 400


def test_missing_organization_header(client, owner, auth_headers):
    res = client.get("/api/org", headers=auth_headers(owner))
    assert res.status_code == 400


def test_unknown_organization(client, owner, auth_headers):
    headers = dict(auth_headers(owner), **{"X-Organization-Id": "9999"})
    res = client.get("/api/org", headers=headers)
    assert res.status_code == 404
    assert res.get_json()["msg"] == "Organization not found"


def test_non_member_is_forbidden(client, org, user_factory, auth_headers):
    res = client.get("/api/org", headers=auth_headers(user_factory(), org))
    assert res.status_code == 403
    assert res.get_json()["msg"] == "You are not a member of this organization"


def test_get_active_organization(client, org, admin_headers):
    body = client.get("/api/org", headers=admin_headers).get_json()
    assert body["id"] == org.id
    assert body["role"] == "owner"
    assert body["is_admin"] is True


def test_member_cannot_update_organization(client, org, member_factory, auth_headers):
    member = member_factory(org, role="member")
    res = client.patch("/api/org", json={"name": "Renamed"}, headers=auth_headers(member, org))
    assert res.status_code == 403


def test_add_member_and_change_role(client, org, admin_headers, user_factory):
    newcomer = user_factory(email="newcomer@example.com")
    res = client.post("/api/org/members", json={"email": "newcomer@example.com", "role": "staff"}, headers=admin_headers)
    assert res.status_code == 201
    member_id = res.get_json()["member"]["id"]

    again = client.post("/api/org/members", json={"email": newcomer.email}, headers=admin_headers)
    assert again.status_code == 409

    res = client.patch(f"/api/org/members/{member_id}", json={"role": "admin"}, headers=admin_headers)
    assert res.status_code == 200
    assert res.get_json()["member"]["role"] == "admin"


def test_add_member_unknown_user(client, admin_headers):
    res = client.post("/api/org/members", json={"email": "ghost@example.com"}, headers=admin_headers)
    assert res.status_code == 404


def test_last_owner_cannot_be_removed(client, org, owner, admin_headers):
    member = Member.query.filter_by(organization_id=org.id, user_id=owner.id).one()
    res = client.delete(f"/api/org/members/{member.id}", headers=admin_headers)
    assert res.status_code == 400
    assert res.get_json()["msg"] == "The organization must keep at least one owner"
