def test_register_returns_token_and_user(client):
    res = client.post("/api/auth/register", json={
        "name": "Ana", "email": "Ana@Example.com", "password": "long-enough-1",
    })
    assert res.status_code == 201
    body = res.get_json()
    assert body["access_token"]
    assert body["user"]["email"] == "ana@example.com"


def test_register_duplicate_email_conflicts(client, user_factory):
    user_factory(email="taken@example.com")
    res = client.post("/api/auth/register", json={
        "name": "Other", "email": "taken@example.com", "password": "long-enough-1",
    })
    assert res.status_code == 409
    assert res.get_json() == {"msg": "Email already registered", "code": "CONFLICT"}


def test_register_validates_body(client):
    res = client.post("/api/auth/register", json={"name": "Ana", "email": "nope", "password": "short"})
    assert res.status_code == 400
    errors = res.get_json()["errors"]
    assert "email" in errors and "password" in errors


def test_login_and_me(client, user_factory):
    user = user_factory(email="login@example.com", password="correct-horse")
    res = client.post("/api/auth/login", json={"email": "login@example.com", "password": "correct-horse"})
    assert res.status_code == 200
    token = res.get_json()["access_token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.get_json()["user"]["id"] == user.id
    assert me.get_json()["organizations"] == []


def test_login_wrong_password(client, user_factory):
    user_factory(email="login@example.com", password="correct-horse")
    res = client.post("/api/auth/login", json={"email": "login@example.com", "password": "wrong-horse"})
    assert res.status_code == 401
    assert res.get_json()["msg"] == "Invalid email or password"


def test_me_requires_token(client):
    res = client.get("/api/auth/me")
    assert res.status_code == 401
    assert "msg" in res.get_json()


def test_logout(client):
    res = client.post("/api/auth/logout")
    assert res.status_code == 200
