import itertools

import pytest
from flask_jwt_extended import create_access_token

from clubhub import create_app
from clubhub.extensions import db
from clubhub.models import Member
from clubhub.services import athletes, coaches, organizations

_sequence = itertools.count(1)


@pytest.fixture(scope="session")
def app():
    app = create_app("testing")
    yield app


@pytest.fixture(autouse=True)
def db_session(app):
    """Fresh schema for every test."""
    with app.app_context():
        db.create_all()
        yield db.session
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def user_factory(db_session):
    def make(name=None, email=None, password="secret-pass-1", phone=None):
        n = next(_sequence)
        return organizations.register_user(
            name or f"User {n}", email or f"user{n}@example.com", password, phone
        )
    return make


@pytest.fixture
def organization_factory(db_session, user_factory):
    def make(owner=None, name=None, **extra):
        owner = owner or user_factory()
        return organizations.create_organization(owner, dict(extra, name=name or f"Club {next(_sequence)}"))
    return make


@pytest.fixture
def member_factory(db_session, user_factory):
    def make(organization, role="member", user=None):
        user = user or user_factory()
        member = Member(organization_id=organization.id, user_id=user.id, role=role)
        db_session.add(member)
        db_session.commit()
        return user
    return make


@pytest.fixture
def athlete_factory(db_session):
    def make(organization, **data):
        n = next(_sequence)
        data.setdefault("name", f"Athlete {n}")
        data.setdefault("email", f"athlete{n}@example.com")
        data.setdefault("sport", "soccer")
        athlete, _ = athletes.create_athlete(organization, data)
        return athlete
    return make


@pytest.fixture
def coach_factory(db_session):
    def make(organization, **data):
        n = next(_sequence)
        data.setdefault("name", f"Coach {n}")
        data.setdefault("email", f"coach{n}@example.com")
        data.setdefault("specialty", "Fitness")
        coach, _ = coaches.create_coach(organization, data)
        return coach
    return make


@pytest.fixture
def auth_headers(app):
    def make(user, organization=None):
        headers = {"Authorization": f"Bearer {create_access_token(identity=str(user.id))}"}
        if organization is not None:
            headers["X-Organization-Id"] = str(organization.id)
        return headers
    return make


@pytest.fixture
def owner(user_factory):
    return user_factory(name="Owner")


@pytest.fixture
def org(organization_factory, owner):
    return organization_factory(owner=owner, name="Test Club")


@pytest.fixture
def admin_headers(auth_headers, owner, org):
    return auth_headers(owner, org)
