from clubhub.cli import DEMO_PASSWORD
from clubhub.models import Athlete, EventRegistration, Organization, Product, TrainingSession, User


def test_seed_creates_demo_organization(app):
    result = app.test_cli_runner().invoke(args=["manage", "seed"])
    assert result.exit_code == 0, result.output
    assert "Seeded organization 'Demo Sports Club'" in result.output

    organization = Organization.query.filter_by(name="Demo Sports Club").one()
    owner = User.query.filter_by(email="owner@clubhub.app").one()
    assert owner.check_password(DEMO_PASSWORD)
    assert Athlete.query.filter_by(organization_id=organization.id).count() == 4
    assert TrainingSession.query.filter_by(organization_id=organization.id, is_recurring=True).count() == 1
    assert Product.query.filter_by(organization_id=organization.id).count() == 3

    statuses = sorted(r.status for r in EventRegistration.query.all())
    assert statuses == ["pending_payment", "pending_payment", "waitlist"]


def test_seed_refuses_production_without_flag(app, monkeypatch):
    monkeypatch.setitem(app.config, "ENV_NAME", "production")
    result = app.test_cli_runner().invoke(args=["manage", "seed"])
    assert result.exit_code != 0
    assert "Refusing to seed" in result.output


def test_create_user_with_organization(app):
    result = app.test_cli_runner().invoke(args=[
        "manage", "create-user", "--email", "coach@example.com", "--name", "Coach",
        "--password", "long-enough-1", "--organization", "Night League",
    ])
    assert result.exit_code == 0, result.output
    user = User.query.filter_by(email="coach@example.com").one()
    assert Organization.query.filter_by(name="Night League").one().members[0].user_id == user.id


def test_create_user_duplicate_email(app, user_factory):
    user_factory(email="taken@example.com")
    result = app.test_cli_runner().invoke(args=[
        "manage", "create-user", "--email", "taken@example.com", "--name", "X", "--password", "long-enough-1",
    ])
    assert result.exit_code != 0


def test_reset_requires_confirmation(app, user_factory):
    user_factory()
    result = app.test_cli_runner().invoke(args=["manage", "reset"], input="n\n")
    assert result.exit_code != 0
    assert User.query.count() == 1
