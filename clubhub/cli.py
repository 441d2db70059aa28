"""``flask manage`` commands: seed, migrate, reset and create-user."""

import logging
import os
from datetime import timedelta

import click
from flask import current_app
from flask.cli import AppGroup
from flask_migrate import upgrade

from clubhub.errors import ApiError
from clubhub.extensions import db
from clubhub.models import User
from clubhub.services import (
    athletes,
    coaches,
    events,
    groups,
    locations,
    organizations,
    payments,
    sessions,
    stock,
)
from clubhub.utils.dates import utcnow

logger = logging.getLogger(__name__)

manage = AppGroup("manage", help="Database and demo data commands.")

DEMO_PASSWORD = "clubhub1234"

DEMO_COACHES = [
    {"name": "Laura Gómez", "email": "laura.coach@clubhub.app", "specialty": "Strength & conditioning", "sport": "soccer"},
    {"name": "Diego Ruiz", "email": "diego.coach@clubhub.app", "specialty": "Goalkeeping", "sport": "soccer"},
]

DEMO_ATHLETES = [
    {"name": "Martina Sosa", "email": "martina@clubhub.app", "level": "advanced", "position": "Forward"},
    {"name": "Tomás Díaz", "email": "tomas@clubhub.app", "level": "intermediate", "position": "Midfielder"},
    {"name": "Valentina Paz", "email": "valentina@clubhub.app", "level": "elite", "position": "Defender"},
    {"name": "Joaquín Ríos", "email": "joaquin@clubhub.app", "level": "beginner", "position": "Goalkeeper"},
]

DEMO_PRODUCTS = [
    {"name": "Water 500ml", "sku": "BEV-001", "category": "beverage", "cost_price": 30000, "selling_price": 60000, "current_stock": 48},
    {"name": "Training shirt", "sku": "APP-001", "category": "apparel", "cost_price": 800000, "selling_price": 1500000, "current_stock": 12},
    {"name": "Size 5 ball", "sku": "EQP-001", "category": "equipment", "cost_price": 1200000, "selling_price": 2200000, "current_stock": 3},
]


def _migrations_dir():
    return os.path.join(os.path.dirname(current_app.root_path), "migrations")


def seed_demo_data():
    """Create a demo organization with people, a schedule, payments, an event and products."""
    owner = User.query.filter_by(email="owner@clubhub.app").first()
    if owner is None:
        owner = organizations.register_user("Demo Owner", "owner@clubhub.app", DEMO_PASSWORD)
    organization = organizations.create_organization(owner, {"name": "Demo Sports Club"})
    org_id = organization.id

    coach_list = [coaches.create_coach(organization, dict(data))[0] for data in DEMO_COACHES]
    athlete_list = [
        athletes.create_athlete(organization, dict(data, sport="soccer"))[0] for data in DEMO_ATHLETES
    ]
    location = locations.create_location(org_id, {
        "name": "Main field", "address": "Av. del Libertador 1000", "city": "Buenos Aires",
        "country": "Argentina", "capacity": 40, "color": "#16a34a",
    })
    group = groups.create_group(org_id, {
        "name": "U18 Soccer", "sport": "soccer", "max_capacity": 20,
        "athlete_ids": [athlete.id for athlete in athlete_list],
    })

    start = utcnow().replace(hour=18, minute=0, second=0, microsecond=0) + timedelta(days=1)
    created_sessions = [
        sessions.create_session(org_id, owner, {
            "title": f"U18 practice #{day + 1}",
            "start_time": start + timedelta(days=day * 2),
            "end_time": start + timedelta(days=day * 2, hours=1, minutes=30),
            "location_id": location.id,
            "athlete_group_id": group.id,
            "coach_ids": [coach.id for coach in coach_list],
            "primary_coach_id": coach_list[0].id,
        })
        for day in range(3)
    ]
    sessions.create_session(org_id, owner, {
        "title": "Weekly goalkeeping clinic",
        "start_time": start + timedelta(hours=2),
        "end_time": start + timedelta(hours=3),
        "location_id": location.id,
        "coach_ids": [coach_list[1].id],
        "athlete_ids": [athlete_list[-1].id],
        "recurrence": {"frequency": "weekly", "interval": 1, "count": 8},
    })

    for index, athlete in enumerate(athlete_list):
        payments.create_payment(org_id, owner, {
            "athlete_id": athlete.id,
            "amount": 2500000,
            "paid_amount": 2500000 if index % 2 == 0 else 0,
            "payment_method": "cash" if index % 2 == 0 else None,
            "session_ids": [created_sessions[0].id],
            "description": "Monthly fee",
        })

    event = events.create_event(org_id, owner, {
        "title": "Winter Soccer Camp",
        "event_type": "camp",
        "status": "registration_open",
        "start_date": start + timedelta(days=30),
        "end_date": start + timedelta(days=33),
        "max_capacity": 2,
        "enable_waitlist": True,
    })
    for athlete in athlete_list[:3]:
        events.create_registration(org_id, event.id, {
            "athlete_id": athlete.id,
            "registrant_name": athlete.user.name,
            "registrant_email": athlete.user.email,
            "price": 5000000,
        })

    for data in DEMO_PRODUCTS:
        stock.create_product(org_id, owner, dict(data))

    return organization


@manage.command("seed")
@click.option("--yes", is_flag=True, help="Allow seeding outside development.")
def seed(yes):
    """Load demo data."""
    if current_app.config.get("ENV_NAME") == "production" and not yes:
        raise click.ClickException("Refusing to seed a production database without --yes")
    db.create_all()
    try:
        organization = seed_demo_data()
    except ApiError as e:
        db.session.rollback()
        raise click.ClickException(e.message)
    click.echo(f"Seeded organization '{organization.name}' (id {organization.id})")
    click.echo(f"Log in as owner@clubhub.app / {DEMO_PASSWORD}")


@manage.command("migrate")
def migrate_database():
    """Apply migrations, or create the tables when no migrations exist."""
    if os.path.isdir(_migrations_dir()):
        upgrade(directory=_migrations_dir())
        click.echo("Migrations applied")
    else:
        db.create_all()
        click.echo("Tables created")


@manage.command("reset")
@click.confirmation_option(prompt="This drops every table. Continue?")
def reset():
    """Drop and recreate all tables."""
    db.drop_all()
    db.create_all()
    logger.warning("Database reset")
    click.echo("Database reset")


@manage.command("create-user")
@click.option("--email", prompt=True)
@click.option("--name", prompt=True)
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--organization", "organization_name", default=None, help="Also create an organization owned by the user.")
def create_user(email, name, password, organization_name):
    """Create a user account."""
    try:
        user = organizations.register_user(name, email, password)
    except ApiError as e:
        raise click.ClickException(e.message)
    click.echo(f"User {user.email} created (id {user.id})")
    if organization_name:
        organization = organizations.create_organization(user, {"name": organization_name})
        click.echo(f"Organization '{organization.name}' created (id {organization.id})")


def register_cli(app):
    app.cli.add_command(manage)
