"""Public athlete discovery. Exposes only public-safe profile data."""

from dateutil.relativedelta import relativedelta
from sqlalchemy import case

from clubhub.errors import NotFound
from clubhub.extensions import db
from clubhub.models import (
    Athlete, AthleteAchievement, AthleteCareerHistory, AthleteLanguage,
    AthleteReference, AthleteSponsor, User,
)
from clubhub.models.constants import LEVEL_ORDER
from clubhub.utils.dates import utcnow

SORTS = ("recent", "name", "level")


def _public_query():
    return Athlete.query.outerjoin(User, Athlete.user_id == User.id).filter(
        Athlete.is_public_profile.is_(True),
        Athlete.status == "active",
    )


def get_profile(athlete_id):
    athlete = db.session.get(Athlete, athlete_id)
    if not athlete:
        raise NotFound("Athlete profile not found")
    if athlete.status != "active" or not athlete.is_public_profile:
        raise NotFound("Athlete profile not available")

    career = (
        AthleteCareerHistory.query.filter_by(athlete_id=athlete.id)
        .order_by(AthleteCareerHistory.start_date.desc())
        .all()
    )
    languages = AthleteLanguage.query.filter_by(athlete_id=athlete.id).all()
    references = (
        AthleteReference.query.filter_by(athlete_id=athlete.id, is_public=True)
        .order_by(AthleteReference.display_order.asc())
        .all()
    )
    sponsors = (
        AthleteSponsor.query.filter_by(athlete_id=athlete.id, is_public=True)
        .order_by(AthleteSponsor.display_order.asc())
        .all()
    )
    achievements = (
        AthleteAchievement.query.filter_by(athlete_id=athlete.id, is_public=True)
        .order_by(AthleteAchievement.year.desc(), AthleteAchievement.display_order.asc())
        .all()
    )

    return {
        "athlete": athlete.public_dict(),
        "career_history": [
            {k: v for k, v in item.to_dict().items() if k != "notes"} for item in career
        ],
        "languages": [{k: v for k, v in item.to_dict().items() if k != "notes"} for item in languages],
        "references": [item.public_dict() for item in references],
        "sponsors": [
            {k: v for k, v in item.to_dict().items() if k not in ("is_public", "display_order")}
            for item in sponsors
        ],
        "achievements": [
            {k: v for k, v in item.to_dict().items() if k not in ("is_public", "display_order")}
            for item in achievements
        ],
    }


def list_athletes(limit=20, offset=0, query=None, sport=None, level=None, country=None,
                  nationality=None, position=None, min_age=None, max_age=None,
                  opportunity_types=None, sort_by="recent"):
    q = _public_query()

    if query and query.strip():
        q = q.filter(User.name.ilike(f"%{query.strip()}%"))
    if sport:
        q = q.filter(Athlete.sport == sport)
    if level:
        q = q.filter(Athlete.level == level)
    if country:
        q = q.filter(Athlete.residence_country == country)
    if nationality:
        q = q.filter(Athlete.nationality == nationality)
    if position:
        q = q.filter(Athlete.position.ilike(f"%{position}%"))

    today = utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
    if max_age is not None:
        # born after the day they would have turned max_age + 1
        q = q.filter(Athlete.birth_date > today - relativedelta(years=max_age + 1))
    if min_age is not None:
        q = q.filter(Athlete.birth_date <= today - relativedelta(years=min_age))

    if sort_by == "name":
        q = q.order_by(User.name.asc().nulls_last())
    elif sort_by == "level":
        level_rank = case(LEVEL_ORDER, value=Athlete.level)
        q = q.order_by(level_rank.desc(), User.name.asc().nulls_last())
    else:
        q = q.order_by(Athlete.public_profile_enabled_at.desc(), Athlete.created_at.desc())

    if opportunity_types:
        # JSON list column; matched in Python to stay database-agnostic
        wanted = set(opportunity_types)
        matches = [a for a in q.all() if wanted & set(a.opportunity_types or [])]
        return matches[offset:offset + limit], len(matches)

    total = q.order_by(None).count()
    return q.limit(limit).offset(offset).all(), total
