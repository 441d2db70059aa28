import logging
import re
import unicodedata

from sqlalchemy.exc import IntegrityError

from clubhub.errors import Conflict, NotFound
from clubhub.extensions import db

logger = logging.getLogger(__name__)


def get_scoped(model, object_id, organization_id, message=None):
    """Loads ``model`` by id within an organization or raises NotFound."""
    obj = model.query.filter_by(id=object_id, organization_id=organization_id).first()
    if obj is None:
        raise NotFound(message or f"{model.__name__} not found")
    return obj


def scoped_ids(model, ids, organization_id):
    """The subset of ``ids`` that belong to the organization."""
    if not ids:
        return set()
    rows = db.session.query(model.id).filter(
        model.id.in_(ids), model.organization_id == organization_id
    ).all()
    return {row[0] for row in rows}


def commit_or_conflict(message):
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        logger.info("Integrity error: %s", e.orig)
        raise Conflict(message)


def apply_fields(obj, data, exclude=()):
    for key, value in data.items():
        if key not in exclude:
            setattr(obj, key, value)
    return obj


def slugify(value):
    value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^a-zA-Z0-9]+", "-", value).strip("-").lower()
    return value or "item"


def unique_slug(model, base, **scope):
    slug = slugify(base)
    candidate, suffix = slug, 2
    while model.query.filter_by(slug=candidate, **scope).first() is not None:
        candidate = f"{slug}-{suffix}"
        suffix += 1
    return candidate


def bulk_delete(model, ids, organization_id):
    # Row by row so relationship cascades run
    objects = model.query.filter(
        model.id.in_(ids), model.organization_id == organization_id
    ).all()
    for obj in objects:
        db.session.delete(obj)
    db.session.commit()
    return len(objects)


def bulk_update(model, ids, organization_id, values):
    updated = model.query.filter(
        model.id.in_(ids), model.organization_id == organization_id
    ).update(values, synchronize_session=False)
    db.session.commit()
    return updated
