import logging

from flask_jwt_extended import decode_token
from flask_socketio import emit, join_room, leave_room
from jwt import PyJWTError

from clubhub.extensions import socketio
from clubhub.models import Member

logger = logging.getLogger(__name__)


def organization_room(organization_id):
    return f"org_{organization_id}"


def _member_for(data):
    """Member for the ``token`` and ``organization_id`` a client sends, or None."""
    try:
        claims = decode_token(data.get("token", ""))
        user_id = int(claims["sub"])
        organization_id = int(data.get("organization_id"))
    except (PyJWTError, TypeError, ValueError, KeyError) as e:
        logger.info("Rejected socket join: %s", e)
        return None
    return Member.query.filter_by(user_id=user_id, organization_id=organization_id).first()


@socketio.on("join_organization")
def on_join_organization(data):
    member = _member_for(data or {})
    if member is None:
        emit("error", {"msg": "You are not a member of this organization"})
        return
    join_room(organization_room(member.organization_id))
    emit("joined", {"organization_id": member.organization_id})


@socketio.on("leave_organization")
def on_leave_organization(data):
    organization_id = (data or {}).get("organization_id")
    if organization_id is not None:
        leave_room(organization_room(organization_id))
