from datetime import datetime
from clubhub.extensions import db
from clubhub.utils.dates import iso


class AthleteGroup(db.Model):
    __tablename__ = "athlete_groups"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text)
    sport = db.Column(db.String(30))
    max_capacity = db.Column(db.Integer)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    archived_at = db.Column(db.DateTime)

    members = db.relationship("AthleteGroupMember", back_populates="group", cascade="all, delete-orphan")

    __table_args__ = (
        db.UniqueConstraint("organization_id", "name", name="uq_athlete_group_org_name"),
    )

    @property
    def member_count(self):
        return len(self.members)

    def to_dict(self, include_members=False):
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "sport": self.sport,
            "max_capacity": self.max_capacity,
            "is_active": self.is_active,
            "member_count": self.member_count,
            "created_at": iso(self.created_at),
        }
        if include_members:
            data["members"] = [
                {"athlete_id": m.athlete_id, "name": m.athlete.name if m.athlete else None}
                for m in self.members
            ]
        return data


class AthleteGroupMember(db.Model):
    __tablename__ = "athlete_group_members"

    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(db.Integer, db.ForeignKey("athlete_groups.id", ondelete="CASCADE"), nullable=False, index=True)
    athlete_id = db.Column(db.Integer, db.ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    group = db.relationship("AthleteGroup", back_populates="members")
    athlete = db.relationship("Athlete", back_populates="group_memberships")

    __table_args__ = (
        db.UniqueConstraint("group_id", "athlete_id", name="uq_athlete_group_member"),
    )
