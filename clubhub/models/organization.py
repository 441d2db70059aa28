from datetime import datetime
from clubhub.extensions import db
from clubhub.models.constants import MEMBER_ROLES, check_in
from clubhub.utils.dates import iso


class Organization(db.Model):
    __tablename__ = "organizations"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False, index=True)
    slug = db.Column(db.String(150), unique=True)
    logo = db.Column(db.String(255))
    timezone = db.Column(db.String(64), nullable=False, default="America/Argentina/Buenos_Aires")
    locale = db.Column(db.String(10), nullable=False, default="es")
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    members = db.relationship("Member", back_populates="organization", cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "logo": self.logo,
            "timezone": self.timezone,
            "locale": self.locale,
            "created_at": iso(self.created_at),
        }


class Member(db.Model):
    __tablename__ = "members"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = db.Column(db.String(20), check_in("role", MEMBER_ROLES), nullable=False, default="member", index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    organization = db.relationship("Organization", back_populates="members")
    user = db.relationship("User", back_populates="memberships")

    __table_args__ = (
        db.UniqueConstraint("user_id", "organization_id", name="uq_member_user_org"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "role": self.role,
            "user": self.user.to_dict() if self.user else None,
            "created_at": iso(self.created_at),
        }
