from datetime import datetime
from clubhub.extensions import db
from clubhub.models.constants import COACH_STATUSES, check_in
from clubhub.models.profile import AchievementFields, EducationFields
from clubhub.utils.dates import iso


class Coach(db.Model):
    __tablename__ = "coaches"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    phone = db.Column(db.String(20))
    birth_date = db.Column(db.DateTime)
    sport = db.Column(db.String(30))
    specialty = db.Column(db.String(150), nullable=False)
    bio = db.Column(db.Text)
    is_public_profile = db.Column(db.Boolean, nullable=False, default=False)
    status = db.Column(db.String(20), check_in("status", COACH_STATUSES), nullable=False, default="active", index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    archived_at = db.Column(db.DateTime)

    user = db.relationship("User", back_populates="coaches")
    organization = db.relationship("Organization")
    sports_experience = db.relationship("CoachSportsExperience", back_populates="coach", cascade="all, delete-orphan")
    achievements = db.relationship("CoachAchievement", back_populates="coach", cascade="all, delete-orphan")
    education = db.relationship("CoachEducation", back_populates="coach", cascade="all, delete-orphan")

    __table_args__ = (
        db.UniqueConstraint("organization_id", "user_id", name="uq_coach_org_user"),
    )

    @property
    def name(self):
        return self.user.name if self.user else None

    def to_dict(self):
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "user_id": self.user_id,
            "name": self.name,
            "email": self.user.email if self.user else None,
            "phone": self.phone,
            "birth_date": iso(self.birth_date),
            "sport": self.sport,
            "specialty": self.specialty,
            "bio": self.bio,
            "is_public_profile": self.is_public_profile,
            "status": self.status,
            "created_at": iso(self.created_at),
        }


class CoachSportsExperience(db.Model):
    __tablename__ = "coach_sports_experience"

    id = db.Column(db.Integer, primary_key=True)
    coach_id = db.Column(db.Integer, db.ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False, index=True)
    role = db.Column(db.String(100), nullable=False)  # e.g. "Head Coach"
    club_name = db.Column(db.String(200))
    sport = db.Column(db.String(30))
    level = db.Column(db.String(50))
    start_date = db.Column(db.DateTime)
    end_date = db.Column(db.DateTime)
    achievements = db.Column(db.Text)
    description = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    coach = db.relationship("Coach", back_populates="sports_experience")

    def to_dict(self):
        return {
            "id": self.id,
            "role": self.role,
            "club_name": self.club_name,
            "sport": self.sport,
            "level": self.level,
            "start_date": iso(self.start_date),
            "end_date": iso(self.end_date),
            "achievements": self.achievements,
            "description": self.description,
        }


class CoachAchievement(AchievementFields, db.Model):
    __tablename__ = "coach_achievements"

    coach_id = db.Column(db.Integer, db.ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False, index=True)
    coach = db.relationship("Coach", back_populates="achievements")


class CoachEducation(EducationFields, db.Model):
    __tablename__ = "coach_education"

    coach_id = db.Column(db.Integer, db.ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False, index=True)
    coach = db.relationship("Coach", back_populates="education")
