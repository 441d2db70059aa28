from datetime import datetime
from clubhub.extensions import db
from clubhub.models.constants import (
    ATHLETE_LEVELS, ATHLETE_STATUSES, DOMINANT_SIDES, LANGUAGE_LEVELS, check_in,
)
from clubhub.models.profile import AchievementFields, EducationFields
from clubhub.utils.dates import age_on, iso


class Athlete(db.Model):
    __tablename__ = "athletes"

    id = db.Column(db.Integer, primary_key=True)
    # Athletes may sign up publicly and join an organization later
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id", ondelete="CASCADE"), index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), index=True)

    sport = db.Column(db.String(30), nullable=False)
    birth_date = db.Column(db.DateTime)
    level = db.Column(db.String(20), check_in("level", ATHLETE_LEVELS), nullable=False, default="beginner")
    status = db.Column(db.String(20), check_in("status", ATHLETE_STATUSES), nullable=False, default="active", index=True)

    height = db.Column(db.Integer)  # cm
    weight = db.Column(db.Integer)  # grams
    dominant_foot = db.Column(db.String(10), check_in("dominant_foot", DOMINANT_SIDES))
    dominant_hand = db.Column(db.String(10), check_in("dominant_hand", DOMINANT_SIDES))

    phone = db.Column(db.String(20))  # E.164
    category = db.Column(db.String(50))
    nationality = db.Column(db.String(80))
    position = db.Column(db.String(80))
    secondary_position = db.Column(db.String(80))
    jersey_number = db.Column(db.Integer)
    profile_photo_url = db.Column(db.String(255))
    bio = db.Column(db.Text)
    years_of_experience = db.Column(db.Integer)
    youtube_videos = db.Column(db.JSON, default=list)

    parent_name = db.Column(db.String(150))
    parent_phone = db.Column(db.String(20))
    parent_email = db.Column(db.String(120))
    parent_relationship = db.Column(db.String(30))

    residence_city = db.Column(db.String(100))
    residence_country = db.Column(db.String(100))

    is_public_profile = db.Column(db.Boolean, nullable=False, default=False)
    opportunity_types = db.Column(db.JSON, default=list)
    public_profile_enabled_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    archived_at = db.Column(db.DateTime)

    user = db.relationship("User", back_populates="athletes")
    organization = db.relationship("Organization")
    career_history = db.relationship("AthleteCareerHistory", back_populates="athlete", cascade="all, delete-orphan")
    education = db.relationship("AthleteEducation", back_populates="athlete", cascade="all, delete-orphan")
    achievements = db.relationship("AthleteAchievement", back_populates="athlete", cascade="all, delete-orphan")
    languages = db.relationship("AthleteLanguage", back_populates="athlete", cascade="all, delete-orphan")
    references = db.relationship("AthleteReference", back_populates="athlete", cascade="all, delete-orphan")
    sponsors = db.relationship("AthleteSponsor", back_populates="athlete", cascade="all, delete-orphan")
    group_memberships = db.relationship("AthleteGroupMember", back_populates="athlete", cascade="all, delete-orphan")

    __table_args__ = (
        db.Index("idx_athlete_org_status", "organization_id", "status"),
        db.Index("idx_athlete_public", "is_public_profile", "status"),
    )

    @property
    def name(self):
        return self.user.name if self.user else None

    @property
    def email(self):
        return self.user.email if self.user else None

    @property
    def age(self):
        return age_on(self.birth_date) if self.birth_date else None

    def public_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "image": self.profile_photo_url or (self.user.image if self.user else None),
            "sport": self.sport,
            "level": self.level,
            "age": self.age,
            "birth_date": iso(self.birth_date),
            "nationality": self.nationality,
            "position": self.position,
            "secondary_position": self.secondary_position,
            "jersey_number": self.jersey_number,
            "height": self.height,
            "weight": self.weight,
            "dominant_foot": self.dominant_foot,
            "dominant_hand": self.dominant_hand,
            "bio": self.bio,
            "years_of_experience": self.years_of_experience,
            "youtube_videos": self.youtube_videos or [],
            "residence_city": self.residence_city,
            "residence_country": self.residence_country,
            "opportunity_types": self.opportunity_types or [],
            "public_profile_enabled_at": iso(self.public_profile_enabled_at),
        }

    def to_dict(self):
        data = self.public_dict()
        data.update({
            "organization_id": self.organization_id,
            "user_id": self.user_id,
            "email": self.email,
            "status": self.status,
            "category": self.category,
            "phone": self.phone,
            "parent_name": self.parent_name,
            "parent_phone": self.parent_phone,
            "parent_email": self.parent_email,
            "parent_relationship": self.parent_relationship,
            "is_public_profile": self.is_public_profile,
            "created_at": iso(self.created_at),
            "archived_at": iso(self.archived_at),
        })
        return data


class AthleteCareerHistory(db.Model):
    __tablename__ = "athlete_career_history"

    id = db.Column(db.Integer, primary_key=True)
    athlete_id = db.Column(db.Integer, db.ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False, index=True)
    club_name = db.Column(db.String(200), nullable=False)
    start_date = db.Column(db.DateTime)
    end_date = db.Column(db.DateTime)
    position = db.Column(db.String(80))
    achievements = db.Column(db.Text)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    athlete = db.relationship("Athlete", back_populates="career_history")

    def to_dict(self):
        return {
            "id": self.id,
            "club_name": self.club_name,
            "start_date": iso(self.start_date),
            "end_date": iso(self.end_date),
            "position": self.position,
            "achievements": self.achievements,
            "notes": self.notes,
        }


class AthleteEducation(EducationFields, db.Model):
    __tablename__ = "athlete_education"

    athlete_id = db.Column(db.Integer, db.ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False, index=True)
    athlete = db.relationship("Athlete", back_populates="education")


class AthleteAchievement(AchievementFields, db.Model):
    __tablename__ = "athlete_achievements"

    athlete_id = db.Column(db.Integer, db.ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False, index=True)
    athlete = db.relationship("Athlete", back_populates="achievements")


class AthleteLanguage(db.Model):
    __tablename__ = "athlete_languages"

    id = db.Column(db.Integer, primary_key=True)
    athlete_id = db.Column(db.Integer, db.ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False, index=True)
    language = db.Column(db.String(10), nullable=False)  # ISO 639-1
    level = db.Column(db.String(20), check_in("level", LANGUAGE_LEVELS), nullable=False, default="basic")
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    athlete = db.relationship("Athlete", back_populates="languages")

    __table_args__ = (
        db.UniqueConstraint("athlete_id", "language", name="uq_athlete_language"),
    )

    def to_dict(self):
        return {"id": self.id, "language": self.language, "level": self.level, "notes": self.notes}


class AthleteReference(db.Model):
    __tablename__ = "athlete_references"

    id = db.Column(db.Integer, primary_key=True)
    athlete_id = db.Column(db.Integer, db.ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(150), nullable=False)
    relationship = db.Column(db.String(100), nullable=False)
    organization = db.Column(db.String(200))
    position = db.Column(db.String(100))
    email = db.Column(db.String(120))
    phone = db.Column(db.String(20))
    testimonial = db.Column(db.Text)
    skills_highlighted = db.Column(db.JSON, default=list)
    is_verified = db.Column(db.Boolean, nullable=False, default=False)
    verified_at = db.Column(db.DateTime)
    is_public = db.Column(db.Boolean, nullable=False, default=True)
    display_order = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    athlete = db.relationship("Athlete", back_populates="references")

    def public_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "relationship": self.relationship,
            "organization": self.organization,
            "position": self.position,
            "testimonial": self.testimonial,
            "skills_highlighted": self.skills_highlighted or [],
            "is_verified": self.is_verified,
        }

    def to_dict(self):
        data = self.public_dict()
        data.update({
            "email": self.email,
            "phone": self.phone,
            "is_public": self.is_public,
            "display_order": self.display_order,
        })
        return data


class AthleteSponsor(db.Model):
    __tablename__ = "athlete_sponsors"

    id = db.Column(db.Integer, primary_key=True)
    athlete_id = db.Column(db.Integer, db.ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(150), nullable=False)
    website = db.Column(db.String(255))
    description = db.Column(db.Text)
    partnership_type = db.Column(db.String(50))
    start_date = db.Column(db.DateTime)
    end_date = db.Column(db.DateTime)  # null while ongoing
    is_public = db.Column(db.Boolean, nullable=False, default=True)
    display_order = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    athlete = db.relationship("Athlete", back_populates="sponsors")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "website": self.website,
            "description": self.description,
            "partnership_type": self.partnership_type,
            "start_date": iso(self.start_date),
            "end_date": iso(self.end_date),
            "is_public": self.is_public,
            "display_order": self.display_order,
        }
