"""Column sets shared by athlete and coach profile sections."""

from datetime import datetime
from clubhub.extensions import db
from clubhub.utils.dates import iso


class AchievementFields:
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    type = db.Column(db.String(30), nullable=False, default="other")
    scope = db.Column(db.String(20), nullable=False, default="individual")
    year = db.Column(db.Integer, nullable=False)
    organization = db.Column(db.String(200))
    team = db.Column(db.String(200))
    competition = db.Column(db.String(200))
    position = db.Column(db.String(100))
    description = db.Column(db.Text)
    is_public = db.Column(db.Boolean, nullable=False, default=True)
    display_order = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "type": self.type,
            "scope": self.scope,
            "year": self.year,
            "organization": self.organization,
            "team": self.team,
            "competition": self.competition,
            "position": self.position,
            "description": self.description,
            "is_public": self.is_public,
            "display_order": self.display_order,
        }


class EducationFields:
    id = db.Column(db.Integer, primary_key=True)
    institution = db.Column(db.String(200), nullable=False)
    degree = db.Column(db.String(200))
    field_of_study = db.Column(db.String(200))
    academic_year = db.Column(db.String(50))
    start_date = db.Column(db.DateTime)
    end_date = db.Column(db.DateTime)
    expected_graduation_date = db.Column(db.DateTime)
    gpa = db.Column(db.String(10))
    is_current = db.Column(db.Boolean, nullable=False, default=False)
    notes = db.Column(db.Text)
    display_order = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "institution": self.institution,
            "degree": self.degree,
            "field_of_study": self.field_of_study,
            "academic_year": self.academic_year,
            "start_date": iso(self.start_date),
            "end_date": iso(self.end_date),
            "expected_graduation_date": iso(self.expected_graduation_date),
            "gpa": self.gpa,
            "is_current": self.is_current,
            "notes": self.notes,
            "display_order": self.display_order,
        }
