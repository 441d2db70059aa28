from datetime import datetime
from clubhub.extensions import db
from clubhub.models.constants import ATTENDANCE_STATUSES, SESSION_STATUSES, check_in
from clubhub.utils.dates import iso


class TrainingSession(db.Model):
    __tablename__ = "training_sessions"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    start_time = db.Column(db.DateTime, nullable=False, index=True)
    end_time = db.Column(db.DateTime, nullable=False)
    status = db.Column(db.String(20), check_in("status", SESSION_STATUSES), nullable=False, default="pending", index=True)
    location_id = db.Column(db.Integer, db.ForeignKey("locations.id", ondelete="SET NULL"), index=True)
    athlete_group_id = db.Column(db.Integer, db.ForeignKey("athlete_groups.id", ondelete="SET NULL"), index=True)
    is_recurring = db.Column(db.Boolean, nullable=False, default=False, index=True)
    rrule = db.Column(db.Text)
    # Set on occurrences that replace a date of a recurring template
    recurring_session_id = db.Column(db.Integer, db.ForeignKey("training_sessions.id", ondelete="SET NULL"), index=True)
    original_start_time = db.Column(db.DateTime)
    objectives = db.Column(db.Text)
    planning = db.Column(db.Text)
    post_session_notes = db.Column(db.Text)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    location = db.relationship("Location")
    organization = db.relationship("Organization")
    athlete_group = db.relationship("AthleteGroup")
    coaches = db.relationship("TrainingSessionCoach", back_populates="session", cascade="all, delete-orphan")
    athletes = db.relationship("TrainingSessionAthlete", back_populates="session", cascade="all, delete-orphan")
    attendance = db.relationship("Attendance", back_populates="session", cascade="all, delete-orphan")
    exceptions = db.relationship(
        "RecurringSessionException",
        foreign_keys="RecurringSessionException.recurring_session_id",
        back_populates="recurring_session",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        db.CheckConstraint("end_time > start_time", name="ck_training_session_time_range"),
        db.Index("idx_training_session_org_start", "organization_id", "start_time"),
        db.Index("idx_training_session_org_status", "organization_id", "status"),
    )

    @property
    def duration_minutes(self):
        return round((self.end_time - self.start_time).total_seconds() / 60)

    @property
    def primary_coach(self):
        for assignment in self.coaches:
            if assignment.is_primary:
                return assignment.coach
        return self.coaches[0].coach if self.coaches else None

    @property
    def assigned_athletes(self):
        """Group members when the session has a group, otherwise the individually assigned athletes."""
        if self.athlete_group is not None:
            return [m.athlete for m in self.athlete_group.members if m.athlete is not None]
        return [a.athlete for a in self.athletes if a.athlete is not None]

    @property
    def athlete_count(self):
        if self.athlete_group is not None:
            return self.athlete_group.member_count
        return len(self.athletes)

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "start_time": iso(self.start_time),
            "end_time": iso(self.end_time),
            "status": self.status,
            "location": {"id": self.location.id, "name": self.location.name} if self.location else None,
            "athlete_group": {"id": self.athlete_group.id, "name": self.athlete_group.name} if self.athlete_group else None,
            "is_recurring": self.is_recurring,
            "rrule": self.rrule,
            "recurring_session_id": self.recurring_session_id,
            "original_start_time": iso(self.original_start_time),
            "objectives": self.objectives,
            "planning": self.planning,
            "post_session_notes": self.post_session_notes,
            "coaches": [
                {"id": c.coach_id, "name": c.coach.name if c.coach else None, "is_primary": c.is_primary}
                for c in self.coaches
            ],
            "athletes": [{"id": a.athlete_id, "name": a.athlete.name if a.athlete else None} for a in self.athletes],
            "athlete_count": self.athlete_count,
            "created_at": iso(self.created_at),
        }


class TrainingSessionCoach(db.Model):
    __tablename__ = "training_session_coaches"

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey("training_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    coach_id = db.Column(db.Integer, db.ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False, index=True)
    is_primary = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    session = db.relationship("TrainingSession", back_populates="coaches")
    coach = db.relationship("Coach")

    __table_args__ = (
        db.UniqueConstraint("session_id", "coach_id", name="uq_training_session_coach"),
    )


class TrainingSessionAthlete(db.Model):
    __tablename__ = "training_session_athletes"

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey("training_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    athlete_id = db.Column(db.Integer, db.ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    session = db.relationship("TrainingSession", back_populates="athletes")
    athlete = db.relationship("Athlete")

    __table_args__ = (
        db.UniqueConstraint("session_id", "athlete_id", name="uq_training_session_athlete"),
    )


class RecurringSessionException(db.Model):
    """A cancelled or replaced date of a recurring session."""
    __tablename__ = "recurring_session_exceptions"

    id = db.Column(db.Integer, primary_key=True)
    recurring_session_id = db.Column(db.Integer, db.ForeignKey("training_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    exception_date = db.Column(db.DateTime, nullable=False)
    replacement_session_id = db.Column(db.Integer, db.ForeignKey("training_sessions.id", ondelete="SET NULL"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    recurring_session = db.relationship("TrainingSession", foreign_keys=[recurring_session_id], back_populates="exceptions")
    replacement_session = db.relationship("TrainingSession", foreign_keys=[replacement_session_id])

    __table_args__ = (
        db.UniqueConstraint("recurring_session_id", "exception_date", name="uq_recurring_exception"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "recurring_session_id": self.recurring_session_id,
            "exception_date": iso(self.exception_date),
            "replacement_session_id": self.replacement_session_id,
        }


class Attendance(db.Model):
    __tablename__ = "attendance"

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey("training_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    athlete_id = db.Column(db.Integer, db.ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False, index=True)
    status = db.Column(db.String(20), check_in("status", ATTENDANCE_STATUSES), nullable=False, default="pending", index=True)
    notes = db.Column(db.Text)
    checked_in_at = db.Column(db.DateTime)
    recorded_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    session = db.relationship("TrainingSession", back_populates="attendance")
    athlete = db.relationship("Athlete")

    __table_args__ = (
        db.UniqueConstraint("session_id", "athlete_id", name="uq_attendance_session_athlete"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "session_id": self.session_id,
            "athlete_id": self.athlete_id,
            "athlete_name": self.athlete.name if self.athlete else None,
            "status": self.status,
            "notes": self.notes,
            "checked_in_at": iso(self.checked_in_at),
        }
