from datetime import datetime
from clubhub.extensions import db
from clubhub.models.constants import EVENT_STATUSES, EVENT_TYPES, REGISTRATION_STATUSES, check_in
from clubhub.utils.dates import iso


class SportsEvent(db.Model):
    __tablename__ = "sports_events"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    slug = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    event_type = db.Column(db.String(20), check_in("event_type", EVENT_TYPES), nullable=False, default="other")
    status = db.Column(db.String(30), check_in("status", EVENT_STATUSES), nullable=False, default="draft", index=True)
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)
    registration_open_date = db.Column(db.DateTime)
    registration_close_date = db.Column(db.DateTime)
    location_id = db.Column(db.Integer, db.ForeignKey("locations.id", ondelete="SET NULL"))
    venue_details = db.Column(db.Text)
    max_capacity = db.Column(db.Integer)
    current_registrations = db.Column(db.Integer, nullable=False, default=0)
    enable_waitlist = db.Column(db.Boolean, nullable=False, default=True)
    max_waitlist_size = db.Column(db.Integer)
    currency = db.Column(db.String(3), nullable=False, default="ARS")
    contact_email = db.Column(db.String(120))
    contact_phone = db.Column(db.String(20))
    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    location = db.relationship("Location")
    registrations = db.relationship("EventRegistration", back_populates="event", cascade="all, delete-orphan")

    __table_args__ = (
        db.UniqueConstraint("organization_id", "slug", name="uq_sports_event_org_slug"),
        db.CheckConstraint("end_date >= start_date", name="ck_sports_event_date_range"),
    )

    @property
    def is_full(self):
        return self.max_capacity is not None and self.current_registrations >= self.max_capacity

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "description": self.description,
            "event_type": self.event_type,
            "status": self.status,
            "start_date": iso(self.start_date),
            "end_date": iso(self.end_date),
            "registration_open_date": iso(self.registration_open_date),
            "registration_close_date": iso(self.registration_close_date),
            "location": {"id": self.location.id, "name": self.location.name} if self.location else None,
            "venue_details": self.venue_details,
            "max_capacity": self.max_capacity,
            "current_registrations": self.current_registrations,
            "enable_waitlist": self.enable_waitlist,
            "max_waitlist_size": self.max_waitlist_size,
            "currency": self.currency,
            "contact_email": self.contact_email,
            "contact_phone": self.contact_phone,
            "created_at": iso(self.created_at),
        }


class EventRegistration(db.Model):
    __tablename__ = "event_registrations"

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey("sports_events.id", ondelete="CASCADE"), nullable=False, index=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    registration_number = db.Column(db.Integer, nullable=False)
    athlete_id = db.Column(db.Integer, db.ForeignKey("athletes.id", ondelete="SET NULL"))
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    registrant_name = db.Column(db.String(150), nullable=False)
    registrant_email = db.Column(db.String(120), nullable=False)
    registrant_phone = db.Column(db.String(20))
    status = db.Column(db.String(20), check_in("status", REGISTRATION_STATUSES), nullable=False, default="pending_payment", index=True)
    waitlist_position = db.Column(db.Integer)
    price = db.Column(db.Integer, nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="ARS")
    paid_amount = db.Column(db.Integer, nullable=False, default=0)
    discount_amount = db.Column(db.Integer, nullable=False, default=0)
    notes = db.Column(db.Text)
    internal_notes = db.Column(db.Text)
    registration_source = db.Column(db.String(20), default="admin")
    registered_at = db.Column(db.DateTime, default=datetime.utcnow)
    confirmed_at = db.Column(db.DateTime)
    cancelled_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    event = db.relationship("SportsEvent", back_populates="registrations")
    athlete = db.relationship("Athlete")

    __table_args__ = (
        db.UniqueConstraint("event_id", "registration_number", name="uq_event_registration_number"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "event_id": self.event_id,
            "registration_number": self.registration_number,
            "athlete_id": self.athlete_id,
            "registrant_name": self.registrant_name,
            "registrant_email": self.registrant_email,
            "registrant_phone": self.registrant_phone,
            "status": self.status,
            "waitlist_position": self.waitlist_position,
            "price": self.price,
            "currency": self.currency,
            "paid_amount": self.paid_amount,
            "discount_amount": self.discount_amount,
            "notes": self.notes,
            "registered_at": iso(self.registered_at),
            "confirmed_at": iso(self.confirmed_at),
            "cancelled_at": iso(self.cancelled_at),
        }
