from datetime import datetime
from clubhub.extensions import db
from clubhub.utils.dates import iso


class Location(db.Model):
    __tablename__ = "locations"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(150), nullable=False, index=True)
    address = db.Column(db.String(255))
    city = db.Column(db.String(100))
    state = db.Column(db.String(100))
    country = db.Column(db.String(100))
    postal_code = db.Column(db.String(20))
    capacity = db.Column(db.Integer)
    notes = db.Column(db.Text)
    color = db.Column(db.String(7))  # hex, e.g. "#3b82f6"
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.Index("idx_location_org_active", "organization_id", "is_active"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "country": self.country,
            "postal_code": self.postal_code,
            "capacity": self.capacity,
            "notes": self.notes,
            "color": self.color,
            "is_active": self.is_active,
            "created_at": iso(self.created_at),
        }
