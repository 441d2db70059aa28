from datetime import datetime
from clubhub.extensions import db
from clubhub.models.constants import PAYMENT_METHODS, PAYMENT_STATUSES, check_in
from clubhub.utils.dates import iso


class TrainingPayment(db.Model):
    __tablename__ = "training_payments"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    session_id = db.Column(db.Integer, db.ForeignKey("training_sessions.id", ondelete="SET NULL"), index=True)
    athlete_id = db.Column(db.Integer, db.ForeignKey("athletes.id", ondelete="SET NULL"), index=True)
    amount = db.Column(db.Integer, nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="ARS")
    status = db.Column(db.String(20), check_in("status", PAYMENT_STATUSES), nullable=False, default="pending", index=True)
    payment_method = db.Column(db.String(20), check_in("payment_method", PAYMENT_METHODS))
    paid_amount = db.Column(db.Integer, nullable=False, default=0)
    discount_percentage = db.Column(db.Integer, nullable=False, default=0)
    payment_date = db.Column(db.DateTime, index=True)
    receipt_number = db.Column(db.String(50))
    notes = db.Column(db.Text)
    description = db.Column(db.Text)
    recorded_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    session = db.relationship("TrainingSession")
    athlete = db.relationship("Athlete")
    session_links = db.relationship("TrainingPaymentSession", back_populates="payment", cascade="all, delete-orphan")

    __table_args__ = (
        db.Index("idx_training_payment_org_status", "organization_id", "status"),
        db.Index("idx_training_payment_org_athlete", "organization_id", "athlete_id"),
    )

    @property
    def outstanding(self):
        return max(0, self.amount - (self.paid_amount or 0))

    def to_dict(self):
        return {
            "id": self.id,
            "session_id": self.session_id,
            "session_ids": [link.session_id for link in self.session_links],
            "athlete": {"id": self.athlete.id, "name": self.athlete.name} if self.athlete else None,
            "amount": self.amount,
            "currency": self.currency,
            "status": self.status,
            "payment_method": self.payment_method,
            "paid_amount": self.paid_amount,
            "outstanding": self.outstanding,
            "discount_percentage": self.discount_percentage,
            "payment_date": iso(self.payment_date),
            "receipt_number": self.receipt_number,
            "notes": self.notes,
            "description": self.description,
            "created_at": iso(self.created_at),
        }


class TrainingPaymentSession(db.Model):
    """Links one payment to several sessions (packages)."""
    __tablename__ = "training_payment_sessions"

    id = db.Column(db.Integer, primary_key=True)
    payment_id = db.Column(db.Integer, db.ForeignKey("training_payments.id", ondelete="CASCADE"), nullable=False, index=True)
    session_id = db.Column(db.Integer, db.ForeignKey("training_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    payment = db.relationship("TrainingPayment", back_populates="session_links")
    session = db.relationship("TrainingSession")

    __table_args__ = (
        db.UniqueConstraint("payment_id", "session_id", name="uq_training_payment_session"),
    )
