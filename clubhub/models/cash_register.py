from datetime import datetime
from clubhub.extensions import db
from clubhub.models.constants import (
    CASH_MOVEMENT_REFERENCE_TYPES, CASH_MOVEMENT_TYPES, CASH_REGISTER_STATUSES, check_in,
)
from clubhub.utils.dates import iso


class CashRegister(db.Model):
    """The cash drawer of one organization for one local day."""
    __tablename__ = "cash_registers"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False, index=True)
    opening_balance = db.Column(db.Integer, nullable=False, default=0)
    closing_balance = db.Column(db.Integer)
    status = db.Column(db.String(20), check_in("status", CASH_REGISTER_STATUSES), nullable=False, default="open", index=True)
    opened_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    closed_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    opened_at = db.Column(db.DateTime, default=datetime.utcnow)
    closed_at = db.Column(db.DateTime)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    movements = db.relationship(
        "CashMovement", back_populates="cash_register", cascade="all, delete-orphan",
        order_by="CashMovement.created_at.desc()",
    )

    __table_args__ = (
        db.UniqueConstraint("organization_id", "date", name="uq_cash_register_org_date"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "date": self.date.isoformat() if self.date else None,
            "opening_balance": self.opening_balance,
            "closing_balance": self.closing_balance,
            "status": self.status,
            "opened_by": self.opened_by,
            "closed_by": self.closed_by,
            "opened_at": iso(self.opened_at),
            "closed_at": iso(self.closed_at),
            "notes": self.notes,
        }


class CashMovement(db.Model):
    __tablename__ = "cash_movements"

    id = db.Column(db.Integer, primary_key=True)
    cash_register_id = db.Column(db.Integer, db.ForeignKey("cash_registers.id", ondelete="CASCADE"), nullable=False, index=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    type = db.Column(db.String(20), check_in("type", CASH_MOVEMENT_TYPES), nullable=False, index=True)
    amount = db.Column(db.Integer, nullable=False)  # always positive, type gives the direction
    description = db.Column(db.Text, nullable=False)
    reference_type = db.Column(
        db.String(20), check_in("reference_type", CASH_MOVEMENT_REFERENCE_TYPES), nullable=False, default="manual",
    )
    reference_id = db.Column(db.Integer)
    recorded_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    cash_register = db.relationship("CashRegister", back_populates="movements")

    __table_args__ = (
        db.CheckConstraint("amount > 0", name="ck_cash_movement_amount_positive"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "cash_register_id": self.cash_register_id,
            "type": self.type,
            "amount": self.amount,
            "description": self.description,
            "reference_type": self.reference_type,
            "reference_id": self.reference_id,
            "recorded_by": self.recorded_by,
            "created_at": iso(self.created_at),
        }
