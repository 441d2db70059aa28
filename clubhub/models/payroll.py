from datetime import datetime
from clubhub.extensions import db
from clubhub.models.constants import (
    COACH_PAYMENT_TYPES, PAYMENT_METHODS, PAYROLL_PERIOD_TYPES, PAYROLL_STAFF_TYPES,
    PAYROLL_STATUSES, check_in,
)
from clubhub.utils.dates import iso


class StaffPayroll(db.Model):
    __tablename__ = "staff_payroll"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    staff_type = db.Column(db.String(20), check_in("staff_type", PAYROLL_STAFF_TYPES), nullable=False)
    coach_id = db.Column(db.Integer, db.ForeignKey("coaches.id", ondelete="SET NULL"), index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), index=True)
    external_name = db.Column(db.String(150))
    external_email = db.Column(db.String(120))
    period_start = db.Column(db.DateTime, nullable=False)
    period_end = db.Column(db.DateTime, nullable=False)
    period_type = db.Column(db.String(20), check_in("period_type", PAYROLL_PERIOD_TYPES), nullable=False, default="monthly")
    coach_payment_type = db.Column(db.String(20), check_in("coach_payment_type", COACH_PAYMENT_TYPES))
    session_count = db.Column(db.Integer)
    rate_per_session = db.Column(db.Integer)
    base_salary = db.Column(db.Integer, nullable=False, default=0)
    bonuses = db.Column(db.Integer, nullable=False, default=0)
    deductions = db.Column(db.Integer, nullable=False, default=0)
    total_amount = db.Column(db.Integer, nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="ARS")
    concept = db.Column(db.String(255))
    status = db.Column(db.String(20), check_in("status", PAYROLL_STATUSES), nullable=False, default="pending", index=True)
    payment_method = db.Column(db.String(20), check_in("payment_method", PAYMENT_METHODS))
    payment_date = db.Column(db.DateTime)
    expense_id = db.Column(db.Integer, db.ForeignKey("expenses.id", ondelete="SET NULL"))
    notes = db.Column(db.Text)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    approved_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    approved_at = db.Column(db.DateTime)
    paid_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    coach = db.relationship("Coach")
    user = db.relationship("User", foreign_keys=[user_id])
    expense = db.relationship("Expense")

    __table_args__ = (
        db.CheckConstraint("period_end > period_start", name="ck_payroll_period_range"),
        db.Index("idx_payroll_org_status", "organization_id", "status"),
        db.Index("idx_payroll_org_period", "organization_id", "period_start"),
    )

    @property
    def staff_name(self):
        if self.staff_type == "coach" and self.coach:
            return self.coach.name
        if self.staff_type == "staff" and self.user:
            return self.user.name
        return self.external_name

    def compute_total(self):
        self.total_amount = (self.base_salary or 0) + (self.bonuses or 0) - (self.deductions or 0)
        return self.total_amount

    def to_dict(self):
        return {
            "id": self.id,
            "staff_type": self.staff_type,
            "staff_name": self.staff_name,
            "coach_id": self.coach_id,
            "user_id": self.user_id,
            "external_name": self.external_name,
            "external_email": self.external_email,
            "period_start": iso(self.period_start),
            "period_end": iso(self.period_end),
            "period_type": self.period_type,
            "coach_payment_type": self.coach_payment_type,
            "session_count": self.session_count,
            "rate_per_session": self.rate_per_session,
            "base_salary": self.base_salary,
            "bonuses": self.bonuses,
            "deductions": self.deductions,
            "total_amount": self.total_amount,
            "currency": self.currency,
            "concept": self.concept,
            "status": self.status,
            "payment_method": self.payment_method,
            "payment_date": iso(self.payment_date),
            "expense_id": self.expense_id,
            "notes": self.notes,
            "approved_by": self.approved_by,
            "approved_at": iso(self.approved_at),
            "paid_by": self.paid_by,
            "created_at": iso(self.created_at),
        }
