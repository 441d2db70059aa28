from datetime import datetime
from clubhub.extensions import db
from clubhub.models.constants import EXPENSE_CATEGORY_TYPES, PAYMENT_METHODS, check_in
from clubhub.utils.dates import iso


class ExpenseCategory(db.Model):
    __tablename__ = "expense_categories"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text)
    type = db.Column(db.String(20), check_in("type", EXPENSE_CATEGORY_TYPES), nullable=False, default="operational")
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("organization_id", "name", name="uq_expense_category_org_name"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": self.type,
            "is_active": self.is_active,
        }


class Expense(db.Model):
    __tablename__ = "expenses"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("expense_categories.id", ondelete="SET NULL"), index=True)
    event_id = db.Column(db.Integer, db.ForeignKey("sports_events.id", ondelete="SET NULL"), index=True)
    amount = db.Column(db.Integer, nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="ARS")
    description = db.Column(db.Text, nullable=False)
    expense_date = db.Column(db.DateTime, nullable=False, index=True)
    payment_method = db.Column(db.String(20), check_in("payment_method", PAYMENT_METHODS))
    receipt_number = db.Column(db.String(50))
    vendor = db.Column(db.String(150))
    notes = db.Column(db.Text)
    recorded_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = db.relationship("ExpenseCategory")

    def to_dict(self):
        return {
            "id": self.id,
            "category": self.category.to_dict() if self.category else None,
            "event_id": self.event_id,
            "amount": self.amount,
            "currency": self.currency,
            "description": self.description,
            "expense_date": iso(self.expense_date),
            "payment_method": self.payment_method,
            "receipt_number": self.receipt_number,
            "vendor": self.vendor,
            "notes": self.notes,
            "created_at": iso(self.created_at),
        }
