from datetime import datetime
from clubhub.extensions import db
from clubhub.models.constants import (
    BUDGET_LINE_STATUSES, INVENTORY_STATUSES, RISK_PROBABILITIES, RISK_SEVERITIES,
    RISK_STATUSES, check_in,
)
from clubhub.utils.dates import iso


class EventVendor(db.Model):
    __tablename__ = "event_vendors"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text)
    contact_name = db.Column(db.String(150))
    email = db.Column(db.String(120))
    phone = db.Column(db.String(20))
    address = db.Column(db.String(255))
    city = db.Column(db.String(100))
    website_url = db.Column(db.String(255))
    categories = db.Column(db.JSON, default=list)
    rating = db.Column(db.Integer)
    tax_id = db.Column(db.String(50))
    payment_terms = db.Column(db.String(255))
    notes = db.Column(db.Text)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 5)", name="ck_vendor_rating"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "contact_name": self.contact_name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "website_url": self.website_url,
            "categories": self.categories or [],
            "rating": self.rating,
            "tax_id": self.tax_id,
            "payment_terms": self.payment_terms,
            "notes": self.notes,
            "is_active": self.is_active,
        }


class EventVendorAssignment(db.Model):
    __tablename__ = "event_vendor_assignments"

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey("sports_events.id", ondelete="CASCADE"), nullable=False, index=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("event_vendors.id", ondelete="CASCADE"), nullable=False, index=True)
    service_description = db.Column(db.Text)
    contract_value = db.Column(db.Integer)
    currency = db.Column(db.String(3), default="ARS")
    is_confirmed = db.Column(db.Boolean, nullable=False, default=False)
    confirmed_at = db.Column(db.DateTime)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    vendor = db.relationship("EventVendor")

    __table_args__ = (
        db.UniqueConstraint("event_id", "vendor_id", name="uq_event_vendor_assignment"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "event_id": self.event_id,
            "vendor": self.vendor.to_dict() if self.vendor else None,
            "service_description": self.service_description,
            "contract_value": self.contract_value,
            "currency": self.currency,
            "is_confirmed": self.is_confirmed,
            "confirmed_at": iso(self.confirmed_at),
            "notes": self.notes,
        }


class EventInventoryItem(db.Model):
    __tablename__ = "event_inventory"

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey("sports_events.id", ondelete="CASCADE"), nullable=False, index=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text)
    category = db.Column(db.String(50))
    quantity_needed = db.Column(db.Integer, nullable=False, default=1)
    quantity_available = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(20), check_in("status", INVENTORY_STATUSES), nullable=False, default="needed", index=True)
    source = db.Column(db.String(50))
    vendor_id = db.Column(db.Integer, db.ForeignKey("event_vendors.id", ondelete="SET NULL"))
    unit_cost = db.Column(db.Integer)
    total_cost = db.Column(db.Integer)
    currency = db.Column(db.String(3), default="ARS")
    zone = db.Column(db.String(100))
    storage_location = db.Column(db.String(150))
    responsible_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    notes = db.Column(db.Text)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    vendor = db.relationship("EventVendor")

    @property
    def quantity_missing(self):
        return max(0, self.quantity_needed - self.quantity_available)

    def to_dict(self):
        return {
            "id": self.id,
            "event_id": self.event_id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "quantity_needed": self.quantity_needed,
            "quantity_available": self.quantity_available,
            "quantity_missing": self.quantity_missing,
            "status": self.status,
            "source": self.source,
            "vendor": {"id": self.vendor.id, "name": self.vendor.name} if self.vendor else None,
            "unit_cost": self.unit_cost,
            "total_cost": self.total_cost,
            "currency": self.currency,
            "zone": self.zone,
            "storage_location": self.storage_location,
            "responsible_id": self.responsible_id,
            "notes": self.notes,
        }


class EventBudgetLine(db.Model):
    __tablename__ = "event_budget_lines"

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey("sports_events.id", ondelete="CASCADE"), nullable=False, index=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("expense_categories.id", ondelete="SET NULL"))
    name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text)
    planned_amount = db.Column(db.Integer, nullable=False, default=0)
    actual_amount = db.Column(db.Integer, nullable=False, default=0)
    currency = db.Column(db.String(3), nullable=False, default="ARS")
    status = db.Column(db.String(20), check_in("status", BUDGET_LINE_STATUSES), nullable=False, default="planned")
    is_revenue = db.Column(db.Boolean, nullable=False, default=False)
    vendor_id = db.Column(db.Integer, db.ForeignKey("event_vendors.id", ondelete="SET NULL"))
    notes = db.Column(db.Text)
    approved_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    approved_at = db.Column(db.DateTime)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = db.relationship("ExpenseCategory")
    vendor = db.relationship("EventVendor")

    def to_dict(self):
        return {
            "id": self.id,
            "event_id": self.event_id,
            "category": self.category.to_dict() if self.category else None,
            "name": self.name,
            "description": self.description,
            "planned_amount": self.planned_amount,
            "actual_amount": self.actual_amount,
            "variance": self.planned_amount - self.actual_amount,
            "currency": self.currency,
            "status": self.status,
            "is_revenue": self.is_revenue,
            "vendor_id": self.vendor_id,
            "notes": self.notes,
            "approved_at": iso(self.approved_at),
        }


class EventRisk(db.Model):
    __tablename__ = "event_risks"

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey("sports_events.id", ondelete="CASCADE"), nullable=False, index=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    category = db.Column(db.String(50))
    severity = db.Column(db.String(20), check_in("severity", RISK_SEVERITIES), nullable=False, default="medium")
    probability = db.Column(db.String(20), check_in("probability", RISK_PROBABILITIES), nullable=False, default="possible")
    risk_score = db.Column(db.Integer, index=True)
    status = db.Column(db.String(20), check_in("status", RISK_STATUSES), nullable=False, default="identified", index=True)
    mitigation_plan = db.Column(db.Text)
    mitigation_cost = db.Column(db.Integer)
    contingency_plan = db.Column(db.Text)
    trigger_conditions = db.Column(db.Text)
    potential_impact = db.Column(db.Text)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    last_reviewed_at = db.Column(db.DateTime)
    next_review_date = db.Column(db.DateTime)
    notes = db.Column(db.Text)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    logs = db.relationship(
        "EventRiskLog", back_populates="risk", cascade="all, delete-orphan",
        order_by="EventRiskLog.created_at.desc()",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "event_id": self.event_id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "severity": self.severity,
            "probability": self.probability,
            "risk_score": self.risk_score,
            "status": self.status,
            "mitigation_plan": self.mitigation_plan,
            "mitigation_cost": self.mitigation_cost,
            "contingency_plan": self.contingency_plan,
            "trigger_conditions": self.trigger_conditions,
            "potential_impact": self.potential_impact,
            "owner_id": self.owner_id,
            "last_reviewed_at": iso(self.last_reviewed_at),
            "next_review_date": iso(self.next_review_date),
            "notes": self.notes,
            "created_at": iso(self.created_at),
        }


class EventRiskLog(db.Model):
    __tablename__ = "event_risk_logs"

    id = db.Column(db.Integer, primary_key=True)
    risk_id = db.Column(db.Integer, db.ForeignKey("event_risks.id", ondelete="CASCADE"), nullable=False, index=True)
    action = db.Column(db.String(30), nullable=False)
    previous_status = db.Column(db.String(20))
    new_status = db.Column(db.String(20))
    description = db.Column(db.Text)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    risk = db.relationship("EventRisk", back_populates="logs")
    user = db.relationship("User")

    def to_dict(self):
        return {
            "id": self.id,
            "risk_id": self.risk_id,
            "action": self.action,
            "previous_status": self.previous_status,
            "new_status": self.new_status,
            "description": self.description,
            "user": {"id": self.user.id, "name": self.user.name} if self.user else None,
            "created_at": iso(self.created_at),
        }
