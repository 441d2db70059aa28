from marshmallow import fields, validate, validates_schema, ValidationError

from clubhub.models.constants import (
    BUDGET_LINE_STATUSES, EVENT_STATUSES, EVENT_TYPES, INVENTORY_STATUSES,
    REGISTRATION_STATUSES, RISK_PROBABILITIES, RISK_SEVERITIES, RISK_STATUSES,
)
from clubhub.schemas.base import BaseSchema, Currency, Money, NaiveDateTime


class SportsEventSchema(BaseSchema):
    title = fields.String(required=True, validate=validate.Length(min=1, max=200))
    slug = fields.String(validate=validate.Regexp(r"^[a-z0-9-]+$"))
    description = fields.String(allow_none=True)
    event_type = fields.String(validate=validate.OneOf(EVENT_TYPES))
    status = fields.String(validate=validate.OneOf(EVENT_STATUSES))
    start_date = NaiveDateTime(required=True)
    end_date = NaiveDateTime(required=True)
    registration_open_date = NaiveDateTime(allow_none=True)
    registration_close_date = NaiveDateTime(allow_none=True)
    location_id = fields.Integer(allow_none=True)
    venue_details = fields.String(allow_none=True)
    max_capacity = fields.Integer(allow_none=True, validate=validate.Range(min=1))
    enable_waitlist = fields.Boolean()
    max_waitlist_size = fields.Integer(allow_none=True, validate=validate.Range(min=0))
    currency = Currency()
    contact_email = fields.Email(allow_none=True)
    contact_phone = fields.String(allow_none=True)

    @validates_schema
    def validate_dates(self, data, **kwargs):
        start, end = data.get("start_date"), data.get("end_date")
        if start and end and end < start:
            raise ValidationError("End date must be on or after start date", "end_date")


class EventStatusSchema(BaseSchema):
    status = fields.String(required=True, validate=validate.OneOf(EVENT_STATUSES))


class RegistrationSchema(BaseSchema):
    athlete_id = fields.Integer(allow_none=True)
    user_id = fields.Integer(allow_none=True)
    registrant_name = fields.String(required=True, validate=validate.Length(min=1, max=150))
    registrant_email = fields.Email(required=True)
    registrant_phone = fields.String(allow_none=True)
    price = Money(required=True)
    paid_amount = Money()
    discount_amount = Money()
    notes = fields.String(allow_none=True)
    internal_notes = fields.String(allow_none=True)
    registration_source = fields.String(validate=validate.OneOf(("admin", "public", "import")))


class RegistrationUpdateSchema(BaseSchema):
    status = fields.String(validate=validate.OneOf(REGISTRATION_STATUSES))
    registrant_name = fields.String(validate=validate.Length(min=1, max=150))
    registrant_email = fields.Email()
    registrant_phone = fields.String(allow_none=True)
    price = Money()
    paid_amount = Money()
    discount_amount = Money()
    notes = fields.String(allow_none=True)
    internal_notes = fields.String(allow_none=True)


class VendorSchema(BaseSchema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=150))
    description = fields.String(allow_none=True)
    contact_name = fields.String(allow_none=True)
    email = fields.Email(allow_none=True)
    phone = fields.String(allow_none=True)
    address = fields.String(allow_none=True)
    city = fields.String(allow_none=True)
    website_url = fields.Url(allow_none=True)
    categories = fields.List(fields.String())
    rating = fields.Integer(allow_none=True, validate=validate.Range(min=1, max=5))
    tax_id = fields.String(allow_none=True)
    payment_terms = fields.String(allow_none=True)
    notes = fields.String(allow_none=True)
    is_active = fields.Boolean()


class VendorAssignmentSchema(BaseSchema):
    vendor_id = fields.Integer(required=True, strict=True)
    service_description = fields.String(allow_none=True)
    contract_value = Money(allow_none=True)
    currency = Currency()
    is_confirmed = fields.Boolean()
    notes = fields.String(allow_none=True)


class InventoryItemSchema(BaseSchema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=150))
    description = fields.String(allow_none=True)
    category = fields.String(allow_none=True)
    quantity_needed = fields.Integer(validate=validate.Range(min=0))
    quantity_available = fields.Integer(validate=validate.Range(min=0))
    status = fields.String(validate=validate.OneOf(INVENTORY_STATUSES))
    source = fields.String(allow_none=True)
    vendor_id = fields.Integer(allow_none=True)
    unit_cost = Money(allow_none=True)
    total_cost = Money(allow_none=True)
    currency = Currency()
    zone = fields.String(allow_none=True)
    storage_location = fields.String(allow_none=True)
    responsible_id = fields.Integer(allow_none=True)
    notes = fields.String(allow_none=True)


class BudgetLineSchema(BaseSchema):
    category_id = fields.Integer(allow_none=True)
    name = fields.String(required=True, validate=validate.Length(min=1, max=150))
    description = fields.String(allow_none=True)
    planned_amount = Money()
    actual_amount = Money()
    currency = Currency()
    status = fields.String(validate=validate.OneOf(BUDGET_LINE_STATUSES))
    is_revenue = fields.Boolean()
    vendor_id = fields.Integer(allow_none=True)
    notes = fields.String(allow_none=True)


class RiskSchema(BaseSchema):
    title = fields.String(required=True, validate=validate.Length(min=1, max=200))
    description = fields.String(allow_none=True)
    category = fields.String(allow_none=True)
    severity = fields.String(validate=validate.OneOf(RISK_SEVERITIES))
    probability = fields.String(validate=validate.OneOf(RISK_PROBABILITIES))
    status = fields.String(validate=validate.OneOf(RISK_STATUSES))
    mitigation_plan = fields.String(allow_none=True)
    mitigation_cost = Money(allow_none=True)
    contingency_plan = fields.String(allow_none=True)
    trigger_conditions = fields.String(allow_none=True)
    potential_impact = fields.String(allow_none=True)
    owner_id = fields.Integer(allow_none=True)
    next_review_date = NaiveDateTime(allow_none=True)
    notes = fields.String(allow_none=True)
