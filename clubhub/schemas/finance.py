from marshmallow import fields, validate, validates_schema, ValidationError

from clubhub.models.constants import (
    COACH_PAYMENT_TYPES, EXPENSE_CATEGORY_TYPES, PAYMENT_METHODS, PAYMENT_STATUSES,
    PAYROLL_PERIOD_TYPES, PAYROLL_STAFF_TYPES,
)
from clubhub.schemas.base import BaseSchema, Currency, IdList, Money, NaiveDateTime


class TrainingPaymentSchema(BaseSchema):
    athlete_id = fields.Integer(required=True, strict=True)
    session_id = fields.Integer(allow_none=True)
    session_ids = IdList()
    amount = Money(required=True)
    currency = Currency()
    status = fields.String(validate=validate.OneOf(PAYMENT_STATUSES))
    payment_method = fields.String(allow_none=True, validate=validate.OneOf(PAYMENT_METHODS))
    paid_amount = Money()
    discount_percentage = fields.Integer(validate=validate.Range(min=0, max=100))
    payment_date = NaiveDateTime(allow_none=True)
    receipt_number = fields.String(allow_none=True)
    notes = fields.String(allow_none=True)
    description = fields.String(allow_none=True)


class RecordPaymentSchema(BaseSchema):
    amount = Money(required=True, validate=validate.Range(min=1))
    payment_method = fields.String(allow_none=True, validate=validate.OneOf(PAYMENT_METHODS))
    payment_date = NaiveDateTime(allow_none=True)
    receipt_number = fields.String(allow_none=True)
    notes = fields.String(allow_none=True)


class PayrollSchema(BaseSchema):
    staff_type = fields.String(required=True, validate=validate.OneOf(PAYROLL_STAFF_TYPES))
    coach_id = fields.Integer(allow_none=True)
    user_id = fields.Integer(allow_none=True)
    external_name = fields.String(allow_none=True)
    external_email = fields.Email(allow_none=True)
    period_start = NaiveDateTime(required=True)
    period_end = NaiveDateTime(required=True)
    period_type = fields.String(validate=validate.OneOf(PAYROLL_PERIOD_TYPES))
    coach_payment_type = fields.String(allow_none=True, validate=validate.OneOf(COACH_PAYMENT_TYPES))
    session_count = fields.Integer(allow_none=True, validate=validate.Range(min=0))
    rate_per_session = Money(allow_none=True)
    base_salary = Money()
    bonuses = Money()
    deductions = Money()
    currency = Currency()
    concept = fields.String(allow_none=True)
    notes = fields.String(allow_none=True)

    @validates_schema
    def validate_staff(self, data, **kwargs):
        staff_type = data.get("staff_type")
        if staff_type == "coach" and not data.get("coach_id"):
            raise ValidationError("coach_id is required for coach payroll", "coach_id")
        if staff_type == "staff" and not data.get("user_id"):
            raise ValidationError("user_id is required for staff payroll", "user_id")
        if staff_type == "external" and not data.get("external_name"):
            raise ValidationError("external_name is required for external payroll", "external_name")


class PayrollPaySchema(BaseSchema):
    payment_method = fields.String(required=True, validate=validate.OneOf(PAYMENT_METHODS))
    payment_date = NaiveDateTime(allow_none=True)
    create_expense = fields.Boolean(load_default=True)


class ExpenseCategorySchema(BaseSchema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=150))
    description = fields.String(allow_none=True)
    type = fields.String(validate=validate.OneOf(EXPENSE_CATEGORY_TYPES))
    is_active = fields.Boolean()


class ExpenseSchema(BaseSchema):
    category_id = fields.Integer(allow_none=True)
    event_id = fields.Integer(allow_none=True)
    amount = Money(required=True)
    currency = Currency()
    description = fields.String(required=True, validate=validate.Length(min=1))
    expense_date = NaiveDateTime(required=True)
    payment_method = fields.String(allow_none=True, validate=validate.OneOf(PAYMENT_METHODS))
    receipt_number = fields.String(allow_none=True)
    vendor = fields.String(allow_none=True)
    notes = fields.String(allow_none=True)
