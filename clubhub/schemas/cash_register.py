from marshmallow import fields, validate

from clubhub.models.constants import CASH_MOVEMENT_TYPES
from clubhub.schemas.base import BaseSchema, Money


class OpenCashRegisterSchema(BaseSchema):
    opening_balance = Money(load_default=0)
    notes = fields.String(allow_none=True)


class CloseCashRegisterSchema(BaseSchema):
    closing_balance = Money(required=True)
    notes = fields.String(allow_none=True)


class MovementProductSchema(BaseSchema):
    product_id = fields.Integer(required=True, strict=True)
    quantity = fields.Integer(required=True, validate=validate.Range(min=1))


class CashMovementSchema(BaseSchema):
    type = fields.String(required=True, validate=validate.OneOf(CASH_MOVEMENT_TYPES))
    amount = Money(required=True, validate=validate.Range(min=1))
    description = fields.String(required=True, validate=validate.Length(min=1))
    products = fields.List(fields.Nested(MovementProductSchema), load_default=list)
