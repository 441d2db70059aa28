from marshmallow import fields, validate

from clubhub.models.constants import (
    PAYMENT_METHODS, PRODUCT_CATEGORIES, PRODUCT_STATUSES, STOCK_TRANSACTION_TYPES,
)
from clubhub.schemas.base import BaseSchema, Currency, Money


class ProductSchema(BaseSchema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=150))
    description = fields.String(allow_none=True)
    sku = fields.String(allow_none=True, validate=validate.Length(max=64))
    barcode = fields.String(allow_none=True)
    category = fields.String(validate=validate.OneOf(PRODUCT_CATEGORIES))
    cost_price = Money()
    selling_price = Money()
    currency = Currency()
    track_stock = fields.Boolean()
    low_stock_threshold = fields.Integer(validate=validate.Range(min=0))
    current_stock = fields.Integer(validate=validate.Range(min=0))
    status = fields.String(validate=validate.OneOf(PRODUCT_STATUSES))
    image_url = fields.String(allow_none=True)
    tax_rate = fields.Integer(validate=validate.Range(min=0, max=100))
    notes = fields.String(allow_none=True)


class StockAdjustmentSchema(BaseSchema):
    quantity = fields.Integer(required=True, strict=True)
    type = fields.String(load_default="adjustment", validate=validate.OneOf(STOCK_TRANSACTION_TYPES))
    unit_cost = Money(allow_none=True)
    reason = fields.String(allow_none=True)
    notes = fields.String(allow_none=True)


class SaleItemSchema(BaseSchema):
    product_id = fields.Integer(required=True, strict=True)
    quantity = fields.Integer(required=True, validate=validate.Range(min=1))
    unit_price = Money(allow_none=True)
    discount_amount = Money(load_default=0)


class SaleSchema(BaseSchema):
    athlete_id = fields.Integer(allow_none=True)
    customer_name = fields.String(allow_none=True)
    items = fields.List(fields.Nested(SaleItemSchema), required=True, validate=validate.Length(min=1))
    discount_amount = Money(load_default=0)
    payment_method = fields.String(allow_none=True, validate=validate.OneOf(PAYMENT_METHODS))
    notes = fields.String(allow_none=True)


class CompleteSaleSchema(BaseSchema):
    payment_method = fields.String(allow_none=True, validate=validate.OneOf(PAYMENT_METHODS))
