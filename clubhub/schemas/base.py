from marshmallow import EXCLUDE, fields, validate

from clubhub.extensions import ma
from clubhub.utils.dates import to_naive_utc

E164_PATTERN = r"^\+[1-9]\d{1,14}$"

phone_validator = validate.Regexp(E164_PATTERN, error="Phone must be in E.164 format (+1234567890)")


class BaseSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE


class NaiveDateTime(fields.DateTime):
    """ISO-8601 datetime stored as naive UTC."""

    def _deserialize(self, value, attr, data, **kwargs):
        return to_naive_utc(super()._deserialize(value, attr, data, **kwargs))


class Money(fields.Integer):
    """Amount in the smallest currency unit."""

    def __init__(self, **kwargs):
        kwargs.setdefault("strict", True)
        kwargs.setdefault("validate", validate.Range(min=0))
        super().__init__(**kwargs)


class Currency(fields.String):
    def __init__(self, **kwargs):
        kwargs.setdefault("validate", validate.Length(equal=3))
        super().__init__(**kwargs)


class IdList(fields.List):
    def __init__(self, **kwargs):
        super().__init__(fields.Integer(strict=True), **kwargs)


class BulkIdsSchema(BaseSchema):
    ids = IdList(required=True, validate=validate.Length(min=1))


def bulk_status_schema(statuses):
    class BulkStatusSchema(BulkIdsSchema):
        status = fields.String(required=True, validate=validate.OneOf(statuses))
    return BulkStatusSchema()


class BulkActiveSchema(BulkIdsSchema):
    is_active = fields.Boolean(required=True)
