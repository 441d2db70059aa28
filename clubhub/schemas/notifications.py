from marshmallow import ValidationError, fields, validate, validates

from clubhub.models.constants import NOTIFICATION_CHANNELS
from clubhub.schemas.base import BaseSchema, NaiveDateTime


class RecipientSchema(BaseSchema):
    email = fields.Email(allow_none=True)
    phone = fields.String(allow_none=True)
    name = fields.String(allow_none=True)


class NotificationSendSchema(BaseSchema):
    channel = fields.String(required=True, validate=validate.OneOf(NOTIFICATION_CHANNELS + ("auto",)))
    to = fields.Raw(required=True)
    template = fields.String(required=True, validate=validate.Length(min=1))
    data = fields.Dict(load_default=dict)
    subject = fields.String(allow_none=True)
    priority = fields.List(fields.String(validate=validate.OneOf(NOTIFICATION_CHANNELS)), allow_none=True)
    send_at = NaiveDateTime(allow_none=True)

    @validates("to")
    def validate_to(self, value, **kwargs):
        recipients = value if isinstance(value, list) else [value]
        if not recipients:
            raise ValidationError("At least one recipient is required")
        errors = {}
        for index, recipient in enumerate(recipients):
            if not isinstance(recipient, dict):
                errors[index] = ["Recipient must be an object"]
                continue
            problems = RecipientSchema().validate(recipient)
            if problems:
                errors[index] = problems
        if errors:
            raise ValidationError(errors)
