import pytz
from marshmallow import fields, validate, validates, ValidationError

from clubhub.models.constants import MEMBER_ROLES
from clubhub.schemas.base import BaseSchema, IdList, phone_validator


class RegisterSchema(BaseSchema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=150))
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=8))
    phone = fields.String(validate=phone_validator, allow_none=True)


class LoginSchema(BaseSchema):
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)


class OrganizationSchema(BaseSchema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=150))
    slug = fields.String(validate=validate.Regexp(r"^[a-z0-9-]+$"), allow_none=True)
    logo = fields.String(allow_none=True)
    timezone = fields.String()
    locale = fields.String(validate=validate.Length(max=10))

    @validates("timezone")
    def validate_timezone(self, value, **kwargs):
        if value not in pytz.all_timezones_set:
            raise ValidationError("Unknown timezone")


class MemberAddSchema(BaseSchema):
    email = fields.Email(required=True)
    role = fields.String(load_default="member", validate=validate.OneOf(MEMBER_ROLES))


class MemberRoleSchema(BaseSchema):
    role = fields.String(required=True, validate=validate.OneOf(MEMBER_ROLES))


class LocationSchema(BaseSchema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=150))
    address = fields.String(allow_none=True)
    city = fields.String(allow_none=True)
    state = fields.String(allow_none=True)
    country = fields.String(allow_none=True)
    postal_code = fields.String(allow_none=True)
    capacity = fields.Integer(allow_none=True, validate=validate.Range(min=1))
    notes = fields.String(allow_none=True)
    color = fields.String(allow_none=True, validate=validate.Regexp(r"^#[0-9a-fA-F]{6}$"))
    is_active = fields.Boolean()


class AthleteGroupSchema(BaseSchema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=150))
    description = fields.String(allow_none=True)
    sport = fields.String(allow_none=True)
    max_capacity = fields.Integer(allow_none=True, validate=validate.Range(min=1))
    is_active = fields.Boolean()
    athlete_ids = IdList()


class GroupMembersSchema(BaseSchema):
    athlete_ids = IdList(required=True)
