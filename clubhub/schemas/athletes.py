from marshmallow import fields, validate

from clubhub.models.constants import (
    ACHIEVEMENT_SCOPES, ACHIEVEMENT_TYPES, ATHLETE_LEVELS, ATHLETE_STATUSES,
    COACH_STATUSES, DOMINANT_SIDES, LANGUAGE_LEVELS, OPPORTUNITY_TYPES, SPORTS,
)
from clubhub.schemas.base import BaseSchema, NaiveDateTime, phone_validator


class AthleteProfileSchema(BaseSchema):
    sport = fields.String(validate=validate.OneOf(SPORTS))
    birth_date = NaiveDateTime(allow_none=True)
    level = fields.String(validate=validate.OneOf(ATHLETE_LEVELS))
    status = fields.String(validate=validate.OneOf(ATHLETE_STATUSES))
    height = fields.Integer(allow_none=True, validate=validate.Range(min=50, max=260))
    weight = fields.Integer(allow_none=True, validate=validate.Range(min=0))
    dominant_foot = fields.String(allow_none=True, validate=validate.OneOf(DOMINANT_SIDES))
    dominant_hand = fields.String(allow_none=True, validate=validate.OneOf(DOMINANT_SIDES))
    phone = fields.String(allow_none=True, validate=phone_validator)
    category = fields.String(allow_none=True)
    nationality = fields.String(allow_none=True)
    position = fields.String(allow_none=True)
    secondary_position = fields.String(allow_none=True)
    jersey_number = fields.Integer(allow_none=True, validate=validate.Range(min=0, max=999))
    profile_photo_url = fields.String(allow_none=True)
    bio = fields.String(allow_none=True)
    years_of_experience = fields.Integer(allow_none=True, validate=validate.Range(min=0))
    youtube_videos = fields.List(fields.Url())
    parent_name = fields.String(allow_none=True)
    parent_phone = fields.String(allow_none=True)
    parent_email = fields.Email(allow_none=True)
    parent_relationship = fields.String(allow_none=True)
    residence_city = fields.String(allow_none=True)
    residence_country = fields.String(allow_none=True)
    is_public_profile = fields.Boolean()
    opportunity_types = fields.List(fields.String(validate=validate.OneOf(OPPORTUNITY_TYPES)))


class AthleteCreateSchema(AthleteProfileSchema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=150))
    email = fields.Email(required=True)
    sport = fields.String(required=True, validate=validate.OneOf(SPORTS))


class AthleteUpdateSchema(AthleteProfileSchema):
    name = fields.String(validate=validate.Length(min=1, max=150))
    email = fields.Email()


class CareerHistorySchema(BaseSchema):
    club_name = fields.String(required=True, validate=validate.Length(min=1, max=200))
    start_date = NaiveDateTime(allow_none=True)
    end_date = NaiveDateTime(allow_none=True)
    position = fields.String(allow_none=True)
    achievements = fields.String(allow_none=True)
    notes = fields.String(allow_none=True)


class EducationSchema(BaseSchema):
    institution = fields.String(required=True, validate=validate.Length(min=1, max=200))
    degree = fields.String(allow_none=True)
    field_of_study = fields.String(allow_none=True)
    academic_year = fields.String(allow_none=True)
    start_date = NaiveDateTime(allow_none=True)
    end_date = NaiveDateTime(allow_none=True)
    expected_graduation_date = NaiveDateTime(allow_none=True)
    gpa = fields.String(allow_none=True)
    is_current = fields.Boolean()
    notes = fields.String(allow_none=True)
    display_order = fields.Integer()


class AchievementSchema(BaseSchema):
    title = fields.String(required=True, validate=validate.Length(min=1, max=200))
    type = fields.String(validate=validate.OneOf(ACHIEVEMENT_TYPES))
    scope = fields.String(validate=validate.OneOf(ACHIEVEMENT_SCOPES))
    year = fields.Integer(required=True, validate=validate.Range(min=1900, max=2100))
    organization = fields.String(allow_none=True)
    team = fields.String(allow_none=True)
    competition = fields.String(allow_none=True)
    position = fields.String(allow_none=True)
    description = fields.String(allow_none=True)
    is_public = fields.Boolean()
    display_order = fields.Integer()


class LanguageSchema(BaseSchema):
    language = fields.String(required=True, validate=validate.Length(min=2, max=10))
    level = fields.String(validate=validate.OneOf(LANGUAGE_LEVELS))
    notes = fields.String(allow_none=True)


class ReferenceSchema(BaseSchema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=150))
    relationship = fields.String(required=True, validate=validate.Length(min=1, max=100))
    organization = fields.String(allow_none=True)
    position = fields.String(allow_none=True)
    email = fields.Email(allow_none=True)
    phone = fields.String(allow_none=True)
    testimonial = fields.String(allow_none=True)
    skills_highlighted = fields.List(fields.String())
    is_public = fields.Boolean()
    display_order = fields.Integer()


class SponsorSchema(BaseSchema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=150))
    website = fields.Url(allow_none=True)
    description = fields.String(allow_none=True)
    partnership_type = fields.String(allow_none=True)
    start_date = NaiveDateTime(allow_none=True)
    end_date = NaiveDateTime(allow_none=True)
    is_public = fields.Boolean()
    display_order = fields.Integer()


class CoachProfileSchema(BaseSchema):
    phone = fields.String(allow_none=True, validate=phone_validator)
    birth_date = NaiveDateTime(allow_none=True)
    sport = fields.String(allow_none=True, validate=validate.OneOf(SPORTS))
    specialty = fields.String(validate=validate.Length(min=1, max=150))
    bio = fields.String(allow_none=True)
    is_public_profile = fields.Boolean()
    status = fields.String(validate=validate.OneOf(COACH_STATUSES))


class CoachCreateSchema(CoachProfileSchema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=150))
    email = fields.Email(required=True)
    specialty = fields.String(required=True, validate=validate.Length(min=1, max=150))


class CoachUpdateSchema(CoachProfileSchema):
    name = fields.String(validate=validate.Length(min=1, max=150))


class SportsExperienceSchema(BaseSchema):
    role = fields.String(required=True, validate=validate.Length(min=1, max=100))
    club_name = fields.String(allow_none=True)
    sport = fields.String(allow_none=True)
    level = fields.String(allow_none=True)
    start_date = NaiveDateTime(allow_none=True)
    end_date = NaiveDateTime(allow_none=True)
    achievements = fields.String(allow_none=True)
    description = fields.String(allow_none=True)


ATHLETE_SECTION_SCHEMAS = {
    "career-history": CareerHistorySchema,
    "education": EducationSchema,
    "achievements": AchievementSchema,
    "languages": LanguageSchema,
    "references": ReferenceSchema,
    "sponsors": SponsorSchema,
}

COACH_SECTION_SCHEMAS = {
    "sports-experience": SportsExperienceSchema,
    "achievements": AchievementSchema,
    "education": EducationSchema,
}
