from marshmallow import fields, validate, validates_schema, ValidationError

from clubhub.models.constants import ATTENDANCE_STATUSES, SESSION_STATUSES
from clubhub.schemas.base import BaseSchema, IdList, NaiveDateTime
from clubhub.utils.recurrence import FREQUENCIES, WEEKDAYS


class RecurrenceSchema(BaseSchema):
    frequency = fields.String(required=True, validate=validate.OneOf(FREQUENCIES))
    interval = fields.Integer(validate=validate.Range(min=1, max=52))
    weekdays = fields.List(fields.String(validate=validate.OneOf(list(WEEKDAYS))))
    until = NaiveDateTime(allow_none=True)
    count = fields.Integer(allow_none=True, validate=validate.Range(min=1, max=365))


class TrainingSessionSchema(BaseSchema):
    title = fields.String(required=True, validate=validate.Length(min=1, max=200))
    description = fields.String(allow_none=True)
    start_time = NaiveDateTime(required=True)
    end_time = NaiveDateTime(required=True)
    status = fields.String(validate=validate.OneOf(SESSION_STATUSES))
    location_id = fields.Integer(allow_none=True)
    athlete_group_id = fields.Integer(allow_none=True)
    coach_ids = IdList()
    primary_coach_id = fields.Integer(allow_none=True)
    athlete_ids = IdList()
    objectives = fields.String(allow_none=True)
    planning = fields.String(allow_none=True)
    recurrence = fields.Nested(RecurrenceSchema, allow_none=True)

    @validates_schema
    def validate_time_range(self, data, **kwargs):
        start, end = data.get("start_time"), data.get("end_time")
        if start and end and end <= start:
            raise ValidationError("End time must be after start time", "end_time")


class CompleteSessionSchema(BaseSchema):
    post_session_notes = fields.String(allow_none=True)


class SessionAthletesSchema(BaseSchema):
    athlete_ids = IdList(required=True)


class SessionCoachesSchema(BaseSchema):
    coach_ids = IdList(required=True, validate=validate.Length(min=1))
    primary_coach_id = fields.Integer(allow_none=True)


class OccurrenceSchema(BaseSchema):
    occurrence_date = NaiveDateTime(required=True)


class ModifyOccurrenceSchema(OccurrenceSchema):
    title = fields.String(validate=validate.Length(min=1, max=200))
    description = fields.String(allow_none=True)
    start_time = NaiveDateTime()
    end_time = NaiveDateTime()
    status = fields.String(validate=validate.OneOf(SESSION_STATUSES))
    location_id = fields.Integer(allow_none=True)
    objectives = fields.String(allow_none=True)
    planning = fields.String(allow_none=True)


class AttendanceRecordSchema(BaseSchema):
    athlete_id = fields.Integer(required=True, strict=True)
    status = fields.String(required=True, validate=validate.OneOf(ATTENDANCE_STATUSES))
    notes = fields.String(allow_none=True)


class AttendanceSchema(BaseSchema):
    records = fields.List(fields.Nested(AttendanceRecordSchema), required=True, validate=validate.Length(min=1))
