from marshmallow import ValidationError, fields, validate, validates_schema

from examdesk_app.core.schemas import ApiSchema
from examdesk_app.utils.time_utils import parse_timestamp

_required = {'required': 'Missing required field'}


class UtcTimestamp(fields.Field):
    """ISO-8601 timestamp deserialized to naive UTC."""

    default_error_messages = {'invalid': 'Not a valid ISO-8601 timestamp'}

    def _deserialize(self, value, attr, data, **kwargs):
        try:
            return parse_timestamp(value)
        except (TypeError, ValueError) as exc:
            raise self.make_error('invalid') from exc


class QuestionSchema(ApiSchema):
    question_text = fields.Str(
        data_key='questionText', required=True, validate=validate.Length(min=1), error_messages=_required
    )
    options = fields.List(
        fields.Str(validate=validate.Length(min=1, error='Options cannot be empty')),
        required=True,
        validate=validate.Length(min=2, error='At least two options are required'),
        error_messages=_required,
    )
    correct_answer = fields.Int(data_key='correctAnswer', required=True, strict=False, error_messages=_required)
    points = fields.Int(load_default=1, strict=False, validate=validate.Range(min=1))

    @validates_schema
    def correct_answer_in_range(self, data, **kwargs):
        options = data.get('options') or []
        correct = data.get('correct_answer')
        if correct is not None and not 0 <= correct < len(options):
            raise ValidationError('Correct answer must reference one of the options', field_name='correctAnswer')


class QuizCreateSchema(ApiSchema):
    title = fields.Str(required=True, validate=validate.Length(min=1, max=300), error_messages=_required)
    description = fields.Str(load_default=None, allow_none=True)
    questions = fields.List(
        fields.Nested(QuestionSchema),
        required=True,
        validate=validate.Length(min=1, error='At least one question is required'),
        error_messages=_required,
    )
    start_time = UtcTimestamp(data_key='startTime', required=True, error_messages=_required)
    end_time = UtcTimestamp(data_key='endTime', required=True, error_messages=_required)
    duration = fields.Int(strict=False, required=True, validate=validate.Range(min=1), error_messages=_required)
    department = fields.Str(load_default=None, allow_none=True)
    batch = fields.Str(load_default=None, allow_none=True)

    @validates_schema
    def window_is_ordered(self, data, **kwargs):
        start, end = data.get('start_time'), data.get('end_time')
        if start is not None and end is not None and end <= start:
            raise ValidationError('End time must be after start time', field_name='endTime')
