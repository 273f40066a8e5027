from marshmallow import ValidationError, fields, validate, validates_schema

from examdesk_app.core.schemas import ApiSchema
from examdesk_app.models import User

_required = {'required': 'Missing required field'}


class RegisterSchema(ApiSchema):
    name = fields.Str(required=True, validate=validate.Length(min=1), error_messages=_required)
    roll_number = fields.Str(
        data_key='rollNumber', required=True, validate=validate.Length(min=1, max=80), error_messages=_required
    )
    password = fields.Str(required=True, validate=validate.Length(min=1), error_messages=_required)
    role = fields.Str(load_default=User.ROLE_STUDENT, validate=validate.OneOf(User.ROLES))
    department = fields.Str(required=True, validate=validate.Length(min=1), error_messages=_required)
    section = fields.Str(load_default=None, allow_none=True)
    batch = fields.Str(load_default=None, allow_none=True)

    @validates_schema
    def require_batch_for_students(self, data, **kwargs):
        if data.get('role', User.ROLE_STUDENT) == User.ROLE_STUDENT and not data.get('batch'):
            raise ValidationError('Batch is required for students', field_name='batch')


class LoginSchema(ApiSchema):
    roll_number = fields.Str(data_key='rollNumber', required=True, validate=validate.Length(min=1))
    password = fields.Str(required=True, validate=validate.Length(min=1))
