from marshmallow import fields, validate

from examdesk_app.core.schemas import ApiSchema
from examdesk_app.models import User

_required = {'required': 'Missing required field'}


class UserFilterSchema(ApiSchema):
    role = fields.Str(load_default=None, validate=validate.OneOf(User.ROLES + ('',)))
    department = fields.Str(load_default=None)
    section = fields.Str(load_default=None)
    batch = fields.Str(load_default=None)
    search = fields.Str(load_default=None)


class UserIdListSchema(ApiSchema):
    user_ids = fields.List(
        fields.Int(strict=False),
        data_key='userIds',
        required=True,
        validate=validate.Length(min=1, error='Invalid user IDs provided'),
        error_messages={'required': 'Invalid user IDs provided'},
    )


class StaffAccountSchema(ApiSchema):
    name = fields.Str(required=True, validate=validate.Length(min=1), error_messages=_required)
    roll_number = fields.Str(
        data_key='rollNumber', required=True, validate=validate.Length(min=1, max=80), error_messages=_required
    )
    password = fields.Str(required=True, validate=validate.Length(min=1), error_messages=_required)
    department = fields.Str(required=True, validate=validate.Length(min=1), error_messages=_required)


class PasswordResetSchema(ApiSchema):
    new_password = fields.Str(data_key='newPassword', required=True, error_messages=_required)


class ProfileUpdateSchema(ApiSchema):
    name = fields.Str(load_default=None, allow_none=True)
    department = fields.Str(load_default=None, allow_none=True)
    section = fields.Str(allow_none=True)
    batch = fields.Str(allow_none=True)
    roll_number = fields.Str(data_key='rollNumber', load_default=None, allow_none=True,
                             validate=validate.Length(max=80))
    new_password = fields.Str(data_key='newPassword', load_default=None, allow_none=True)
