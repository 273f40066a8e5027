from marshmallow import fields, validate

from examdesk_app.core.schemas import ApiSchema

_required = {'required': 'Missing required field'}


class ResultSubmitSchema(ApiSchema):
    quiz_id = fields.Int(data_key='quizId', required=True, strict=False, error_messages=_required)
    # Raw entries are graded leniently; anything that is not a valid index scores nothing.
    answers = fields.List(fields.Raw(allow_none=True), required=True, error_messages=_required)
    violations = fields.Int(
        load_default=0,
        strict=False,
        validate=validate.Range(min=0, error='Violations cannot be negative'),
    )
