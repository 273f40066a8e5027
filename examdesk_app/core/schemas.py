"""Shared marshmallow base for request payload schemas."""

from marshmallow import EXCLUDE, Schema, pre_load


class ApiSchema(Schema):
    """Ignores unknown keys and trims surrounding whitespace from string values."""

    class Meta:
        unknown = EXCLUDE

    @pre_load
    def strip_strings(self, data, **kwargs):
        if not isinstance(data, dict):
            return data
        return {
            key: value.strip() if isinstance(value, str) else value
            for key, value in data.items()
        }
