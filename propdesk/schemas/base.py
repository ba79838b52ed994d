from marshmallow import EXCLUDE, pre_load, validate

from propdesk.extensions import ma

PHONE = validate.Regexp(r'^\+?[0-9\s\-()]{7,20}$', error='Invalid phone number.')


class BaseSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE


def lowercase(value):
    return value.lower() if isinstance(value, str) else value


class LowercaseChoices:
    """Lowercases enum-like inputs before OneOf validation."""

    choice_fields = ('status', 'priority', 'category')

    @pre_load
    def lower_choices(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            for key in self.choice_fields:
                if key in data:
                    data[key] = lowercase(data[key])
        return data
