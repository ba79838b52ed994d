from marshmallow import fields, pre_load, validate

from propdesk.models import InviteRole, enum_values
from .base import PHONE, BaseSchema, lowercase


class InviteSendSchema(BaseSchema):
    email = fields.Email(required=True)
    role = fields.String(required=True, validate=validate.OneOf(enum_values(InviteRole)))
    property_id = fields.Integer(required=True)
    unit_id = fields.Integer(allow_none=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            if 'role' in data:
                data['role'] = lowercase(data['role'])
            if isinstance(data.get('email'), str):
                data['email'] = data['email'].strip().lower()
        return data


class InviteAcceptSchema(BaseSchema):
    token = fields.String(required=True, validate=validate.Length(min=1))
    password = fields.String(validate=validate.Length(min=8))
    first_name = fields.String(validate=validate.Length(min=1, max=50))
    last_name = fields.String(validate=validate.Length(min=1, max=50))
    phone = fields.String(allow_none=True, validate=PHONE)


class InviteTokenSchema(BaseSchema):
    token = fields.String(required=True, validate=validate.Length(min=1))
