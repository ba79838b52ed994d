from marshmallow import fields, pre_load, validate

from propdesk.models import PropertyRole, PropertyType, UnitStatus, enum_values
from .base import BaseSchema, LowercaseChoices, lowercase


class AddressSchema(BaseSchema):
    street = fields.String(required=True, validate=validate.Length(min=1, max=255))
    city = fields.String(required=True, validate=validate.Length(min=1, max=100))
    state = fields.String(allow_none=True, validate=validate.Length(max=100))
    zip_code = fields.String(allow_none=True, validate=validate.Regexp(r'^[A-Za-z0-9\- ]{0,20}$'))
    country = fields.String(allow_none=True, validate=validate.Length(max=100))


class PropertySchema(LowercaseChoices, BaseSchema):
    choice_fields = ('property_type',)

    name = fields.String(required=True, validate=validate.Length(min=1, max=200))
    address = fields.Nested(AddressSchema, required=True)
    property_type = fields.String(load_default=PropertyType.RESIDENTIAL.value,
                                  validate=validate.OneOf(enum_values(PropertyType)))
    description = fields.String(allow_none=True)
    is_active = fields.Boolean(load_default=True)


class AssignUserSchema(BaseSchema):
    user_id = fields.Integer(required=True)
    role = fields.String(required=True, validate=validate.OneOf(enum_values(PropertyRole)))
    unit_id = fields.Integer(allow_none=True)

    @pre_load
    def lower_role(self, data, **kwargs):
        if isinstance(data, dict) and 'role' in data:
            data = {**data, 'role': lowercase(data['role'])}
        return data


class UnitSchema(LowercaseChoices, BaseSchema):
    unit_name = fields.String(required=True, validate=validate.Length(min=1, max=50))
    floor = fields.String(allow_none=True, validate=validate.Length(max=20))
    details = fields.String(allow_none=True)
    num_bedrooms = fields.Integer(allow_none=True, validate=validate.Range(min=0))
    num_bathrooms = fields.Integer(allow_none=True, validate=validate.Range(min=0))
    square_footage = fields.Integer(allow_none=True, validate=validate.Range(min=0))
    rent_amount = fields.Decimal(allow_none=True, places=2, validate=validate.Range(min=0))
    status = fields.String(load_default=UnitStatus.VACANT.value, validate=validate.OneOf(enum_values(UnitStatus)))


class AssignTenantSchema(BaseSchema):
    tenant_id = fields.Integer(required=True)
