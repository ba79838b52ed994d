from marshmallow import fields, pre_load, validate

from propdesk.models import MaintenanceCategory, VendorStatus, enum_values
from .base import PHONE, BaseSchema, LowercaseChoices, lowercase


class VendorSchema(LowercaseChoices, BaseSchema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=200))
    phone = fields.String(required=True, validate=PHONE)
    email = fields.Email(allow_none=True)
    contact_person = fields.String(allow_none=True, validate=validate.Length(max=100))
    address = fields.String(allow_none=True, validate=validate.Length(max=500))
    description = fields.String(allow_none=True)
    services = fields.List(fields.String(validate=validate.OneOf(enum_values(MaintenanceCategory))),
                           load_default=list)
    fixed_call_out_fee = fields.Decimal(allow_none=True, places=2, validate=validate.Range(min=0))
    payment_terms = fields.String(allow_none=True, validate=validate.Length(max=100))
    status = fields.String(load_default=VendorStatus.ACTIVE.value, validate=validate.OneOf(enum_values(VendorStatus)))

    @pre_load
    def lower_services(self, data, **kwargs):
        if isinstance(data, dict) and isinstance(data.get('services'), list):
            data = {**data, 'services': [lowercase(str(s)) for s in data['services']]}
        return data


class RatingSchema(BaseSchema):
    rating = fields.Integer(required=True, validate=validate.Range(min=1, max=5))
    comment = fields.String(allow_none=True)
