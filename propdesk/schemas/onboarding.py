from marshmallow import ValidationError, fields, pre_load, validate, validates_schema

from propdesk.models import OnboardingCategory, OnboardingVisibility, enum_values
from .base import BaseSchema, lowercase


class OnboardingDocumentSchema(BaseSchema):
    title = fields.String(required=True, validate=validate.Length(min=1, max=200))
    description = fields.String(allow_none=True)
    category = fields.String(required=True, validate=validate.OneOf(enum_values(OnboardingCategory)))
    visibility = fields.String(load_default=OnboardingVisibility.ALL_TENANTS.value,
                               validate=validate.OneOf(enum_values(OnboardingVisibility)))
    property_id = fields.Integer(allow_none=True)
    unit_id = fields.Integer(allow_none=True)
    tenant_id = fields.Integer(allow_none=True)

    @pre_load
    def normalize(self, data, **kwargs):
        # multipart forms send empty strings for unset selects
        data = {k: v for k, v in dict(data).items() if v not in ('', 'null', 'undefined')}
        for key in ('category', 'visibility'):
            if key in data:
                data[key] = lowercase(data[key])
        return data

    @validates_schema
    def scope_matches_visibility(self, data, **kwargs):
        visibility = data.get('visibility')
        if visibility == 'property_tenants' and not data.get('property_id'):
            raise ValidationError('A property is required for this visibility.', field_name='property_id')
        if visibility == 'unit_tenants' and not data.get('unit_id'):
            raise ValidationError('A unit is required for this visibility.', field_name='unit_id')
        if visibility == 'specific_tenant' and not data.get('tenant_id'):
            raise ValidationError('A tenant is required for this visibility.', field_name='tenant_id')
