from marshmallow import fields, pre_load, validate, validates_schema, ValidationError

from propdesk.models import MaintenanceCategory, RequestPriority, RequestStatus, enum_values
from .base import PHONE, BaseSchema, LowercaseChoices, lowercase


class RequestCreateSchema(LowercaseChoices, BaseSchema):
    title = fields.String(required=True, validate=validate.Length(min=3, max=200))
    description = fields.String(required=True, validate=validate.Length(min=1))
    category = fields.String(load_default=MaintenanceCategory.GENERAL.value,
                             validate=validate.OneOf(enum_values(MaintenanceCategory)))
    priority = fields.String(load_default=RequestPriority.MEDIUM.value,
                             validate=validate.OneOf(enum_values(RequestPriority)))
    property_id = fields.Integer(required=True)
    unit_id = fields.Integer(allow_none=True)


class RequestUpdateSchema(LowercaseChoices, BaseSchema):
    title = fields.String(validate=validate.Length(min=3, max=200))
    description = fields.String(validate=validate.Length(min=1))
    category = fields.String(validate=validate.OneOf(enum_values(MaintenanceCategory)))
    priority = fields.String(validate=validate.OneOf(enum_values(RequestPriority)))
    status = fields.String(validate=validate.OneOf(enum_values(RequestStatus)))
    unit_id = fields.Integer(allow_none=True)


class AssignSchema(BaseSchema):
    assigned_to_id = fields.Integer(required=True)
    assigned_to_model = fields.String(required=True, validate=validate.OneOf(['Vendor', 'User']))

    @pre_load
    def capitalize_model(self, data, **kwargs):
        if isinstance(data, dict) and isinstance(data.get('assigned_to_model'), str):
            data = {**data, 'assigned_to_model': data['assigned_to_model'].capitalize()}
        return data


class FeedbackSchema(BaseSchema):
    rating = fields.Integer(required=True, validate=validate.Range(min=1, max=5))
    comment = fields.String(allow_none=True, validate=validate.Length(max=2000))


class PublicLinkSchema(BaseSchema):
    expires_in_days = fields.Integer(allow_none=True, validate=validate.Range(min=1, max=365))


class CommentSchema(BaseSchema):
    message = fields.String(required=True, validate=validate.Length(min=1, max=2000))
    is_internal = fields.Boolean(load_default=False)


class PublicCommentSchema(BaseSchema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=100))
    message = fields.String(required=True, validate=validate.Length(min=1, max=2000))
    phone = fields.String(allow_none=True, validate=PHONE)


class PublicUpdateSchema(BaseSchema):
    status = fields.String(validate=validate.Length(min=1))
    comment = fields.String(validate=validate.Length(min=1, max=2000))
    name = fields.String(validate=validate.Length(min=1, max=100))
    phone = fields.String(allow_none=True, validate=PHONE)

    @pre_load
    def lower_status(self, data, **kwargs):
        if isinstance(data, dict) and 'status' in data:
            data = {**data, 'status': lowercase(data['status'])}
        return data

    @validates_schema
    def require_change(self, data, **kwargs):
        if not data.get('status') and not data.get('comment'):
            raise ValidationError('Provide a status or a comment.')
        if data.get('comment') and not data.get('name'):
            raise ValidationError('Name is required when leaving a comment.', field_name='name')
