from marshmallow import fields, pre_load, validate

from propdesk.extensions import ma
from propdesk.models import User, UserRole, enum_values
from .base import PHONE, BaseSchema, lowercase

SELF_SERVICE_ROLES = ['tenant', 'landlord', 'propertymanager']


class UserSchema(ma.SQLAlchemyAutoSchema):
    class Meta:
        model = User
        exclude = ('password_hash', 'reset_token_hash', 'reset_token_expires_at', 'verification_token_hash',
                   'verification_token_expires_at')

    full_name = fields.String(dump_only=True)


class _RoleMixin:
    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            if 'role' in data:
                data['role'] = lowercase(data['role'])
            if 'email' in data and isinstance(data['email'], str):
                data['email'] = data['email'].strip().lower()
        return data


class RegisterSchema(_RoleMixin, BaseSchema):
    email = fields.Email(required=True)
    password = fields.String(required=True, validate=validate.Length(min=8))
    first_name = fields.String(required=True, validate=validate.Length(min=1, max=50))
    last_name = fields.String(required=True, validate=validate.Length(min=1, max=50))
    phone = fields.String(validate=PHONE, allow_none=True)
    role = fields.String(load_default='tenant', validate=validate.OneOf(SELF_SERVICE_ROLES))


class LoginSchema(_RoleMixin, BaseSchema):
    email = fields.Email(required=True)
    password = fields.String(required=True)


class ForgotPasswordSchema(_RoleMixin, BaseSchema):
    email = fields.Email(required=True)


class NewPasswordSchema(BaseSchema):
    new_password = fields.String(required=True, validate=validate.Length(min=8))


class ChangePasswordSchema(BaseSchema):
    current_password = fields.String(required=True, data_key='currentPassword')
    new_password = fields.String(required=True, validate=validate.Length(min=8), data_key='newPassword')


class ProfileUpdateSchema(BaseSchema):
    first_name = fields.String(validate=validate.Length(min=1, max=50))
    last_name = fields.String(validate=validate.Length(min=1, max=50))
    phone = fields.String(validate=PHONE, allow_none=True)
    preferences = fields.Dict()


class UserCreateSchema(RegisterSchema):
    role = fields.String(load_default='tenant', validate=validate.OneOf(enum_values(UserRole)))
    is_active = fields.Boolean(load_default=True)
    is_approved = fields.Boolean(load_default=True)


class UserUpdateSchema(_RoleMixin, ProfileUpdateSchema):
    email = fields.Email()
    role = fields.String(validate=validate.OneOf(enum_values(UserRole)))
    is_active = fields.Boolean()
    is_approved = fields.Boolean()


class RoleSchema(_RoleMixin, BaseSchema):
    role = fields.String(required=True, validate=validate.OneOf(enum_values(UserRole)))
