from flask import request
from flask_jwt_extended import jwt_required
from flask_restful import Resource
from sqlalchemy import or_

from propdesk.models import PropertyRole, PropertyUser, STAFF_ROLES, User, UserRole, db
from propdesk.schemas import (NewPasswordSchema, ProfileUpdateSchema, RoleSchema, UserCreateSchema, UserSchema,
                              UserUpdateSchema)
from propdesk.utils.audit import record_audit
from propdesk.utils.permissions import current_user, managed_property_ids, roles_required
from propdesk.utils.responses import arg_bool, fail, get_or_404, load_or_400, paginated, success

user_schema = UserSchema()
ADMIN = UserRole.ADMIN.value


class ProfileResource(Resource):
    @jwt_required()
    def get(self):
        return success(user_schema.dump(current_user()))

    @jwt_required()
    def put(self):
        user = current_user()
        data = load_or_400(ProfileUpdateSchema())
        for field, value in data.items():
            setattr(user, field, value)
        record_audit('update_profile', 'user', user.id, user=user)
        db.session.commit()
        return success(user_schema.dump(user), 'Profile updated.')


class UserListResource(Resource):
    @roles_required(*STAFF_ROLES)
    def get(self):
        user = current_user()
        query = User.query

        if not user.is_admin:
            # Landlords and managers only see tenants on their own properties
            ids = managed_property_ids(user) or [-1]
            tenant_ids = db.session.query(PropertyUser.user_id).filter(
                PropertyUser.property_id.in_(ids),
                PropertyUser.role == PropertyRole.TENANT.value,
            )
            query = query.filter(User.id.in_(tenant_ids), User.role == UserRole.TENANT.value)

        role = request.args.get('role')
        if role:
            query = query.filter(User.role == role.lower())
        is_active = arg_bool('is_active')
        if is_active is not None:
            query = query.filter(User.is_active.is_(is_active))
        search = request.args.get('search')
        if search:
            like = f'%{search}%'
            query = query.filter(or_(User.email.ilike(like), User.first_name.ilike(like), User.last_name.ilike(like)))

        return paginated(query.order_by(User.created_at.desc(), User.id.desc()), user_schema.dump)

    @roles_required(ADMIN)
    def post(self):
        data = load_or_400(UserCreateSchema())
        if User.query.filter_by(email=data['email']).first():
            fail(409, 'User already exists')

        password = data.pop('password')
        user = User(**data)
        user.set_password(password)
        db.session.add(user)
        db.session.flush()
        record_audit('create', 'user', user.id, user=current_user(), description=f'Created {user.email}')
        db.session.commit()
        return success(user_schema.dump(user), 'User created.', 201)


class UserDetailResource(Resource):
    @roles_required(ADMIN)
    def get(self, user_id):
        return success(user_schema.dump(get_or_404(User, user_id, 'User')))

    @roles_required(ADMIN)
    def put(self, user_id):
        user = get_or_404(User, user_id, 'User')
        data = load_or_400(UserUpdateSchema())
        if 'email' in data and data['email'] != user.email and User.query.filter_by(email=data['email']).first():
            fail(409, 'Email already in use')
        for field, value in data.items():
            setattr(user, field, value)
        record_audit('update', 'user', user.id, user=current_user(), extra={'fields': sorted(data)})
        db.session.commit()
        return success(user_schema.dump(user), 'User updated.')

    @roles_required(ADMIN)
    def delete(self, user_id):
        admin = current_user()
        user = get_or_404(User, user_id, 'User')
        if user.id == admin.id:
            fail(400, 'You cannot delete your own account')
        record_audit('delete', 'user', user.id, user=admin, description=f'Deleted {user.email}')
        db.session.delete(user)
        db.session.commit()
        return success(None, 'User deleted.')


class UserApproveResource(Resource):
    @roles_required(ADMIN)
    def put(self, user_id):
        user = get_or_404(User, user_id, 'User')
        user.is_approved = True
        record_audit('approve', 'user', user.id, user=current_user())
        db.session.commit()
        return success(user_schema.dump(user), 'User approved.')


class UserRoleResource(Resource):
    @roles_required(ADMIN)
    def put(self, user_id):
        user = get_or_404(User, user_id, 'User')
        data = load_or_400(RoleSchema())
        previous = user.role
        user.role = data['role']
        record_audit('change_role', 'user', user.id, user=current_user(),
                     extra={'from': previous, 'to': user.role})
        db.session.commit()
        return success(user_schema.dump(user), 'Role updated.')


class UserActivationResource(Resource):
    """PUT /users/<id>/activate and /users/<id>/deactivate."""

    @roles_required(ADMIN)
    def put(self, user_id, action):
        admin = current_user()
        user = get_or_404(User, user_id, 'User')
        if action == 'deactivate' and user.id == admin.id:
            fail(400, 'You cannot deactivate your own account')
        user.is_active = action == 'activate'
        record_audit(action, 'user', user.id, user=admin)
        db.session.commit()
        return success(user_schema.dump(user), f'User {action}d.')


class UserResetPasswordResource(Resource):
    @roles_required(ADMIN)
    def post(self, user_id):
        user = get_or_404(User, user_id, 'User')
        data = load_or_400(NewPasswordSchema())
        user.set_password(data['new_password'])
        user.clear_reset_token()
        record_audit('reset_password', 'user', user.id, user=current_user())
        db.session.commit()
        return success(None, 'Password reset.')
