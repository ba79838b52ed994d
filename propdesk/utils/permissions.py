from functools import wraps

from flask import g
from flask_jwt_extended import get_jwt_identity, jwt_required

from propdesk.extensions import db
from propdesk.models import MANAGING_ROLES, PropertyRole, User
from propdesk.utils.responses import fail


def current_user():
    if 'current_user' not in g:
        identity = get_jwt_identity()
        user = db.session.get(User, int(identity)) if identity is not None else None
        if user is None:
            fail(401, 'User not found')
        if not user.is_active:
            fail(403, 'Account is deactivated')
        if not user.is_approved and not user.is_admin:
            fail(403, 'Account is pending approval')
        g.current_user = user
    return g.current_user


def roles_required(*roles):
    """jwt_required plus a check on the caller's global role."""
    def wrapper(fn):
        @wraps(fn)
        @jwt_required()
        def decorator(*args, **kwargs):
            user = current_user()
            if roles and user.role not in roles:
                fail(403, 'You are not authorized to perform this action')
            return fn(*args, **kwargs)
        return decorator
    return wrapper


def property_ids_for(user, roles=None):
    """Property ids the user is linked to; None means every property (admin)."""
    if user.is_admin:
        return None
    return sorted({
        link.property_id for link in user.property_links
        if link.is_active and (roles is None or link.role in roles)
    })


def managed_property_ids(user):
    return property_ids_for(user, MANAGING_ROLES)


def can_manage_property(user, property_id):
    ids = managed_property_ids(user)
    return ids is None or property_id in ids


def can_view_property(user, property_id):
    ids = property_ids_for(user)
    return ids is None or property_id in ids


def require_manager(user, property_id):
    if not can_manage_property(user, property_id):
        fail(403, 'You do not manage this property')


def is_tenant_of(user, property_id, unit_id=None):
    for link in user.property_links:
        if not link.is_active or link.role != PropertyRole.TENANT.value or link.property_id != property_id:
            continue
        if unit_id is None or link.unit_id == unit_id:
            return True
    return False


def restrict_to_properties(query, column, ids):
    if ids is None:
        return query
    return query.filter(column.in_(ids or [-1]))
