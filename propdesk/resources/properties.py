from flask import request
from flask_jwt_extended import jwt_required
from flask_restful import Resource
from sqlalchemy import or_

from propdesk.models import (STAFF_ROLES, Property, PropertyRole, PropertyUser, Unit, UnitStatus, User,
                             UserRole, db)
from propdesk.schemas import AssignTenantSchema, AssignUserSchema, PropertySchema, UnitSchema
from propdesk.utils.audit import record_audit
from propdesk.utils.permissions import (can_view_property, current_user, property_ids_for, require_manager,
                                        restrict_to_properties, roles_required)
from propdesk.utils.responses import arg_bool, fail, get_or_404, load_or_400, paginated, success


def _property_for_viewer(property_id):
    user = current_user()
    prop = get_or_404(Property, property_id, 'Property')
    if not can_view_property(user, prop.id):
        fail(403, 'Access denied')
    return user, prop


def _apply_address(prop, address):
    for field in ('street', 'city', 'state', 'zip_code', 'country'):
        if field in address:
            setattr(prop, field, address[field])


def _link(user_id, property_id, role, unit_id=None):
    return PropertyUser.query.filter_by(user_id=user_id, property_id=property_id, role=role, unit_id=unit_id).first()


def _roles_on(user, property_id):
    return {link.role for link in user.property_links if link.is_active and link.property_id == property_id}


def link_user(user, prop, role, unit=None):
    """Associate a user with a property (and unit); reactivates old links."""
    unit_id = unit.id if unit is not None else None
    link = _link(user.id, prop.id, role, unit_id)
    if link is None:
        link = PropertyUser(user=user, property=prop, role=role, unit=unit)
        db.session.add(link)
    link.is_active = True
    if unit is not None and role == PropertyRole.TENANT.value:
        unit.status = UnitStatus.OCCUPIED.value
    return link


class PropertyListResource(Resource):
    @jwt_required()
    def get(self):
        user = current_user()
        query = restrict_to_properties(Property.query, Property.id, property_ids_for(user))

        search = request.args.get('search')
        if search:
            like = f'%{search}%'
            query = query.filter(or_(Property.name.ilike(like), Property.street.ilike(like),
                                     Property.city.ilike(like)))
        if request.args.get('city'):
            query = query.filter(Property.city.ilike(request.args['city']))
        if request.args.get('property_type'):
            query = query.filter(Property.property_type == request.args['property_type'].lower())
        is_active = arg_bool('is_active')
        if is_active is not None:
            query = query.filter(Property.is_active.is_(is_active))

        return paginated(query.order_by(Property.name.asc()), lambda p: p.to_dict())

    @roles_required(*STAFF_ROLES)
    def post(self):
        user = current_user()
        data = load_or_400(PropertySchema())

        prop = Property(
            name=data['name'],
            property_type=data['property_type'],
            description=data.get('description'),
            is_active=data['is_active'],
        )
        _apply_address(prop, data['address'])
        db.session.add(prop)

        if user.role in (UserRole.LANDLORD.value, UserRole.PROPERTY_MANAGER.value):
            link_user(user, prop, user.role)

        db.session.flush()
        record_audit('create', 'property', prop.id, user=user, description=prop.name)
        db.session.commit()
        return success(prop.to_dict(), 'Property created successfully!', 201)


class PropertyDetailResource(Resource):
    @jwt_required()
    def get(self, property_id):
        _, prop = _property_for_viewer(property_id)
        return success(prop.to_dict(include_units=True))

    @roles_required(*STAFF_ROLES)
    def put(self, property_id):
        user = current_user()
        prop = get_or_404(Property, property_id, 'Property')
        require_manager(user, prop.id)

        data = load_or_400(PropertySchema(), partial=True)
        _apply_address(prop, data.pop('address', {}))
        for field, value in data.items():
            setattr(prop, field, value)

        record_audit('update', 'property', prop.id, user=user)
        db.session.commit()
        return success(prop.to_dict(include_units=True), 'Property updated.')

    @roles_required(UserRole.LANDLORD.value, UserRole.ADMIN.value)
    def delete(self, property_id):
        user = current_user()
        prop = get_or_404(Property, property_id, 'Property')
        require_manager(user, prop.id)

        record_audit('delete', 'property', prop.id, user=user, description=prop.name)
        db.session.delete(prop)
        db.session.commit()
        return success(None, 'Property deleted.')


class PropertyAssignUserResource(Resource):
    @roles_required(*STAFF_ROLES)
    def post(self, property_id):
        actor = current_user()
        prop = get_or_404(Property, property_id, 'Property')
        require_manager(actor, prop.id)
        data = load_or_400(AssignUserSchema())

        target = get_or_404(User, data['user_id'], 'User')
        if target.role != data['role']:
            fail(400, f'User is a {target.role} and cannot be linked as {data["role"]}')
        if data['role'] == PropertyRole.LANDLORD.value and not actor.is_admin \
                and PropertyRole.LANDLORD.value not in _roles_on(actor, prop.id):
            fail(403, 'Only a landlord of this property can add landlords')
        unit = None
        if data.get('unit_id'):
            unit = get_or_404(Unit, data['unit_id'], 'Unit')
            if unit.property_id != prop.id:
                fail(400, 'Unit does not belong to this property')

        link = link_user(target, prop, data['role'], unit)
        record_audit('assign_user', 'property', prop.id, user=actor,
                     extra={'user_id': target.id, 'role': data['role'], 'unit_id': data.get('unit_id')})
        db.session.commit()
        return success(link.to_dict(), 'User assigned to property.')


class PropertyRemoveUserResource(Resource):
    @roles_required(*STAFF_ROLES)
    def delete(self, property_id, user_id):
        actor = current_user()
        prop = get_or_404(Property, property_id, 'Property')
        require_manager(actor, prop.id)

        query = PropertyUser.query.filter_by(property_id=prop.id, user_id=user_id, is_active=True)
        role = request.args.get('role')
        if role:
            query = query.filter_by(role=role.lower())
        links = query.all()
        if not links:
            fail(404, 'User is not associated with this property')

        for link in links:
            link.is_active = False
            if link.unit is not None and not [t for t in link.unit.current_tenants() if t.id != user_id]:
                link.unit.status = UnitStatus.VACANT.value
        record_audit('remove_user', 'property', prop.id, user=actor, extra={'user_id': user_id, 'role': role})
        db.session.commit()
        return success(None, 'User removed from property.')


class UnitListResource(Resource):
    @jwt_required()
    def get(self, property_id):
        _, prop = _property_for_viewer(property_id)
        query = Unit.query.filter_by(property_id=prop.id)
        if request.args.get('status'):
            query = query.filter(Unit.status == request.args['status'].lower())
        search = request.args.get('search')
        if search:
            query = query.filter(Unit.unit_name.ilike(f'%{search}%'))
        return paginated(query.order_by(Unit.unit_name.asc()), lambda u: u.to_dict())

    @roles_required(*STAFF_ROLES)
    def post(self, property_id):
        user = current_user()
        prop = get_or_404(Property, property_id, 'Property')
        require_manager(user, prop.id)
        data = load_or_400(UnitSchema())

        if Unit.query.filter_by(property_id=prop.id, unit_name=data['unit_name']).first():
            fail(409, f"Unit {data['unit_name']} already exists in this property")

        unit = Unit(property_id=prop.id, **data)
        db.session.add(unit)
        db.session.flush()
        record_audit('create', 'unit', unit.id, user=user, extra={'property_id': prop.id})
        db.session.commit()
        return success(unit.to_dict(), 'Unit created successfully!', 201)


def _unit_of(prop, unit_id):
    unit = get_or_404(Unit, unit_id, 'Unit')
    if unit.property_id != prop.id:
        fail(404, 'Unit not found')
    return unit


class UnitDetailResource(Resource):
    @jwt_required()
    def get(self, property_id, unit_id):
        _, prop = _property_for_viewer(property_id)
        return success(_unit_of(prop, unit_id).to_dict())

    @roles_required(*STAFF_ROLES)
    def put(self, property_id, unit_id):
        user = current_user()
        prop = get_or_404(Property, property_id, 'Property')
        require_manager(user, prop.id)
        unit = _unit_of(prop, unit_id)
        data = load_or_400(UnitSchema(), partial=True)

        new_name = data.get('unit_name')
        if new_name and new_name != unit.unit_name and \
                Unit.query.filter_by(property_id=prop.id, unit_name=new_name).first():
            fail(409, f'Unit {new_name} already exists in this property')

        for field, value in data.items():
            setattr(unit, field, value)
        record_audit('update', 'unit', unit.id, user=user)
        db.session.commit()
        return success(unit.to_dict(), 'Unit updated.')

    @roles_required(*STAFF_ROLES)
    def delete(self, property_id, unit_id):
        user = current_user()
        prop = get_or_404(Property, property_id, 'Property')
        require_manager(user, prop.id)
        unit = _unit_of(prop, unit_id)
        if unit.current_tenants():
            fail(400, 'Remove the unit tenants before deleting it')

        record_audit('delete', 'unit', unit.id, user=user, description=unit.unit_name)
        db.session.delete(unit)
        db.session.commit()
        return success(None, 'Unit deleted.')


class UnitAssignTenantResource(Resource):
    @roles_required(*STAFF_ROLES)
    def post(self, property_id, unit_id):
        user = current_user()
        prop = get_or_404(Property, property_id, 'Property')
        require_manager(user, prop.id)
        unit = _unit_of(prop, unit_id)
        data = load_or_400(AssignTenantSchema())

        tenant = get_or_404(User, data['tenant_id'], 'Tenant')
        if tenant.role != UserRole.TENANT.value:
            fail(400, 'Only tenants can be assigned to units')

        link_user(tenant, prop, PropertyRole.TENANT.value, unit)
        record_audit('assign_tenant', 'unit', unit.id, user=user, extra={'tenant_id': tenant.id})
        db.session.commit()
        return success(unit.to_dict(), 'Tenant assigned to unit.')


class UnitRemoveTenantResource(Resource):
    @roles_required(*STAFF_ROLES)
    def delete(self, property_id, unit_id, tenant_id):
        user = current_user()
        prop = get_or_404(Property, property_id, 'Property')
        require_manager(user, prop.id)
        unit = _unit_of(prop, unit_id)

        link = PropertyUser.query.filter_by(property_id=prop.id, unit_id=unit.id, user_id=tenant_id,
                                            role=PropertyRole.TENANT.value, is_active=True).first()
        if link is None:
            fail(404, 'Tenant is not assigned to this unit')
        link.is_active = False
        if not unit.current_tenants():
            unit.status = UnitStatus.VACANT.value

        record_audit('remove_tenant', 'unit', unit.id, user=user, extra={'tenant_id': tenant_id})
        db.session.commit()
        return success(unit.to_dict(), 'Tenant removed from unit.')
