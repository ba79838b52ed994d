from flask import request
from flask_jwt_extended import jwt_required
from flask_restful import Resource
from sqlalchemy import String, cast, func, or_

from propdesk.models import (STAFF_ROLES, MaintenanceCategory, MaintenanceRequest, ScheduledMaintenance, Vendor,
                             VendorStatus, db, enum_values)
from propdesk.schemas import RatingSchema, VendorSchema
from propdesk.utils.audit import record_audit
from propdesk.utils.permissions import current_user, roles_required
from propdesk.utils.responses import get_or_404, load_or_400, paginated, success


def offers_service(service):
    """Match vendors whose JSON services list holds the given category."""
    return cast(Vendor.services, String).like(f'%"{service}"%')


class VendorListResource(Resource):
    @jwt_required()
    def get(self):
        query = Vendor.query

        status = request.args.get('status')
        if status:
            query = query.filter(Vendor.status == status.lower())
        search = request.args.get('search')
        if search:
            like = f'%{search}%'
            query = query.filter(or_(Vendor.name.ilike(like), Vendor.email.ilike(like),
                                     Vendor.contact_person.ilike(like)))

        service = request.args.get('service')
        if service:
            service = service.lower()
            if service not in enum_values(MaintenanceCategory):
                query = query.filter(db.false())
            else:
                query = query.filter(offers_service(service))

        return paginated(query.order_by(Vendor.name.asc()), lambda v: v.to_dict())

    @roles_required(*STAFF_ROLES)
    def post(self):
        user = current_user()
        data = load_or_400(VendorSchema())
        vendor = Vendor(added_by_id=user.id, **data)
        db.session.add(vendor)
        db.session.flush()
        record_audit('create', 'vendor', vendor.id, user=user, description=vendor.name)
        db.session.commit()
        return success(vendor.to_dict(), 'Vendor added successfully!', 201)


class VendorStatsResource(Resource):
    @roles_required(*STAFF_ROLES)
    def get(self):
        by_status = dict(db.session.query(Vendor.status, func.count(Vendor.id)).group_by(Vendor.status).all())
        services = {}
        for service in enum_values(MaintenanceCategory):
            count = Vendor.query.filter(offers_service(service)).count()
            if count:
                services[service] = count
        top = Vendor.query.filter(Vendor.ratings_count > 0) \
            .order_by(Vendor.average_rating.desc(), Vendor.ratings_count.desc()).limit(5).all()
        return success({
            'total': sum(by_status.values()),
            'by_status': by_status,
            'by_service': services,
            'top_rated': [{'id': v.id, 'name': v.name, 'average_rating': v.average_rating} for v in top],
        })


class VendorDetailResource(Resource):
    @jwt_required()
    def get(self, vendor_id):
        vendor = get_or_404(Vendor, vendor_id, 'Vendor')
        data = vendor.to_dict()
        data['active_assignments'] = MaintenanceRequest.query.filter(
            MaintenanceRequest.assigned_vendor_id == vendor.id,
            MaintenanceRequest.status.in_(('assigned', 'in_progress')),
        ).count()
        return success(data)

    @roles_required(*STAFF_ROLES)
    def put(self, vendor_id):
        user = current_user()
        vendor = get_or_404(Vendor, vendor_id, 'Vendor')
        data = load_or_400(VendorSchema(), partial=True)
        for field, value in data.items():
            setattr(vendor, field, value)
        record_audit('update', 'vendor', vendor.id, user=user)
        db.session.commit()
        return success(vendor.to_dict(), 'Vendor updated.')

    @roles_required(*STAFF_ROLES)
    def delete(self, vendor_id):
        user = current_user()
        vendor = get_or_404(Vendor, vendor_id, 'Vendor')
        MaintenanceRequest.query.filter_by(assigned_vendor_id=vendor.id).update({'assigned_vendor_id': None})
        ScheduledMaintenance.query.filter_by(assigned_vendor_id=vendor.id).update({'assigned_vendor_id': None})
        record_audit('delete', 'vendor', vendor.id, user=user, description=vendor.name)
        db.session.delete(vendor)
        db.session.commit()
        return success(None, 'Vendor deleted.')


class VendorRateResource(Resource):
    @roles_required(*STAFF_ROLES)
    def post(self, vendor_id):
        user = current_user()
        vendor = get_or_404(Vendor, vendor_id, 'Vendor')
        data = load_or_400(RatingSchema())
        vendor.add_rating(data['rating'])
        record_audit('rate', 'vendor', vendor.id, user=user, extra=data)
        db.session.commit()
        return success(vendor.to_dict(), 'Rating recorded.')


class VendorDeactivateResource(Resource):
    @roles_required(*STAFF_ROLES)
    def put(self, vendor_id):
        user = current_user()
        vendor = get_or_404(Vendor, vendor_id, 'Vendor')
        vendor.status = VendorStatus.INACTIVE.value
        record_audit('deactivate', 'vendor', vendor.id, user=user)
        db.session.commit()
        return success(vendor.to_dict(), 'Vendor deactivated.')
