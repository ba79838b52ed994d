import csv
import io
from datetime import datetime, timedelta

from flask import Response, request
from flask_jwt_extended import jwt_required
from flask_restful import Resource
from sqlalchemy import func

from propdesk.models import (OPEN_STATUSES, STAFF_ROLES, Invite, InviteStatus, MaintenanceRequest, Notification,
                             OnboardingCompletion, OnboardingDocument, Property, ScheduledMaintenance,
                             ScheduledStatus, Unit, UnitStatus, User, UserRole, Vendor)
from propdesk.models.base import isoformat
from propdesk.utils.permissions import current_user, managed_property_ids, restrict_to_properties, roles_required
from propdesk.utils.responses import arg_date, fail, success

UPCOMING_WINDOW_DAYS = 30


def _grouped(query, column):
    return {key: count for key, count in query.with_entities(column, func.count()).group_by(column).all()}


def admin_dashboard():
    return {
        'users': User.query.count(),
        'users_by_role': _grouped(User.query, User.role),
        'pending_approvals': User.query.filter_by(is_approved=False).count(),
        'properties': Property.query.count(),
        'open_requests': MaintenanceRequest.query.filter(MaintenanceRequest.status.in_(OPEN_STATUSES)).count(),
        'vendors': Vendor.query.count(),
    }


def staff_dashboard(user):
    ids = managed_property_ids(user)
    requests = restrict_to_properties(MaintenanceRequest.query, MaintenanceRequest.property_id, ids)
    units = restrict_to_properties(Unit.query, Unit.property_id, ids)
    horizon = datetime.utcnow() + timedelta(days=UPCOMING_WINDOW_DAYS)
    scheduled = restrict_to_properties(ScheduledMaintenance.query, ScheduledMaintenance.property_id, ids)
    invites = restrict_to_properties(Invite.query, Invite.property_id, ids)
    return {
        'properties': len(ids),
        'units': units.count(),
        'occupied_units': units.filter(Unit.status == UnitStatus.OCCUPIED.value).count(),
        'open_requests': requests.filter(MaintenanceRequest.status.in_(OPEN_STATUSES)).count(),
        'requests_by_status': _grouped(requests, MaintenanceRequest.status),
        'upcoming_scheduled': scheduled.filter(
            ScheduledMaintenance.status == ScheduledStatus.SCHEDULED.value,
            ScheduledMaintenance.next_due_date <= horizon,
        ).count(),
        'pending_invites': invites.filter(Invite.status == InviteStatus.PENDING.value,
                                          Invite.expires_at > datetime.utcnow()).count(),
    }


def tenant_dashboard(user):
    visible = OnboardingDocument.query.filter(OnboardingDocument.visible_to(user))
    completed = visible.join(OnboardingCompletion).filter(OnboardingCompletion.tenant_id == user.id).count()
    mine = MaintenanceRequest.query.filter_by(created_by_id=user.id)
    return {
        'open_requests': mine.filter(MaintenanceRequest.status.in_(OPEN_STATUSES)).count(),
        'total_requests': mine.count(),
        'pending_onboarding': visible.count() - completed,
        'unread_notifications': Notification.query.filter_by(recipient_id=user.id, is_read=False).count(),
    }


class DashboardResource(Resource):
    @jwt_required()
    def get(self):
        user = current_user()
        if user.is_admin:
            data = admin_dashboard()
        elif user.role == UserRole.TENANT.value:
            data = tenant_dashboard(user)
        else:
            data = staff_dashboard(user)
        data['role'] = user.role
        return success(data)


def scoped_requests(user):
    """Requests a report may cover, narrowed by the property and date query arguments."""
    ids = managed_property_ids(user)
    query = restrict_to_properties(MaintenanceRequest.query, MaintenanceRequest.property_id, ids)

    property_id = request.args.get('property_id', type=int)
    if property_id:
        if ids is not None and property_id not in ids:
            fail(403, 'You do not manage this property')
        query = query.filter(MaintenanceRequest.property_id == property_id)
    start = arg_date('start_date')
    if start:
        query = query.filter(MaintenanceRequest.created_at >= start)
    end = arg_date('end_date', end_of_day=True)
    if end:
        query = query.filter(MaintenanceRequest.created_at <= end)
    return query


def resolution_hours(query):
    resolved = query.filter(MaintenanceRequest.resolved_at.isnot(None)) \
        .with_entities(MaintenanceRequest.created_at, MaintenanceRequest.resolved_at).all()
    return [(done - opened).total_seconds() / 3600 for opened, done in resolved]


def average(values):
    return round(sum(values) / len(values), 2) if values else None


class MaintenanceSummaryResource(Resource):
    @roles_required(*STAFF_ROLES)
    def get(self):
        query = scoped_requests(current_user())
        hours = resolution_hours(query)

        return success({
            'total': query.count(),
            'by_status': _grouped(query, MaintenanceRequest.status),
            'by_category': _grouped(query, MaintenanceRequest.category),
            'by_priority': _grouped(query, MaintenanceRequest.priority),
            'resolved': len(hours),
            'average_resolution_hours': average(hours),
        })


class VendorPerformanceResource(Resource):
    @roles_required(*STAFF_ROLES)
    def get(self):
        query = scoped_requests(current_user()).filter(MaintenanceRequest.assigned_vendor_id.isnot(None))
        vendor_id = request.args.get('vendor_id', type=int)
        if vendor_id:
            query = query.filter(MaintenanceRequest.assigned_vendor_id == vendor_id)

        assigned = _grouped(query, MaintenanceRequest.assigned_vendor_id)
        vendors = Vendor.query.filter(Vendor.id.in_(list(assigned) or [-1])).all()
        report = []
        for vendor in vendors:
            jobs = query.filter(MaintenanceRequest.assigned_vendor_id == vendor.id)
            hours = resolution_hours(jobs)
            report.append({
                'vendor_id': vendor.id,
                'name': vendor.name,
                'status': vendor.status,
                'assigned': assigned[vendor.id],
                'open': jobs.filter(MaintenanceRequest.status.in_(OPEN_STATUSES)).count(),
                'resolved': len(hours),
                'average_resolution_hours': average(hours),
                'average_rating': vendor.average_rating,
                'ratings_count': vendor.ratings_count,
            })
        report.sort(key=lambda row: (-row['resolved'], -row['assigned'], row['name']))
        return success(report)


class CommonIssuesResource(Resource):
    @roles_required(*STAFF_ROLES)
    def get(self):
        query = scoped_requests(current_user())
        report = []
        for category, count in _grouped(query, MaintenanceRequest.category).items():
            hours = resolution_hours(query.filter(MaintenanceRequest.category == category))
            report.append({
                'category': category,
                'count': count,
                'resolved': len(hours),
                'average_resolution_hours': average(hours),
            })
        report.sort(key=lambda row: (-row['count'], row['category']))
        return success(report)


EXPORT_COLUMNS = ('id', 'title', 'category', 'priority', 'status', 'property', 'unit', 'created_by',
                  'assigned_to', 'created_at', 'resolved_at', 'feedback_rating')


def export_row(maintenance_request):
    _, assignee = maintenance_request.assignee()
    assigned_to = getattr(assignee, 'name', None) or getattr(assignee, 'full_name', '')
    return {
        'id': maintenance_request.id,
        'title': maintenance_request.title,
        'category': maintenance_request.category,
        'priority': maintenance_request.priority,
        'status': maintenance_request.status,
        'property': maintenance_request.property.name if maintenance_request.property else '',
        'unit': maintenance_request.unit.unit_name if maintenance_request.unit else '',
        'created_by': maintenance_request.created_by.full_name if maintenance_request.created_by else '',
        'assigned_to': assigned_to,
        'created_at': isoformat(maintenance_request.created_at) or '',
        'resolved_at': isoformat(maintenance_request.resolved_at) or '',
        'feedback_rating': maintenance_request.feedback_rating or '',
    }


class ReportExportResource(Resource):
    @roles_required(*STAFF_ROLES)
    def get(self):
        query = scoped_requests(current_user())
        for arg in ('status', 'category'):
            value = request.args.get(arg)
            if value:
                query = query.filter(getattr(MaintenanceRequest, arg) == value.lower())

        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS)
        writer.writeheader()
        for maintenance_request in query.order_by(MaintenanceRequest.created_at.desc(), MaintenanceRequest.id.desc()):
            writer.writerow(export_row(maintenance_request))

        return Response(buffer.getvalue(), mimetype='text/csv',
                        headers={'Content-Disposition': 'attachment; filename=maintenance_report.csv'})
