import logging
from datetime import datetime, timedelta

from flask import current_app, request
from flask_jwt_extended import jwt_required
from flask_restful import Resource
from sqlalchemy import or_

from propdesk.models import (STAFF_ROLES, NotificationType, Property, ScheduledMaintenance, ScheduledStatus, Unit,
                             UserRole, Vendor, db)
from propdesk.schemas import PublicLinkSchema, ScheduledMaintenanceSchema
from propdesk.utils.audit import record_audit
from propdesk.utils.formatting import format_scheduled
from propdesk.utils.frequency import next_occurrence, upcoming_occurrences
from propdesk.utils.mailer import frontend_link
from propdesk.utils.notify import notify, property_staff
from propdesk.utils.permissions import (can_manage_property, can_view_property, current_user, property_ids_for,
                                        require_manager, restrict_to_properties, roles_required)
from propdesk.utils.responses import arg_bool, fail, get_or_404, load_or_400, paginated, success

logger = logging.getLogger(__name__)

MAX_UPCOMING = 50


def serialize(task):
    return format_scheduled(task.to_dict())


def first_due_date(task):
    if task.recurring and task.frequency:
        return next_occurrence(task.frequency, task.scheduled_date)
    return task.scheduled_date


def complete_occurrence(task):
    """Record one finished occurrence and roll the series forward."""
    now = datetime.utcnow()
    task.occurrence_count = (task.occurrence_count or 0) + 1
    task.last_completed_at = now

    upcoming = None
    if task.recurring and task.frequency:
        upcoming = next_occurrence(task.frequency, task.scheduled_date,
                                   after=task.next_due_date or task.scheduled_date)
    if upcoming is None:
        task.status = ScheduledStatus.COMPLETED.value
        task.next_due_date = None
    else:
        task.status = ScheduledStatus.SCHEDULED.value
        task.next_due_date = upcoming
    logger.info('Scheduled task %s completed (occurrence %s), next due %s',
                task.id, task.occurrence_count, task.next_due_date)


def change_scheduled_status(task, new_status, actor=None, public=False):
    """Apply a status change; the caller commits."""
    if new_status == task.status:
        return
    if not task.can_transition(new_status, public=public):
        fail(400, f'Cannot change status from {task.status} to {new_status}')

    previous = task.status
    if new_status == ScheduledStatus.COMPLETED.value:
        complete_occurrence(task)
    else:
        task.status = new_status

    record_audit('status_change', 'scheduled_maintenance', task.id, user=actor,
                 extra={'from': previous, 'to': task.status, 'public': public})
    notify(property_staff(task.property),
           f'Scheduled task "{task.title}" is now {task.status.replace("_", " ")}.',
           type=NotificationType.SCHEDULED_MAINTENANCE, link=f'/scheduled-maintenance/{task.id}',
           resource_type='scheduled_maintenance', resource_id=task.id, exclude=actor)


def _check_scope(data, property_id):
    unit_id = data.get('unit_id')
    if unit_id:
        unit = get_or_404(Unit, unit_id, 'Unit')
        if unit.property_id != property_id:
            fail(400, 'Unit does not belong to this property')
    vendor_id = data.get('assigned_vendor_id')
    if vendor_id:
        get_or_404(Vendor, vendor_id, 'Vendor')


def load_task(task_id, manage=False):
    user = current_user()
    task = get_or_404(ScheduledMaintenance, task_id, 'Scheduled maintenance')
    allowed = can_manage_property(user, task.property_id) if manage else can_view_property(user, task.property_id)
    if not allowed:
        fail(403, 'Access denied')
    return user, task


class ScheduledMaintenanceList(Resource):
    @jwt_required()
    def get(self):
        user = current_user()
        query = restrict_to_properties(ScheduledMaintenance.query, ScheduledMaintenance.property_id,
                                       property_ids_for(user))
        if user.role == UserRole.TENANT.value:
            # Tenants only see work on their property, and never internal pauses or cancellations
            query = query.filter(ScheduledMaintenance.status.in_(('scheduled', 'in_progress')))

        for arg in ('status', 'category'):
            value = request.args.get(arg)
            if value:
                query = query.filter(getattr(ScheduledMaintenance, arg) == value.lower())
        property_id = request.args.get('property_id', type=int)
        if property_id:
            query = query.filter(ScheduledMaintenance.property_id == property_id)
        recurring = arg_bool('recurring')
        if recurring is not None:
            query = query.filter(ScheduledMaintenance.recurring.is_(recurring))
        search = request.args.get('search')
        if search:
            like = f'%{search}%'
            query = query.filter(or_(ScheduledMaintenance.title.ilike(like),
                                     ScheduledMaintenance.description.ilike(like)))

        query = query.order_by(ScheduledMaintenance.next_due_date.asc(), ScheduledMaintenance.id.asc())
        return paginated(query, serialize)

    @roles_required(*STAFF_ROLES)
    def post(self):
        user = current_user()
        data = load_or_400(ScheduledMaintenanceSchema())
        prop = get_or_404(Property, data['property_id'], 'Property')
        require_manager(user, prop.id)
        _check_scope(data, prop.id)

        data.pop('status', None)
        task = ScheduledMaintenance(created_by=user, **data)
        task.next_due_date = first_due_date(task)
        if task.next_due_date is None:
            fail(400, 'Frequency produces no occurrences')
        db.session.add(task)
        db.session.flush()

        record_audit('create', 'scheduled_maintenance', task.id, user=user, description=task.title)
        db.session.commit()
        return success(serialize(task), 'Scheduled maintenance created successfully!', 201)


class ScheduledMaintenanceDetail(Resource):
    @jwt_required()
    def get(self, task_id):
        _, task = load_task(task_id)
        return success(serialize(task))

    @roles_required(*STAFF_ROLES)
    def put(self, task_id):
        user, task = load_task(task_id, manage=True)
        data = load_or_400(ScheduledMaintenanceSchema(), partial=True)
        if 'property_id' in data and data['property_id'] != task.property_id:
            require_manager(user, data['property_id'])
        _check_scope(data, data.get('property_id', task.property_id))

        new_status = data.pop('status', None)
        reschedule = bool({'scheduled_date', 'recurring', 'frequency'} & set(data))
        for field, value in data.items():
            setattr(task, field, value)
        if task.recurring and not task.frequency:
            fail(400, 'Validation failed', errors={'frequency': ['Frequency is required for recurring tasks.']})
        if reschedule:
            task.next_due_date = first_due_date(task)
            if task.next_due_date is None:
                fail(400, 'Frequency produces no occurrences')
        if new_status:
            change_scheduled_status(task, new_status, actor=user)

        record_audit('update', 'scheduled_maintenance', task.id, user=user, extra={'fields': sorted(data)})
        db.session.commit()
        return success(serialize(task), 'Scheduled maintenance updated.')

    @roles_required(*STAFF_ROLES)
    def delete(self, task_id):
        user, task = load_task(task_id, manage=True)
        record_audit('delete', 'scheduled_maintenance', task.id, user=user, description=task.title)
        db.session.delete(task)
        db.session.commit()
        return success(None, 'Scheduled maintenance deleted.')


class ScheduledMaintenancePause(Resource):
    """PUT /scheduled-maintenance/<id>/pause and /resume."""

    @roles_required(*STAFF_ROLES)
    def put(self, task_id, action):
        user, task = load_task(task_id, manage=True)
        target = ScheduledStatus.PAUSED.value if action == 'pause' else ScheduledStatus.SCHEDULED.value
        if action == 'resume' and task.status != ScheduledStatus.PAUSED.value:
            fail(400, 'Only paused tasks can be resumed')
        change_scheduled_status(task, target, actor=user)
        if action == 'resume' and task.recurring and task.frequency:
            # Skip occurrences that fell due while the task was paused
            task.next_due_date = next_occurrence(task.frequency, task.scheduled_date,
                                                 after=datetime.utcnow()) or task.next_due_date
        db.session.commit()
        return success(serialize(task), f'Scheduled maintenance {action}d.')


class ScheduledMaintenanceUpcoming(Resource):
    @jwt_required()
    def get(self, task_id):
        _, task = load_task(task_id)
        count = min(max(request.args.get('count', 5, type=int) or 5, 1), MAX_UPCOMING)
        if task.status in (ScheduledStatus.COMPLETED.value, ScheduledStatus.CANCELED.value):
            dates = []
        elif task.recurring and task.frequency:
            # next_due_date itself is the first upcoming occurrence
            after = task.next_due_date - timedelta(seconds=1) if task.next_due_date else None
            dates = upcoming_occurrences(task.frequency, task.scheduled_date, after=after, count=count)
        else:
            dates = [task.next_due_date or task.scheduled_date]
        return success({
            'id': task.id,
            'recurring': task.recurring,
            'occurrences': [d.isoformat() for d in dates],
        })


class ScheduledMaintenancePublicLink(Resource):
    """POST /scheduled-maintenance/<id>/enable-public-link and /disable-public-link."""

    @roles_required(*STAFF_ROLES)
    def post(self, task_id, action):
        user, task = load_task(task_id, manage=True)
        if action == 'disable':
            task.disable_public_link()
            record_audit('disable_public_link', 'scheduled_maintenance', task.id, user=user)
            db.session.commit()
            return success(None, 'Public link disabled.')

        data = load_or_400(PublicLinkSchema())
        days = data.get('expires_in_days') or current_app.config['PUBLIC_LINK_EXPIRY_DAYS']
        task.enable_public_link(days)
        record_audit('enable_public_link', 'scheduled_maintenance', task.id, user=user,
                     extra={'expires_in_days': days})
        db.session.commit()
        return success({
            'public_token': task.public_token,
            'public_link': frontend_link(f'public/scheduled-maintenance/{task.public_token}'),
            'expires_at': task.public_link_expires_at.isoformat(),
        }, 'Public link enabled.')
