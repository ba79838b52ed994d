import logging
from datetime import datetime

from flask import current_app, request
from flask_jwt_extended import jwt_required
from flask_restful import Resource
from sqlalchemy import or_
from werkzeug.utils import secure_filename

from propdesk.models import (STAFF_ROLES, Comment, CommentContext, MaintenanceRequest, NotificationType,
                             Property, Unit, User, UserRole, Vendor, VendorStatus, db)
from propdesk.schemas import (AssignSchema, CommentSchema, FeedbackSchema, PublicLinkSchema, RequestCreateSchema,
                              RequestUpdateSchema)
from propdesk.utils.audit import record_audit
from propdesk.utils.formatting import format_request
from propdesk.utils.mailer import frontend_link
from propdesk.utils.notify import notify, property_staff
from propdesk.utils.permissions import (can_manage_property, current_user, is_tenant_of, managed_property_ids,
                                        restrict_to_properties, roles_required)
from propdesk.utils.responses import fail, get_or_404, load_or_400, paginated, success
from propdesk.utils.storage import allowed_file, delete_upload, save_upload

logger = logging.getLogger(__name__)

MEDIA_DIR = 'requests'
TENANT_EDITABLE = ('title', 'description', 'category', 'priority')


def serialize(maintenance_request):
    return format_request(maintenance_request.to_dict())


def request_link(maintenance_request):
    return f'/requests/{maintenance_request.id}'


def can_manage_request(user, maintenance_request):
    return can_manage_property(user, maintenance_request.property_id)


def load_request(request_id, manage=False):
    """Fetch a request the current user may see (or manage)."""
    user = current_user()
    maintenance_request = get_or_404(MaintenanceRequest, request_id, 'Maintenance request')
    if can_manage_request(user, maintenance_request):
        return user, maintenance_request
    if not manage and maintenance_request.created_by_id == user.id:
        return user, maintenance_request
    fail(403, 'Access denied')


def change_status(maintenance_request, new_status, actor=None, public=False):
    """Move a request through its lifecycle; the caller commits."""
    if new_status == maintenance_request.status:
        return
    if not maintenance_request.can_transition(new_status, public=public):
        fail(400, f'Cannot change status from {maintenance_request.status} to {new_status}')

    previous = maintenance_request.status
    maintenance_request.status = new_status
    if new_status == 'completed':
        maintenance_request.resolved_at = datetime.utcnow()
        if maintenance_request.assigned_vendor is not None:
            maintenance_request.assigned_vendor.total_jobs_completed += 1
    elif new_status == 'reopened':
        maintenance_request.resolved_at = None
    logger.info('Request %s moved from %s to %s%s', maintenance_request.id, previous, new_status,
                ' via public link' if public else '')

    record_audit('status_change', 'maintenance_request', maintenance_request.id, user=actor,
                 extra={'from': previous, 'to': new_status, 'public': public})
    recipients = [maintenance_request.created_by] + property_staff(maintenance_request.property)
    notify(recipients, f'Request "{maintenance_request.title}" is now {new_status.replace("_", " ")}.',
           type=NotificationType.STATUS_UPDATE, link=request_link(maintenance_request),
           resource_type='maintenance_request', resource_id=maintenance_request.id, exclude=actor)


class MaintenanceRequestList(Resource):
    @jwt_required()
    def get(self):
        user = current_user()
        query = MaintenanceRequest.query

        if user.role == UserRole.TENANT.value:
            query = query.filter(MaintenanceRequest.created_by_id == user.id)
        else:
            query = restrict_to_properties(query, MaintenanceRequest.property_id, managed_property_ids(user))

        for arg in ('status', 'priority', 'category'):
            value = request.args.get(arg)
            if value:
                values = [v.strip().lower() for v in value.split(',') if v.strip()]
                query = query.filter(getattr(MaintenanceRequest, arg).in_(values))
        for arg in ('property_id', 'unit_id'):
            value = request.args.get(arg, type=int)
            if value:
                query = query.filter(getattr(MaintenanceRequest, arg) == value)
        search = request.args.get('search')
        if search:
            like = f'%{search}%'
            query = query.filter(or_(MaintenanceRequest.title.ilike(like),
                                     MaintenanceRequest.description.ilike(like)))

        query = query.order_by(MaintenanceRequest.created_at.desc(), MaintenanceRequest.id.desc())
        return paginated(query, serialize)

    @jwt_required()
    def post(self):
        user = current_user()
        data = load_or_400(RequestCreateSchema())

        prop = get_or_404(Property, data['property_id'], 'Property')
        unit = None
        if data.get('unit_id'):
            unit = get_or_404(Unit, data['unit_id'], 'Unit')
            if unit.property_id != prop.id:
                fail(400, 'Unit does not belong to this property')

        if user.role == UserRole.TENANT.value:
            if not is_tenant_of(user, prop.id, unit.id if unit else None):
                fail(403, 'You can only create requests for your assigned property')
        elif not can_manage_property(user, prop.id):
            fail(403, 'You do not manage this property')

        maintenance_request = MaintenanceRequest(
            title=data['title'],
            description=data['description'],
            category=data['category'],
            priority=data['priority'],
            property=prop,
            unit=unit,
            created_by=user,
            media=[],
        )
        db.session.add(maintenance_request)
        db.session.flush()

        record_audit('create', 'maintenance_request', maintenance_request.id, user=user)
        notify(property_staff(prop), f'New maintenance request at {prop.name}: {maintenance_request.title}',
               type=NotificationType.NEW_REQUEST, link=request_link(maintenance_request),
               resource_type='maintenance_request', resource_id=maintenance_request.id, exclude=user)
        db.session.commit()

        return success(serialize(maintenance_request), 'Maintenance request submitted successfully!', 201)


class MaintenanceRequestDetail(Resource):
    @jwt_required()
    def get(self, request_id):
        user, maintenance_request = load_request(request_id)
        data = serialize(maintenance_request)
        data['comments'] = [c.to_dict() for c in Comment.for_context(
            CommentContext.REQUEST.value, maintenance_request.id,
            include_internal=can_manage_request(user, maintenance_request))]
        return success(data)

    @jwt_required()
    def put(self, request_id):
        user, maintenance_request = load_request(request_id)
        data = load_or_400(RequestUpdateSchema())
        managing = can_manage_request(user, maintenance_request)

        if not managing:
            # Creators may only edit a request nobody has picked up, or cancel it
            status = data.pop('status', None)
            if status not in (None, 'canceled') or set(data) - set(TENANT_EDITABLE):
                fail(403, 'Only property staff can make this change')
            if data and maintenance_request.status != 'new':
                fail(400, 'Request can no longer be edited')
            if status:
                data['status'] = status

        if 'unit_id' in data:
            unit_id = data.pop('unit_id')
            if unit_id is not None:
                unit = get_or_404(Unit, unit_id, 'Unit')
                if unit.property_id != maintenance_request.property_id:
                    fail(400, 'Unit does not belong to this property')
            maintenance_request.unit_id = unit_id

        new_status = data.pop('status', None)
        for field, value in data.items():
            setattr(maintenance_request, field, value)
        if new_status:
            change_status(maintenance_request, new_status, actor=user)

        record_audit('update', 'maintenance_request', maintenance_request.id, user=user,
                     extra={'fields': sorted(data)})
        db.session.commit()
        return success(serialize(maintenance_request), 'Request updated.')

    @roles_required(*STAFF_ROLES)
    def delete(self, request_id):
        user, maintenance_request = load_request(request_id, manage=True)
        for item in maintenance_request.media or []:
            delete_upload(MEDIA_DIR, item['filename'])
        Comment.query.filter_by(context_type=CommentContext.REQUEST.value,
                                context_id=maintenance_request.id).delete()
        record_audit('delete', 'maintenance_request', maintenance_request.id, user=user,
                     description=maintenance_request.title)
        db.session.delete(maintenance_request)
        db.session.commit()
        return success(None, 'Request deleted.')


class MaintenanceRequestAssign(Resource):
    @roles_required(*STAFF_ROLES)
    def post(self, request_id):
        user, maintenance_request = load_request(request_id, manage=True)
        data = load_or_400(AssignSchema())

        if data['assigned_to_model'] == 'Vendor':
            vendor = get_or_404(Vendor, data['assigned_to_id'], 'Vendor')
            if vendor.status == VendorStatus.INACTIVE.value:
                fail(400, 'Vendor is inactive')
            maintenance_request.assigned_vendor = vendor
            maintenance_request.assigned_user = None
            assignee_name = vendor.name
            recipients = []
        else:
            assignee = get_or_404(User, data['assigned_to_id'], 'User')
            if assignee.role == UserRole.TENANT.value:
                fail(400, 'Requests cannot be assigned to tenants')
            maintenance_request.assigned_user = assignee
            maintenance_request.assigned_vendor = None
            assignee_name = assignee.full_name
            recipients = [assignee]

        maintenance_request.assigned_at = datetime.utcnow()
        if maintenance_request.status in ('new', 'reopened'):
            change_status(maintenance_request, 'assigned', actor=user)

        record_audit('assign', 'maintenance_request', maintenance_request.id, user=user, extra=data)
        notify(recipients + [maintenance_request.created_by],
               f'Request "{maintenance_request.title}" was assigned to {assignee_name}.',
               type=NotificationType.ASSIGNMENT, link=request_link(maintenance_request),
               resource_type='maintenance_request', resource_id=maintenance_request.id, exclude=user)
        db.session.commit()
        return success(serialize(maintenance_request), 'Task assigned successfully!')


class MaintenanceRequestMedia(Resource):
    @jwt_required()
    def post(self, request_id):
        user, maintenance_request = load_request(request_id)
        files = request.files.getlist('media_files')
        if not files:
            fail(400, 'No media files provided for upload.')

        rejected = [f.filename for f in files if not allowed_file(secure_filename(f.filename or ''))]
        if rejected:
            fail(400, f'File type not allowed: {", ".join(repr(name) for name in rejected)}')

        media = list(maintenance_request.media or [])
        saved = []
        for file_storage in files:
            try:
                stored = save_upload(file_storage, MEDIA_DIR)
            except ValueError as err:
                for name in saved:
                    delete_upload(MEDIA_DIR, name)
                fail(400, str(err))
            saved.append(stored['stored_name'])
            media.append({
                'filename': stored['stored_name'],
                'original_name': stored['original_name'],
                'mime_type': stored['mime_type'],
                'size': stored['size'],
                'uploaded_by': user.id,
                'uploaded_at': datetime.utcnow().isoformat(),
            })
        maintenance_request.media = media

        record_audit('upload_media', 'maintenance_request', maintenance_request.id, user=user,
                     extra={'count': len(files)})
        db.session.commit()
        return success(maintenance_request.media, 'Media uploaded.', 201)

    @jwt_required()
    def delete(self, request_id):
        user, maintenance_request = load_request(request_id)
        filename = (request.get_json(silent=True) or {}).get('filename')
        media = list(maintenance_request.media or [])
        item = next((m for m in media if m['filename'] == filename), None)
        if item is None:
            fail(404, 'Media not found')
        if item.get('uploaded_by') != user.id and not can_manage_request(user, maintenance_request):
            fail(403, 'Access denied')

        delete_upload(MEDIA_DIR, filename)
        maintenance_request.media = [m for m in media if m['filename'] != filename]
        record_audit('delete_media', 'maintenance_request', maintenance_request.id, user=user,
                     extra={'filename': filename})
        db.session.commit()
        return success(maintenance_request.media, 'Media deleted.')


class MaintenanceRequestFeedback(Resource):
    @jwt_required()
    def post(self, request_id):
        user, maintenance_request = load_request(request_id)
        if maintenance_request.created_by_id != user.id:
            fail(403, 'Only the requester can leave feedback')
        if maintenance_request.status not in ('completed', 'verified'):
            fail(400, 'Feedback can only be left on completed requests')
        if maintenance_request.feedback_rating:
            fail(409, 'Feedback already submitted')

        data = load_or_400(FeedbackSchema())
        maintenance_request.feedback_rating = data['rating']
        maintenance_request.feedback_comment = data.get('comment')
        maintenance_request.feedback_at = datetime.utcnow()
        if maintenance_request.assigned_vendor is not None:
            maintenance_request.assigned_vendor.add_rating(data['rating'])

        record_audit('feedback', 'maintenance_request', maintenance_request.id, user=user)
        db.session.commit()
        return success(serialize(maintenance_request), 'Thank you for your feedback!')


class MaintenanceRequestAction(Resource):
    """PUT /requests/<id>/verify, /reopen and /archive."""

    TARGETS = {'verify': 'verified', 'reopen': 'reopened', 'archive': 'archived'}

    @jwt_required()
    def put(self, request_id, action):
        user, maintenance_request = load_request(request_id)
        # Requesters may reopen their own completed work; everything else needs staff
        if not can_manage_request(user, maintenance_request) and action != 'reopen':
            fail(403, 'Only property staff can make this change')

        change_status(maintenance_request, self.TARGETS[action], actor=user)
        db.session.commit()
        return success(serialize(maintenance_request), 'Status updated successfully!')


class MaintenanceRequestPublicLink(Resource):
    """POST /requests/<id>/enable-public-link and /disable-public-link."""

    @roles_required(*STAFF_ROLES)
    def post(self, request_id, action):
        user, maintenance_request = load_request(request_id, manage=True)

        if action == 'disable':
            maintenance_request.disable_public_link()
            record_audit('disable_public_link', 'maintenance_request', maintenance_request.id, user=user)
            db.session.commit()
            return success(None, 'Public link disabled.')

        data = load_or_400(PublicLinkSchema())
        days = data.get('expires_in_days') or current_app.config['PUBLIC_LINK_EXPIRY_DAYS']
        maintenance_request.enable_public_link(days)
        record_audit('enable_public_link', 'maintenance_request', maintenance_request.id, user=user,
                     extra={'expires_in_days': days})
        db.session.commit()
        return success({
            'public_token': maintenance_request.public_token,
            'public_link': frontend_link(f'public/requests/{maintenance_request.public_token}'),
            'expires_at': maintenance_request.public_link_expires_at.isoformat(),
        }, 'Public link enabled.')


class MaintenanceRequestComments(Resource):
    @jwt_required()
    def get(self, request_id):
        user, maintenance_request = load_request(request_id)
        comments = Comment.for_context(CommentContext.REQUEST.value, maintenance_request.id,
                                       include_internal=can_manage_request(user, maintenance_request))
        return success([c.to_dict() for c in comments])

    @jwt_required()
    def post(self, request_id):
        user, maintenance_request = load_request(request_id)
        data = load_or_400(CommentSchema())
        managing = can_manage_request(user, maintenance_request)
        if data['is_internal'] and not managing:
            fail(403, 'Only property staff can leave internal notes')

        comment = Comment(context_type=CommentContext.REQUEST.value, context_id=maintenance_request.id,
                          message=data['message'], is_internal=data['is_internal'], sender=user)
        db.session.add(comment)

        recipients = property_staff(maintenance_request.property)
        if not data['is_internal']:
            recipients.append(maintenance_request.created_by)
        notify(recipients, f'New comment on "{maintenance_request.title}"',
               type=NotificationType.NEW_COMMENT, link=request_link(maintenance_request),
               resource_type='maintenance_request', resource_id=maintenance_request.id, exclude=user)
        db.session.commit()
        return success(comment.to_dict(), 'Comment added.', 201)
