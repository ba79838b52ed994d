import logging

from flask import request
from flask_restful import Resource
from sqlalchemy import String, cast

from propdesk.models import MaintenanceRequest, UserRole, db
from propdesk.utils.audit import record_audit
from propdesk.utils.permissions import current_user, roles_required
from propdesk.utils.responses import fail, get_or_404, paginated_list, success
from propdesk.utils.storage import delete_upload
from .maintenance import MEDIA_DIR

logger = logging.getLogger(__name__)

ADMIN = UserRole.ADMIN.value


def requests_with_media():
    return MaintenanceRequest.query.filter(cast(MaintenanceRequest.media, String) != '[]')


def media_type(item):
    mime = item.get('mime_type') or ''
    return mime.split('/', 1)[0] if '/' in mime else 'other'


def media_entries(query):
    """Flatten the media lists of the given requests, newest upload first."""
    entries = []
    for maintenance_request in query:
        for item in maintenance_request.media or []:
            entries.append({
                **item,
                'request_id': maintenance_request.id,
                'request_title': maintenance_request.title,
                'property_id': maintenance_request.property_id,
            })
    entries.sort(key=lambda entry: entry.get('uploaded_at') or '', reverse=True)
    return entries


class MediaListResource(Resource):
    @roles_required(ADMIN)
    def get(self):
        query = requests_with_media()
        for arg in ('request_id', 'property_id'):
            value = request.args.get(arg, type=int)
            if value:
                column = MaintenanceRequest.id if arg == 'request_id' else MaintenanceRequest.property_id
                query = query.filter(column == value)

        entries = media_entries(query.order_by(MaintenanceRequest.id))
        kind = request.args.get('type')
        if kind:
            entries = [e for e in entries if media_type(e) == kind.lower()]
        uploaded_by = request.args.get('uploaded_by', type=int)
        if uploaded_by:
            entries = [e for e in entries if e.get('uploaded_by') == uploaded_by]
        return paginated_list(entries)


class MediaStatsResource(Resource):
    @roles_required(ADMIN)
    def get(self):
        entries = media_entries(requests_with_media())
        by_type = {}
        for entry in entries:
            kind = media_type(entry)
            by_type[kind] = by_type.get(kind, 0) + 1
        return success({
            'total_files': len(entries),
            'total_size': sum(entry.get('size') or 0 for entry in entries),
            'by_type': by_type,
            'requests_with_media': len({entry['request_id'] for entry in entries}),
        })


class MediaDetailResource(Resource):
    @roles_required(ADMIN)
    def delete(self, request_id, filename):
        user = current_user()
        maintenance_request = get_or_404(MaintenanceRequest, request_id, 'Maintenance request')
        media = list(maintenance_request.media or [])
        if not any(item['filename'] == filename for item in media):
            fail(404, 'Media not found')

        delete_upload(MEDIA_DIR, filename)
        maintenance_request.media = [item for item in media if item['filename'] != filename]
        record_audit('delete_media', 'maintenance_request', maintenance_request.id, user=user,
                     extra={'filename': filename})
        db.session.commit()
        logger.info('Admin %s removed media %s from request %s', user.id, filename, maintenance_request.id)
        return success(None, 'Media deleted.')
