from datetime import datetime

from flask_jwt_extended import jwt_required
from flask_restful import Resource

from propdesk.models import Notification, db
from propdesk.utils.permissions import current_user
from propdesk.utils.responses import arg_bool, fail, get_or_404, paginated, success


def _own_notification(notification_id):
    user = current_user()
    notification = get_or_404(Notification, notification_id, 'Notification')
    if notification.recipient_id != user.id:
        fail(403, 'Access denied')
    return notification


class NotificationListResource(Resource):
    @jwt_required()
    def get(self):
        query = Notification.query.filter_by(recipient_id=current_user().id)
        if arg_bool('unread'):
            query = query.filter_by(is_read=False)
        query = query.order_by(Notification.created_at.desc(), Notification.id.desc())
        return paginated(query, lambda n: n.to_dict())


class NotificationUnreadCountResource(Resource):
    @jwt_required()
    def get(self):
        count = Notification.query.filter_by(recipient_id=current_user().id, is_read=False).count()
        return success({'unread_count': count})


class NotificationReadResource(Resource):
    @jwt_required()
    def put(self, notification_id):
        notification = _own_notification(notification_id)
        notification.mark_read()
        db.session.commit()
        return success(notification.to_dict(), 'Notification marked as read.')


class NotificationReadAllResource(Resource):
    @jwt_required()
    def put(self):
        updated = Notification.query.filter_by(recipient_id=current_user().id, is_read=False) \
            .update({'is_read': True, 'read_at': datetime.utcnow()}, synchronize_session=False)
        db.session.commit()
        return success({'updated': updated}, 'All notifications marked as read.')


class NotificationDetailResource(Resource):
    @jwt_required()
    def delete(self, notification_id):
        notification = _own_notification(notification_id)
        db.session.delete(notification)
        db.session.commit()
        return success(None, 'Notification deleted.')
