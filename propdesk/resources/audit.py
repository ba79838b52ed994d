from flask import request
from flask_restful import Resource

from propdesk.models import AuditLog, UserRole
from propdesk.schemas import AuditLogSchema
from propdesk.utils.permissions import roles_required
from propdesk.utils.responses import arg_date, get_or_404, paginated, success

audit_schema = AuditLogSchema()


class AuditLogListResource(Resource):
    @roles_required(UserRole.ADMIN.value)
    def get(self):
        query = AuditLog.query

        for arg in ('action', 'resource_type'):
            value = request.args.get(arg)
            if value:
                query = query.filter(getattr(AuditLog, arg) == value)
        user_id = request.args.get('user_id', type=int)
        if user_id:
            query = query.filter(AuditLog.user_id == user_id)
        start = arg_date('start_date')
        if start:
            query = query.filter(AuditLog.created_at >= start)
        end = arg_date('end_date', end_of_day=True)
        if end:
            query = query.filter(AuditLog.created_at <= end)

        return paginated(query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()), audit_schema.dump)


class AuditLogDetailResource(Resource):
    @roles_required(UserRole.ADMIN.value)
    def get(self, log_id):
        return success(audit_schema.dump(get_or_404(AuditLog, log_id, 'Audit log')))
