import logging

from flask import has_request_context, request

from propdesk.extensions import db
from propdesk.models import AuditLog

logger = logging.getLogger(__name__)


def record_audit(action, resource_type, resource_id=None, user=None, description=None,
                 status='success', extra=None):
    """Stage an audit entry in the current session; the caller commits."""
    entry = AuditLog(
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        user_id=user.id if user is not None else None,
        description=description,
        status=status,
        extra=extra or {},
        ip_address=request.remote_addr if has_request_context() else None,
    )
    db.session.add(entry)
    logger.debug('audit %s %s:%s by %s', action, resource_type, resource_id, entry.user_id)
    return entry
