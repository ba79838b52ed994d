from marshmallow import fields

from propdesk.extensions import ma
from propdesk.models import AuditLog


class AuditLogSchema(ma.SQLAlchemyAutoSchema):
    class Meta:
        model = AuditLog
        include_fk = True

    user = fields.Function(lambda log: log.user.summary() if log.user else None)
