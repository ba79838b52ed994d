from .base import BaseModel, db


class AuditLog(BaseModel):
    __tablename__ = 'audit_logs'

    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), index=True)
    action = db.Column(db.String(50), nullable=False, index=True)
    resource_type = db.Column(db.String(50), nullable=False)
    resource_id = db.Column(db.Integer)
    description = db.Column(db.String(500))
    ip_address = db.Column(db.String(45))
    status = db.Column(db.String(20), default='success', nullable=False)
    extra = db.Column(db.JSON, default=dict)

    user = db.relationship('User')
