import enum
from datetime import datetime

from .base import BaseModel, db, isoformat


class NotificationType(enum.Enum):
    NEW_REQUEST = 'new_request'
    ASSIGNMENT = 'assignment'
    STATUS_UPDATE = 'status_update'
    NEW_COMMENT = 'new_comment'
    INVITE_ACCEPTED = 'invite_accepted'
    ONBOARDING = 'onboarding'
    SCHEDULED_MAINTENANCE = 'scheduled_maintenance'
    GENERAL = 'general'


class Notification(BaseModel):
    __tablename__ = 'notifications'

    recipient_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    type = db.Column(db.String(30), default=NotificationType.GENERAL.value, nullable=False)
    message = db.Column(db.String(500), nullable=False)
    link = db.Column(db.String(255))
    resource_type = db.Column(db.String(50))
    resource_id = db.Column(db.Integer)
    is_read = db.Column(db.Boolean, default=False, nullable=False)
    read_at = db.Column(db.DateTime)

    recipient = db.relationship('User', back_populates='notifications')

    def mark_read(self):
        if not self.is_read:
            self.is_read = True
            self.read_at = datetime.utcnow()

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.type,
            'message': self.message,
            'link': self.link,
            'resource_type': self.resource_type,
            'resource_id': self.resource_id,
            'is_read': self.is_read,
            'read_at': isoformat(self.read_at),
            'created_at': isoformat(self.created_at),
        }
