import enum
from datetime import datetime, timedelta

from .base import BaseModel, db, isoformat
from propdesk.utils.tokens import generate_token, hash_token


class InviteStatus(enum.Enum):
    PENDING = 'pending'
    ACCEPTED = 'accepted'
    EXPIRED = 'expired'
    REVOKED = 'revoked'
    DECLINED = 'declined'


class InviteRole(enum.Enum):
    TENANT = 'tenant'
    LANDLORD = 'landlord'
    PROPERTY_MANAGER = 'propertymanager'
    VENDOR = 'vendor'


class Invite(BaseModel):
    __tablename__ = 'invites'

    email = db.Column(db.String(120), nullable=False, index=True)
    role = db.Column(db.String(20), nullable=False)
    token_hash = db.Column(db.String(64), unique=True, nullable=False)
    status = db.Column(db.String(20), default=InviteStatus.PENDING.value, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    accepted_at = db.Column(db.DateTime)
    resend_count = db.Column(db.Integer, default=0, nullable=False)

    property_id = db.Column(db.Integer, db.ForeignKey('properties.id', ondelete='CASCADE'))
    unit_id = db.Column(db.Integer, db.ForeignKey('units.id', ondelete='SET NULL'))
    generated_by_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))
    accepted_by_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))

    property = db.relationship('Property')
    unit = db.relationship('Unit')
    generated_by = db.relationship('User', foreign_keys=[generated_by_id])
    accepted_by = db.relationship('User', foreign_keys=[accepted_by_id])

    def issue_token(self, expires_in_days):
        """Generate a fresh token; only its hash is persisted."""
        token = generate_token()
        self.token_hash = hash_token(token)
        self.expires_at = datetime.utcnow() + timedelta(days=expires_in_days)
        return token

    @classmethod
    def find_by_token(cls, token):
        return cls.query.filter_by(token_hash=hash_token(token)).first()

    def is_expired(self):
        return self.expires_at <= datetime.utcnow()

    def expire_if_due(self):
        if self.status == InviteStatus.PENDING.value and self.is_expired():
            self.status = InviteStatus.EXPIRED.value
            return True
        return False

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'role': self.role,
            'status': self.status,
            'property': {'id': self.property.id, 'name': self.property.name} if self.property else None,
            'unit': {'id': self.unit.id, 'unit_name': self.unit.unit_name} if self.unit else None,
            'generated_by': self.generated_by.summary() if self.generated_by else None,
            'accepted_by': self.accepted_by.summary() if self.accepted_by else None,
            'expires_at': isoformat(self.expires_at),
            'accepted_at': isoformat(self.accepted_at),
            'resend_count': self.resend_count,
            'created_at': isoformat(self.created_at),
        }
