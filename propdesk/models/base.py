from datetime import datetime, timedelta

from propdesk.extensions import db
from propdesk.utils.tokens import generate_token


def enum_values(enum_cls):
    return [member.value for member in enum_cls]


def isoformat(value):
    return value.isoformat() if value else None


class BaseModel(db.Model):
    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class PublicLinkMixin:
    """Tokenized, authentication-free access to a single record."""

    public_token = db.Column(db.String(64), unique=True, index=True)
    public_link_enabled = db.Column(db.Boolean, default=False, nullable=False)
    public_link_expires_at = db.Column(db.DateTime)

    def enable_public_link(self, expires_in_days):
        # Reuse the existing token so links already shared keep working
        if not self.public_token:
            self.public_token = generate_token(24)
        self.public_link_enabled = True
        self.public_link_expires_at = datetime.utcnow() + timedelta(days=expires_in_days)

    def disable_public_link(self):
        self.public_link_enabled = False
        self.public_link_expires_at = None

    @property
    def public_link_active(self):
        if not self.public_link_enabled or not self.public_token:
            return False
        return self.public_link_expires_at is None or self.public_link_expires_at > datetime.utcnow()

    def public_link_dict(self):
        return {
            'public_link_enabled': self.public_link_active,
            'public_link_expires_at': isoformat(self.public_link_expires_at),
        }
