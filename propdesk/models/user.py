import enum
from datetime import datetime, timedelta

from werkzeug.security import check_password_hash, generate_password_hash

from .base import BaseModel, db
from propdesk.utils.tokens import generate_token, hash_token


class UserRole(enum.Enum):
    TENANT = 'tenant'
    LANDLORD = 'landlord'
    PROPERTY_MANAGER = 'propertymanager'
    ADMIN = 'admin'


STAFF_ROLES = (UserRole.LANDLORD.value, UserRole.PROPERTY_MANAGER.value, UserRole.ADMIN.value)


class User(BaseModel):
    __tablename__ = 'users'

    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(50), nullable=False)
    last_name = db.Column(db.String(50), nullable=False)
    phone = db.Column(db.String(20))
    role = db.Column(db.String(20), default=UserRole.TENANT.value, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    is_approved = db.Column(db.Boolean, default=True, nullable=False)
    email_verified = db.Column(db.Boolean, default=False, nullable=False)
    preferences = db.Column(db.JSON, default=dict)
    last_login_at = db.Column(db.DateTime)

    reset_token_hash = db.Column(db.String(64), index=True)
    reset_token_expires_at = db.Column(db.DateTime)
    verification_token_hash = db.Column(db.String(64), index=True)
    verification_token_expires_at = db.Column(db.DateTime)

    property_links = db.relationship('PropertyUser', back_populates='user', cascade='all, delete-orphan')
    notifications = db.relationship('Notification', back_populates='recipient', cascade='all, delete-orphan')

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def issue_reset_token(self, expires_in_hours):
        token = generate_token()
        self.reset_token_hash = hash_token(token)
        self.reset_token_expires_at = datetime.utcnow() + timedelta(hours=expires_in_hours)
        return token

    def clear_reset_token(self):
        self.reset_token_hash = None
        self.reset_token_expires_at = None

    def issue_verification_token(self, expires_in_hours):
        token = generate_token()
        self.verification_token_hash = hash_token(token)
        self.verification_token_expires_at = datetime.utcnow() + timedelta(hours=expires_in_hours)
        return token

    def mark_email_verified(self):
        self.email_verified = True
        self.verification_token_hash = None
        self.verification_token_expires_at = None

    @property
    def full_name(self):
        return f"{self.first_name or ''} {self.last_name or ''}".strip() or self.email

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN.value

    @property
    def is_staff(self):
        return self.role in STAFF_ROLES

    def summary(self):
        return {
            'id': self.id,
            'email': self.email,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'full_name': self.full_name,
            'role': self.role,
        }
