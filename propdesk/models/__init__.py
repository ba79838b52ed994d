from .base import BaseModel, db, enum_values
from .user import User, UserRole, STAFF_ROLES
from .property import Property, PropertyType, PropertyRole, PropertyUser, Unit, UnitStatus, MANAGING_ROLES
from .vendor import Vendor, VendorStatus
from .maintenance import (MaintenanceRequest, RequestStatus, RequestPriority, MaintenanceCategory,
                          OPEN_STATUSES)
from .comment import Comment, CommentContext
from .scheduled import ScheduledMaintenance, ScheduledStatus
from .invite import Invite, InviteStatus, InviteRole
from .onboarding import OnboardingDocument, OnboardingCompletion, OnboardingCategory, OnboardingVisibility
from .notification import Notification, NotificationType
from .audit import AuditLog

__all__ = [
    'BaseModel', 'db', 'enum_values',
    'User', 'UserRole', 'STAFF_ROLES',
    'Property', 'PropertyType', 'PropertyRole', 'PropertyUser', 'Unit', 'UnitStatus', 'MANAGING_ROLES',
    'Vendor', 'VendorStatus',
    'MaintenanceRequest', 'RequestStatus', 'RequestPriority', 'MaintenanceCategory', 'OPEN_STATUSES',
    'Comment', 'CommentContext',
    'ScheduledMaintenance', 'ScheduledStatus',
    'Invite', 'InviteStatus', 'InviteRole',
    'OnboardingDocument', 'OnboardingCompletion', 'OnboardingCategory', 'OnboardingVisibility',
    'Notification', 'NotificationType',
    'AuditLog',
]
