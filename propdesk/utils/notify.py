from propdesk.extensions import db
from propdesk.models import MANAGING_ROLES, Notification, NotificationType


def property_staff(prop):
    """Landlords and property managers linked to a property."""
    staff = []
    for role in MANAGING_ROLES:
        staff.extend(prop.users_with_role(role))
    return staff


def notify(recipients, message, type=NotificationType.GENERAL, link=None,
           resource_type=None, resource_id=None, exclude=None):
    """Stage one notification per distinct recipient; the caller commits."""
    seen = set()
    created = []
    for user in recipients:
        if user is None or user.id in seen:
            continue
        if exclude is not None and user.id == exclude.id:
            continue
        seen.add(user.id)
        notification = Notification(
            recipient_id=user.id,
            type=type.value if isinstance(type, NotificationType) else type,
            message=message[:500],
            link=link,
            resource_type=resource_type,
            resource_id=resource_id,
        )
        db.session.add(notification)
        created.append(notification)
    return created
