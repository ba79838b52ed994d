import enum

from .base import BaseModel, PublicLinkMixin, db, isoformat


class RequestStatus(enum.Enum):
    NEW = 'new'
    ASSIGNED = 'assigned'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    VERIFIED = 'verified'
    REOPENED = 'reopened'
    CANCELED = 'canceled'
    ARCHIVED = 'archived'


class RequestPriority(enum.Enum):
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'
    URGENT = 'urgent'


class MaintenanceCategory(enum.Enum):
    PLUMBING = 'plumbing'
    ELECTRICAL = 'electrical'
    HVAC = 'hvac'
    APPLIANCE = 'appliance'
    STRUCTURAL = 'structural'
    LANDSCAPING = 'landscaping'
    PEST_CONTROL = 'pest_control'
    CLEANING = 'cleaning'
    SECURITY = 'security'
    GENERAL = 'general'
    SCHEDULED = 'scheduled'
    OTHER = 'other'


STATUS_TRANSITIONS = {
    'new': {'assigned', 'in_progress', 'canceled'},
    'assigned': {'in_progress', 'canceled'},
    'in_progress': {'completed', 'canceled'},
    'completed': {'verified', 'reopened', 'archived'},
    'verified': {'reopened', 'archived'},
    'reopened': {'assigned', 'in_progress', 'canceled'},
    'canceled': {'archived'},
    'archived': set(),
}

# Transitions a vendor may make through a public link
PUBLIC_STATUS_TRANSITIONS = {
    'new': {'in_progress'},
    'assigned': {'in_progress'},
    'in_progress': {'completed'},
}

OPEN_STATUSES = ('new', 'assigned', 'in_progress', 'reopened')


class MaintenanceRequest(PublicLinkMixin, BaseModel):
    __tablename__ = 'maintenance_requests'

    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(20), default=MaintenanceCategory.GENERAL.value, nullable=False)
    priority = db.Column(db.String(20), default=RequestPriority.MEDIUM.value, nullable=False)
    status = db.Column(db.String(20), default=RequestStatus.NEW.value, nullable=False, index=True)
    media = db.Column(db.JSON, default=list, nullable=False)
    resolved_at = db.Column(db.DateTime)

    feedback_rating = db.Column(db.Integer)
    feedback_comment = db.Column(db.Text)
    feedback_at = db.Column(db.DateTime)

    property_id = db.Column(db.Integer, db.ForeignKey('properties.id', ondelete='CASCADE'), nullable=False)
    unit_id = db.Column(db.Integer, db.ForeignKey('units.id', ondelete='SET NULL'))
    created_by_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))
    assigned_vendor_id = db.Column(db.Integer, db.ForeignKey('vendors.id', ondelete='SET NULL'))
    assigned_user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))
    assigned_at = db.Column(db.DateTime)

    property = db.relationship('Property', backref=db.backref('maintenance_requests', cascade='all, delete-orphan'))
    unit = db.relationship('Unit')
    created_by = db.relationship('User', foreign_keys=[created_by_id])
    assigned_vendor = db.relationship('Vendor')
    assigned_user = db.relationship('User', foreign_keys=[assigned_user_id])

    def can_transition(self, new_status, public=False):
        table = PUBLIC_STATUS_TRANSITIONS if public else STATUS_TRANSITIONS
        return new_status in table.get(self.status, set())

    def assignee(self):
        if self.assigned_vendor is not None:
            return 'Vendor', self.assigned_vendor
        if self.assigned_user is not None:
            return 'User', self.assigned_user
        return None, None

    def to_dict(self):
        model, assignee = self.assignee()
        if model == 'Vendor':
            assigned_to = {'id': assignee.id, 'name': assignee.name, 'phone': assignee.phone, 'email': assignee.email}
        elif model == 'User':
            assigned_to = assignee.summary()
        else:
            assigned_to = None
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'category': self.category,
            'priority': self.priority,
            'status': self.status,
            'media': self.media or [],
            'property_id': self.property_id,
            'unit_id': self.unit_id,
            'property': {'id': self.property.id, 'name': self.property.name} if self.property else None,
            'unit': {'id': self.unit.id, 'unit_name': self.unit.unit_name} if self.unit else None,
            'created_by': self.created_by.summary() if self.created_by else None,
            'assigned_to_model': model,
            'assigned_to': assigned_to,
            'assigned_at': isoformat(self.assigned_at),
            'resolved_at': isoformat(self.resolved_at),
            'feedback': {
                'rating': self.feedback_rating,
                'comment': self.feedback_comment,
                'submitted_at': isoformat(self.feedback_at),
            } if self.feedback_rating else None,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
            **self.public_link_dict(),
        }

    def to_public_dict(self):
        return {
            'title': self.title,
            'description': self.description,
            'category': self.category,
            'priority': self.priority,
            'status': self.status,
            'property': {
                'name': self.property.name,
                'address': self.property.address,
            } if self.property else None,
            'unit': {'unit_name': self.unit.unit_name} if self.unit else None,
            'media': [m.get('original_name') for m in (self.media or [])],
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
