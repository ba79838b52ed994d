import enum

from .base import BaseModel, PublicLinkMixin, db, isoformat


class ScheduledStatus(enum.Enum):
    SCHEDULED = 'scheduled'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    CANCELED = 'canceled'
    PAUSED = 'paused'


SCHEDULED_TRANSITIONS = {
    'scheduled': {'in_progress', 'completed', 'paused', 'canceled'},
    'in_progress': {'completed', 'scheduled', 'canceled'},
    'paused': {'scheduled', 'canceled'},
    'completed': set(),
    'canceled': set(),
}

PUBLIC_SCHEDULED_TRANSITIONS = {
    'scheduled': {'in_progress'},
    'in_progress': {'completed'},
}


class ScheduledMaintenance(PublicLinkMixin, BaseModel):
    __tablename__ = 'scheduled_maintenance'

    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    category = db.Column(db.String(20), nullable=False)
    scheduled_date = db.Column(db.DateTime, nullable=False)
    recurring = db.Column(db.Boolean, default=False, nullable=False)
    frequency = db.Column(db.JSON)
    next_due_date = db.Column(db.DateTime, index=True)
    last_completed_at = db.Column(db.DateTime)
    occurrence_count = db.Column(db.Integer, default=0, nullable=False)
    status = db.Column(db.String(20), default=ScheduledStatus.SCHEDULED.value, nullable=False, index=True)

    property_id = db.Column(db.Integer, db.ForeignKey('properties.id', ondelete='CASCADE'), nullable=False)
    unit_id = db.Column(db.Integer, db.ForeignKey('units.id', ondelete='SET NULL'))
    assigned_vendor_id = db.Column(db.Integer, db.ForeignKey('vendors.id', ondelete='SET NULL'))
    created_by_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))

    property = db.relationship('Property', backref=db.backref('scheduled_maintenance', cascade='all, delete-orphan'))
    unit = db.relationship('Unit')
    assigned_vendor = db.relationship('Vendor')
    created_by = db.relationship('User')

    def can_transition(self, new_status, public=False):
        table = PUBLIC_SCHEDULED_TRANSITIONS if public else SCHEDULED_TRANSITIONS
        return new_status in table.get(self.status, set())

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'category': self.category,
            'scheduled_date': isoformat(self.scheduled_date),
            'recurring': self.recurring,
            'frequency': self.frequency or {},
            'next_due_date': isoformat(self.next_due_date),
            'last_completed_at': isoformat(self.last_completed_at),
            'occurrence_count': self.occurrence_count,
            'status': self.status,
            'property_id': self.property_id,
            'unit_id': self.unit_id,
            'property': {'id': self.property.id, 'name': self.property.name} if self.property else None,
            'unit': {'id': self.unit.id, 'unit_name': self.unit.unit_name} if self.unit else None,
            'assigned_to': {
                'id': self.assigned_vendor.id,
                'name': self.assigned_vendor.name,
                'phone': self.assigned_vendor.phone,
            } if self.assigned_vendor else None,
            'created_by': self.created_by.summary() if self.created_by else None,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
            **self.public_link_dict(),
        }

    def to_public_dict(self):
        return {
            'title': self.title,
            'description': self.description,
            'category': self.category,
            'status': self.status,
            'scheduled_date': isoformat(self.scheduled_date),
            'next_due_date': isoformat(self.next_due_date),
            'recurring': self.recurring,
            'frequency': self.frequency or {},
            'property': {
                'name': self.property.name,
                'address': self.property.address,
            } if self.property else None,
            'unit': {'unit_name': self.unit.unit_name} if self.unit else None,
        }
