import enum

from .base import BaseModel, db, isoformat


class OnboardingCategory(enum.Enum):
    SOP = 'sop'
    TRAINING = 'training'
    GUIDELINES = 'guidelines'
    POLICY = 'policy'
    WELCOME = 'welcome'
    OTHER = 'other'


class OnboardingVisibility(enum.Enum):
    ALL_TENANTS = 'all_tenants'
    PROPERTY_TENANTS = 'property_tenants'
    UNIT_TENANTS = 'unit_tenants'
    SPECIFIC_TENANT = 'specific_tenant'


class OnboardingDocument(BaseModel):
    __tablename__ = 'onboarding_documents'

    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    category = db.Column(db.String(20), nullable=False)
    visibility = db.Column(db.String(20), nullable=False)

    stored_filename = db.Column(db.String(255), nullable=False)
    original_filename = db.Column(db.String(255))
    mime_type = db.Column(db.String(100))
    file_size = db.Column(db.Integer)

    property_id = db.Column(db.Integer, db.ForeignKey('properties.id', ondelete='CASCADE'))
    unit_id = db.Column(db.Integer, db.ForeignKey('units.id', ondelete='SET NULL'))
    tenant_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'))
    created_by_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))

    property = db.relationship('Property')
    unit = db.relationship('Unit')
    tenant = db.relationship('User', foreign_keys=[tenant_id])
    created_by = db.relationship('User', foreign_keys=[created_by_id])
    completions = db.relationship('OnboardingCompletion', back_populates='document', cascade='all, delete-orphan')

    def is_visible_to_tenant(self, tenant):
        if self.visibility == OnboardingVisibility.SPECIFIC_TENANT.value:
            return self.tenant_id == tenant.id
        links = [link for link in tenant.property_links if link.role == 'tenant' and link.is_active]
        if self.visibility == OnboardingVisibility.UNIT_TENANTS.value:
            return any(link.unit_id == self.unit_id for link in links)
        if self.visibility == OnboardingVisibility.PROPERTY_TENANTS.value:
            return any(link.property_id == self.property_id for link in links)
        # all_tenants is scoped to the document's property when one is set
        if self.property_id is None:
            return bool(links)
        return any(link.property_id == self.property_id for link in links)

    @classmethod
    def visible_to(cls, tenant):
        """SQL counterpart of is_visible_to_tenant."""
        links = [link for link in tenant.property_links if link.role == 'tenant' and link.is_active]
        property_ids = sorted({link.property_id for link in links})
        unit_ids = sorted({link.unit_id for link in links if link.unit_id is not None})
        clauses = [db.and_(cls.visibility == OnboardingVisibility.SPECIFIC_TENANT.value, cls.tenant_id == tenant.id)]
        if unit_ids:
            clauses.append(db.and_(cls.visibility == OnboardingVisibility.UNIT_TENANTS.value,
                                   cls.unit_id.in_(unit_ids)))
        if property_ids:
            clauses.append(db.and_(
                cls.visibility.in_((OnboardingVisibility.PROPERTY_TENANTS.value,
                                    OnboardingVisibility.ALL_TENANTS.value)),
                cls.property_id.in_(property_ids),
            ))
            clauses.append(db.and_(cls.visibility == OnboardingVisibility.ALL_TENANTS.value,
                                   cls.property_id.is_(None)))
        return db.or_(*clauses)

    def completion_for(self, user):
        if user is None:
            return None
        return next((c for c in self.completions if c.tenant_id == user.id), None)

    def to_dict(self, viewer=None):
        completion = self.completion_for(viewer)
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'category': self.category,
            'visibility': self.visibility,
            'property': {'id': self.property.id, 'name': self.property.name} if self.property else None,
            'unit': {'id': self.unit.id, 'unit_name': self.unit.unit_name} if self.unit else None,
            'tenant': self.tenant.summary() if self.tenant else None,
            'created_by': self.created_by.summary() if self.created_by else None,
            'file': {
                'original_name': self.original_filename,
                'mime_type': self.mime_type,
                'size': self.file_size,
            },
            'is_completed': completion is not None,
            'completed_at': isoformat(completion.completed_at) if completion else None,
            'completion_count': len(self.completions),
            'created_at': isoformat(self.created_at),
        }


class OnboardingCompletion(BaseModel):
    __tablename__ = 'onboarding_completions'
    __table_args__ = (
        db.UniqueConstraint('document_id', 'tenant_id', name='uq_onboarding_completion'),
    )

    document_id = db.Column(db.Integer, db.ForeignKey('onboarding_documents.id', ondelete='CASCADE'), nullable=False)
    tenant_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    completed_at = db.Column(db.DateTime, nullable=False)

    document = db.relationship('OnboardingDocument', back_populates='completions')
