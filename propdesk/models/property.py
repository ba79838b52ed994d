import enum

from .base import BaseModel, db, isoformat


class PropertyType(enum.Enum):
    RESIDENTIAL = 'residential'
    COMMERCIAL = 'commercial'
    MIXED_USE = 'mixed_use'
    OTHER = 'other'


class PropertyRole(enum.Enum):
    LANDLORD = 'landlord'
    PROPERTY_MANAGER = 'propertymanager'
    TENANT = 'tenant'


MANAGING_ROLES = (PropertyRole.LANDLORD.value, PropertyRole.PROPERTY_MANAGER.value)


class UnitStatus(enum.Enum):
    VACANT = 'vacant'
    OCCUPIED = 'occupied'
    UNDER_MAINTENANCE = 'under_maintenance'
    UNAVAILABLE = 'unavailable'


class Property(BaseModel):
    __tablename__ = 'properties'

    name = db.Column(db.String(200), nullable=False)
    street = db.Column(db.String(255))
    city = db.Column(db.String(100))
    state = db.Column(db.String(100))
    zip_code = db.Column(db.String(20))
    country = db.Column(db.String(100))
    property_type = db.Column(db.String(20), default=PropertyType.RESIDENTIAL.value, nullable=False)
    description = db.Column(db.Text)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    units = db.relationship('Unit', back_populates='property', cascade='all, delete-orphan',
                            order_by='Unit.unit_name')
    user_links = db.relationship('PropertyUser', back_populates='property', cascade='all, delete-orphan')

    @property
    def address(self):
        parts = [self.street, self.city, self.state, self.zip_code, self.country]
        return ', '.join(p for p in parts if p)

    def users_with_role(self, role):
        return [link.user for link in self.user_links if link.role == role and link.is_active]

    def to_dict(self, include_units=False):
        data = {
            'id': self.id,
            'name': self.name,
            'address': {
                'street': self.street,
                'city': self.city,
                'state': self.state,
                'zip_code': self.zip_code,
                'country': self.country,
            },
            'full_address': self.address,
            'property_type': self.property_type,
            'description': self.description,
            'is_active': self.is_active,
            'unit_count': len(self.units),
            'landlords': [u.summary() for u in self.users_with_role(PropertyRole.LANDLORD.value)],
            'property_managers': [u.summary() for u in self.users_with_role(PropertyRole.PROPERTY_MANAGER.value)],
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
        if include_units:
            data['units'] = [unit.to_dict() for unit in self.units]
        return data


class PropertyUser(BaseModel):
    """Associates a user with a property (and optionally a unit) in a role."""

    __tablename__ = 'property_users'
    __table_args__ = (
        db.UniqueConstraint('user_id', 'property_id', 'role', 'unit_id', name='uq_property_user_role_unit'),
    )

    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    property_id = db.Column(db.Integer, db.ForeignKey('properties.id', ondelete='CASCADE'), nullable=False)
    unit_id = db.Column(db.Integer, db.ForeignKey('units.id', ondelete='SET NULL'))
    role = db.Column(db.String(20), nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    user = db.relationship('User', back_populates='property_links')
    property = db.relationship('Property', back_populates='user_links')
    unit = db.relationship('Unit', back_populates='tenant_links')

    def to_dict(self):
        return {
            'id': self.id,
            'user': self.user.summary() if self.user else None,
            'property_id': self.property_id,
            'unit_id': self.unit_id,
            'role': self.role,
            'is_active': self.is_active,
        }


class Unit(BaseModel):
    __tablename__ = 'units'
    __table_args__ = (
        db.UniqueConstraint('property_id', 'unit_name', name='uq_unit_name_per_property'),
    )

    property_id = db.Column(db.Integer, db.ForeignKey('properties.id', ondelete='CASCADE'), nullable=False)
    unit_name = db.Column(db.String(50), nullable=False)
    floor = db.Column(db.String(20))
    details = db.Column(db.Text)
    num_bedrooms = db.Column(db.Integer)
    num_bathrooms = db.Column(db.Integer)
    square_footage = db.Column(db.Integer)
    rent_amount = db.Column(db.Numeric(10, 2))
    status = db.Column(db.String(20), default=UnitStatus.VACANT.value, nullable=False)

    property = db.relationship('Property', back_populates='units')
    tenant_links = db.relationship('PropertyUser', back_populates='unit')

    def current_tenants(self):
        return [link.user for link in self.tenant_links
                if link.role == PropertyRole.TENANT.value and link.is_active]

    def to_dict(self):
        return {
            'id': self.id,
            'property_id': self.property_id,
            'unit_name': self.unit_name,
            'floor': self.floor,
            'details': self.details,
            'num_bedrooms': self.num_bedrooms,
            'num_bathrooms': self.num_bathrooms,
            'square_footage': self.square_footage,
            'rent_amount': float(self.rent_amount) if self.rent_amount is not None else None,
            'status': self.status,
            'tenants': [t.summary() for t in self.current_tenants()],
            'created_at': isoformat(self.created_at),
        }
