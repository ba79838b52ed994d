import enum

from .base import BaseModel, db, isoformat


class VendorStatus(enum.Enum):
    ACTIVE = 'active'
    INACTIVE = 'inactive'
    PREFERRED = 'preferred'


class Vendor(BaseModel):
    __tablename__ = 'vendors'

    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(120))
    phone = db.Column(db.String(20), nullable=False)
    contact_person = db.Column(db.String(100))
    address = db.Column(db.String(500))
    description = db.Column(db.Text)
    services = db.Column(db.JSON, default=list, nullable=False)
    fixed_call_out_fee = db.Column(db.Numeric(10, 2))
    payment_terms = db.Column(db.String(100))
    status = db.Column(db.String(20), default=VendorStatus.ACTIVE.value, nullable=False)
    average_rating = db.Column(db.Float, default=0.0, nullable=False)
    ratings_count = db.Column(db.Integer, default=0, nullable=False)
    total_jobs_completed = db.Column(db.Integer, default=0, nullable=False)

    added_by_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))
    added_by = db.relationship('User')

    def add_rating(self, rating):
        total = self.average_rating * self.ratings_count + rating
        self.ratings_count += 1
        self.average_rating = round(total / self.ratings_count, 2)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'contact_person': self.contact_person,
            'address': self.address,
            'description': self.description,
            'services': self.services or [],
            'fixed_call_out_fee': float(self.fixed_call_out_fee) if self.fixed_call_out_fee is not None else None,
            'payment_terms': self.payment_terms,
            'status': self.status,
            'average_rating': self.average_rating,
            'ratings_count': self.ratings_count,
            'total_jobs_completed': self.total_jobs_completed,
            'added_by': self.added_by.summary() if self.added_by else None,
            'created_at': isoformat(self.created_at),
        }
