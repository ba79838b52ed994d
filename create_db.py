#!/usr/bin/env python3
"""Create the tables and seed one account per role for local development."""
from propdesk import create_app
from propdesk.models import Property, PropertyRole, PropertyUser, Unit, UnitStatus, User, UserRole, db

SEED_USERS = [
    ('admin@propdesk.local', 'Ada', 'Admin', UserRole.ADMIN.value, 'adminpass123'),
    ('landlord@propdesk.local', 'John', 'Smith', UserRole.LANDLORD.value, 'password123'),
    ('tenant@propdesk.local', 'Jane', 'Doe', UserRole.TENANT.value, 'mypassword'),
]


def create_database():
    app = create_app()

    with app.app_context():
        db.create_all()
        print("Database tables created")

        users = {}
        for email, first_name, last_name, role, password in SEED_USERS:
            user = User.query.filter_by(email=email).first()
            if user is None:
                user = User(email=email, first_name=first_name, last_name=last_name, role=role)
                user.set_password(password)
                db.session.add(user)
                print(f"{role}: {email} - Password: {password}")
            users[role] = user

        prop = Property.query.filter_by(name='Sunset Apartments').first()
        if prop is None:
            prop = Property(name='Sunset Apartments', property_type='residential', street='12 Ocean Drive',
                            city='Nairobi', country='Kenya')
            unit = Unit(property=prop, unit_name='A1', num_bedrooms=2, num_bathrooms=1,
                        status=UnitStatus.OCCUPIED.value)
            db.session.add_all([
                prop,
                unit,
                PropertyUser(user=users[UserRole.LANDLORD.value], property=prop, role=PropertyRole.LANDLORD.value),
                PropertyUser(user=users[UserRole.TENANT.value], property=prop, unit=unit,
                             role=PropertyRole.TENANT.value),
            ])
            print(f"Property created: {prop.name} (unit A1)")

        db.session.commit()


if __name__ == '__main__':
    create_database()
