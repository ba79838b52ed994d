"""
Pytest configuration and fixtures
"""
import pytest

from propdesk import create_app
from propdesk.config import TestingConfig
from propdesk.models import Property, PropertyRole, PropertyUser, Unit, UnitStatus, User, Vendor, db

PASSWORD = 'password123'


@pytest.fixture
def app(tmp_path):
    """A fresh application backed by an in-memory database"""
    app = create_app({'UPLOAD_FOLDER': str(tmp_path / 'uploads')}, config_class=TestingConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make(email, role='tenant', password=PASSWORD, **fields):
        with app.app_context():
            user = User(email=email, first_name=fields.pop('first_name', email.split('@')[0].title()),
                        last_name=fields.pop('last_name', 'Tester'), role=role, **fields)
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
            return user.id
    return _make


@pytest.fixture
def login(client):
    def _login(email, password=PASSWORD):
        response = client.post('/api/auth/login', json={'email': email, 'password': password})
        assert response.status_code == 200, response.get_json()
        return {'Authorization': f"Bearer {response.get_json()['data']['token']}"}
    return _login


@pytest.fixture
def estate(app, make_user, login):
    """A landlord's property with one occupied unit, plus an admin, a PM and an outsider"""
    ids = {
        'admin': make_user('admin@example.com', 'admin'),
        'landlord': make_user('landlord@example.com', 'landlord', first_name='John', last_name='Smith'),
        'manager': make_user('manager@example.com', 'propertymanager'),
        'tenant': make_user('tenant@example.com', 'tenant', first_name='Jane', last_name='Doe'),
        'other_landlord': make_user('other@example.com', 'landlord'),
    }
    with app.app_context():
        prop = Property(name='Sunset Apartments', street='12 Ocean Drive', city='Nairobi')
        unit = Unit(property=prop, unit_name='A1', status=UnitStatus.OCCUPIED.value)
        empty_unit = Unit(property=prop, unit_name='A2')
        vendor = Vendor(name='Quick Plumbing', phone='+254700000001', services=['plumbing'])
        db.session.add_all([
            prop, unit, empty_unit, vendor,
            PropertyUser(user_id=ids['landlord'], property=prop, role=PropertyRole.LANDLORD.value),
            PropertyUser(user_id=ids['tenant'], property=prop, unit=unit, role=PropertyRole.TENANT.value),
        ])
        db.session.commit()
        ids.update(property=prop.id, unit=unit.id, empty_unit=empty_unit.id, vendor=vendor.id)

    ids['headers'] = {
        role: login(f'{email}@example.com')
        for role, email in (('admin', 'admin'), ('landlord', 'landlord'), ('manager', 'manager'),
                            ('tenant', 'tenant'), ('other_landlord', 'other'))
    }
    return ids
