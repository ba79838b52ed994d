import csv
import io
from datetime import datetime, timedelta

from propdesk.models import MaintenanceRequest, db


def raise_request(client, estate, title, category='plumbing', priority='medium'):
    response = client.post('/api/requests', headers=estate['headers']['tenant'], json={
        'title': title, 'description': 'Details', 'category': category, 'priority': priority,
        'property_id': estate['property'], 'unit_id': estate['unit'],
    })
    assert response.status_code == 201
    return response.get_json()['data']['id']


def test_admin_dashboard(client, estate):
    raise_request(client, estate, 'Leaking sink')
    data = client.get('/api/dashboard', headers=estate['headers']['admin']).get_json()['data']
    assert data['role'] == 'admin'
    assert data['users'] == 5
    assert data['users_by_role']['landlord'] == 2
    assert data['properties'] == 1
    assert data['open_requests'] == 1
    assert data['vendors'] == 1


def test_landlord_dashboard(client, estate):
    raise_request(client, estate, 'Leaking sink')
    client.post('/api/invites/send', headers=estate['headers']['landlord'], json={
        'email': 'newtenant@example.com', 'role': 'tenant', 'property_id': estate['property'],
    })
    client.post('/api/scheduled-maintenance', headers=estate['headers']['landlord'], json={
        'title': 'Boiler service', 'category': 'hvac', 'property_id': estate['property'],
        'scheduled_date': (datetime.utcnow() + timedelta(days=3)).isoformat(timespec='seconds'),
    })

    data = client.get('/api/dashboard', headers=estate['headers']['landlord']).get_json()['data']
    assert data['role'] == 'landlord'
    assert data['properties'] == 1
    assert data['units'] == 2
    assert data['occupied_units'] == 1
    assert data['open_requests'] == 1
    assert data['requests_by_status'] == {'new': 1}
    assert data['upcoming_scheduled'] == 1
    assert data['pending_invites'] == 1

    outsider = client.get('/api/dashboard', headers=estate['headers']['other_landlord']).get_json()['data']
    assert outsider['properties'] == 0
    assert outsider['open_requests'] == 0


def test_tenant_dashboard(client, estate):
    raise_request(client, estate, 'Leaking sink')
    data = client.get('/api/dashboard', headers=estate['headers']['tenant']).get_json()['data']
    assert data == {
        'role': 'tenant',
        'open_requests': 1,
        'total_requests': 1,
        'pending_onboarding': 0,
        'unread_notifications': 0,
    }


def test_maintenance_summary(app, client, estate):
    first = raise_request(client, estate, 'Leaking sink', priority='high')
    raise_request(client, estate, 'Flickering lights', category='electrical')
    with app.app_context():
        done = db.session.get(MaintenanceRequest, first)
        done.status = 'completed'
        done.resolved_at = done.created_at + timedelta(hours=6)
        db.session.commit()

    response = client.get('/api/reports/maintenance-summary', headers=estate['headers']['landlord'])
    data = response.get_json()['data']
    assert data['total'] == 2
    assert data['by_status'] == {'completed': 1, 'new': 1}
    assert data['by_category'] == {'plumbing': 1, 'electrical': 1}
    assert data['by_priority'] == {'high': 1, 'medium': 1}
    assert data['resolved'] == 1
    assert data['average_resolution_hours'] == 6.0


def test_summary_permissions(client, estate):
    assert client.get('/api/reports/maintenance-summary', headers=estate['headers']['tenant']).status_code == 403
    response = client.get(f"/api/reports/maintenance-summary?property_id={estate['property']}",
                          headers=estate['headers']['other_landlord'])
    assert response.status_code == 403


def resolve(app, request_id, hours, **fields):
    with app.app_context():
        maintenance_request = db.session.get(MaintenanceRequest, request_id)
        maintenance_request.status = 'completed'
        maintenance_request.resolved_at = maintenance_request.created_at + timedelta(hours=hours)
        for field, value in fields.items():
            setattr(maintenance_request, field, value)
        db.session.commit()


def test_vendor_performance_report(app, client, estate):
    done = raise_request(client, estate, 'Leaking sink')
    pending = raise_request(client, estate, 'Blocked drain')
    raise_request(client, estate, 'Flickering lights', category='electrical')
    resolve(app, done, 4, assigned_vendor_id=estate['vendor'])
    with app.app_context():
        maintenance_request = db.session.get(MaintenanceRequest, pending)
        maintenance_request.status = 'assigned'
        maintenance_request.assigned_vendor_id = estate['vendor']
        db.session.commit()

    response = client.get('/api/reports/vendor-performance', headers=estate['headers']['landlord'])
    assert response.status_code == 200
    [row] = response.get_json()['data']
    assert row['vendor_id'] == estate['vendor']
    assert row['name'] == 'Quick Plumbing'
    assert row['assigned'] == 2
    assert row['open'] == 1
    assert row['resolved'] == 1
    assert row['average_resolution_hours'] == 4.0

    other = client.get('/api/reports/vendor-performance?vendor_id=9999', headers=estate['headers']['landlord'])
    assert other.get_json()['data'] == []
    outsider = client.get('/api/reports/vendor-performance', headers=estate['headers']['other_landlord'])
    assert outsider.get_json()['data'] == []
    assert client.get('/api/reports/vendor-performance', headers=estate['headers']['tenant']).status_code == 403


def test_common_issues_report(app, client, estate):
    first = raise_request(client, estate, 'Leaking sink')
    raise_request(client, estate, 'Dripping tap')
    raise_request(client, estate, 'Flickering lights', category='electrical')
    resolve(app, first, 2)

    data = client.get('/api/reports/common-issues', headers=estate['headers']['landlord']).get_json()['data']
    assert data == [
        {'category': 'plumbing', 'count': 2, 'resolved': 1, 'average_resolution_hours': 2.0},
        {'category': 'electrical', 'count': 1, 'resolved': 0, 'average_resolution_hours': None},
    ]

    forbidden = client.get(f"/api/reports/common-issues?property_id={estate['property']}",
                           headers=estate['headers']['other_landlord'])
    assert forbidden.status_code == 403


def test_export_report_as_csv(app, client, estate):
    first = raise_request(client, estate, 'Leaking sink')
    raise_request(client, estate, 'Flickering lights', category='electrical')
    resolve(app, first, 3, feedback_rating=5)

    response = client.get('/api/reports/export', headers=estate['headers']['landlord'])
    assert response.status_code == 200
    assert response.mimetype == 'text/csv'
    assert 'maintenance_report.csv' in response.headers['Content-Disposition']
    rows = list(csv.DictReader(io.StringIO(response.get_data(as_text=True))))
    assert sorted(row['title'] for row in rows) == ['Flickering lights', 'Leaking sink']
    assert {row['property'] for row in rows} == {'Sunset Apartments'}
    assert {row['created_by'] for row in rows} == {'Jane Doe'}

    completed = client.get('/api/reports/export?status=Completed', headers=estate['headers']['landlord'])
    [row] = list(csv.DictReader(io.StringIO(completed.get_data(as_text=True))))
    assert row['title'] == 'Leaking sink'
    assert row['feedback_rating'] == '5'
    assert row['resolved_at']

    outsider = client.get('/api/reports/export', headers=estate['headers']['other_landlord'])
    assert list(csv.DictReader(io.StringIO(outsider.get_data(as_text=True)))) == []


def test_tenant_dashboard_counts_pending_onboarding(client, estate, make_user, login):
    headers = estate['headers']['landlord']
    uploaded = client.post('/api/onboarding', headers=headers, content_type='multipart/form-data', data={
        'title': 'House rules', 'category': 'policy', 'visibility': 'property_tenants',
        'property_id': str(estate['property']), 'document_file': (io.BytesIO(b'rules'), 'rules.txt'),
    })
    assert uploaded.status_code == 201
    doc_id = uploaded.get_json()['data']['id']

    tenant = estate['headers']['tenant']
    assert client.get('/api/dashboard', headers=tenant).get_json()['data']['pending_onboarding'] == 1
    client.patch(f'/api/onboarding/{doc_id}/complete', headers=tenant)
    assert client.get('/api/dashboard', headers=tenant).get_json()['data']['pending_onboarding'] == 0

    make_user('stranger@example.com', 'tenant')
    stranger = client.get('/api/dashboard', headers=login('stranger@example.com')).get_json()['data']
    assert stranger['pending_onboarding'] == 0
