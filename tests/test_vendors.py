from propdesk.models import MaintenanceRequest, db

VENDOR = {
    'name': 'Bright Sparks',
    'phone': '+254711111111',
    'email': 'sparks@example.com',
    'services': ['Electrical', 'hvac'],
}


def test_create_and_filter_vendors(client, estate):
    headers = estate['headers']['landlord']
    created = client.post('/api/vendors', headers=headers, json=VENDOR)
    assert created.status_code == 201
    assert created.get_json()['data']['services'] == ['electrical', 'hvac']

    electrical = client.get('/api/vendors?service=electrical', headers=headers).get_json()
    assert [v['name'] for v in electrical['data']] == ['Bright Sparks']

    everyone = client.get('/api/vendors', headers=headers).get_json()
    assert everyone['total'] == 2


def test_vendor_rejects_unknown_service(client, estate):
    response = client.post('/api/vendors', headers=estate['headers']['landlord'],
                           json={**VENDOR, 'services': ['juggling']})
    assert response.status_code == 400


def test_tenant_cannot_add_vendor(client, estate):
    assert client.post('/api/vendors', headers=estate['headers']['tenant'], json=VENDOR).status_code == 403


def test_rate_vendor_updates_average(client, estate):
    url = f"/api/vendors/{estate['vendor']}/rate"
    headers = estate['headers']['landlord']
    client.post(url, headers=headers, json={'rating': 5})
    data = client.post(url, headers=headers, json={'rating': 2}).get_json()['data']
    assert data['ratings_count'] == 2
    assert data['average_rating'] == 3.5

    assert client.post(url, headers=headers, json={'rating': 6}).status_code == 400


def test_deactivate_and_stats(client, estate):
    headers = estate['headers']['landlord']
    response = client.put(f"/api/vendors/{estate['vendor']}/deactivate", headers=headers)
    assert response.get_json()['data']['status'] == 'inactive'

    stats = client.get('/api/vendors/stats', headers=headers).get_json()['data']
    assert stats['total'] == 1
    assert stats['by_status'] == {'inactive': 1}
    assert stats['by_service'] == {'plumbing': 1}


def test_delete_vendor_unassigns_requests(client, app, estate):
    with app.app_context():
        request = MaintenanceRequest(title='Leak', description='Kitchen sink', property_id=estate['property'],
                                     created_by_id=estate['tenant'], assigned_vendor_id=estate['vendor'],
                                     status='assigned', media=[])
        db.session.add(request)
        db.session.commit()
        request_id = request.id

    detail = client.get(f"/api/vendors/{estate['vendor']}", headers=estate['headers']['landlord']).get_json()
    assert detail['data']['active_assignments'] == 1

    response = client.delete(f"/api/vendors/{estate['vendor']}", headers=estate['headers']['landlord'])
    assert response.status_code == 200
    with app.app_context():
        assert db.session.get(MaintenanceRequest, request_id).assigned_vendor_id is None


def test_vendor_status_is_case_insensitive(client, estate):
    headers = estate['headers']['landlord']
    created = client.post('/api/vendors', headers=headers, json={**VENDOR, 'status': 'Inactive'})
    assert created.status_code == 201
    assert created.get_json()['data']['status'] == 'inactive'


def test_service_filter_combines_with_status(client, estate):
    headers = estate['headers']['landlord']
    client.post('/api/vendors', headers=headers, json={**VENDOR, 'status': 'inactive'})
    client.post('/api/vendors', headers=headers,
                json={**VENDOR, 'name': 'Live Wires', 'email': 'wires@example.com', 'services': ['electrical']})

    active = client.get('/api/vendors?service=Electrical&status=active', headers=headers).get_json()
    assert [v['name'] for v in active['data']] == ['Live Wires']

    unknown = client.get('/api/vendors?service=juggling', headers=headers).get_json()
    assert unknown['data'] == []
