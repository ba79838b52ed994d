from datetime import datetime, timedelta


def test_admin_only(client, estate):
    assert client.get('/api/audit-logs', headers=estate['headers']['landlord']).status_code == 403
    assert client.get('/api/audit-logs', headers=estate['headers']['tenant']).status_code == 403


def test_logins_are_recorded(client, estate):
    response = client.get('/api/audit-logs?action=login', headers=estate['headers']['admin'])
    body = response.get_json()
    # one login per account in the fixture
    assert body['total'] == 5
    assert {entry['resource_type'] for entry in body['data']} == {'user'}


def test_filters(client, estate):
    headers = estate['headers']['admin']
    created = client.post('/api/properties', headers=estate['headers']['landlord'], json={
        'name': 'Palm Court', 'address': {'street': '4 Palm Road', 'city': 'Mombasa'},
    })
    assert created.status_code == 201
    property_id = created.get_json()['data']['id']

    logs = client.get(f"/api/audit-logs?resource_type=property&user_id={estate['landlord']}",
                      headers=headers).get_json()
    assert logs['total'] == 1
    entry = logs['data'][0]
    assert entry['action'] == 'create'
    assert entry['resource_id'] == property_id
    assert entry['description'] == 'Palm Court'
    assert entry['user']['email'] == 'landlord@example.com'

    detail = client.get(f"/api/audit-logs/{entry['id']}", headers=headers)
    assert detail.get_json()['data']['id'] == entry['id']
    assert client.get('/api/audit-logs/9999', headers=headers).status_code == 404


def test_date_range(client, estate):
    headers = estate['headers']['admin']
    today = datetime.utcnow().date()
    tomorrow = (today + timedelta(days=1)).isoformat()

    current = client.get(f'/api/audit-logs?start_date={today.isoformat()}&end_date={today.isoformat()}',
                         headers=headers).get_json()
    assert current['total'] >= 5
    future = client.get(f'/api/audit-logs?start_date={tomorrow}', headers=headers).get_json()
    assert future['total'] == 0

    bad = client.get('/api/audit-logs?start_date=yesterday', headers=headers)
    assert bad.status_code == 400
