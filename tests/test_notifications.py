import pytest


@pytest.fixture
def landlord_notifications(client, estate):
    """Two new-request notifications for the landlord"""
    for title in ('Leaking sink', 'Broken window'):
        response = client.post('/api/requests', headers=estate['headers']['tenant'], json={
            'title': title, 'description': 'Needs fixing', 'category': 'general',
            'property_id': estate['property'], 'unit_id': estate['unit'],
        })
        assert response.status_code == 201
    listed = client.get('/api/notifications', headers=estate['headers']['landlord']).get_json()
    return listed['data']


def test_list_and_unread_count(client, estate, landlord_notifications):
    assert len(landlord_notifications) == 2
    assert {n['type'] for n in landlord_notifications} == {'new_request'}
    # newest first
    assert 'Broken window' in landlord_notifications[0]['message']

    count = client.get('/api/notifications/unread-count', headers=estate['headers']['landlord'])
    assert count.get_json()['data'] == {'unread_count': 2}

    # the tenant raised the requests and is not notified about them
    tenant = client.get('/api/notifications', headers=estate['headers']['tenant']).get_json()
    assert tenant['total'] == 0


def test_mark_read(client, estate, landlord_notifications):
    headers = estate['headers']['landlord']
    target = landlord_notifications[0]['id']

    response = client.put(f'/api/notifications/{target}/read', headers=headers)
    assert response.status_code == 200
    assert response.get_json()['data']['is_read'] is True
    assert response.get_json()['data']['read_at'] is not None

    unread = client.get('/api/notifications?unread=true', headers=headers).get_json()
    assert [n['id'] for n in unread['data']] == [landlord_notifications[1]['id']]


def test_mark_all_read(client, estate, landlord_notifications):
    headers = estate['headers']['landlord']
    response = client.put('/api/notifications/read-all', headers=headers)
    assert response.get_json()['data'] == {'updated': 2}
    count = client.get('/api/notifications/unread-count', headers=headers).get_json()['data']
    assert count['unread_count'] == 0

    again = client.put('/api/notifications/read-all', headers=headers)
    assert again.get_json()['data'] == {'updated': 0}


def test_only_the_recipient_can_touch_a_notification(client, estate, landlord_notifications):
    target = landlord_notifications[0]['id']
    for role in ('tenant', 'admin'):
        headers = estate['headers'][role]
        assert client.put(f'/api/notifications/{target}/read', headers=headers).status_code == 403
        assert client.delete(f'/api/notifications/{target}', headers=headers).status_code == 403


def test_delete(client, estate, landlord_notifications):
    headers = estate['headers']['landlord']
    target = landlord_notifications[0]['id']
    assert client.delete(f'/api/notifications/{target}', headers=headers).status_code == 200
    assert client.delete(f'/api/notifications/{target}', headers=headers).status_code == 404
    assert client.get('/api/notifications', headers=headers).get_json()['total'] == 1
