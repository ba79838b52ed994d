from datetime import datetime, timedelta

import pytest

from propdesk.models import Comment, MaintenanceRequest, ScheduledMaintenance, db


@pytest.fixture
def public_request(client, app, estate):
    """A request with an enabled public link; returns (request_id, token)"""
    with app.app_context():
        request = MaintenanceRequest(title='Leak', description='Kitchen sink', property_id=estate['property'],
                                     unit_id=estate['unit'], created_by_id=estate['tenant'], media=[])
        db.session.add(request)
        db.session.commit()
        request_id = request.id

    response = client.post(f'/api/requests/{request_id}/enable-public-link', headers=estate['headers']['landlord'],
                           json={'expires_in_days': 3})
    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['public_link'].endswith(f"/public/requests/{data['public_token']}")
    return request_id, data['public_token']


def test_public_view_hides_private_fields(client, app, estate, public_request):
    request_id, token = public_request
    with app.app_context():
        db.session.add_all([
            Comment(context_type='request', context_id=request_id, message='Visible', sender_id=estate['tenant']),
            Comment(context_type='request', context_id=request_id, message='Staff only', is_internal=True,
                    sender_id=estate['landlord']),
        ])
        db.session.commit()

    response = client.get(f'/api/public/requests/{token}')
    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['title'] == 'Leak'
    assert data['property']['name'] == 'Sunset Apartments'
    assert 'created_by' not in data
    assert [c['message'] for c in data['comments']] == ['Visible']
    assert 'sender' not in data['comments'][0]


def test_unknown_token_is_404(client):
    assert client.get('/api/public/requests/does-not-exist').status_code == 404


def test_public_status_updates_are_limited(client, app, estate, public_request):
    request_id, token = public_request
    url = f'/api/public/requests/{token}/update'

    assert client.post(url, json={'status': 'completed'}).status_code == 400
    started = client.post(url, json={'status': 'In_Progress'})
    assert started.get_json()['data']['status'] == 'in_progress'
    assert client.post(url, json={'status': 'canceled'}).status_code == 400
    done = client.post(url, json={'status': 'completed'})
    assert done.get_json()['data']['status'] == 'completed'

    with app.app_context():
        assert db.session.get(MaintenanceRequest, request_id).resolved_at is not None


def test_public_update_requires_something(client, public_request):
    _, token = public_request
    response = client.post(f'/api/public/requests/{token}/update', json={})
    assert response.status_code == 400


def test_public_comment_from_form_post(client, app, estate, public_request):
    request_id, token = public_request
    response = client.post(f'/api/public/requests/{token}/update',
                           data={'comment': 'Arriving at 3pm', 'name': 'Bob the Plumber', 'phone': '+254722000000'})
    assert response.status_code == 200
    comments = response.get_json()['data']['comments']
    assert comments[0]['author_name'] == 'Bob the Plumber'
    assert comments[0]['is_external'] is True

    nameless = client.post(f'/api/public/requests/{token}/comments', json={'message': 'hello'})
    assert nameless.status_code == 400

    added = client.post(f'/api/public/requests/{token}/comments', json={'name': 'Bob', 'message': 'Done'})
    assert added.status_code == 201

    with app.app_context():
        assert Comment.query.filter_by(context_id=request_id, external_name='Bob').count() == 1


def test_disabled_and_expired_links_are_404(client, app, estate, public_request):
    request_id, token = public_request
    client.post(f'/api/requests/{request_id}/disable-public-link', headers=estate['headers']['landlord'])
    assert client.get(f'/api/public/requests/{token}').status_code == 404

    # Re-enabling keeps the same token
    again = client.post(f'/api/requests/{request_id}/enable-public-link', headers=estate['headers']['landlord'])
    assert again.get_json()['data']['public_token'] == token
    assert client.get(f'/api/public/requests/{token}').status_code == 200

    with app.app_context():
        request = db.session.get(MaintenanceRequest, request_id)
        request.public_link_expires_at = datetime.utcnow() - timedelta(minutes=1)
        db.session.commit()
    assert client.get(f'/api/public/requests/{token}').status_code == 404


def test_tenant_cannot_enable_public_link(client, estate, public_request):
    request_id, _ = public_request
    response = client.post(f'/api/requests/{request_id}/enable-public-link', headers=estate['headers']['tenant'])
    assert response.status_code == 403


def test_public_scheduled_completion_advances_series(client, app, estate):
    with app.app_context():
        task = ScheduledMaintenance(title='Filter change', category='hvac', property_id=estate['property'],
                                    scheduled_date=datetime(2026, 1, 1, 9, 0), recurring=True,
                                    frequency={'type': 'weekly', 'interval': 1, 'endsType': 'never'},
                                    next_due_date=datetime(2026, 1, 1, 9, 0))
        db.session.add(task)
        db.session.commit()
        task_id = task.id

    enabled = client.post(f'/api/scheduled-maintenance/{task_id}/enable-public-link',
                          headers=estate['headers']['landlord'])
    token = enabled.get_json()['data']['public_token']
    url = f'/api/public/scheduled-maintenance/{token}/update'

    view = client.get(f'/api/public/scheduled-maintenance/{token}').get_json()['data']
    assert view['title'] == 'Filter change'

    assert client.post(url, json={'status': 'completed'}).status_code == 400
    client.post(url, json={'status': 'in_progress'})
    done = client.post(url, json={'status': 'completed'}).get_json()['data']
    assert done['status'] == 'scheduled'
    assert done['next_due_date'] == '2026-01-08T09:00:00'

    with app.app_context():
        assert db.session.get(ScheduledMaintenance, task_id).occurrence_count == 1
