import io
import os

import pytest

from propdesk.models import AuditLog, MaintenanceRequest, db


@pytest.fixture
def uploaded(client, estate):
    """A tenant request carrying one photo and one PDF"""
    response = client.post('/api/requests', headers=estate['headers']['tenant'], json={
        'title': 'Leaking sink', 'description': 'Water under the kitchen sink', 'category': 'plumbing',
        'property_id': estate['property'], 'unit_id': estate['unit'],
    })
    request_id = response.get_json()['data']['id']
    media = client.post(f'/api/requests/{request_id}/media', headers=estate['headers']['tenant'],
                        content_type='multipart/form-data',
                        data={'media_files': [(io.BytesIO(b'fake image bytes'), 'leak.jpg'),
                                              (io.BytesIO(b'%PDF-1.4 quote'), 'quote.pdf')]})
    assert media.status_code == 201
    return request_id, media.get_json()['data']


def test_admin_lists_all_media(client, estate, uploaded):
    request_id, media = uploaded
    body = client.get('/api/media', headers=estate['headers']['admin']).get_json()
    assert body['total'] == 2
    assert {item['original_name'] for item in body['data']} == {'leak.jpg', 'quote.pdf'}
    assert {item['request_id'] for item in body['data']} == {request_id}
    assert body['data'][0]['request_title'] == 'Leaking sink'

    images = client.get('/api/media?type=image', headers=estate['headers']['admin']).get_json()
    assert [item['original_name'] for item in images['data']] == ['leak.jpg']
    assert client.get('/api/media?request_id=9999', headers=estate['headers']['admin']).get_json()['total'] == 0


def test_media_stats(client, estate, uploaded):
    data = client.get('/api/media/stats', headers=estate['headers']['admin']).get_json()['data']
    assert data['total_files'] == 2
    assert data['total_size'] == len(b'fake image bytes') + len(b'%PDF-1.4 quote')
    assert data['by_type'] == {'image': 1, 'application': 1}
    assert data['requests_with_media'] == 1


def test_admin_deletes_media(app, client, estate, uploaded):
    request_id, media = uploaded
    filename = media[0]['filename']
    path = os.path.join(app.config['UPLOAD_FOLDER'], 'requests', filename)
    assert os.path.exists(path)

    response = client.delete(f'/api/media/{request_id}/{filename}', headers=estate['headers']['admin'])
    assert response.status_code == 200
    assert not os.path.exists(path)
    with app.app_context():
        remaining = db.session.get(MaintenanceRequest, request_id).media
        assert [item['original_name'] for item in remaining] == ['quote.pdf']
        assert AuditLog.query.filter_by(action='delete_media').count() == 1

    missing = client.delete(f'/api/media/{request_id}/{filename}', headers=estate['headers']['admin'])
    assert missing.status_code == 404


def test_media_administration_is_admin_only(client, estate, uploaded):
    request_id, media = uploaded
    for role in ('landlord', 'tenant'):
        headers = estate['headers'][role]
        assert client.get('/api/media', headers=headers).status_code == 403
        assert client.get('/api/media/stats', headers=headers).status_code == 403
        assert client.delete(f"/api/media/{request_id}/{media[0]['filename']}", headers=headers).status_code == 403
