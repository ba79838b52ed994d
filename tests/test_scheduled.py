import pytest


@pytest.fixture
def task_payload(estate):
    return {
        'title': 'HVAC filter change',
        'description': 'Replace filters in all units',
        'category': 'hvac',
        'property_id': estate['property'],
        'scheduled_date': '2026-01-01T09:00:00',
        'recurring': True,
        'frequency': {
            'recurring': True,
            'frequencyType': 'weekly',
            'interval': 1,
            'daysOfWeek': ['Monday', 'Wednesday'],
            'endsType': 'after_occurrences',
            'endsAfter': 3,
        },
    }


@pytest.fixture
def create_task(client, estate, task_payload):
    def _create(**overrides):
        response = client.post('/api/scheduled-maintenance', headers=estate['headers']['landlord'],
                               json={**task_payload, **overrides})
        assert response.status_code == 201, response.get_json()
        return response.get_json()['data']
    return _create


def test_create_translates_form_frequency(create_task):
    data = create_task()
    assert data['frequency'] == {'type': 'weekly', 'interval': 1, 'dayOfWeek': [1, 3],
                                 'endsType': 'after_occurrences', 'endsAfter': 3}
    # 2026-01-01 is a Thursday, so the first occurrence is the following Monday
    assert data['next_due_date'] == '2026-01-05T09:00:00'
    assert data['status'] == 'scheduled'
    assert data['status_display'] == 'Scheduled'
    assert data['next_due_date_formatted'] == 'Jan 05, 2026'


def test_create_one_off_task(create_task):
    data = create_task(recurring=False, frequency={'frequencyType': 'daily'})
    assert data['recurring'] is False
    assert data['frequency'] == {}
    assert data['next_due_date'] == '2026-01-01T09:00:00'


def test_create_validation(client, estate, task_payload):
    headers = estate['headers']['landlord']
    missing = client.post('/api/scheduled-maintenance', headers=headers,
                          json={**task_payload, 'frequency': None})
    assert missing.status_code == 400

    bad = client.post('/api/scheduled-maintenance', headers=headers, json={
        **task_payload, 'frequency': {'type': 'monthly', 'dayOfMonth': 40},
    })
    assert bad.status_code == 400
    assert 'frequency' in bad.get_json()['errors']


def test_tenant_and_outsider_cannot_create(client, estate, task_payload):
    assert client.post('/api/scheduled-maintenance', headers=estate['headers']['tenant'],
                       json=task_payload).status_code == 403
    assert client.post('/api/scheduled-maintenance', headers=estate['headers']['other_landlord'],
                       json=task_payload).status_code == 403


def test_upcoming_occurrences(client, estate, create_task):
    task = create_task()
    response = client.get(f"/api/scheduled-maintenance/{task['id']}/upcoming?count=10",
                          headers=estate['headers']['landlord'])
    occurrences = response.get_json()['data']['occurrences']
    # the series ends after three occurrences
    assert occurrences == ['2026-01-05T09:00:00', '2026-01-07T09:00:00', '2026-01-12T09:00:00']


def test_upcoming_count_is_capped(client, estate, create_task):
    task = create_task(frequency={'type': 'daily', 'interval': 1})
    response = client.get(f"/api/scheduled-maintenance/{task['id']}/upcoming?count=500",
                          headers=estate['headers']['landlord'])
    assert len(response.get_json()['data']['occurrences']) == 50


def test_completing_walks_the_series_until_it_ends(client, estate, create_task):
    task = create_task()
    url = f"/api/scheduled-maintenance/{task['id']}"
    headers = estate['headers']['landlord']

    expected = ['2026-01-07T09:00:00', '2026-01-12T09:00:00', None]
    for due in expected:
        data = client.put(url, headers=headers, json={'status': 'completed'}).get_json()['data']
        assert data['next_due_date'] == due
    assert data['status'] == 'completed'
    assert data['occurrence_count'] == 3

    # completed is terminal
    assert client.put(url, headers=headers, json={'status': 'scheduled'}).status_code == 400


def test_pause_and_resume(client, estate, create_task):
    task = create_task(frequency={'type': 'daily', 'interval': 1})
    headers = estate['headers']['landlord']
    base = f"/api/scheduled-maintenance/{task['id']}"

    assert client.put(f'{base}/resume', headers=headers).status_code == 400
    paused = client.put(f'{base}/pause', headers=headers).get_json()['data']
    assert paused['status'] == 'paused'
    resumed = client.put(f'{base}/resume', headers=headers).get_json()['data']
    assert resumed['status'] == 'scheduled'


def test_update_reschedules(client, estate, create_task):
    task = create_task(recurring=False, frequency=None)
    response = client.put(f"/api/scheduled-maintenance/{task['id']}", headers=estate['headers']['landlord'],
                          json={'scheduled_date': '2026-03-01T08:00:00', 'title': 'Spring service'})
    data = response.get_json()['data']
    assert data['title'] == 'Spring service'
    assert data['next_due_date'] == '2026-03-01T08:00:00'


def test_list_filters_and_tenant_visibility(client, estate, create_task):
    create_task()
    paused = create_task(title='Gutter cleaning', category='general', recurring=False, frequency=None)
    client.put(f"/api/scheduled-maintenance/{paused['id']}/pause", headers=estate['headers']['landlord'])

    staff = client.get('/api/scheduled-maintenance?recurring=true', headers=estate['headers']['landlord'])
    assert [t['title'] for t in staff.get_json()['data']] == ['HVAC filter change']

    tenant = client.get('/api/scheduled-maintenance', headers=estate['headers']['tenant']).get_json()
    assert [t['title'] for t in tenant['data']] == ['HVAC filter change']

    outsider = client.get('/api/scheduled-maintenance', headers=estate['headers']['other_landlord']).get_json()
    assert outsider['total'] == 0


def test_delete_task(client, estate, create_task):
    task = create_task()
    url = f"/api/scheduled-maintenance/{task['id']}"
    assert client.delete(url, headers=estate['headers']['tenant']).status_code == 403
    assert client.delete(url, headers=estate['headers']['landlord']).status_code == 200
    assert client.get(url, headers=estate['headers']['landlord']).status_code == 404


def test_frequency_without_any_occurrence_is_rejected(client, estate, create_task, task_payload):
    never = {'type': 'custom_days', 'interval': 12, 'customDays': [31]}
    response = client.post('/api/scheduled-maintenance', headers=estate['headers']['landlord'], json={
        **task_payload, 'scheduled_date': '2026-02-01T09:00:00', 'frequency': never,
    })
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Frequency produces no occurrences'

    task = create_task(scheduled_date='2026-02-01T09:00:00', frequency={'type': 'daily', 'interval': 1})
    update = client.put(f"/api/scheduled-maintenance/{task['id']}", headers=estate['headers']['landlord'],
                        json={'frequency': never})
    assert update.status_code == 400
    current = client.get(f"/api/scheduled-maintenance/{task['id']}", headers=estate['headers']['landlord'])
    assert current.get_json()['data']['frequency']['type'] == 'daily'
