from propdesk.models import PropertyUser, Unit, db

ADDRESS = {'street': '1 Main St', 'city': 'Mombasa', 'country': 'Kenya'}


def test_landlord_creates_property_and_is_linked(client, app, estate):
    response = client.post('/api/properties', headers=estate['headers']['landlord'], json={
        'name': 'Harbor View', 'address': ADDRESS, 'property_type': 'Commercial',
    })
    assert response.status_code == 201
    data = response.get_json()['data']
    assert data['property_type'] == 'commercial'
    assert data['address']['city'] == 'Mombasa'

    with app.app_context():
        link = PropertyUser.query.filter_by(property_id=data['id'], user_id=estate['landlord']).one()
        assert link.role == 'landlord'


def test_property_requires_address(client, estate):
    response = client.post('/api/properties', headers=estate['headers']['landlord'], json={'name': 'No Address'})
    assert response.status_code == 400
    assert 'address' in response.get_json()['errors']


def test_tenant_cannot_create_property(client, estate):
    response = client.post('/api/properties', headers=estate['headers']['tenant'],
                           json={'name': 'Nope', 'address': ADDRESS})
    assert response.status_code == 403


def test_property_list_is_scoped(client, estate):
    landlord = client.get('/api/properties', headers=estate['headers']['landlord']).get_json()
    assert [p['name'] for p in landlord['data']] == ['Sunset Apartments']

    other = client.get('/api/properties', headers=estate['headers']['other_landlord']).get_json()
    assert other['total'] == 0

    tenant = client.get('/api/properties', headers=estate['headers']['tenant']).get_json()
    assert tenant['total'] == 1


def test_property_detail_includes_units(client, estate):
    response = client.get(f"/api/properties/{estate['property']}", headers=estate['headers']['tenant'])
    data = response.get_json()['data']
    assert sorted(u['unit_name'] for u in data['units']) == ['A1', 'A2']


def test_outsider_cannot_view_or_edit(client, estate):
    url = f"/api/properties/{estate['property']}"
    assert client.get(url, headers=estate['headers']['other_landlord']).status_code == 403
    assert client.put(url, headers=estate['headers']['other_landlord'], json={'name': 'Mine'}).status_code == 403


def test_update_property_partial(client, estate):
    response = client.put(f"/api/properties/{estate['property']}", headers=estate['headers']['landlord'],
                          json={'description': 'Sea views', 'address': {'city': 'Malindi'}})
    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['description'] == 'Sea views'
    assert data['address']['city'] == 'Malindi'
    assert data['address']['street'] == '12 Ocean Drive'


def test_manager_cannot_delete_property(client, estate):
    # Give the manager rights over the property first
    client.post(f"/api/properties/{estate['property']}/assign-user", headers=estate['headers']['landlord'],
                json={'user_id': estate['manager'], 'role': 'PropertyManager'})
    response = client.delete(f"/api/properties/{estate['property']}", headers=estate['headers']['manager'])
    assert response.status_code == 403

    units = client.get(f"/api/properties/{estate['property']}/units", headers=estate['headers']['manager'])
    assert units.get_json()['total'] == 2


def test_assign_user_role_must_match_account(client, app, estate, make_user):
    url = f"/api/properties/{estate['property']}/assign-user"
    client.post(url, headers=estate['headers']['landlord'],
                json={'user_id': estate['manager'], 'role': 'propertymanager'})
    manager = estate['headers']['manager']

    promoted = client.post(url, headers=manager, json={'user_id': estate['tenant'], 'role': 'landlord'})
    assert promoted.status_code == 400

    co_owner = make_user('co-owner@example.com', 'landlord')
    assert client.post(url, headers=manager, json={'user_id': co_owner, 'role': 'landlord'}).status_code == 403
    assert client.post(url, headers=estate['headers']['landlord'],
                       json={'user_id': co_owner, 'role': 'landlord'}).status_code == 200

    with app.app_context():
        assert PropertyUser.query.filter_by(user_id=estate['tenant'], role='landlord').count() == 0
        assert PropertyUser.query.filter_by(user_id=co_owner, role='landlord').count() == 1


def test_remove_user_from_property(client, app, estate):
    url = f"/api/properties/{estate['property']}/remove-user/{estate['tenant']}?role=tenant"
    response = client.delete(url, headers=estate['headers']['landlord'])
    assert response.status_code == 200
    with app.app_context():
        assert db.session.get(Unit, estate['unit']).status == 'vacant'

    again = client.delete(url, headers=estate['headers']['landlord'])
    assert again.status_code == 404


def test_unit_crud(client, estate):
    headers = estate['headers']['landlord']
    base = f"/api/properties/{estate['property']}/units"

    created = client.post(base, headers=headers, json={'unit_name': 'B1', 'num_bedrooms': 3, 'rent_amount': '1200.50'})
    assert created.status_code == 201
    unit_id = created.get_json()['data']['id']

    duplicate = client.post(base, headers=headers, json={'unit_name': 'B1'})
    assert duplicate.status_code == 409

    updated = client.put(f'{base}/{unit_id}', headers=headers, json={'floor': '2'})
    assert updated.get_json()['data']['floor'] == '2'

    repairs = client.put(f'{base}/{unit_id}', headers=headers, json={'status': 'Under_Maintenance'})
    assert repairs.get_json()['data']['status'] == 'under_maintenance'
    client.put(f'{base}/{unit_id}', headers=headers, json={'status': 'VACANT'})

    vacant = client.get(f'{base}?status=vacant', headers=headers).get_json()
    assert sorted(u['unit_name'] for u in vacant['data']) == ['A2', 'B1']

    assert client.delete(f'{base}/{unit_id}', headers=headers).status_code == 200


def test_cannot_delete_occupied_unit(client, estate):
    url = f"/api/properties/{estate['property']}/units/{estate['unit']}"
    assert client.delete(url, headers=estate['headers']['landlord']).status_code == 400


def test_assign_and_remove_tenant(client, estate, make_user):
    headers = estate['headers']['landlord']
    new_tenant = make_user('second@example.com', 'tenant')
    base = f"/api/properties/{estate['property']}/units/{estate['empty_unit']}"

    assigned = client.post(f'{base}/assign-tenant', headers=headers, json={'tenant_id': new_tenant})
    assert assigned.status_code == 200
    assert assigned.get_json()['data']['status'] == 'occupied'

    removed = client.delete(f'{base}/remove-tenant/{new_tenant}', headers=headers)
    assert removed.get_json()['data']['status'] == 'vacant'


def test_only_tenants_can_be_assigned_to_units(client, estate):
    url = f"/api/properties/{estate['property']}/units/{estate['empty_unit']}/assign-tenant"
    response = client.post(url, headers=estate['headers']['landlord'], json={'tenant_id': estate['manager']})
    assert response.status_code == 400
