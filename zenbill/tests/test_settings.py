import pytest


@pytest.fixture
def cashier(admin_api):
    r = admin_api.post('/api/settings/users', json={'name': 'raj', 'password': 'pw', 'role': 'Cashier'})
    assert r.status_code == 201, r.get_json()
    return r.get_json()['user']


def test_profile_update_propagates_to_shop_users(admin_api, cashier, container):
    r = admin_api.put('/api/settings/profile', json={
        'shop_name': 'Ana Mart',
        'gst_number': '29ABCDE1234F1Z5',
        'sgst_percentage': '9',
        'cgst_percentage': 9,
        'shop_address': 'MG Road\nBengaluru',
        'shop_phone_number': '98450 00000',
    })
    assert r.status_code == 200, r.get_json()
    assert r.get_json()['user']['shop_name'] == 'Ana Mart'

    stored = container.user_repo.get_by_id(cashier['id'])
    assert stored['shop_name'] == 'Ana Mart'
    assert stored['sgst_percentage'] == 9.0
    assert stored['gst_number'] == '29ABCDE1234F1Z5'

    shop_id = r.get_json()['user']['shop_id']
    latest = container.activity_service.list_for_shop(shop_id)[0]
    assert latest['description'] == 'Shop profile and tax settings were updated.'


def test_profile_rejects_invalid_percentages(admin_api):
    r = admin_api.put('/api/settings/profile', json={'shop_name': 'Ana', 'sgst_percentage': 150})
    assert r.status_code == 400
    assert r.get_json()['error'] == 'Tax percentages must be numbers between 0 and 100'

    r = admin_api.put('/api/settings/profile', json={'shop_name': 'Ana', 'cgst_percentage': 'abc'})
    assert r.status_code == 400


def test_profile_requires_shop_name(admin_api):
    r = admin_api.put('/api/settings/profile', json={'shop_name': '   '})
    assert r.status_code == 400
    assert r.get_json()['error'] == 'Shop name is required'


def test_profile_rename_admin(admin_api, make_api):
    r = admin_api.put('/api/settings/profile', json={'name': 'anita'})
    assert r.status_code == 200
    assert r.get_json()['user']['name'] == 'anita'
    assert make_api().login('anita', 'secret').status_code == 200


def test_new_user_inherits_shop_profile(admin_api, container):
    admin_api.put('/api/settings/profile', json={'shop_name': 'Ana Store', 'sgst_percentage': 2.5})
    r = admin_api.post('/api/settings/users', json={'name': 'ravi', 'password': 'pw', 'role': 'Accountant'})
    assert r.status_code == 201
    user = r.get_json()['user']
    assert user['sgst_percentage'] == 2.5
    assert user['shop_name'] == 'Ana Store'
    assert 'password' not in user

    latest = container.activity_service.list_for_shop(user['shop_id'])[0]
    assert latest['description'] == 'Added new user: ravi (Accountant).'


def test_add_user_validation(admin_api, cashier):
    r = admin_api.post('/api/settings/users', json={'name': 'raj', 'password': 'x', 'role': 'Cashier'})
    assert r.get_json()['error'] == 'Username is already taken'

    r = admin_api.post('/api/settings/users', json={'name': 'new', 'password': 'x', 'role': 'SuperAdmin'})
    assert r.status_code == 400
    assert r.get_json()['error'] == 'Invalid role: SuperAdmin'


def test_list_and_remove_user(admin_api, cashier, container):
    users = admin_api.get('/api/settings/users').get_json()['users']
    assert {u['name'] for u in users} == {'ana', 'raj'}

    r = admin_api.delete(f"/api/settings/users/{cashier['id']}")
    assert r.status_code == 200
    assert container.user_repo.get_by_id(cashier['id']) is None
    latest = container.activity_service.list_for_shop(cashier['shop_id'])[0]
    assert latest['description'] == 'Removed user: raj.'

    r = admin_api.delete(f"/api/settings/users/{cashier['id']}")
    assert r.status_code == 404
    assert r.get_json()['error'] == 'User not found'


def test_admin_cannot_remove_itself(admin_api):
    me = admin_api.session()['user']
    r = admin_api.delete(f"/api/settings/users/{me['id']}")
    assert r.status_code == 403
    assert r.get_json()['error'] == 'You cannot remove your own account'


def test_cannot_remove_user_of_another_shop(admin_api, make_api):
    other = make_api()
    other.signup('bob', 'pw', 'Bob Store')
    bob_id = other.session()['user']['id']
    assert admin_api.delete(f'/api/settings/users/{bob_id}').status_code == 404


def test_cashier_cannot_manage_settings(make_api, cashier):
    client = make_api()
    r = client.login('raj', 'pw')
    assert r.get_json()['landing'] == 'new_sale'
    r = client.get('/api/settings/profile')
    assert r.status_code == 403
    assert r.get_json()['error'] == 'Permiso denegado'


def test_superadmin_login_name_is_reserved(app, admin_api):
    reserved = app.config['SUPERADMIN_USER']
    r = admin_api.post('/api/settings/users', json={'name': reserved.upper(), 'password': 'x', 'role': 'Cashier'})
    assert r.status_code == 400
    assert r.get_json()['error'] == 'Username is already taken'

    r = admin_api.put('/api/settings/profile', json={'name': reserved})
    assert r.status_code == 400
    assert r.get_json()['error'] == 'Username is already taken'


def test_non_text_fields_are_rejected(admin_api):
    r = admin_api.post('/api/settings/users', json={'name': 'raj', 'password': 123, 'role': 'Cashier'})
    assert r.status_code == 400
    assert r.get_json()['error'] == 'Name and password are required'

    r = admin_api.post('/api/settings/users', json={'name': 'raj', 'password': 'pw', 'role': ['Cashier']})
    assert r.status_code == 400

    r = admin_api.put('/api/settings/profile', json={'shop_name': {'x': 1}})
    assert r.status_code == 400
    assert r.get_json()['error'] == 'Shop name is required'

    r = admin_api.put('/api/settings/profile', json={'shop_phone_number': 9876543210})
    assert r.status_code == 200
    assert r.get_json()['user']['shop_phone_number'] == '9876543210'
