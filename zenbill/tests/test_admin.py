import pytest


@pytest.fixture
def customer(admin_api):
    return admin_api.session()['user']


def test_overview(customer, super_api, admin_api):
    admin_api.post('/api/settings/users', json={'name': 'raj', 'password': 'pw', 'role': 'Cashier'})
    admin_api.post('/api/tickets', json={'subject': 'Help', 'message': 'Please'})

    data = super_api.get('/api/admin/overview').get_json()
    assert data['total_customers'] == 1
    assert data['total_users'] == 2
    assert data['open_tickets'] == 1
    assert data['customers'][0]['id'] == customer['id']
    assert 'password' not in data['customers'][0]
    recent = data['recent_activity']
    assert len(recent) <= 5
    assert all(a['shop_name'] == 'Ana Store' for a in recent)


def test_overview_requires_superadmin(admin_api):
    assert admin_api.get('/api/admin/overview').status_code == 403


def test_disable_shop_blocks_all_users(customer, super_api, admin_api, make_api, container):
    admin_api.post('/api/settings/users', json={'name': 'raj', 'password': 'pw', 'role': 'Cashier'})
    r = super_api.put(f"/api/admin/customers/{customer['id']}", json={
        'is_disabled': True, 'disabled_message': 'Payment overdue',
    })
    assert r.status_code == 200
    assert r.get_json()['customer']['is_disabled'] is True
    assert container.activity_service.list_platform()[0]['description'] == (
        'Super Admin disabled account for Ana Store.'
    )

    r = admin_api.get('/api/dashboard')
    assert r.status_code == 403
    assert r.get_json() == {'ok': False, 'error': 'Payment overdue', 'disabled': True}

    cashier = make_api()
    assert cashier.login('raj', 'pw').status_code == 200
    session = cashier.session()
    assert session['disabled'] is True
    assert session['disabled_message'] == 'Payment overdue'
    assert cashier.get('/api/cart').status_code == 403

    super_api.put(f"/api/admin/customers/{customer['id']}", json={'is_disabled': False})
    assert admin_api.get('/api/dashboard').status_code == 200


def test_disabled_shop_default_message(customer, super_api, admin_api):
    super_api.put(f"/api/admin/customers/{customer['id']}", json={'is_disabled': True})
    assert admin_api.get('/api/dashboard').get_json()['error'] == (
        'Your account has been disabled. Please contact support.'
    )


def test_banner_is_shown_to_shop(customer, super_api, admin_api, container):
    r = super_api.put(f"/api/admin/customers/{customer['id']}", json={
        'is_banner_visible': True, 'banner_text': 'Maintenance on Sunday',
    })
    assert r.status_code == 200
    assert admin_api.session()['banner'] == 'Maintenance on Sunday'
    assert container.activity_service.list_platform()[0]['description'] == (
        'Super Admin enabled the announcement banner for Ana Store.'
    )


def test_update_customer_errors(customer, super_api):
    r = super_api.put(f"/api/admin/customers/{customer['id']}", json={'shop_name': 'Hacked'})
    assert r.status_code == 400
    assert r.get_json()['error'] == 'Nothing to update'

    r = super_api.put('/api/admin/customers/user-missing', json={'is_disabled': True})
    assert r.get_json()['error'] == 'Customer not found'


def test_manage_customer_users(customer, super_api, container):
    r = super_api.post(f"/api/admin/customers/{customer['id']}/users", json={
        'name': 'priya', 'password': 'pw', 'role': 'Cashier',
    })
    assert r.status_code == 201, r.get_json()
    user = r.get_json()['user']
    assert user['shop_id'] == customer['shop_id']
    assert user['shop_name'] == 'Ana Store'
    assert container.activity_service.list_platform()[0]['description'] == (
        'Super Admin added new user: priya (Cashier) to shop Ana Store.'
    )

    users = super_api.get(f"/api/admin/customers/{customer['id']}/users").get_json()['users']
    assert [u['name'] for u in users] == ['priya']

    r = super_api.delete(f"/api/admin/users/{user['id']}")
    assert r.status_code == 200
    assert container.activity_service.list_platform()[0]['description'] == (
        'Super Admin removed user: priya from shop Ana Store.'
    )
    assert super_api.get(f"/api/admin/customers/{customer['id']}/users").get_json()['users'] == []


def test_shop_admin_cannot_be_removed(customer, super_api):
    r = super_api.delete(f"/api/admin/users/{customer['id']}")
    assert r.status_code == 403
    assert r.get_json()['error'] == 'Shop admin accounts cannot be removed'


def test_unknown_customer_users(super_api):
    assert super_api.get('/api/admin/customers/user-missing/users').status_code == 404
    assert super_api.delete('/api/admin/users/user-missing').status_code == 404


def test_platform_activities(customer, super_api):
    super_api.put(f"/api/admin/customers/{customer['id']}", json={'banner_text': 'Hello'})
    entries = super_api.get('/api/admin/activities').get_json()['activities']
    assert entries[0]['description'] == 'Super Admin updated settings for Ana Store.'


def test_form_flags_are_parsed(customer, super_api, admin_api, container):
    path = f"/api/admin/customers/{customer['id']}"
    super_api.put(path, json={'is_disabled': True})

    r = super_api.put(path, data={'is_disabled': 'false'})
    assert r.status_code == 200
    assert r.get_json()['customer']['is_disabled'] is False
    assert container.activity_service.list_platform()[0]['description'] == (
        'Super Admin enabled account for Ana Store.'
    )
    assert admin_api.get('/api/dashboard').status_code == 200

    r = super_api.put(path, data={'is_banner_visible': 'on', 'banner_text': 'Hi'})
    assert r.get_json()['customer']['is_banner_visible'] is True


def test_unrecognised_flag_is_rejected(customer, super_api, container):
    r = super_api.put(f"/api/admin/customers/{customer['id']}", data={'is_disabled': 'maybe'})
    assert r.status_code == 400
    assert r.get_json()['error'] == 'Invalid value for is_disabled'

    r = super_api.put(f"/api/admin/customers/{customer['id']}", json={'is_disabled': [1]})
    assert r.status_code == 400
    assert container.user_repo.get_by_id(customer['id'])['is_disabled'] is False
