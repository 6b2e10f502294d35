def _activities(container, shop_id):
    return [a['description'] for a in container.activity_service.list_for_shop(shop_id)]


def test_add_product_logs_activity(admin_api, add_product, container):
    product = add_product('Rice', 50, 20)
    assert product['name'] == 'Rice'
    assert product['stock'] == 20
    assert _activities(container, product['shop_id'])[0] == 'Added new product: Rice (Stock: 20, Price: ₹50).'


def test_add_product_validation(admin_api):
    r = admin_api.post('/api/products', json={'name': ' ', 'price': 1, 'stock': 1})
    assert r.status_code == 400
    assert r.get_json()['error'] == 'Product name is required'

    r = admin_api.post('/api/products', json={'name': 'Oil', 'price': -1, 'stock': 1})
    assert r.get_json()['error'] == 'Price and stock must be non-negative numbers'

    r = admin_api.post('/api/products', json={'name': 'Oil', 'price': 'abc', 'stock': 1})
    assert r.status_code == 400


def test_product_name_must_be_text(admin_api):
    r = admin_api.post('/api/products', json={'name': ['Oil'], 'price': 1, 'stock': 1})
    assert r.status_code == 400
    assert r.get_json()['error'] == 'Product name is required'

    r = admin_api.post('/api/products', json={'name': 123, 'price': 1, 'stock': 1})
    assert r.status_code == 201
    assert r.get_json()['product']['name'] == '123'


def test_list_and_search_products(admin_api, add_product):
    add_product('Basmati Rice', 120, 15)
    add_product('Sugar', 40, 3)
    add_product('Salt', 20, 0)

    products = admin_api.get('/api/products').get_json()['products']
    status = {p['name']: p['stock_status'] for p in products}
    assert status == {'Basmati Rice': 'in_stock', 'Sugar': 'low', 'Salt': 'out'}

    found = admin_api.get('/api/products?search=rice').get_json()['products']
    assert [p['name'] for p in found] == ['Basmati Rice']


def test_update_stock_and_delete(admin_api, add_product, container):
    product = add_product('Rice', 50, 20)
    r = admin_api.put(f"/api/products/{product['id']}", json={'stock': 12.5})
    assert r.status_code == 200
    assert r.get_json()['product']['stock'] == 12.5
    assert _activities(container, product['shop_id'])[0] == 'Updated stock for Rice to 12.5.'

    r = admin_api.put(f"/api/products/{product['id']}", json={'stock': -3})
    assert r.status_code == 400

    r = admin_api.delete(f"/api/products/{product['id']}")
    assert r.status_code == 200
    assert _activities(container, product['shop_id'])[0] == 'Deleted product: Rice.'

    r = admin_api.delete(f"/api/products/{product['id']}")
    assert r.status_code == 404
    assert r.get_json()['error'] == 'Product not found'


def test_products_are_isolated_per_shop(admin_api, add_product, make_api):
    product = add_product('Rice', 50, 20)
    other = make_api()
    other.signup('bob', 'pw', 'Bob Store')
    assert other.get('/api/products').get_json()['products'] == []
    r = other.put(f"/api/products/{product['id']}", json={'stock': 1})
    assert r.status_code == 400
    assert r.get_json()['error'] == 'Product not found'
    assert other.delete(f"/api/products/{product['id']}").status_code == 404


def test_accountant_manages_stock_but_cashier_does_not(admin_api, make_api):
    admin_api.post('/api/settings/users', json={'name': 'acc', 'password': 'pw', 'role': 'Accountant'})
    admin_api.post('/api/settings/users', json={'name': 'cash', 'password': 'pw', 'role': 'Cashier'})

    accountant = make_api()
    accountant.login('acc', 'pw')
    r = accountant.post('/api/products', json={'name': 'Tea', 'price': 10, 'stock': 5})
    assert r.status_code == 201

    cashier = make_api()
    cashier.login('cash', 'pw')
    assert cashier.get('/api/products').status_code == 403
