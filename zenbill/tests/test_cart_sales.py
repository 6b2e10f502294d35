import pytest


@pytest.fixture
def taxed_shop(admin_api):
    r = admin_api.put('/api/settings/profile', json={
        'shop_name': 'Ana Store',
        'sgst_percentage': 9,
        'cgst_percentage': 9,
        'gst_number': '29ABCDE1234F1Z5',
        'shop_address': 'MG Road\nBengaluru',
    })
    assert r.status_code == 200
    return admin_api


def _add_to_cart(client, product_id, quantity):
    return client.post('/api/cart/items', json={'product_id': product_id, 'quantity': quantity})


# =============================================================================
# CARRITO
# =============================================================================

def test_cart_rejects_quantity_above_stock(admin_api, add_product):
    rice = add_product('Rice', 50, 20)
    r = _add_to_cart(admin_api, rice['id'], 25)
    assert r.status_code == 400
    assert r.get_json()['error'] == 'Cannot add more than available stock (20)'


def test_cart_totals_use_shop_tax_rates(taxed_shop, add_product):
    rice = add_product('Rice', 50, 20)
    r = _add_to_cart(taxed_shop, rice['id'], 2)
    assert r.status_code == 200
    cart = r.get_json()['cart']
    assert cart['item_count'] == 1
    assert cart['subtotal'] == 100.0
    assert cart['sgst_amount'] == 9.0
    assert cart['cgst_amount'] == 9.0
    assert cart['total'] == 118.0


def test_adding_same_product_sets_quantity(admin_api, add_product):
    rice = add_product('Rice', 50, 20)
    _add_to_cart(admin_api, rice['id'], 2)
    cart = _add_to_cart(admin_api, rice['id'], 5).get_json()['cart']
    assert len(cart['items']) == 1
    assert cart['items'][0]['quantity'] == 5


def test_update_quantity_clamps_to_stock(admin_api, add_product):
    rice = add_product('Rice', 50, 20)
    _add_to_cart(admin_api, rice['id'], 1)
    r = admin_api.put(f"/api/cart/items/{rice['id']}", json={'quantity': 100})
    assert r.get_json()['cart']['items'][0]['quantity'] == 20

    r = admin_api.put(f"/api/cart/items/{rice['id']}", json={'quantity': 0})
    assert r.get_json()['cart']['items'] == []

    r = admin_api.put(f"/api/cart/items/{rice['id']}", json={'quantity': 1})
    assert r.status_code == 400
    assert r.get_json()['error'] == 'Item is not in the cart'


def test_remove_and_clear_cart(admin_api, add_product):
    rice = add_product('Rice', 50, 20)
    sugar = add_product('Sugar', 40, 10)
    _add_to_cart(admin_api, rice['id'], 1)
    _add_to_cart(admin_api, sugar['id'], 1)

    cart = admin_api.delete(f"/api/cart/items/{rice['id']}").get_json()['cart']
    assert [i['name'] for i in cart['items']] == ['Sugar']

    cart = admin_api.delete('/api/cart').get_json()['cart']
    assert cart['items'] == []
    assert cart['total'] == 0


def test_search_only_returns_products_in_stock(admin_api, add_product):
    add_product('Rice', 50, 20)
    add_product('Brown rice', 80, 0)
    add_product('Puffed Rice', 30, 2)

    assert admin_api.get('/api/cart/search?q=').get_json()['products'] == []
    found = admin_api.get('/api/cart/search?q=RICE').get_json()['products']
    assert [p['name'] for p in found] == ['Puffed Rice', 'Rice']


def test_accountant_cannot_sell(admin_api, make_api):
    admin_api.post('/api/settings/users', json={'name': 'acc', 'password': 'pw', 'role': 'Accountant'})
    client = make_api()
    client.login('acc', 'pw')
    assert client.get('/api/cart').status_code == 403


# =============================================================================
# COMPLETAR VENTA
# =============================================================================

def test_complete_sale(taxed_shop, add_product, container):
    rice = add_product('Rice', 50, 20)
    _add_to_cart(taxed_shop, rice['id'], 1)

    r = taxed_shop.post('/api/sales', json={'payment_method': 'UPI'})
    assert r.status_code == 201, r.get_json()
    body = r.get_json()
    sale = body['sale']
    assert sale['subtotal'] == 50.0
    assert sale['sgst_amount'] == 4.5
    assert sale['cgst_amount'] == 4.5
    assert sale['total'] == 59.0
    assert sale['payment_method'] == 'UPI'
    assert sale['cashier'] == 'ana'
    assert body['invoice_url'] == f"/api/sales/{sale['id']}/invoice"

    assert container.product_repo.get_by_id(rice['id'])['stock'] == 19
    assert taxed_shop.get('/api/cart').get_json()['cart']['items'] == []

    short = sale['id'].split('-', 1)[1][:8]
    latest = container.activity_service.list_for_shop(sale['shop_id'])[0]
    assert latest['description'] == f'Completed sale #{short} for ₹59.00.'


def test_complete_sale_requires_items_and_method(admin_api, add_product):
    r = admin_api.post('/api/sales', json={'payment_method': 'Cash'})
    assert r.status_code == 400
    assert r.get_json()['error'] == 'Cart is empty'

    rice = add_product('Rice', 50, 20)
    _add_to_cart(admin_api, rice['id'], 1)
    r = admin_api.post('/api/sales', json={'payment_method': 'Cheque'})
    assert r.status_code == 400
    assert r.get_json()['error'] == 'Select a payment method (UPI, Card or Cash)'
    assert len(admin_api.get('/api/cart').get_json()['cart']['items']) == 1


def test_complete_sale_rechecks_stock(admin_api, add_product, container):
    rice = add_product('Rice', 50, 20)
    _add_to_cart(admin_api, rice['id'], 5)
    admin_api.put(f"/api/products/{rice['id']}", json={'stock': 3})

    r = admin_api.post('/api/sales', json={'payment_method': 'Cash'})
    assert r.status_code == 400
    assert r.get_json()['error'] == 'Insufficient stock for Rice (available: 3)'
    assert container.sales_repo.get_all() == []


def test_fractional_quantities(admin_api, add_product, container):
    sugar = add_product('Sugar', 40, 2)
    _add_to_cart(admin_api, sugar['id'], 0.75)
    r = admin_api.post('/api/sales', json={'payment_method': 'Card'})
    assert r.status_code == 201
    assert r.get_json()['sale']['total'] == 30.0
    assert container.product_repo.get_by_id(sugar['id'])['stock'] == 1.25


# =============================================================================
# DETALLE Y FACTURA
# =============================================================================

def test_sale_detail_and_invoice(taxed_shop, add_product, make_api):
    rice = add_product('Rice', 50, 20)
    _add_to_cart(taxed_shop, rice['id'], 2)
    sale = taxed_shop.post('/api/sales', json={'payment_method': 'Cash'}).get_json()['sale']

    r = taxed_shop.get(f"/api/sales/{sale['id']}")
    assert r.status_code == 200
    assert r.get_json()['sale']['id'] == sale['id']

    r = taxed_shop.get(f"/api/sales/{sale['id']}/invoice")
    assert r.status_code == 200
    html = r.get_data(as_text=True)
    short = sale['id'].split('-', 1)[1][:8]
    assert f'Invoice #{short}' in html
    assert 'Ana Store' in html
    assert 'MG Road<br>Bengaluru' in html
    assert '29ABCDE1234F1Z5' in html
    assert '₹118.00' in html
    assert 'Thank you for your business!' in html

    other = make_api()
    other.signup('bob', 'pw', 'Bob Store')
    assert other.get(f"/api/sales/{sale['id']}").status_code == 404
    assert other.get(f"/api/sales/{sale['id']}/invoice").status_code == 404
