from datetime import date

from zenbill.services.report_service import ReportService


def test_sales_chart_buckets_by_day():
    sales = [
        {'date': '2025-01-05T09:00:00+00:00', 'total': 100.0},
        {'date': '2025-01-05T18:00:00+00:00', 'total': 50.5},
        {'date': '2025-01-03T23:30:00+00:00', 'total': 10.0},
        {'date': '2024-12-20T10:00:00+00:00', 'total': 999.0},
    ]
    chart = ReportService.sales_chart(sales, days=7, today=date(2025, 1, 5))
    assert len(chart) == 7
    assert chart[0] == {'date': '2024-12-30', 'label': 'Dec 30', 'total': 0.0}
    assert chart[-1] == {'date': '2025-01-05', 'label': 'Jan 5', 'total': 150.5}
    assert chart[-3]['total'] == 10.0


def test_sales_chart_ranges():
    assert len(ReportService.sales_chart([], days=30, today=date(2025, 1, 5))) == 30
    # Cualquier otro rango vuelve a 7 días
    assert len(ReportService.sales_chart([], days=12, today=date(2025, 1, 5))) == 7


def test_dashboard_api(admin_api, add_product):
    rice = add_product('Rice', 50, 20)
    add_product('Sugar', 40, 3)
    add_product('Salt', 20, 0)
    admin_api.post('/api/cart/items', json={'product_id': rice['id'], 'quantity': 2})
    admin_api.post('/api/sales', json={'payment_method': 'Cash'})

    data = admin_api.get('/api/dashboard').get_json()
    assert data['ok'] is True
    assert data['total_revenue'] == 100.0
    assert data['total_sales'] == 1
    assert data['low_stock'] == 1
    assert [p['name'] for p in data['low_stock_products']] == ['Sugar']
    assert len(data['sales_chart']) == 7
    assert data['sales_chart'][-1]['total'] == 100.0

    assert len(admin_api.get('/api/dashboard?days=30').get_json()['sales_chart']) == 30


def test_dashboard_is_admin_only(admin_api, make_api):
    admin_api.post('/api/settings/users', json={'name': 'cash', 'password': 'pw', 'role': 'Cashier'})
    client = make_api()
    client.login('cash', 'pw')
    assert client.get('/api/dashboard').status_code == 403


def test_activities_api(admin_api, add_product):
    add_product('Rice', 50, 20)
    entries = admin_api.get('/api/activities').get_json()['activities']
    assert entries[0]['description'] == 'Added new product: Rice (Stock: 20, Price: ₹50).'
    assert entries[-1]['description'] == 'Shop "Ana Store" created. Admin user "ana" registered.'
