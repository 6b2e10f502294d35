from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from zenbill.services.sales_service import filter_sales, period_bounds

UTC = ZoneInfo('UTC')
NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)  # miércoles

SALES = [
    {'id': 'old', 'date': '2024-06-01T09:00:00+00:00'},
    {'id': 'nov', 'date': '2024-11-20T09:00:00+00:00'},
    {'id': 'jan5', 'date': '2025-01-05T09:00:00+00:00'},
    {'id': 'jan13', 'date': '2025-01-13T09:00:00+00:00'},
    {'id': 'today', 'date': '2025-01-15T08:00:00+00:00'},
    {'id': 'broken', 'date': 'yesterday'},
]


def _ids(period, **kwargs):
    return [s['id'] for s in filter_sales(SALES, period, UTC, now=NOW, **kwargs)]


@pytest.mark.parametrize('period, expected', [
    ('all', ['today', 'jan13', 'jan5', 'nov', 'old']),
    ('today', ['today']),
    ('week', ['today', 'jan13']),
    ('month', ['today', 'jan13', 'jan5']),
    ('3month', ['today', 'jan13', 'jan5', 'nov']),
])
def test_period_filters(period, expected):
    assert _ids(period) == expected


def test_week_starts_on_sunday():
    lower, upper = period_bounds('week', UTC, NOW)
    assert lower == datetime(2025, 1, 12, tzinfo=UTC)
    assert upper is None


def test_three_months_crosses_year():
    lower, _ = period_bounds('3month', UTC, datetime(2025, 2, 10, tzinfo=timezone.utc))
    assert lower == datetime(2024, 11, 1, tzinfo=UTC)


def test_custom_range_is_inclusive():
    assert _ids('custom', start='2025-01-05', end='2025-01-13') == ['jan13', 'jan5']


def test_custom_range_errors():
    with pytest.raises(ValueError):
        filter_sales(SALES, 'custom', UTC, now=NOW, start='2025-01-05')
    with pytest.raises(ValueError):
        filter_sales(SALES, 'custom', UTC, now=NOW, start='2025-01-13', end='2025-01-05')
    with pytest.raises(ValueError):
        filter_sales(SALES, 'fortnight', UTC, now=NOW)


def test_today_follows_shop_timezone():
    india = timezone(timedelta(hours=5, minutes=30))
    # 20:00 UTC del 14 ya es 15 de enero en India
    sales = [{'id': 'late', 'date': '2025-01-14T20:00:00+00:00'}]
    assert filter_sales(sales, 'today', india, now=NOW) == sales
    assert filter_sales(sales, 'today', UTC, now=NOW) == []


def test_history_api(admin_api, add_product):
    rice = add_product('Rice', 10, 5)
    admin_api.post('/api/cart/items', json={'product_id': rice['id'], 'quantity': 1})
    admin_api.post('/api/sales', json={'payment_method': 'Cash'})

    r = admin_api.get('/api/sales?period=today')
    assert r.status_code == 200
    assert len(r.get_json()['sales']) == 1

    r = admin_api.get('/api/sales?period=custom&start=2025-01-01')
    assert r.status_code == 400
    assert r.get_json()['error'] == 'Custom range requires start and end dates (YYYY-MM-DD)'

    r = admin_api.get('/api/sales/report.csv?period=all')
    assert r.status_code == 200
    assert r.get_data(as_text=True).startswith('SaleID,Date,Items,Subtotal,SGST,CGST,Total,PaymentMethod\n')


def test_sales_report_without_sales(admin_api):
    r = admin_api.get('/api/sales/report.csv')
    assert r.status_code == 400
    assert r.get_json()['error'] == 'No data available to export'


def test_every_shop_role_sees_history(admin_api, make_api):
    admin_api.post('/api/settings/users', json={'name': 'acc', 'password': 'pw', 'role': 'Accountant'})
    client = make_api()
    client.login('acc', 'pw')
    assert client.get('/api/sales').status_code == 200
