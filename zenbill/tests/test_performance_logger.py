import logging

import pytest

from zenbill import performance_logger
from zenbill.main import create_app
from zenbill.performance_logger import (
    THRESHOLD_CRITICAL,
    THRESHOLD_WARNING,
    get_function_stats,
    log_route_performance,
    profile_function,
    reset_stats,
)


@pytest.fixture(autouse=True)
def clean_stats():
    reset_stats()
    yield
    reset_stats()


def test_profile_function_counts_calls():
    @profile_function
    def add(a, b):
        return a + b

    @profile_function(name='Suma lenta')
    def slow_add(a, b):
        return a + b

    assert add(1, 2) == 3
    add(2, 3)
    slow_add(1, 1)

    stats = get_function_stats()
    key = add.__wrapped__.__qualname__
    assert stats[key]['calls'] == 2
    assert stats['Suma lenta']['calls'] == 1
    assert stats['Suma lenta']['max_time'] >= 0


def test_profile_function_records_failures():
    @profile_function(name='Falla')
    def broken():
        raise RuntimeError('boom')

    with pytest.raises(RuntimeError):
        broken()
    assert get_function_stats()['Falla']['calls'] == 1


def test_route_thresholds(caplog):
    with caplog.at_level(logging.DEBUG, logger='zenbill.performance'):
        log_route_performance('POST', '/api/sales', 'api.sales_complete', THRESHOLD_CRITICAL + 1, 'ana')
        log_route_performance('GET', '/api/x', None, THRESHOLD_WARNING + 1)
        log_route_performance('GET', '/api/x', None, 1)

    levels = [r.levelno for r in caplog.records]
    assert levels == [logging.ERROR, logging.WARNING, logging.DEBUG]
    assert 'Confirmar venta' in caplog.records[0].getMessage()
    assert 'anónimo' in caplog.records[1].getMessage()


def test_profiling_hooks_log_requests(tmp_path, caplog, monkeypatch):
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'k',
        'DATA_DIR': str(tmp_path / 'data'),
        'PROFILING': True,
    })
    seen = []
    monkeypatch.setattr(
        performance_logger, 'log_route_performance',
        lambda method, path, endpoint, time_ms, user=None: seen.append((method, path, endpoint)),
    )
    app.test_client().get('/api/auth/session')
    assert seen == [('GET', '/api/auth/session', 'api.auth_session')]
