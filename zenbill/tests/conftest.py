import pytest

from zenbill.app_container import get_container
from zenbill.main import create_app

SUPERADMIN_USER = 'root'
SUPERADMIN_PASSWORD = 'rootpass'


class ApiClient:
    """Cliente de pruebas que agrega el token CSRF a cada petición de escritura."""

    def __init__(self, client):
        self.client = client
        self.token = None

    def session(self):
        data = self.client.get('/api/auth/session').get_json()
        self.token = data['csrf_token']
        return data

    def _headers(self):
        if not self.token:
            self.session()
        return {'X-CSRF-Token': self.token}

    def get(self, path, **kwargs):
        return self.client.get(path, **kwargs)

    def post(self, path, json=None, **kwargs):
        return self.client.post(path, json=json, headers=self._headers(), **kwargs)

    def put(self, path, json=None, **kwargs):
        return self.client.put(path, json=json, headers=self._headers(), **kwargs)

    def delete(self, path, **kwargs):
        return self.client.delete(path, headers=self._headers(), **kwargs)

    def signup(self, name='ana', password='secret', shop_name='Ana Store'):
        r = self.post('/api/auth/signup', json={'name': name, 'password': password, 'shop_name': shop_name})
        assert r.status_code == 201, r.get_json()
        return r.get_json()

    def login(self, name, password):
        return self.post('/api/auth/login', json={'name': name, 'password': password})

    def logout(self):
        r = self.post('/api/auth/logout')
        self.token = r.get_json().get('csrf_token')
        return r


@pytest.fixture
def app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'DATA_DIR': str(tmp_path / 'data'),
        'SUPERADMIN_USER': SUPERADMIN_USER,
        'SUPERADMIN_PASSWORD': SUPERADMIN_PASSWORD,
        'GEMINI_API_KEY': '',
        'PROFILING': False,
        'TIMEZONE': 'UTC',
    })
    yield app


@pytest.fixture
def container(app):
    return get_container(app)


@pytest.fixture
def make_api(app):
    def factory():
        return ApiClient(app.test_client())
    return factory


@pytest.fixture
def api(make_api):
    """Cliente anónimo."""
    return make_api()


@pytest.fixture
def admin_api(make_api):
    """Admin de la tienda 'Ana Store' con sesión iniciada."""
    client = make_api()
    client.signup('ana', 'secret', 'Ana Store')
    return client


@pytest.fixture
def super_api(make_api):
    client = make_api()
    r = client.login(SUPERADMIN_USER, SUPERADMIN_PASSWORD)
    assert r.status_code == 200
    return client


@pytest.fixture
def add_product(admin_api):
    def factory(name='Rice', price=50, stock=20):
        r = admin_api.post('/api/products', json={'name': name, 'price': price, 'stock': stock})
        assert r.status_code == 201, r.get_json()
        return r.get_json()['product']
    return factory
