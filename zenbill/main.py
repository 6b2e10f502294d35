# ==============================================================================
# APLICACIÓN FLASK - API de ZenBill
# ==============================================================================
# create_app() arma la app: configuración, logging, contenedor de
# servicios, profiling y el Blueprint 'api' con todas las rutas.
#
# Las rutas solo orquestan request → service → response; las reglas de
# negocio viven en services/.
# ==============================================================================

import logging
import os
import uuid
from functools import wraps
from typing import Any, Dict, Optional

from flask import (
    Blueprint,
    Flask,
    Response,
    g,
    jsonify,
    render_template,
    request,
    session,
    url_for,
)
from werkzeug.exceptions import HTTPException

from zenbill.app_container import AppContainer, get_container
from zenbill.config import DEFAULT_SECRET, Config
from zenbill.logging_setup import setup_logging
from zenbill.models import UserRole, clean_text
from zenbill.performance_logger import init_profiling
from zenbill.services import (
    ChatDisabledError,
    ChatServiceError,
    ExportError,
    ProtectedAccountError,
)

logger = logging.getLogger(__name__)

bp = Blueprint('api', __name__, url_prefix='/api')

ADMIN = UserRole.ADMIN.value
CASHIER = UserRole.CASHIER.value
ACCOUNTANT = UserRole.ACCOUNTANT.value
SUPER_ADMIN = UserRole.SUPER_ADMIN.value
SHOP_ROLES = (ADMIN, CASHIER, ACCOUNTANT)

CSRF_METHODS = frozenset(['POST', 'PUT', 'PATCH', 'DELETE'])


# ═══════════════════════════════════════════════════════════════════════════════
# FÁBRICA DE LA APLICACIÓN
# ═══════════════════════════════════════════════════════════════════════════════

def create_app(overrides: Optional[Dict[str, Any]] = None) -> Flask:
    """
    Crea y configura la aplicación Flask.

    Args:
        overrides: Claves de configuración a reemplazar (tests, scripts)

    Returns:
        App lista para servir
    """
    app = Flask(__name__)
    app.config.update(Config().as_dict(overrides))
    app.secret_key = app.config['SECRET_KEY']

    log_file = None
    if app.config.get('LOG_TO_FILE'):
        log_file = os.path.join(app.config['LOG_DIR'], 'zenbill.log')
    setup_logging(app.config.get('LOG_LEVEL', 'INFO'), log_file)

    if app.secret_key == DEFAULT_SECRET and not app.config.get('TESTING'):
        logger.warning("ZENBILL_SECRET_KEY no definida: usando clave de desarrollo")

    os.makedirs(app.config['DATA_DIR'], exist_ok=True)
    container = AppContainer(app.config)
    app.extensions['zenbill'] = container
    container.user_service.backfill_merchant_ids()

    init_profiling(app)
    app.register_blueprint(bp)
    app.after_request(set_security_headers)

    logger.info("ZenBill listo (datos en %s)", app.config['DATA_DIR'])
    return app


def set_security_headers(response):
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'
    response.headers['Permissions-Policy'] = 'geolocation=(), microphone=()'
    # HSTS solo con HTTPS real
    if request.is_secure:
        response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
    return response


# ═══════════════════════════════════════════════════════════════════════════════
# SESIÓN, CSRF Y PERMISOS
# ═══════════════════════════════════════════════════════════════════════════════

def generate_csrf_token() -> str:
    if 'csrf_token' not in session:
        session['csrf_token'] = uuid.uuid4().hex
    return session['csrf_token']


@bp.before_request
def load_current_user():
    """Relee el usuario de la sesión en cada petición."""
    g.user = get_container().user_service.get_user(session.get('user_id'))
    if g.user is None and 'user_id' in session:
        session.pop('user_id', None)
        session.pop('user_name', None)


def login_required(f):
    """
    Exige sesión iniciada y tienda habilitada.

    Una tienda deshabilitada por el super admin recibe 403 con el mensaje
    configurado en todas las rutas protegidas.
    """
    @wraps(f)
    def wrapper(*args, **kwargs):
        if g.get('user') is None:
            return jsonify({'ok': False, 'error': 'Debes iniciar sesión'}), 401
        message = get_container().user_service.disabled_message(g.user)
        if message:
            return jsonify({'ok': False, 'error': message, 'disabled': True}), 403
        return f(*args, **kwargs)
    return wrapper


def role_required(*roles):
    """Permite el acceso solo a los roles indicados (usar tras login_required)."""
    def deco(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            if g.user.role not in roles:
                return jsonify({'ok': False, 'error': 'Permiso denegado'}), 403
            return f(*args, **kwargs)
        return wrapper
    return deco


def verify_csrf(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if request.method in CSRF_METHODS:
            token = session.get('csrf_token')
            sent = (
                request.form.get('csrf_token') or
                request.headers.get('X-CSRF-Token') or
                request.headers.get('X-CSRFToken')
            )
            if not sent and request.is_json:
                sent = (request.get_json(silent=True) or {}).get('csrf_token')
            if not token or not sent or token != sent:
                return jsonify({'ok': False, 'error': 'CSRF token inválido'}), 403
        return f(*args, **kwargs)
    return wrapper


# ═══════════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def _payload() -> Dict[str, Any]:
    """Cuerpo de la petición (JSON o formulario) como dict."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def _result(result: Dict[str, Any], status: int = 200, error_status: int = 400):
    if result.get('ok'):
        return jsonify(result), status
    return jsonify(result), error_status


def _csv_download(report: Dict[str, str]) -> Response:
    return Response(
        report['content'],
        mimetype='text/csv',
        headers={'Content-Disposition': f"attachment; filename={report['filename']}"},
    )


def _session_payload() -> Dict[str, Any]:
    users = get_container().user_service
    user = g.get('user')
    payload = {
        'ok': True,
        'csrf_token': generate_csrf_token(),
        'user': None,
        'landing': None,
        'banner': None,
        'disabled': False,
        'disabled_message': None,
    }
    if user is not None:
        message = users.disabled_message(user)
        payload.update(
            user=user.to_public_dict(),
            landing=users.landing_view(user.role),
            banner=users.banner_for(user),
            disabled=bool(message),
            disabled_message=message,
        )
    return payload


def _start_session(user) -> None:
    token = generate_csrf_token()
    session.clear()
    session.permanent = True
    session['csrf_token'] = token
    session['user_id'] = user.id
    session['user_name'] = user.name
    g.user = user


# ═══════════════════════════════════════════════════════════════════════════════
# MANEJO DE ERRORES
# ═══════════════════════════════════════════════════════════════════════════════

@bp.errorhandler(ProtectedAccountError)
def handle_protected_account(e):
    return jsonify({'ok': False, 'error': str(e)}), 403


@bp.errorhandler(ExportError)
def handle_export_error(e):
    return jsonify({'ok': False, 'error': str(e)}), 400


@bp.errorhandler(ChatDisabledError)
def handle_chat_disabled(e):
    return jsonify({'ok': False, 'error': 'AI analyst is not available: missing API key'}), 503


@bp.errorhandler(ChatServiceError)
def handle_chat_error(e):
    return jsonify({'ok': False, 'error': str(e)}), 502


@bp.errorhandler(Exception)
def handle_unexpected(e):
    if isinstance(e, HTTPException):
        return e
    logger.exception("Error no controlado en %s %s", request.method, request.path)
    return jsonify({'ok': False, 'error': 'Error interno'}), 500


# ═══════════════════════════════════════════════════════════════════════════════
# AUTENTICACIÓN
# ═══════════════════════════════════════════════════════════════════════════════

@bp.route('/auth/session', methods=['GET'])
def auth_session():
    return jsonify(_session_payload())


@bp.route('/auth/signup', methods=['POST'])
@verify_csrf
def signup():
    data = _payload()
    result = get_container().user_service.signup(
        data.get('name'), data.get('password'), data.get('shop_name')
    )
    if not result['ok']:
        return jsonify(result), 400
    _start_session(result['user'])
    return jsonify(_session_payload()), 201


@bp.route('/auth/login', methods=['POST'])
@verify_csrf
def login():
    data = _payload()
    result = get_container().user_service.authenticate(data.get('name'), data.get('password'))
    if not result['ok']:
        logger.info("Login fallido para %r", data.get('name'))
        return jsonify(result), 401
    _start_session(result['user'])
    return jsonify(_session_payload())


@bp.route('/auth/logout', methods=['POST'])
@verify_csrf
def logout():
    if g.get('user') is not None:
        get_container().user_service.log_logout(g.user)
    session.clear()
    g.user = None
    return jsonify({'ok': True, 'csrf_token': generate_csrf_token()})


# ═══════════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN DE TIENDA (Admin)
# ═══════════════════════════════════════════════════════════════════════════════

@bp.route('/settings/profile', methods=['GET', 'PUT'])
@login_required
@role_required(ADMIN)
@verify_csrf
def settings_profile():
    if request.method == 'GET':
        return jsonify({'ok': True, 'user': g.user.to_public_dict()})
    return _result(get_container().user_service.update_profile(g.user, _payload()))


@bp.route('/settings/users', methods=['GET', 'POST'])
@login_required
@role_required(ADMIN)
@verify_csrf
def settings_users():
    users = get_container().user_service
    if request.method == 'GET':
        return jsonify({'ok': True, 'users': users.list_shop_users(g.user.shop_id)})
    data = _payload()
    return _result(
        users.add_shop_user(g.user, data.get('name'), data.get('password'), data.get('role')),
        status=201,
    )


@bp.route('/settings/users/<user_id>', methods=['DELETE'])
@login_required
@role_required(ADMIN)
@verify_csrf
def settings_user_delete(user_id):
    return _result(get_container().user_service.remove_shop_user(g.user, user_id), error_status=404)


# ═══════════════════════════════════════════════════════════════════════════════
# STOCK (Admin, Accountant)
# ═══════════════════════════════════════════════════════════════════════════════

@bp.route('/products', methods=['GET'])
@login_required
@role_required(ADMIN, ACCOUNTANT)
def products_list():
    products = get_container().inventory_service.list_products(
        g.user.shop_id, request.args.get('search', '')
    )
    return jsonify({'ok': True, 'products': products})


@bp.route('/products', methods=['POST'])
@login_required
@role_required(ADMIN, ACCOUNTANT)
@verify_csrf
def products_create():
    data = _payload()
    return _result(
        get_container().inventory_service.add_product(
            g.user, data.get('name'), data.get('price'), data.get('stock')
        ),
        status=201,
    )


@bp.route('/products/<product_id>', methods=['PUT'])
@login_required
@role_required(ADMIN, ACCOUNTANT)
@verify_csrf
def products_update(product_id):
    data = _payload()
    return _result(get_container().inventory_service.update_stock(g.user, product_id, data.get('stock')))


@bp.route('/products/<product_id>', methods=['DELETE'])
@login_required
@role_required(ADMIN, ACCOUNTANT)
@verify_csrf
def products_delete(product_id):
    return _result(get_container().inventory_service.delete_product(g.user, product_id), error_status=404)


def _csv_text() -> str:
    """Texto CSV desde un archivo subido ('file') o el campo 'csv'."""
    upload = request.files.get('file')
    if upload is not None:
        return upload.read().decode('utf-8-sig', errors='replace')
    return _payload().get('csv') or ''


@bp.route('/products/import/analyze', methods=['POST'])
@login_required
@role_required(ADMIN, ACCOUNTANT)
@verify_csrf
def products_import_analyze():
    return _result(get_container().inventory_service.analyze_import(g.user.shop_id, _csv_text()))


@bp.route('/products/import', methods=['POST'])
@login_required
@role_required(ADMIN, ACCOUNTANT)
@verify_csrf
def products_import():
    return _result(get_container().inventory_service.import_csv(g.user, _csv_text()))


@bp.route('/products/report.csv', methods=['GET'])
@login_required
@role_required(ADMIN, ACCOUNTANT)
def products_report():
    return _csv_download(get_container().report_service.stock_report(g.user))


# ═══════════════════════════════════════════════════════════════════════════════
# NUEVA VENTA - Carrito (Admin, Cashier)
# ═══════════════════════════════════════════════════════════════════════════════

@bp.route('/cart', methods=['GET'])
@login_required
@role_required(ADMIN, CASHIER)
def cart_get():
    return jsonify({'ok': True, 'cart': get_container().cart_service.get_cart(g.user)})


@bp.route('/cart', methods=['DELETE'])
@login_required
@role_required(ADMIN, CASHIER)
@verify_csrf
def cart_clear():
    cart = get_container().cart_service
    cart.clear()
    return jsonify({'ok': True, 'cart': cart.get_cart(g.user)})


@bp.route('/cart/items', methods=['POST'])
@login_required
@role_required(ADMIN, CASHIER)
@verify_csrf
def cart_add():
    data = _payload()
    return _result(get_container().cart_service.set_quantity(
        g.user, data.get('product_id'), data.get('quantity', 1)
    ))


@bp.route('/cart/items/<product_id>', methods=['PUT'])
@login_required
@role_required(ADMIN, CASHIER)
@verify_csrf
def cart_update(product_id):
    return _result(get_container().cart_service.update_quantity(
        g.user, product_id, _payload().get('quantity')
    ))


@bp.route('/cart/items/<product_id>', methods=['DELETE'])
@login_required
@role_required(ADMIN, CASHIER)
@verify_csrf
def cart_remove(product_id):
    return _result(get_container().cart_service.remove_item(g.user, product_id))


@bp.route('/cart/search', methods=['GET'])
@login_required
@role_required(ADMIN, CASHIER)
def cart_search():
    products = get_container().cart_service.search_products(g.user, request.args.get('q', ''))
    return jsonify({'ok': True, 'products': products})


# ═══════════════════════════════════════════════════════════════════════════════
# VENTAS
# ═══════════════════════════════════════════════════════════════════════════════

@bp.route('/sales', methods=['POST'])
@login_required
@role_required(ADMIN, CASHIER)
@verify_csrf
def sales_complete():
    container = get_container()
    result = container.sales_service.complete_sale(
        g.user, container.cart_service.items(), _payload().get('payment_method')
    )
    if not result['ok']:
        return jsonify(result), 400
    container.cart_service.clear()
    result['invoice_url'] = url_for('api.sale_invoice', sale_id=result['sale']['id'])
    return jsonify(result), 201


def _filtered_sales():
    return get_container().sales_service.list_sales(
        g.user.shop_id,
        request.args.get('period', 'all'),
        start=request.args.get('start'),
        end=request.args.get('end'),
    )


@bp.route('/sales', methods=['GET'])
@login_required
@role_required(*SHOP_ROLES)
def sales_list():
    return _result(_filtered_sales())


@bp.route('/sales/report.csv', methods=['GET'])
@login_required
@role_required(*SHOP_ROLES)
def sales_report():
    result = _filtered_sales()
    if not result['ok']:
        return jsonify(result), 400
    return _csv_download(get_container().report_service.sales_report(result['sales']))


@bp.route('/sales/<sale_id>', methods=['GET'])
@login_required
@role_required(*SHOP_ROLES)
def sale_detail(sale_id):
    sale = get_container().sales_service.get_sale(g.user.shop_id, sale_id)
    if not sale:
        return jsonify({'ok': False, 'error': 'Sale not found'}), 404
    return jsonify({'ok': True, 'sale': sale})


@bp.route('/sales/<sale_id>/invoice', methods=['GET'])
@login_required
@role_required(*SHOP_ROLES)
def sale_invoice(sale_id):
    context = get_container().sales_service.invoice_context(g.user, sale_id)
    if not context:
        return jsonify({'ok': False, 'error': 'Sale not found'}), 404
    return render_template('invoice.html', **context)


# ═══════════════════════════════════════════════════════════════════════════════
# PANEL, ANALISTA IA Y ACTIVIDAD (Admin)
# ═══════════════════════════════════════════════════════════════════════════════

@bp.route('/dashboard', methods=['GET'])
@login_required
@role_required(ADMIN)
def dashboard():
    days = request.args.get('days', 7, type=int)
    data = get_container().report_service.dashboard(g.user.shop_id, days=days)
    return jsonify(dict(data, ok=True))


@bp.route('/chat', methods=['POST'])
@login_required
@role_required(ADMIN)
@verify_csrf
def chat():
    data = _payload()
    message = clean_text(data.get('message'))
    if not message:
        return jsonify({'ok': False, 'error': 'Message is required'}), 400
    history = data.get('history') if isinstance(data.get('history'), list) else []

    container = get_container()
    sales = container.sales_repo.get_by_shop(g.user.shop_id)
    reply = container.chat_service.get_chat_response(message, history, sales)
    return jsonify({'ok': True, 'reply': reply})


@bp.route('/activities', methods=['GET'])
@login_required
@role_required(ADMIN)
def activities():
    entries = get_container().activity_service.list_for_shop(g.user.shop_id)
    return jsonify({'ok': True, 'activities': entries})


# ═══════════════════════════════════════════════════════════════════════════════
# SOPORTE (usuarios de tienda + super admin)
# ═══════════════════════════════════════════════════════════════════════════════

@bp.route('/tickets', methods=['GET', 'POST'])
@login_required
@verify_csrf
def tickets():
    tickets_service = get_container().ticket_service
    if request.method == 'GET':
        return jsonify({
            'ok': True,
            'tickets': tickets_service.list_tickets(g.user, request.args.get('status')),
        })
    data = _payload()
    return _result(
        tickets_service.create_ticket(g.user, data.get('subject'), data.get('message')),
        status=201,
    )


@bp.route('/tickets/<ticket_id>', methods=['GET'])
@login_required
def ticket_detail(ticket_id):
    ticket = get_container().ticket_service.get_ticket(g.user, ticket_id)
    if not ticket:
        return jsonify({'ok': False, 'error': 'Ticket not found'}), 404
    return jsonify({'ok': True, 'ticket': ticket})


@bp.route('/tickets/<ticket_id>/messages', methods=['POST'])
@login_required
@verify_csrf
def ticket_reply(ticket_id):
    tickets_service = get_container().ticket_service
    if not tickets_service.get_ticket(g.user, ticket_id):
        return jsonify({'ok': False, 'error': 'Ticket not found'}), 404
    return _result(tickets_service.add_message(g.user, ticket_id, _payload().get('message')))


@bp.route('/tickets/<ticket_id>/status', methods=['PUT'])
@login_required
@role_required(SUPER_ADMIN)
@verify_csrf
def ticket_status(ticket_id):
    return _result(get_container().ticket_service.update_status(
        g.user, ticket_id, _payload().get('status')
    ))


# ═══════════════════════════════════════════════════════════════════════════════
# CONSOLA DE PLATAFORMA (SuperAdmin)
# ═══════════════════════════════════════════════════════════════════════════════

@bp.route('/admin/overview', methods=['GET'])
@login_required
@role_required(SUPER_ADMIN)
def admin_overview():
    return jsonify(dict(get_container().admin_service.overview(), ok=True))


@bp.route('/admin/customers/<customer_id>', methods=['PUT'])
@login_required
@role_required(SUPER_ADMIN)
@verify_csrf
def admin_customer_update(customer_id):
    return _result(get_container().admin_service.update_customer(customer_id, _payload()))


@bp.route('/admin/customers/<customer_id>/users', methods=['GET', 'POST'])
@login_required
@role_required(SUPER_ADMIN)
@verify_csrf
def admin_customer_users(customer_id):
    admin = get_container().admin_service
    if request.method == 'GET':
        users = admin.list_customer_users(customer_id)
        if users is None:
            return jsonify({'ok': False, 'error': 'Customer not found'}), 404
        return jsonify({'ok': True, 'users': users})
    data = _payload()
    return _result(
        admin.add_user_to_customer(customer_id, data.get('name'), data.get('password'), data.get('role')),
        status=201,
    )


@bp.route('/admin/users/<user_id>', methods=['DELETE'])
@login_required
@role_required(SUPER_ADMIN)
@verify_csrf
def admin_user_delete(user_id):
    return _result(get_container().admin_service.remove_user(user_id), error_status=404)


@bp.route('/admin/activities', methods=['GET'])
@login_required
@role_required(SUPER_ADMIN)
def admin_activities():
    return jsonify({'ok': True, 'activities': get_container().admin_service.platform_activities()})
