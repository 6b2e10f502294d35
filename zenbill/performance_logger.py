# ==============================================================================
# SISTEMA DE PROFILING INTERNO
# ==============================================================================
# Mide rendimiento de rutas y funciones sin afectar la experiencia del usuario.
# Todo se emite por el logger 'zenbill.performance'; logging_setup decide
# si además va a un archivo.
#
# ACTIVAR/DESACTIVAR: variable de entorno ZENBILL_PROFILING (config.PROFILING)
# ==============================================================================

import logging
import threading
import time
from collections import defaultdict
from functools import wraps

logger = logging.getLogger('zenbill.performance')

# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN
# ═══════════════════════════════════════════════════════════════════════════

# Umbrales de tiempo (en milisegundos)
THRESHOLD_WARNING = 300
THRESHOLD_CRITICAL = 700

# Nombres legibles por endpoint de Flask
ROUTE_NAMES = {
    'api.login': 'Iniciar sesión',
    'api.logout': 'Cerrar sesión',
    'api.signup': 'Crear tienda',
    'api.dashboard': 'Ver panel principal',
    'api.products_list': 'Ver stock',
    'api.products_import': 'Importar stock CSV',
    'api.products_report': 'Exportar stock CSV',
    'api.cart_add': 'Agregar al carrito',
    'api.sales_complete': 'Confirmar venta',
    'api.sales_list': 'Ver historial de ventas',
    'api.sales_report': 'Exportar ventas CSV',
    'api.sale_invoice': 'Ver factura',
    'api.chat': 'Consultar analista IA',
    'api.admin_overview': 'Ver consola de plataforma',
}


# ═══════════════════════════════════════════════════════════════════════════
# ESTADÍSTICAS DE FUNCIONES (en memoria)
# ═══════════════════════════════════════════════════════════════════════════

# Estructura: {nombre_funcion: {calls: int, total_time: float, max_time: float}}
_function_stats = defaultdict(lambda: {'calls': 0, 'total_time': 0.0, 'max_time': 0.0})
_stats_lock = threading.Lock()


def _get_route_name(method, path, endpoint=None):
    """Nombre legible de la ruta o 'MÉTODO /ruta' si no está mapeada."""
    if endpoint and endpoint in ROUTE_NAMES:
        return ROUTE_NAMES[endpoint]
    return f"{method} {path}"


# ═══════════════════════════════════════════════════════════════════════════
# PROFILING DE RUTAS (hooks Flask)
# ═══════════════════════════════════════════════════════════════════════════

def log_route_performance(method, path, endpoint, time_ms, user=None):
    """
    Registra el tiempo de una petición y avisa si supera los umbrales.

    Args:
        method: GET, POST, etc.
        path: Ruta solicitada
        endpoint: Endpoint de Flask (para el nombre legible)
        time_ms: Tiempo en milisegundos
        user: Usuario que hizo la petición (opcional)
    """
    action = _get_route_name(method, path, endpoint)
    user_str = user or 'anónimo'

    if time_ms >= THRESHOLD_CRITICAL:
        logger.error("Ruta MUY LENTA: %s | %s %s | usuario=%s | %.0f ms (umbral %d ms)",
                     action, method, path, user_str, time_ms, THRESHOLD_CRITICAL)
    elif time_ms >= THRESHOLD_WARNING:
        logger.warning("Ruta LENTA: %s | %s %s | usuario=%s | %.0f ms (umbral %d ms)",
                       action, method, path, user_str, time_ms, THRESHOLD_WARNING)
    else:
        logger.debug("%s | %s %s | usuario=%s | %.0f ms", action, method, path, user_str, time_ms)


def init_profiling(app):
    """
    Registra hooks before_request/after_request que miden cada petición.

    No hace nada si app.config['PROFILING'] es falso.
    """
    if not app.config.get('PROFILING', False):
        return

    @app.before_request
    def _start_timer():
        from flask import g
        g.start_time = time.perf_counter()

    @app.after_request
    def _log_request(response):
        from flask import g, request, session

        if not hasattr(g, 'start_time'):
            return response

        elapsed = (time.perf_counter() - g.start_time) * 1000
        log_route_performance(
            request.method,
            request.path,
            request.endpoint,
            elapsed,
            session.get('user_name'),
        )
        return response


# ═══════════════════════════════════════════════════════════════════════════
# DECORADOR PARA FUNCIONES CLAVE
# ═══════════════════════════════════════════════════════════════════════════

def profile_function(func=None, name=None):
    """
    Decorador para medir rendimiento de funciones críticas.

    Uso:
        @profile_function
        def import_csv(...):
            ...

        @profile_function(name="Completar venta")
        def complete_sale(...):
            ...

    Registra cantidad de llamadas, tiempo total y tiempo máximo; las
    llamadas que superan THRESHOLD_WARNING se loguean al momento.
    """
    def decorator(fn):
        func_name = name or fn.__qualname__

        @wraps(fn)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000

                with _stats_lock:
                    stats = _function_stats[func_name]
                    stats['calls'] += 1
                    stats['total_time'] += elapsed_ms
                    if elapsed_ms > stats['max_time']:
                        stats['max_time'] = elapsed_ms

                if elapsed_ms >= THRESHOLD_CRITICAL:
                    logger.error("Función CRÍTICA: %s | %.0f ms", func_name, elapsed_ms)
                elif elapsed_ms >= THRESHOLD_WARNING:
                    logger.warning("Función LENTA: %s | %.0f ms", func_name, elapsed_ms)

        return wrapper

    # Permitir uso sin paréntesis: @profile_function
    if func is not None:
        return decorator(func)
    return decorator


# ═══════════════════════════════════════════════════════════════════════════
# REPORTE DE ESTADÍSTICAS
# ═══════════════════════════════════════════════════════════════════════════

def get_function_stats():
    """
    Obtiene estadísticas de todas las funciones perfiladas.

    Returns:
        dict: {nombre: {calls, avg_time, max_time}}
    """
    with _stats_lock:
        result = {}
        for func_name, stats in _function_stats.items():
            calls = stats['calls']
            avg = stats['total_time'] / calls if calls > 0 else 0
            result[func_name] = {
                'calls': calls,
                'avg_time': round(avg, 2),
                'max_time': round(stats['max_time'], 2)
            }
        return result


def reset_stats():
    """Reinicia todas las estadísticas (útil para testing)"""
    with _stats_lock:
        _function_stats.clear()


__all__ = [
    'THRESHOLD_WARNING',
    'THRESHOLD_CRITICAL',
    'init_profiling',
    'profile_function',
    'get_function_stats',
    'reset_stats',
]
