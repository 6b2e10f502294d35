# ==============================================================================
# CONFIGURACIÓN
# ==============================================================================
# Valores leídos de variables de entorno con defaults de desarrollo.
# En producción DEBE definirse al menos ZENBILL_SECRET_KEY:
#   export ZENBILL_SECRET_KEY="tu_clave_secreta_muy_larga_y_aleatoria"
# ==============================================================================

import os
from typing import Any, Dict, Optional

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

DEFAULT_SECRET = 'zenbill_dev_secret_key_change_in_production'


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


class Config:
    """
    Configuración de la aplicación.

    Cada atributo en MAYÚSCULAS termina en app.config; create_app() acepta
    un diccionario de overrides con las mismas claves.
    """

    def __init__(self):
        self.SECRET_KEY = os.environ.get('ZENBILL_SECRET_KEY') or DEFAULT_SECRET
        self.DATA_DIR = os.environ.get('ZENBILL_DATA_DIR') or os.path.join(BASE_DIR, 'data')
        self.LOG_DIR = os.environ.get('ZENBILL_LOG_DIR') or os.path.join(BASE_DIR, 'logs')
        self.LOG_LEVEL = os.environ.get('ZENBILL_LOG_LEVEL', 'INFO').upper()
        self.LOG_TO_FILE = _env_bool('ZENBILL_LOG_TO_FILE', False)

        # Personal de la plataforma (no se guarda en users.json)
        self.SUPERADMIN_USER = os.environ.get('ZENBILL_SUPERADMIN_USER', 'admin')
        self.SUPERADMIN_PASSWORD = os.environ.get('ZENBILL_SUPERADMIN_PASSWORD', 'password')

        # Analista IA
        self.GEMINI_API_KEY = os.environ.get('GEMINI_API_KEY', '')
        self.GEMINI_MODEL = os.environ.get('ZENBILL_GEMINI_MODEL', 'gemini-2.5-flash')
        self.CHAT_TIMEOUT = _env_float('ZENBILL_CHAT_TIMEOUT', 30.0)

        # Zona horaria para los filtros de fecha del historial
        self.TIMEZONE = os.environ.get('ZENBILL_TIMEZONE', 'UTC')

        self.PROFILING = _env_bool('ZENBILL_PROFILING', False)

        # Cookies de sesión
        self.SESSION_COOKIE_HTTPONLY = True
        self.SESSION_COOKIE_SECURE = _env_bool('ZENBILL_SECURE_COOKIES', False)
        self.SESSION_COOKIE_SAMESITE = 'Lax'
        self.PERMANENT_SESSION_LIFETIME = 86400  # 24 horas
        self.MAX_CONTENT_LENGTH = 5 * 1024 * 1024  # 5 MB (logos e importación CSV)

    def as_dict(self, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Atributos de configuración con los overrides aplicados."""
        values = {key: value for key, value in vars(self).items() if key.isupper()}
        values.update(overrides or {})
        return values
