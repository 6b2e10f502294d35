# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Punto único donde se arman repositorios y servicios. Facilita:
#   - Inyección de dependencias
#   - Testing (cada app de prueba tiene su propio directorio de datos)
#   - Cambiar la persistencia sin tocar los servicios
#
# Cada app Flask tiene un contenedor en app.extensions['zenbill'];
# get_container() lo obtiene dentro de una petición.
# ==============================================================================

from typing import Any, Dict
from zoneinfo import ZoneInfo

from flask import current_app

# ═══════════════════════════════════════════════════════════════════════════════
# REPOSITORIOS - Capa de persistencia (archivos JSON)
# ═══════════════════════════════════════════════════════════════════════════════
from zenbill.repositories import (
    ActivityRepository,
    ProductRepository,
    SalesRepository,
    TicketRepository,
    UserRepository,
)

# ═══════════════════════════════════════════════════════════════════════════════
# SERVICIOS - Capa de lógica de negocio
# ═══════════════════════════════════════════════════════════════════════════════
from zenbill.services import (
    ActivityService,
    AdminService,
    CartService,
    ChatService,
    InventoryService,
    ReportService,
    SalesService,
    TicketService,
    UserService,
)


class AppContainer:
    """
    Contenedor de dependencias de la aplicación.

    Crea cada repositorio y servicio la primera vez que se pide
    (lazy loading) y reutiliza la misma instancia después.

    Uso:
        container = AppContainer(app.config)
        sales_service = container.sales_service
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Args:
            config: Configuración (app.config o un dict con las mismas claves)
        """
        self._config = config
        self._data_dir = config['DATA_DIR']
        self._instances: Dict[str, Any] = {}

    def _get(self, name: str, factory):
        if name not in self._instances:
            self._instances[name] = factory()
        return self._instances[name]

    @property
    def timezone(self) -> ZoneInfo:
        return ZoneInfo(self._config.get('TIMEZONE') or 'UTC')

    # =========================================================================
    # REPOSITORIOS
    # =========================================================================

    @property
    def user_repo(self) -> UserRepository:
        return self._get('user_repo', lambda: UserRepository(self._data_dir))

    @property
    def product_repo(self) -> ProductRepository:
        return self._get('product_repo', lambda: ProductRepository(self._data_dir))

    @property
    def sales_repo(self) -> SalesRepository:
        return self._get('sales_repo', lambda: SalesRepository(self._data_dir))

    @property
    def activity_repo(self) -> ActivityRepository:
        return self._get('activity_repo', lambda: ActivityRepository(self._data_dir))

    @property
    def ticket_repo(self) -> TicketRepository:
        return self._get('ticket_repo', lambda: TicketRepository(self._data_dir))

    # =========================================================================
    # SERVICIOS
    # =========================================================================

    @property
    def activity_service(self) -> ActivityService:
        return self._get('activity_service', lambda: ActivityService(self.activity_repo))

    @property
    def user_service(self) -> UserService:
        """Servicio de usuarios (con las credenciales del super admin)."""
        return self._get('user_service', lambda: UserService(
            self.user_repo,
            self.activity_service,
            superadmin_user=self._config.get('SUPERADMIN_USER', 'admin'),
            superadmin_password=self._config.get('SUPERADMIN_PASSWORD', 'password'),
        ))

    @property
    def inventory_service(self) -> InventoryService:
        return self._get('inventory_service', lambda: InventoryService(
            self.product_repo,
            self.activity_service,
        ))

    @property
    def cart_service(self) -> CartService:
        return self._get('cart_service', lambda: CartService(self.inventory_service))

    @property
    def sales_service(self) -> SalesService:
        return self._get('sales_service', lambda: SalesService(
            self.sales_repo,
            self.product_repo,
            self.activity_service,
            tz=self.timezone,
        ))

    @property
    def report_service(self) -> ReportService:
        return self._get('report_service', lambda: ReportService(
            self.sales_repo,
            self.product_repo,
            self.activity_service,
        ))

    @property
    def ticket_service(self) -> TicketService:
        return self._get('ticket_service', lambda: TicketService(
            self.ticket_repo,
            self.activity_service,
        ))

    @property
    def admin_service(self) -> AdminService:
        return self._get('admin_service', lambda: AdminService(
            self.user_repo,
            self.ticket_repo,
            self.activity_service,
            self.user_service,
        ))

    @property
    def chat_service(self) -> ChatService:
        """Analista IA (deshabilitado si no hay GEMINI_API_KEY)."""
        return self._get('chat_service', lambda: ChatService(
            self._config.get('GEMINI_API_KEY'),
            model=self._config.get('GEMINI_MODEL', 'gemini-2.5-flash'),
            timeout=float(self._config.get('CHAT_TIMEOUT', 30.0)),
        ))

    # =========================================================================
    # UTILIDADES
    # =========================================================================

    def reset(self) -> None:
        """
        Descarta todas las instancias.
        La próxima petición vuelve a crearlas con la configuración actual.
        """
        self._instances.clear()


def get_container(app=None) -> AppContainer:
    """Contenedor de la app actual (o de la app indicada)."""
    return (app or current_app).extensions['zenbill']
