# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# Toda regla de negocio vive aquí. Las rutas de main.py solo orquestan
# request → service → response.
#
# ESTRUCTURA:
# ├── activity_service.py  → Registro de actividad por tienda
# ├── user_service.py      → Signup, login, perfil de tienda, usuarios
# ├── inventory_service.py → Productos e importación CSV
# ├── csv_service.py       → Análisis y generación de CSV
# ├── cart_service.py      → Carrito en sesión
# ├── sales_service.py     → Completar venta, historial, factura
# ├── report_service.py    → Panel principal y reportes CSV
# ├── ticket_service.py    → Tickets de soporte
# ├── admin_service.py     → Consola del super admin
# └── chat_service.py      → Analista IA (Gemini)
# ==============================================================================

from zenbill.services.activity_service import ActivityService
from zenbill.services.user_service import UserService, ProtectedAccountError
from zenbill.services.inventory_service import InventoryService
from zenbill.services.csv_service import CsvFormatError, ExportError, analyze_stock_csv, to_csv
from zenbill.services.cart_service import CartService
from zenbill.services.sales_service import SalesService, filter_sales
from zenbill.services.report_service import ReportService
from zenbill.services.ticket_service import TicketService
from zenbill.services.admin_service import AdminService
from zenbill.services.chat_service import ChatService, ChatServiceError, ChatDisabledError

__all__ = [
    'ActivityService',
    'UserService',
    'ProtectedAccountError',
    'InventoryService',
    'CsvFormatError',
    'ExportError',
    'analyze_stock_csv',
    'to_csv',
    'CartService',
    'SalesService',
    'filter_sales',
    'ReportService',
    'TicketService',
    'AdminService',
    'ChatService',
    'ChatServiceError',
    'ChatDisabledError',
]
