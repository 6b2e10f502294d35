# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Toda la persistencia (archivos JSON en el directorio de datos) pasa por
# esta capa.
#
# ESTRUCTURA:
# ├── interfaces.py           → Protocolos que consumen los servicios
# ├── base.py                 → BaseRepository / ListRepository
# ├── user_repository.py      → users.json
# ├── product_repository.py   → products.json
# ├── sales_repository.py     → sales.json
# ├── activity_repository.py  → activities.json
# └── ticket_repository.py    → tickets.json
# ==============================================================================

from zenbill.repositories.interfaces import (
    IListRepository,
    IUserRepository,
    IProductRepository,
    ISalesRepository,
    IActivityRepository,
    ITicketRepository,
)

from zenbill.repositories.base import BaseRepository, ListRepository
from zenbill.repositories.user_repository import UserRepository
from zenbill.repositories.product_repository import ProductRepository
from zenbill.repositories.sales_repository import SalesRepository
from zenbill.repositories.activity_repository import ActivityRepository
from zenbill.repositories.ticket_repository import TicketRepository

__all__ = [
    # Interfaces
    'IListRepository',
    'IUserRepository',
    'IProductRepository',
    'ISalesRepository',
    'IActivityRepository',
    'ITicketRepository',

    # Clases base
    'BaseRepository',
    'ListRepository',

    # Implementaciones JSON
    'UserRepository',
    'ProductRepository',
    'SalesRepository',
    'ActivityRepository',
    'TicketRepository',
]
