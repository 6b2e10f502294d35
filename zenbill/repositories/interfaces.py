# ==============================================================================
# INTERFACES DE REPOSITORIOS
# ==============================================================================
# Contratos que usan los servicios. Los servicios dependen de estos
# protocolos y no de los archivos JSON, así los tests pueden pasar dobles
# en memoria y otra persistencia solo requiere nuevas implementaciones.
# ==============================================================================

from typing import Any, ContextManager, Dict, List, Optional, Protocol, runtime_checkable


@runtime_checkable
class IListRepository(Protocol):
    """Operaciones comunes de una colección de registros con 'id'."""

    def locked(self) -> ContextManager[None]:
        """Bloque de lectura-modificación-escritura sin intercalarse."""
        ...

    def get_all(self) -> List[Dict[str, Any]]:
        ...

    def save_all(self, data: List[Dict[str, Any]]) -> None:
        ...

    def get_by_id(self, record_id: str) -> Optional[Dict[str, Any]]:
        ...

    def append(self, record: Dict[str, Any]) -> None:
        ...

    def prepend(self, record: Dict[str, Any]) -> None:
        ...

    def update_by_id(self, record_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        ...

    def delete_by_id(self, record_id: str) -> Optional[Dict[str, Any]]:
        ...


@runtime_checkable
class IUserRepository(IListRepository, Protocol):
    """Usuarios de todas las tiendas."""

    def get_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        ...

    def name_exists(self, name: str) -> bool:
        ...

    def get_by_shop(self, shop_id: str) -> List[Dict[str, Any]]:
        ...

    def get_shop_admins(self, shop_id: str) -> List[Dict[str, Any]]:
        ...

    def get_admins(self) -> List[Dict[str, Any]]:
        ...

    def update_shop(self, shop_id: str, updates: Dict[str, Any]) -> int:
        ...


@runtime_checkable
class IProductRepository(IListRepository, Protocol):
    """Inventario de productos."""

    def get_by_shop(self, shop_id: str) -> List[Dict[str, Any]]:
        ...

    def get_for_shop(self, shop_id: str, product_id: str) -> Optional[Dict[str, Any]]:
        ...

    def adjust_stock(self, deltas: Dict[str, float]) -> None:
        ...


@runtime_checkable
class ISalesRepository(IListRepository, Protocol):
    """Ventas completadas."""

    def get_by_shop(self, shop_id: str) -> List[Dict[str, Any]]:
        ...

    def get_for_shop(self, shop_id: str, sale_id: str) -> Optional[Dict[str, Any]]:
        ...

    def create_sale(self, sale_data: Dict[str, Any]) -> str:
        ...


@runtime_checkable
class IActivityRepository(IListRepository, Protocol):
    """Registro de actividad."""

    def get_by_shop(self, shop_id: str) -> List[Dict[str, Any]]:
        ...

    def get_recent(self, limit: int = 10, exclude_shop: str = '') -> List[Dict[str, Any]]:
        ...


@runtime_checkable
class ITicketRepository(IListRepository, Protocol):
    """Tickets de soporte."""

    def get_by_shop(self, shop_id: str) -> List[Dict[str, Any]]:
        ...

    def count_open(self) -> int:
        ...
