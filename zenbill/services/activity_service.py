# ==============================================================================
# SERVICIO DE ACTIVIDAD
# ==============================================================================
# Registro de acciones visibles para el administrador de cada tienda y,
# bajo la tienda ficticia HQ, para el personal de la plataforma.
# Los textos se guardan ya redactados para mostrarse tal cual.
# ==============================================================================

import logging
from typing import Any, Dict, List, Optional

from zenbill.models import Activity, HQ_SHOP_ID, new_id
from zenbill.repositories.interfaces import IActivityRepository

logger = logging.getLogger(__name__)


class ActivityService:
    """
    Servicio para registrar y consultar actividad.

    Las entradas se insertan al inicio: la colección queda de más reciente
    a más antigua sin necesidad de ordenar al leer.
    """

    def __init__(self, activity_repo: IActivityRepository):
        self.activity_repo = activity_repo

    # =========================================================================
    # REGISTRO
    # =========================================================================

    def log(self, shop_id: str, description: str) -> Dict[str, Any]:
        """
        Registra una acción en el historial de la tienda.

        Args:
            shop_id: Tienda donde ocurrió la acción
            description: Texto final que verá el usuario

        Returns:
            La entrada guardada
        """
        entry = Activity(id=new_id('act'), shop_id=shop_id, description=description)
        self.activity_repo.prepend(entry.to_dict())
        logger.info("[%s] %s", shop_id, description)
        return entry.to_dict()

    def log_platform(self, description: str) -> Dict[str, Any]:
        """Registra una acción del personal de la plataforma."""
        return self.log(HQ_SHOP_ID, description)

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def list_for_shop(self, shop_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        entries = self.activity_repo.get_by_shop(shop_id)
        entries.sort(key=lambda a: a.get('timestamp', ''), reverse=True)
        return entries[:limit] if limit else entries

    def list_platform(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return self.list_for_shop(HQ_SHOP_ID, limit)

    def recent_customer_activity(self, shop_names: Dict[str, str], limit: int = 5) -> List[Dict[str, Any]]:
        """
        Últimas acciones de las tiendas cliente, con el nombre de la tienda.

        Args:
            shop_names: {shop_id: nombre de tienda}
            limit: Máximo de entradas

        Returns:
            Entradas con la clave extra 'shop_name' ('Unknown Shop' si no se conoce)
        """
        entries = self.activity_repo.get_recent(limit=limit, exclude_shop=HQ_SHOP_ID)
        return [
            dict(entry, shop_name=shop_names.get(entry.get('shop_id'), 'Unknown Shop'))
            for entry in entries
        ]
