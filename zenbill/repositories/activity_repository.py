# ==============================================================================
# REPOSITORIO DE ACTIVIDAD
# ==============================================================================
# Encapsula el acceso a activities.json (registro de acciones por tienda).
# ==============================================================================

import os
from typing import Any, Dict, List

from zenbill.repositories.base import ListRepository


class ActivityRepository(ListRepository):
    """
    Registro de actividad, de más reciente a más antiguo.

    Formato: [{"id": "act-...", "shop_id": "...", "timestamp": "...", "description": "..."}]
    """

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'activities.json'))

    def get_by_shop(self, shop_id: str) -> List[Dict[str, Any]]:
        return self.find_all_by('shop_id', shop_id)

    def get_recent(self, limit: int = 10, exclude_shop: str = '') -> List[Dict[str, Any]]:
        """
        Últimas entradas de todas las tiendas.

        Args:
            limit: Máximo de entradas
            exclude_shop: Tienda a omitir (la tienda ficticia de la plataforma)
        """
        entries = [a for a in self.get_all() if a.get('shop_id') != exclude_shop]
        entries.sort(key=lambda a: a.get('timestamp', ''), reverse=True)
        return entries[:limit]
