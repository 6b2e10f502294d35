# ==============================================================================
# REPOSITORIO DE USUARIOS
# ==============================================================================
# Encapsula todo el acceso a users.json
# Formato: lista de usuarios, cada uno con shop_id y el perfil de su tienda.
# ==============================================================================

import os
from typing import Any, Dict, List, Optional

from zenbill.repositories.base import ListRepository


class UserRepository(ListRepository):
    """
    Repositorio de usuarios de todas las tiendas.

    Formato de datos en users.json:
    [
        {"id": "user-...", "shop_id": "shop-...", "name": "ana",
         "password": "pbkdf2:...", "role": "Admin", "shop_name": "...", ...}
    ]
    """

    def __init__(self, base_path: str):
        """
        Args:
            base_path: Directorio de datos
        """
        super().__init__(os.path.join(base_path, 'users.json'))

    def get_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        """
        Busca un usuario por nombre, sin distinguir mayúsculas.

        Args:
            name: Nombre de login

        Returns:
            Datos del usuario o None
        """
        wanted = (name or '').strip().lower()
        if not wanted:
            return None
        for user in self.get_all():
            if (user.get('name') or '').lower() == wanted:
                return user
        return None

    def name_exists(self, name: str) -> bool:
        return self.get_by_name(name) is not None

    def get_by_shop(self, shop_id: str) -> List[Dict[str, Any]]:
        """Todos los usuarios de una tienda."""
        return self.find_all_by('shop_id', shop_id)

    def get_shop_admins(self, shop_id: str) -> List[Dict[str, Any]]:
        """Admins de la tienda (llevan las banderas de deshabilitación y banner)."""
        return [u for u in self.get_by_shop(shop_id) if u.get('role') == 'Admin']

    def get_admins(self) -> List[Dict[str, Any]]:
        """Usuarios Admin de todas las tiendas (los clientes de la plataforma)."""
        return self.find_all_by('role', 'Admin')

    def update_shop(self, shop_id: str, updates: Dict[str, Any]) -> int:
        """
        Replica cambios de perfil en todos los usuarios de una tienda.

        Returns:
            Cantidad de usuarios modificados
        """
        return self.update_where('shop_id', shop_id, updates)
