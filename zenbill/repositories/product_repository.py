# ==============================================================================
# REPOSITORIO DE PRODUCTOS
# ==============================================================================
# Encapsula todo el acceso a products.json
# ==============================================================================

import os
from typing import Any, Dict, List, Optional

from zenbill.repositories.base import ListRepository


class ProductRepository(ListRepository):
    """
    Repositorio del inventario de todas las tiendas.

    Formato de datos en products.json:
    [
        {"id": "prod-...", "shop_id": "shop-...", "name": "Arroz",
         "price": 55.0, "stock": 12.5}
    ]
    """

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'products.json'))

    def get_by_shop(self, shop_id: str) -> List[Dict[str, Any]]:
        return self.find_all_by('shop_id', shop_id)

    def get_for_shop(self, shop_id: str, product_id: str) -> Optional[Dict[str, Any]]:
        """
        Producto por ID, solo si pertenece a la tienda.

        Args:
            shop_id: Tienda del usuario actual
            product_id: ID del producto

        Returns:
            Datos del producto o None
        """
        product = self.get_by_id(product_id)
        if product and product.get('shop_id') == shop_id:
            return product
        return None

    def adjust_stock(self, deltas: Dict[str, float]) -> None:
        """
        Resta cantidades vendidas al stock en una sola escritura.

        Args:
            deltas: {product_id: cantidad a descontar}
        """
        with self._file_lock:
            data = self.get_all()
            for product in data:
                qty = deltas.get(product.get('id'))
                if qty:
                    product['stock'] = round(float(product.get('stock') or 0) - qty, 3)
            self._write_raw(data)
