# ==============================================================================
# REPOSITORIO DE VENTAS
# ==============================================================================
# Encapsula todo el acceso a sales.json
# Las ventas nuevas se insertan al inicio: la lista queda de más reciente
# a más antigua.
# ==============================================================================

import os
from typing import Any, Dict, List, Optional

from zenbill.repositories.base import ListRepository


class SalesRepository(ListRepository):
    """
    Repositorio de ventas.

    Formato de datos en sales.json:
    [
        {
            "id": "sale-...",
            "shop_id": "shop-...",
            "items": [{"product_id": "...", "name": "...", "price": 10, "quantity": 2}],
            "subtotal": 20.0, "sgst_amount": 1.8, "cgst_amount": 1.8, "total": 23.6,
            "date": "2025-01-01T10:00:00+00:00",
            "payment_method": "UPI",
            "cashier": "ana"
        }
    ]
    """

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'sales.json'))

    def get_by_shop(self, shop_id: str) -> List[Dict[str, Any]]:
        return self.find_all_by('shop_id', shop_id)

    def get_for_shop(self, shop_id: str, sale_id: str) -> Optional[Dict[str, Any]]:
        sale = self.get_by_id(sale_id)
        if sale and sale.get('shop_id') == shop_id:
            return sale
        return None

    def create_sale(self, sale_data: Dict[str, Any]) -> str:
        """
        Registra una venta al inicio de la colección.

        Returns:
            ID de la venta
        """
        self.prepend(sale_data)
        return sale_data.get('id', '')
