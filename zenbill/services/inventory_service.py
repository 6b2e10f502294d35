# ==============================================================================
# SERVICIO DE INVENTARIO
# ==============================================================================
# Productos de la tienda: alta, ajuste de stock, baja e importación CSV.
# Todas las operaciones quedan acotadas a la tienda del usuario.
# ==============================================================================

import logging
from typing import Any, Dict, List, Optional

from zenbill.models import Product, User, clean_text, format_quantity, new_id
from zenbill.performance_logger import profile_function
from zenbill.repositories.interfaces import IProductRepository
from zenbill.services.activity_service import ActivityService
from zenbill.services.csv_service import CsvFormatError, analyze_stock_csv

logger = logging.getLogger(__name__)


def parse_non_negative(value: Any) -> Optional[float]:
    """Número >= 0 o None si el valor no es válido."""
    if value is None or isinstance(value, bool) or value == '':
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number < 0 or number == float('inf'):
        return None
    return number


class InventoryService:
    """
    Servicio para gestión de productos.

    Responsabilidades:
    - Listado y búsqueda por nombre
    - Alta, ajuste de stock y baja
    - Análisis e importación de stock desde CSV
    """

    def __init__(self, product_repo: IProductRepository, activity_service: ActivityService):
        self.product_repo = product_repo
        self.activity_service = activity_service

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def list_products(self, shop_id: str, search: str = '') -> List[Dict[str, Any]]:
        """
        Productos de la tienda, opcionalmente filtrados por nombre.

        Args:
            shop_id: Tienda
            search: Subcadena a buscar (sin distinguir mayúsculas)

        Returns:
            Productos con la clave extra 'stock_status'
        """
        term = (search or '').strip().lower()
        result = []
        for data in self.product_repo.get_by_shop(shop_id):
            if term and term not in (data.get('name') or '').lower():
                continue
            product = Product.from_dict(data)
            result.append(dict(product.to_dict(), stock_status=product.stock_status))
        return result

    def get_product(self, shop_id: str, product_id: str) -> Optional[Product]:
        data = self.product_repo.get_for_shop(shop_id, product_id)
        return Product.from_dict(data) if data else None

    # =========================================================================
    # MODIFICACIONES
    # =========================================================================

    def add_product(self, actor: User, name: str, price: Any, stock: Any) -> Dict[str, Any]:
        """
        Agrega un producto a la tienda.

        Returns:
            {'ok': True, 'product': dict} o {'ok': False, 'error': str}
        """
        name = clean_text(name)
        if not name:
            return {'ok': False, 'error': 'Product name is required'}
        price_value = parse_non_negative(price)
        stock_value = parse_non_negative(stock)
        if price_value is None or stock_value is None:
            return {'ok': False, 'error': 'Price and stock must be non-negative numbers'}

        product = Product(
            id=new_id('prod'),
            shop_id=actor.shop_id,
            name=name,
            price=round(price_value, 2),
            stock=stock_value,
        )
        self.product_repo.append(product.to_dict())
        self.activity_service.log(
            actor.shop_id,
            f"Added new product: {name} (Stock: {format_quantity(stock_value)}, "
            f"Price: ₹{format_quantity(product.price)})."
        )
        return {'ok': True, 'product': product.to_dict()}

    def update_stock(self, actor: User, product_id: str, stock: Any) -> Dict[str, Any]:
        stock_value = parse_non_negative(stock)
        if stock_value is None:
            return {'ok': False, 'error': 'Stock must be a non-negative number'}

        with self.product_repo.locked():
            if not self.product_repo.get_for_shop(actor.shop_id, product_id):
                return {'ok': False, 'error': 'Product not found'}
            updated = self.product_repo.update_by_id(product_id, {'stock': stock_value})

        self.activity_service.log(
            actor.shop_id,
            f"Updated stock for {updated.get('name')} to {format_quantity(stock_value)}."
        )
        return {'ok': True, 'product': updated}

    def delete_product(self, actor: User, product_id: str) -> Dict[str, Any]:
        with self.product_repo.locked():
            product = self.product_repo.get_for_shop(actor.shop_id, product_id)
            if not product:
                return {'ok': False, 'error': 'Product not found'}
            self.product_repo.delete_by_id(product_id)

        self.activity_service.log(actor.shop_id, f"Deleted product: {product.get('name')}.")
        return {'ok': True}

    # =========================================================================
    # IMPORTACIÓN CSV
    # =========================================================================

    def analyze_import(self, shop_id: str, text: str) -> Dict[str, Any]:
        """
        Plan de importación sin aplicar cambios.

        Returns:
            {'ok': True, 'to_create': [...], 'to_update': [...], 'skipped': [...]}
            o {'ok': False, 'error': str}
        """
        try:
            plan = analyze_stock_csv(text, self.product_repo.get_by_shop(shop_id))
        except CsvFormatError as e:
            return {'ok': False, 'error': str(e)}
        return dict(plan, ok=True)

    @profile_function
    def import_csv(self, actor: User, text: str) -> Dict[str, Any]:
        """
        Vuelve a analizar el CSV y aplica el plan en una sola escritura.

        El análisis se repite dentro del lock para que el plan corresponda
        al inventario que se está modificando.
        """
        with self.product_repo.locked():
            products = self.product_repo.get_all()
            shop_products = [p for p in products if p.get('shop_id') == actor.shop_id]
            try:
                plan = analyze_stock_csv(text, shop_products)
            except CsvFormatError as e:
                return {'ok': False, 'error': str(e)}

            new_stock = {u['id']: u['stock'] for u in plan['to_update']}
            for product in products:
                if product.get('id') in new_stock:
                    product['stock'] = new_stock[product['id']]

            for item in plan['to_create']:
                products.append(Product(
                    id=new_id('prod'),
                    shop_id=actor.shop_id,
                    name=item['name'],
                    price=round(item['price'], 2),
                    stock=item['stock'],
                ).to_dict())

            self.product_repo.save_all(products)

        created, updated = len(plan['to_create']), len(plan['to_update'])
        self.activity_service.log(
            actor.shop_id,
            f"Imported from CSV: {created} products created, {updated} products updated."
        )
        return {'ok': True, 'created': created, 'updated': updated}
