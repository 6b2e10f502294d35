# ==============================================================================
# SERVICIO DE CARRITO
# ==============================================================================
# Centraliza la lógica del carrito de la venta en curso.
# El carrito se almacena en la sesión de Flask (session['cart']) como lista
# de líneas {product_id, name, price, quantity}.
# ==============================================================================

from typing import Any, Dict, List, Optional

from flask import session

from zenbill.models import User, compute_tax_totals, format_quantity
from zenbill.services.inventory_service import InventoryService


def _parse_quantity(value: Any) -> Optional[float]:
    """Cantidad numérica (se permiten fracciones) o None si no es número."""
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number in (float('inf'), float('-inf')):
        return None
    return number


class CartService:
    """
    Servicio para gestión del carrito.

    Responsabilidades:
    - Fijar o ajustar la cantidad de una línea contra el stock disponible
    - Eliminar líneas y vaciar el carrito
    - Calcular el resumen con SGST/CGST de la tienda
    - Buscar productos vendibles
    """

    SESSION_KEY = 'cart'

    def __init__(self, inventory_service: InventoryService):
        """
        Args:
            inventory_service: Servicio de inventario (para validar stock)
        """
        self.inventory_service = inventory_service

    def _get_cart(self) -> List[Dict[str, Any]]:
        return list(session.get(self.SESSION_KEY, []))

    def _save_cart(self, cart: List[Dict[str, Any]]) -> None:
        session[self.SESSION_KEY] = cart
        session.modified = True

    def items(self) -> List[Dict[str, Any]]:
        return self._get_cart()

    def get_cart(self, actor: User) -> Dict[str, Any]:
        """
        Carrito con resumen de impuestos usando las tasas de la tienda.

        Returns:
            Dict con items, item_count, subtotal, sgst_amount, cgst_amount, total
        """
        cart = self._get_cart()
        totals = compute_tax_totals(
            sum(item['price'] * item['quantity'] for item in cart),
            actor.sgst_percentage,
            actor.cgst_percentage,
        )
        return dict(
            totals,
            items=cart,
            item_count=len(cart),
            sgst_percentage=actor.sgst_percentage,
            cgst_percentage=actor.cgst_percentage,
        )

    # =========================================================================
    # MODIFICACIONES
    # =========================================================================

    def set_quantity(self, actor: User, product_id: str, quantity: Any) -> Dict[str, Any]:
        """
        Agrega el producto o fija la cantidad de su línea.

        Una cantidad <= 0 (o no numérica) elimina la línea. Una cantidad
        mayor al stock se rechaza.

        Returns:
            {'ok': True, 'cart': dict} o {'ok': False, 'error': str}
        """
        qty = _parse_quantity(quantity)
        if qty is None or qty <= 0:
            return self.remove_item(actor, product_id)

        product = self.inventory_service.get_product(actor.shop_id, product_id)
        if not product:
            return {'ok': False, 'error': 'Product not found'}
        if qty > product.stock:
            return {
                'ok': False,
                'error': f'Cannot add more than available stock ({format_quantity(product.stock)})'
            }

        cart = self._get_cart()
        for item in cart:
            if item['product_id'] == product_id:
                item['quantity'] = qty
                break
        else:
            cart.append({
                'product_id': product.id,
                'name': product.name,
                'price': product.price,
                'quantity': qty,
            })
        self._save_cart(cart)
        return {'ok': True, 'cart': self.get_cart(actor)}

    def update_quantity(self, actor: User, product_id: str, quantity: Any) -> Dict[str, Any]:
        """
        Ajusta la cantidad de una línea existente, limitándola al stock.

        Returns:
            {'ok': True, 'cart': dict} o {'ok': False, 'error': str}
        """
        cart = self._get_cart()
        line = next((item for item in cart if item['product_id'] == product_id), None)
        if line is None:
            return {'ok': False, 'error': 'Item is not in the cart'}

        qty = _parse_quantity(quantity) or 0
        product = self.inventory_service.get_product(actor.shop_id, product_id)
        if product and qty > product.stock:
            qty = product.stock
        if qty <= 0:
            return self.remove_item(actor, product_id)

        line['quantity'] = qty
        self._save_cart(cart)
        return {'ok': True, 'cart': self.get_cart(actor)}

    def remove_item(self, actor: User, product_id: str) -> Dict[str, Any]:
        cart = [item for item in self._get_cart() if item['product_id'] != product_id]
        self._save_cart(cart)
        return {'ok': True, 'cart': self.get_cart(actor)}

    def clear(self) -> None:
        """Vacía el carrito."""
        self._save_cart([])

    # =========================================================================
    # BÚSQUEDA
    # =========================================================================

    def search_products(self, actor: User, term: str) -> List[Dict[str, Any]]:
        """
        Productos con stock cuyo nombre contiene el término, ordenados por nombre.

        Un término vacío no devuelve resultados.
        """
        if not (term or '').strip():
            return []
        found = [
            p for p in self.inventory_service.list_products(actor.shop_id, term)
            if p['stock'] > 0
        ]
        found.sort(key=lambda p: p['name'].lower())
        return found
