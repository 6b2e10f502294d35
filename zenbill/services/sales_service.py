# ==============================================================================
# SERVICIO DE VENTAS
# ==============================================================================
# Centraliza la lógica de negocio de ventas:
# - Completar la venta del carrito (impuestos, stock, registro)
# - Historial con filtros por período
# - Detalle y datos de la factura imprimible
# ==============================================================================

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from zenbill.models import (
    PAYMENT_METHODS,
    Sale,
    SaleItem,
    User,
    clean_text,
    format_quantity,
    new_id,
    parse_iso,
    short_id,
)
from zenbill.performance_logger import profile_function
from zenbill.repositories.interfaces import IProductRepository, ISalesRepository
from zenbill.services.activity_service import ActivityService

logger = logging.getLogger(__name__)

PERIODS = ('all', 'today', 'week', 'month', '3month', 'custom')


def _months_back(year: int, month: int, months: int):
    """(año, mes) de 'months' meses atrás."""
    index = year * 12 + (month - 1) - months
    return index // 12, index % 12 + 1


def _parse_day(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        return None


def period_bounds(period: str, tz: ZoneInfo, now: datetime,
                  start: Optional[str] = None, end: Optional[str] = None):
    """
    Límites [desde, hasta] de un período en la zona horaria de la tienda.

    Args:
        period: all | today | week | month | 3month | custom
        tz: Zona horaria local
        now: Instante de referencia
        start: Fecha inicial YYYY-MM-DD (solo custom)
        end: Fecha final YYYY-MM-DD (solo custom)

    Returns:
        Tupla (desde, hasta); None significa sin límite

    Raises:
        ValueError: Período desconocido o rango custom incompleto/inválido
    """
    if period not in PERIODS:
        raise ValueError(f'Unknown period: {period}')

    local_now = now.astimezone(tz)
    midnight = datetime.combine(local_now.date(), time.min, tzinfo=tz)

    if period == 'all':
        return None, None
    if period == 'today':
        return midnight, None
    if period == 'week':
        # Semana desde el domingo: weekday() es 0 el lunes
        days_since_sunday = (local_now.weekday() + 1) % 7
        return midnight - timedelta(days=days_since_sunday), None
    if period == 'month':
        return midnight.replace(day=1), None
    if period == '3month':
        year, month = _months_back(local_now.year, local_now.month, 3)
        return datetime(year, month, 1, tzinfo=tz), None

    start_day, end_day = _parse_day(start), _parse_day(end)
    if not start_day or not end_day:
        raise ValueError('Custom range requires start and end dates (YYYY-MM-DD)')
    if start_day > end_day:
        raise ValueError('Start date must not be after end date')
    return (
        datetime.combine(start_day, time.min, tzinfo=tz),
        datetime.combine(end_day, time.max, tzinfo=tz),
    )


def filter_sales(sales: List[Dict[str, Any]], period: str, tz: ZoneInfo,
                 now: Optional[datetime] = None, start: Optional[str] = None,
                 end: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Filtra ventas por período y las ordena de más reciente a más antigua.

    Raises:
        ValueError: Ver period_bounds
    """
    now = now or datetime.now(timezone.utc)
    lower, upper = period_bounds(period, tz, now, start, end)

    result = []
    for sale in sales:
        sale_date = parse_iso(sale.get('date'))
        if sale_date is None:
            continue
        if lower and sale_date < lower:
            continue
        if upper and sale_date > upper:
            continue
        result.append(sale)

    result.sort(key=lambda s: parse_iso(s.get('date')), reverse=True)
    return result


class SalesService:
    """
    Servicio para gestión de ventas.

    Responsabilidades:
    - Completar ventas desde el carrito
    - Historial filtrado
    - Detalle y factura
    """

    def __init__(
        self,
        sales_repo: ISalesRepository,
        product_repo: IProductRepository,
        activity_service: ActivityService,
        tz: Optional[ZoneInfo] = None,
    ):
        """
        Args:
            sales_repo: Repositorio de ventas
            product_repo: Repositorio de productos (descuento de stock)
            activity_service: Registro de actividad
            tz: Zona horaria de la tienda para los filtros por fecha
        """
        self.sales_repo = sales_repo
        self.product_repo = product_repo
        self.activity_service = activity_service
        self.tz = tz or ZoneInfo('UTC')

    # =========================================================================
    # COMPLETAR VENTA
    # =========================================================================

    @profile_function(name='Completar venta')
    def complete_sale(self, actor: User, cart: List[Dict[str, Any]], payment_method: str) -> Dict[str, Any]:
        """
        Registra la venta del carrito.

        Valida stock contra el inventario actual, calcula SGST/CGST con las
        tasas de la tienda, guarda la venta al inicio del historial y
        descuenta el stock, todo bajo el mismo lock.

        Args:
            actor: Usuario que vende
            cart: Líneas {product_id, name, price, quantity}
            payment_method: UPI, Card o Cash

        Returns:
            {'ok': True, 'sale': dict} o {'ok': False, 'error': str}
        """
        if not cart:
            return {'ok': False, 'error': 'Cart is empty'}
        payment_method = clean_text(payment_method)
        if payment_method not in PAYMENT_METHODS:
            return {'ok': False, 'error': 'Select a payment method (UPI, Card or Cash)'}

        with self.sales_repo.locked():
            items = []
            deltas: Dict[str, float] = {}
            for line in cart:
                product = self.product_repo.get_for_shop(actor.shop_id, line.get('product_id'))
                if not product:
                    return {'ok': False, 'error': f"Product not found: {line.get('name')}"}
                quantity = float(line.get('quantity') or 0)
                if quantity <= 0:
                    return {'ok': False, 'error': f"Invalid quantity for {product.get('name')}"}
                deltas[product['id']] = deltas.get(product['id'], 0) + quantity
                if deltas[product['id']] > float(product.get('stock') or 0):
                    return {
                        'ok': False,
                        'error': f"Insufficient stock for {product.get('name')} "
                                 f"(available: {format_quantity(product.get('stock'))})"
                    }
                items.append(SaleItem(
                    product_id=product['id'],
                    name=product.get('name', ''),
                    price=float(product.get('price') or 0),
                    quantity=quantity,
                ))

            sale = Sale(
                id=new_id('sale'),
                shop_id=actor.shop_id,
                items=items,
                payment_method=payment_method,
                cashier=actor.name,
            )
            sale.calculate_totals(actor.sgst_percentage, actor.cgst_percentage)

            self.sales_repo.create_sale(sale.to_dict())
            self.product_repo.adjust_stock(deltas)

        self.activity_service.log(
            actor.shop_id,
            f"Completed sale #{short_id(sale.id)} for ₹{sale.total:.2f}."
        )
        logger.info("Venta %s completada en %s: %.2f (%s)",
                    sale.id, actor.shop_id, sale.total, payment_method)
        return {'ok': True, 'sale': sale.to_dict()}

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def list_sales(self, shop_id: str, period: str = 'all',
                   start: Optional[str] = None, end: Optional[str] = None,
                   now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Historial de la tienda filtrado por período.

        Returns:
            {'ok': True, 'sales': [...]} o {'ok': False, 'error': str}
        """
        try:
            sales = filter_sales(self.sales_repo.get_by_shop(shop_id), period or 'all',
                                 self.tz, now=now, start=start, end=end)
        except ValueError as e:
            return {'ok': False, 'error': str(e)}
        return {'ok': True, 'sales': sales}

    def get_sale(self, shop_id: str, sale_id: str) -> Optional[Dict[str, Any]]:
        return self.sales_repo.get_for_shop(shop_id, sale_id)

    def invoice_context(self, actor: User, sale_id: str) -> Optional[Dict[str, Any]]:
        """
        Datos para la plantilla de factura.

        Returns:
            Dict con 'sale', 'shop', 'invoice_number', 'date' o None si la
            venta no es de la tienda
        """
        data = self.get_sale(actor.shop_id, sale_id)
        if not data:
            return None
        sale = Sale.from_dict(data)
        sale_date = parse_iso(sale.date)
        return {
            'sale': sale,
            'shop': actor,
            'invoice_number': short_id(sale.id),
            'date': sale_date.astimezone(self.tz).strftime('%d/%m/%Y %H:%M') if sale_date else '',
            'address_lines': (actor.shop_address or '').splitlines(),
        }
