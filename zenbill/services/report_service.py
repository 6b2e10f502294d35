# ==============================================================================
# SERVICIO DE REPORTES
# ==============================================================================
# Indicadores del panel principal, gráfico de ventas por día y
# exportaciones CSV (stock y ventas).
# ==============================================================================

from collections import OrderedDict
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from zenbill.models import User, format_quantity, parse_iso
from zenbill.repositories.interfaces import IProductRepository, ISalesRepository
from zenbill.services.activity_service import ActivityService
from zenbill.services.csv_service import to_csv

LOW_STOCK_LIMIT = 5
CHART_RANGES = (7, 30)


def _day_label(day: date) -> str:
    """Etiqueta corta del gráfico, p.ej. 'Jan 5'."""
    return f"{day.strftime('%b')} {day.day}"


class ReportService:
    """
    Servicio de estadísticas y reportes.

    Calcula todo al vuelo a partir de ventas y productos de la tienda.
    """

    def __init__(
        self,
        sales_repo: ISalesRepository,
        product_repo: IProductRepository,
        activity_service: ActivityService,
    ):
        self.sales_repo = sales_repo
        self.product_repo = product_repo
        self.activity_service = activity_service

    # =========================================================================
    # PANEL PRINCIPAL
    # =========================================================================

    def dashboard(self, shop_id: str, days: int = 7, today: Optional[date] = None) -> Dict[str, Any]:
        """
        Indicadores del panel del Admin.

        Args:
            shop_id: Tienda
            days: Rango del gráfico (7 o 30)
            today: Día de referencia (UTC); por defecto hoy

        Returns:
            Dict con total_revenue, total_sales, low_stock, low_stock_products,
            sales_chart
        """
        sales = self.sales_repo.get_by_shop(shop_id)
        low = [
            p for p in self.product_repo.get_by_shop(shop_id)
            if 0 < float(p.get('stock') or 0) < LOW_STOCK_LIMIT
        ]
        return {
            'total_revenue': round(sum(float(s.get('total') or 0) for s in sales), 2),
            'total_sales': len(sales),
            'low_stock': len(low),
            'low_stock_products': low,
            'sales_chart': self.sales_chart(sales, days, today),
        }

    @staticmethod
    def sales_chart(sales: List[Dict[str, Any]], days: int = 7,
                    today: Optional[date] = None) -> List[Dict[str, Any]]:
        """
        Total vendido por día para los últimos 'days' días (incluye hoy).

        Los días se agrupan por fecha UTC.

        Returns:
            [{'date': 'YYYY-MM-DD', 'label': 'Mon D', 'total': float}, ...]
            del más antiguo al más reciente
        """
        if days not in CHART_RANGES:
            days = CHART_RANGES[0]
        today = today or datetime.now(timezone.utc).date()

        buckets: 'OrderedDict[str, float]' = OrderedDict()
        for offset in range(days - 1, -1, -1):
            buckets[(today - timedelta(days=offset)).isoformat()] = 0.0

        for sale in sales:
            sale_date = parse_iso(sale.get('date'))
            if sale_date is None:
                continue
            key = sale_date.astimezone(timezone.utc).date().isoformat()
            if key in buckets:
                buckets[key] += float(sale.get('total') or 0)

        return [
            {'date': key, 'label': _day_label(date.fromisoformat(key)), 'total': round(total, 2)}
            for key, total in buckets.items()
        ]

    # =========================================================================
    # EXPORTACIONES CSV
    # =========================================================================

    def stock_report(self, actor: User, today: Optional[date] = None) -> Dict[str, str]:
        """
        Reporte CSV del inventario.

        Returns:
            {'filename': str, 'content': str}

        Raises:
            ExportError: Si la tienda no tiene productos
        """
        rows = [
            {
                'ProductID': p.get('id'),
                'Name': p.get('name'),
                'Price': f"{float(p.get('price') or 0):.2f}",
                'Stock': p.get('stock'),
            }
            for p in self.product_repo.get_by_shop(actor.shop_id)
        ]
        content = to_csv(rows)
        self.activity_service.log(actor.shop_id, 'Downloaded stock report.')
        today = today or datetime.now(timezone.utc).date()
        return {'filename': f"stock-report-{today.isoformat()}.csv", 'content': content}

    @staticmethod
    def sales_report(sales: List[Dict[str, Any]], today: Optional[date] = None) -> Dict[str, str]:
        """
        Reporte CSV de las ventas ya filtradas.

        Raises:
            ExportError: Si no hay ventas
        """
        rows = []
        for sale in sales:
            sale_date = parse_iso(sale.get('date'))
            rows.append({
                'SaleID': sale.get('id'),
                'Date': sale_date.strftime('%Y-%m-%d %H:%M:%S') if sale_date else '',
                'Items': ', '.join(
                    f"{item.get('name')} (x{format_quantity(item.get('quantity'))})" for item in sale.get('items', [])
                ),
                'Subtotal': f"{float(sale.get('subtotal') or 0):.2f}",
                'SGST': f"{float(sale.get('sgst_amount') or 0):.2f}",
                'CGST': f"{float(sale.get('cgst_amount') or 0):.2f}",
                'Total': f"{float(sale.get('total') or 0):.2f}",
                'PaymentMethod': sale.get('payment_method'),
            })
        content = to_csv(rows)
        today = today or datetime.now(timezone.utc).date()
        return {'filename': f"sales-report-{today.isoformat()}.csv", 'content': content}
