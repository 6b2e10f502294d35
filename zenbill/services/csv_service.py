# ==============================================================================
# SERVICIO CSV - Importación de stock y exportación de reportes
# ==============================================================================
# Funciones puras sobre texto CSV:
# - analyze_stock_csv: compara un CSV de stock contra el inventario actual
#   y devuelve el plan de productos a crear y a actualizar.
# - to_csv: serializa una lista de registros planos.
# ==============================================================================

import csv
import io
import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

REQUIRED_HEADERS = ('name', 'price', 'stock')


class CsvFormatError(ValueError):
    """El archivo CSV no tiene el formato esperado."""
    pass


class ExportError(Exception):
    """No hay datos para exportar."""
    pass


def _parse_number(value: str) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number in (float('inf'), float('-inf')):
        return None
    return number


def analyze_stock_csv(text: str, products: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Analiza un CSV de stock contra los productos existentes de la tienda.

    Reglas:
    - Las líneas en blanco se ignoran; la primera línea es el encabezado.
    - El encabezado (sin distinguir mayúsculas) debe tener name, price y stock.
    - Filas sin alguno de esos valores se omiten con un warning.
    - Un nombre existente (sin distinguir mayúsculas) genera actualización
      solo si el stock cambia; un nombre nuevo genera creación.

    Args:
        text: Contenido del archivo
        products: Productos actuales de la tienda

    Returns:
        {'to_create': [{name, price, stock}],
         'to_update': [{id, name, old_stock, stock}],
         'skipped': [número de fila]}

    Raises:
        CsvFormatError: Archivo vacío, columnas faltantes, número inválido
            o plan vacío
    """
    rows = [row for row in csv.reader(io.StringIO(text or '')) if any(cell.strip() for cell in row)]
    if not rows:
        raise CsvFormatError('CSV file is empty or invalid.')

    headers = [h.strip().lower() for h in rows[0]]
    if not all(h in headers for h in REQUIRED_HEADERS):
        raise CsvFormatError(
            f"CSV must contain the following columns: {', '.join(REQUIRED_HEADERS)}."
        )
    name_idx = headers.index('name')
    price_idx = headers.index('price')
    stock_idx = headers.index('stock')

    existing = {(p.get('name') or '').strip().lower(): p for p in products}
    creations: Dict[str, Dict[str, Any]] = {}
    updates: Dict[str, Dict[str, Any]] = {}
    skipped = []

    # Numeración de filas: el encabezado es la fila 1
    for row_number, row in enumerate(rows[1:], start=2):
        def cell(index):
            return row[index].strip() if index < len(row) else ''

        name, price_raw, stock_raw = cell(name_idx), cell(price_idx), cell(stock_idx)
        if not name or not price_raw or not stock_raw:
            logger.warning("Fila CSV incompleta omitida (%d): %s", row_number, row)
            skipped.append(row_number)
            continue

        price = _parse_number(price_raw)
        stock = _parse_number(stock_raw)
        if price is None or stock is None or price < 0 or stock < 0:
            raise CsvFormatError(
                f'Invalid number format in row {row_number}. Price and stock must be numbers.'
            )

        key = name.lower()
        product = existing.get(key)
        if product:
            old_stock = float(product.get('stock') or 0)
            if old_stock != stock:
                updates[key] = {
                    'id': product.get('id'),
                    'name': product.get('name'),
                    'old_stock': old_stock,
                    'stock': stock,
                }
            else:
                updates.pop(key, None)
        else:
            # Un nombre repetido dentro del archivo: gana la última fila
            creations[key] = {'name': name, 'price': price, 'stock': stock}

    if not creations and not updates:
        raise CsvFormatError(
            'No new products to create or stock levels to update were found in the file.'
        )

    return {
        'to_create': list(creations.values()),
        'to_update': list(updates.values()),
        'skipped': skipped,
    }


def to_csv(rows: List[Dict[str, Any]]) -> str:
    """
    Serializa registros planos a CSV.

    El encabezado sale de las claves del primer registro; los textos van
    entre comillas y los números sin ellas. Las filas se separan con '\\n'.

    Raises:
        ExportError: Si no hay registros
    """
    if not rows:
        raise ExportError('No data available to export')

    headers = list(rows[0].keys())
    buffer = io.StringIO()
    buffer.write(','.join(headers) + '\n')
    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator='\n')
    for row in rows:
        writer.writerow([row.get(h) for h in headers])
    return buffer.getvalue().rstrip('\n')
