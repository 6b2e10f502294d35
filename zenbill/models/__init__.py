# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del sistema
# ==============================================================================
# Entidades del dominio como dataclasses, independientes del mecanismo de
# persistencia (archivos JSON hoy).
# ==============================================================================

from .entities import (
    # Usuarios
    User,
    UserRole,
    SHOP_ROLES,
    SHOP_FIELDS,
    HQ_SHOP_ID,

    # Inventario
    Product,

    # Ventas
    Sale,
    SaleItem,
    PaymentMethod,
    PAYMENT_METHODS,
    compute_tax_totals,

    # Actividad
    Activity,

    # Soporte
    Ticket,
    TicketMessage,
    TicketStatus,
    TICKET_STATUSES,

    # Utilidades
    new_id,
    short_id,
    new_merchant_id,
    utc_now_iso,
    format_quantity,
    clean_text,
    parse_flag,
    parse_iso,
)

__all__ = [
    'User',
    'UserRole',
    'SHOP_ROLES',
    'SHOP_FIELDS',
    'HQ_SHOP_ID',
    'Product',
    'Sale',
    'SaleItem',
    'PaymentMethod',
    'PAYMENT_METHODS',
    'compute_tax_totals',
    'Activity',
    'Ticket',
    'TicketMessage',
    'TicketStatus',
    'TICKET_STATUSES',
    'new_id',
    'short_id',
    'new_merchant_id',
    'utc_now_iso',
    'format_quantity',
    'clean_text',
    'parse_flag',
    'parse_iso',
]
