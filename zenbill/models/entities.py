# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto del negocio.
# Los repositorios guardan diccionarios planos; estas clases solo
# construyen, validan y serializan esos diccionarios.
# ==============================================================================

import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


# ==============================================================================
# ENUMERACIONES - Estados y tipos válidos
# ==============================================================================

class UserRole(str, Enum):
    """Roles de usuario disponibles en el sistema."""
    ADMIN = "Admin"
    CASHIER = "Cashier"
    ACCOUNTANT = "Accountant"
    SUPER_ADMIN = "SuperAdmin"  # Personal de la plataforma (nunca se guarda)


class PaymentMethod(str, Enum):
    """Métodos de pago aceptados."""
    UPI = "UPI"
    CARD = "Card"
    CASH = "Cash"


class TicketStatus(str, Enum):
    """Estados posibles de un ticket de soporte."""
    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    CLOSED = "Closed"


# Roles que un administrador de tienda puede asignar
SHOP_ROLES = frozenset([UserRole.ADMIN.value, UserRole.CASHIER.value, UserRole.ACCOUNTANT.value])

PAYMENT_METHODS = frozenset(m.value for m in PaymentMethod)

TICKET_STATUSES = frozenset(s.value for s in TicketStatus)

# Tienda ficticia donde se registran las acciones de la plataforma
HQ_SHOP_ID = 'super-admin-hq'

# Campos de perfil compartidos por todos los usuarios de una tienda
SHOP_FIELDS = (
    'shop_name',
    'merchant_id',
    'gst_number',
    'sgst_percentage',
    'cgst_percentage',
    'shop_address',
    'shop_logo',
    'shop_phone_number',
)


def new_id(prefix: str) -> str:
    """Genera un identificador opaco: <prefijo>-<32 hex>."""
    return f"{prefix}-{uuid.uuid4().hex}"


def short_id(entity_id: str) -> str:
    """Número corto para mostrar (boletas, tickets): 8 caracteres tras el prefijo."""
    if not entity_id:
        return ''
    _, _, tail = entity_id.partition('-')
    return (tail or entity_id)[:8]


def new_merchant_id() -> str:
    """ID de comercio visible para el cliente: ZEN- + 7 dígitos."""
    return f"ZEN-{random.randint(1000000, 9999999)}"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def clean_text(value: Any) -> str:
    """
    Texto recortado de un valor recibido por la API.

    Los números se aceptan como texto (un producto puede llamarse 123);
    cualquier otro tipo (listas, objetos, booleanos) cuenta como vacío.
    """
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ''


def parse_flag(value: Any) -> Optional[bool]:
    """
    Interpreta una bandera enviada por JSON o por formulario.

    Returns:
        True/False, o None si el valor no es reconocible
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ('true', '1', 'on', 'yes'):
            return True
        if text in ('false', '0', 'off', 'no', ''):
            return False
    return None


def format_quantity(value: Any) -> str:
    """12.0 -> '12', 12.5 -> '12.5' (así se muestran stock y cantidades)."""
    number = float(value or 0)
    if number.is_integer():
        return str(int(number))
    return str(number)


# ==============================================================================
# ENTIDADES DE USUARIO
# ==============================================================================

@dataclass
class User:
    """
    Usuario de una tienda.

    El perfil de la tienda (nombre, GST, impuestos, logo...) se replica en
    cada usuario de la misma tienda; el Admin de la tienda además lleva las
    banderas que controla el super admin (cuenta deshabilitada, banner).

    Attributes:
        id: Identificador opaco
        shop_id: Tienda a la que pertenece
        name: Nombre de login (único, sin distinguir mayúsculas)
        password: Hash werkzeug de la contraseña
        role: Admin, Cashier o Accountant
    """
    id: str
    shop_id: str
    name: str
    password: str = ''
    shop_name: str = ''
    role: str = UserRole.CASHIER.value
    merchant_id: str = ''
    gst_number: str = ''
    sgst_percentage: float = 0.0
    cgst_percentage: float = 0.0
    shop_address: str = ''
    shop_logo: str = ''
    shop_phone_number: str = ''
    is_disabled: bool = False
    disabled_message: str = ''
    is_banner_visible: bool = False
    banner_text: str = ''

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN.value

    def shop_profile(self) -> Dict[str, Any]:
        """Campos de tienda que heredan los usuarios nuevos."""
        return {key: getattr(self, key) for key in SHOP_FIELDS}

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia."""
        return {
            'id': self.id,
            'shop_id': self.shop_id,
            'name': self.name,
            'password': self.password,
            'shop_name': self.shop_name,
            'role': self.role,
            'merchant_id': self.merchant_id,
            'gst_number': self.gst_number,
            'sgst_percentage': self.sgst_percentage,
            'cgst_percentage': self.cgst_percentage,
            'shop_address': self.shop_address,
            'shop_logo': self.shop_logo,
            'shop_phone_number': self.shop_phone_number,
            'is_disabled': self.is_disabled,
            'disabled_message': self.disabled_message,
            'is_banner_visible': self.is_banner_visible,
            'banner_text': self.banner_text,
        }

    def to_public_dict(self) -> Dict[str, Any]:
        """Igual que to_dict pero sin el hash de contraseña (respuestas HTTP)."""
        data = self.to_dict()
        data.pop('password', None)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        """Crea instancia desde diccionario."""
        return cls(
            id=data.get('id', ''),
            shop_id=data.get('shop_id', ''),
            name=data.get('name', ''),
            password=data.get('password', ''),
            shop_name=data.get('shop_name', ''),
            role=data.get('role', UserRole.CASHIER.value),
            merchant_id=data.get('merchant_id') or '',
            gst_number=data.get('gst_number') or '',
            sgst_percentage=float(data.get('sgst_percentage') or 0),
            cgst_percentage=float(data.get('cgst_percentage') or 0),
            shop_address=data.get('shop_address') or '',
            shop_logo=data.get('shop_logo') or '',
            shop_phone_number=data.get('shop_phone_number') or '',
            is_disabled=bool(data.get('is_disabled', False)),
            disabled_message=data.get('disabled_message') or '',
            is_banner_visible=bool(data.get('is_banner_visible', False)),
            banner_text=data.get('banner_text') or '',
        )

    @classmethod
    def super_admin(cls) -> 'User':
        """Usuario ficticio del personal de la plataforma."""
        return cls(
            id='super-admin',
            shop_id=HQ_SHOP_ID,
            name='ZenBill Admin',
            shop_name='ZenBill HQ',
            role=UserRole.SUPER_ADMIN.value,
        )


# ==============================================================================
# ENTIDADES DE INVENTARIO
# ==============================================================================

@dataclass
class Product:
    """
    Producto de una tienda.

    El stock es float: los productos a granel se venden por peso.
    """
    id: str
    shop_id: str
    name: str
    price: float = 0.0
    stock: float = 0.0

    @property
    def stock_status(self) -> str:
        """Indicador de stock: in_stock (> 10), low (> 0) u out."""
        if self.stock > 10:
            return 'in_stock'
        if self.stock > 0:
            return 'low'
        return 'out'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'shop_id': self.shop_id,
            'name': self.name,
            'price': self.price,
            'stock': self.stock,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Product':
        return cls(
            id=data.get('id', ''),
            shop_id=data.get('shop_id', ''),
            name=data.get('name', ''),
            price=float(data.get('price') or 0),
            stock=float(data.get('stock') or 0),
        )


# ==============================================================================
# ENTIDADES DE VENTA
# ==============================================================================

@dataclass
class SaleItem:
    """
    Línea de una venta (copia del producto al momento de vender).

    Attributes:
        product_id: ID del producto vendido
        name: Nombre del producto
        price: Precio unitario
        quantity: Cantidad vendida (puede ser fraccionaria)
    """
    product_id: str
    name: str
    price: float
    quantity: float

    @property
    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'name': self.name,
            'price': self.price,
            'quantity': self.quantity,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SaleItem':
        return cls(
            product_id=data.get('product_id', ''),
            name=data.get('name', ''),
            price=float(data.get('price') or 0),
            quantity=float(data.get('quantity') or 0),
        )


@dataclass
class Sale:
    """
    Venta completada.

    El total es función determinista de las líneas y de los porcentajes de
    SGST/CGST de la tienda: ver calculate_totals().
    """
    id: str
    shop_id: str
    items: List[SaleItem] = field(default_factory=list)
    subtotal: float = 0.0
    sgst_amount: float = 0.0
    cgst_amount: float = 0.0
    total: float = 0.0
    date: str = ''
    payment_method: str = PaymentMethod.CASH.value
    cashier: str = ''

    def __post_init__(self):
        if not self.date:
            self.date = utc_now_iso()

    @property
    def item_count(self) -> float:
        return sum(item.quantity for item in self.items)

    def calculate_totals(self, sgst_percentage: float, cgst_percentage: float) -> None:
        """Recalcula subtotal, impuestos y total a partir de las líneas."""
        totals = compute_tax_totals(
            sum(item.price * item.quantity for item in self.items),
            sgst_percentage,
            cgst_percentage,
        )
        self.subtotal = totals['subtotal']
        self.sgst_amount = totals['sgst_amount']
        self.cgst_amount = totals['cgst_amount']
        self.total = totals['total']

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'shop_id': self.shop_id,
            'items': [item.to_dict() for item in self.items],
            'subtotal': self.subtotal,
            'sgst_amount': self.sgst_amount,
            'cgst_amount': self.cgst_amount,
            'total': self.total,
            'date': self.date,
            'payment_method': self.payment_method,
            'cashier': self.cashier,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Sale':
        return cls(
            id=data.get('id', ''),
            shop_id=data.get('shop_id', ''),
            items=[SaleItem.from_dict(i) for i in data.get('items', [])],
            subtotal=float(data.get('subtotal') or 0),
            sgst_amount=float(data.get('sgst_amount') or 0),
            cgst_amount=float(data.get('cgst_amount') or 0),
            total=float(data.get('total') or 0),
            date=data.get('date', ''),
            payment_method=data.get('payment_method', PaymentMethod.CASH.value),
            cashier=data.get('cashier', ''),
        )


def compute_tax_totals(subtotal: float, sgst_percentage: float, cgst_percentage: float) -> Dict[str, float]:
    """
    Calcula SGST, CGST y total sobre un subtotal.

    Cada componente se redondea a 2 decimales y el total se suma a partir
    de los componentes ya redondeados, así el registro guardado cumple
    total == subtotal + sgst + cgst exactamente.
    """
    subtotal = round(subtotal, 2)
    sgst_amount = round(subtotal * (sgst_percentage or 0) / 100, 2)
    cgst_amount = round(subtotal * (cgst_percentage or 0) / 100, 2)
    return {
        'subtotal': subtotal,
        'sgst_amount': sgst_amount,
        'cgst_amount': cgst_amount,
        'total': round(subtotal + sgst_amount + cgst_amount, 2),
    }


# ==============================================================================
# ENTIDADES DE ACTIVIDAD
# ==============================================================================

@dataclass
class Activity:
    """Entrada del registro de actividad de una tienda."""
    id: str
    shop_id: str
    description: str
    timestamp: str = ''

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = utc_now_iso()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'shop_id': self.shop_id,
            'timestamp': self.timestamp,
            'description': self.description,
        }


# ==============================================================================
# ENTIDADES DE SOPORTE
# ==============================================================================

@dataclass
class TicketMessage:
    """Mensaje dentro de un ticket."""
    id: str
    sender_id: str
    sender_name: str
    message: str
    timestamp: str = ''

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = utc_now_iso()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'sender_id': self.sender_id,
            'sender_name': self.sender_name,
            'message': self.message,
            'timestamp': self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TicketMessage':
        return cls(
            id=data.get('id', ''),
            sender_id=data.get('sender_id', ''),
            sender_name=data.get('sender_name', ''),
            message=data.get('message', ''),
            timestamp=data.get('timestamp', ''),
        )


@dataclass
class Ticket:
    """
    Conversación de soporte entre una tienda y el personal de la plataforma.

    Attributes:
        customer_id: Usuario que abrió el ticket
        customer_name: Nombre de la tienda (así lo ve el super admin)
    """
    id: str
    shop_id: str
    customer_id: str
    customer_name: str
    subject: str
    status: str = TicketStatus.OPEN.value
    messages: List[TicketMessage] = field(default_factory=list)
    created_at: str = ''
    updated_at: str = ''

    def __post_init__(self):
        if not self.created_at:
            self.created_at = utc_now_iso()
        if not self.updated_at:
            self.updated_at = self.created_at

    @property
    def is_open(self) -> bool:
        return self.status != TicketStatus.CLOSED.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'shop_id': self.shop_id,
            'customer_id': self.customer_id,
            'customer_name': self.customer_name,
            'subject': self.subject,
            'status': self.status,
            'messages': [m.to_dict() for m in self.messages],
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Ticket':
        return cls(
            id=data.get('id', ''),
            shop_id=data.get('shop_id', ''),
            customer_id=data.get('customer_id', ''),
            customer_name=data.get('customer_name', ''),
            subject=data.get('subject', ''),
            status=data.get('status', TicketStatus.OPEN.value),
            messages=[TicketMessage.from_dict(m) for m in data.get('messages', [])],
            created_at=data.get('created_at', ''),
            updated_at=data.get('updated_at', ''),
        )


def parse_iso(ts: Optional[str]) -> Optional[datetime]:
    """Parsea timestamp ISO; los valores sin zona se asumen UTC."""
    if not ts:
        return None
    try:
        dt = datetime.fromisoformat(ts.replace('Z', '+00:00'))
    except (ValueError, TypeError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
