# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto de la tienda.
# Son independientes del backend: la traducción a filas (snake_case) y al
# formato JSON del carrito local (camelCase) vive en repositories/mappers.py.
# ==============================================================================

from dataclasses import dataclass, field, fields
from typing import Optional, List, Dict, Any
from enum import Enum
from urllib.parse import quote


# ==============================================================================
# ENUMERACIONES - Estados y tipos válidos
# ==============================================================================

class UserRole(str, Enum):
    """Roles de usuario disponibles en la tienda."""
    ADMIN = "admin"
    CLIENT = "client"


class OrderStatus(str, Enum):
    """Estados logísticos de un pedido."""
    PENDIENTE = "Pendiente"
    ENVIADO = "Enviado"
    ENTREGADO = "Entregado"
    CANCELADO = "Cancelado"
    DEVUELTO = "Devuelto"


class PaymentStatus(str, Enum):
    """Estados de pago de un pedido."""
    PAGADO = "Pagado"
    PENDIENTE = "Pendiente"
    REEMBOLSADO = "Reembolsado"


def parse_enum(enum_cls, value, default):
    """Convierte un string a miembro del enum, o retorna el default."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return default


# ==============================================================================
# ENTIDADES DE CATÁLOGO
# ==============================================================================

@dataclass
class Product:
    """
    Producto del catálogo.

    Attributes:
        id: Identificador (asignado por el backend o temporal del cliente)
        name: Nombre visible
        price: Precio unitario (>= 0)
        category: Categoría ('Verduras', 'Frutas', 'Hierbas', ...)
        image: URI de la imagen
        rating: Valoración, solo para mostrar
        sales: Ventas acumuladas, solo para mostrar
        description: Descripción libre (opcional)
        nutrition_info: Información nutricional (opcional)
        shipping_info: Información de envío (opcional)
        related_product_ids: IDs de productos relacionados manualmente
    """
    id: int
    name: str
    price: float
    category: str
    image: str = ''
    rating: float = 5.0
    sales: int = 0
    description: Optional[str] = None
    nutrition_info: Optional[str] = None
    shipping_info: Optional[str] = None
    related_product_ids: Optional[List[int]] = None

    def copy(self) -> 'Product':
        """Copia independiente (la lista de relacionados no se comparte)."""
        data = {f.name: getattr(self, f.name) for f in fields(Product)}
        if data['related_product_ids'] is not None:
            data['related_product_ids'] = list(data['related_product_ids'])
        return Product(**data)


@dataclass
class ProductDraft:
    """
    Datos de un producto nuevo creado desde el panel de administración.
    Aún no tiene id, rating ni ventas.
    """
    name: str
    price: float
    category: str
    image: str = ''
    description: Optional[str] = None
    nutrition_info: Optional[str] = None
    shipping_info: Optional[str] = None
    related_product_ids: Optional[List[int]] = None


# ==============================================================================
# ENTIDADES DE CARRITO Y PEDIDOS
# ==============================================================================

@dataclass
class CartItem(Product):
    """
    Línea del carrito: una copia del producto más la cantidad.

    Invariante: a lo sumo una línea por id de producto en el carrito.
    """
    quantity: int = 1

    @property
    def subtotal(self) -> float:
        """Subtotal de la línea (precio x cantidad)."""
        return self.price * self.quantity

    @classmethod
    def from_product(cls, product: Product, quantity: int = 1) -> 'CartItem':
        """Crea una línea copiando los datos del producto."""
        data = {f.name: getattr(product, f.name) for f in fields(Product)}
        if data['related_product_ids'] is not None:
            data['related_product_ids'] = list(data['related_product_ids'])
        return cls(quantity=quantity, **data)


@dataclass
class Order:
    """
    Pedido registrado.

    Los items son una instantánea del carrito al momento de la compra:
    el total NO se recalcula aunque cambien los precios del catálogo.

    Attributes:
        id: Identificador asignado por el backend
        customer_name: Nombre del cliente
        email: Correo del cliente
        items: Instantánea de las líneas del carrito
        total: Suma de precio x cantidad al crear el pedido
        status: Estado logístico
        payment_status: Estado de pago
        date: Fecha de creación (ISO 8601)
    """
    id: str
    customer_name: str
    email: str
    items: List[CartItem] = field(default_factory=list)
    total: float = 0.0
    status: OrderStatus = OrderStatus.PENDIENTE
    payment_status: PaymentStatus = PaymentStatus.PAGADO
    date: str = ''

    @property
    def is_paid(self) -> bool:
        """Verifica si el pedido cuenta como ingreso."""
        return self.payment_status == PaymentStatus.PAGADO

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para respuestas JSON."""
        return {
            'id': self.id,
            'customer_name': self.customer_name,
            'email': self.email,
            'items': [product_to_dict(i) for i in self.items],
            'total': self.total,
            'status': self.status.value,
            'payment_status': self.payment_status.value,
            'date': self.date,
        }


# ==============================================================================
# ENTIDADES DE USUARIO Y SESIÓN
# ==============================================================================

AVATAR_URL = 'https://ui-avatars.com/api/?name={name}&background=a3e635&color=18181b'


def avatar_for(name: str) -> str:
    """URL del avatar generado a partir del nombre."""
    return AVATAR_URL.format(name=quote(name or ''))


@dataclass
class User:
    """
    Usuario con sesión activa.

    Attributes:
        id: Identificador del usuario en el proveedor de autenticación
        name: Nombre visible
        email: Correo
        role: Rol (admin | client)
        phone: Teléfono (opcional)
        avatar: URI del avatar (opcional)
    """
    id: str
    name: str
    email: str
    role: UserRole = UserRole.CLIENT
    phone: str = ''
    avatar: Optional[str] = None

    def is_admin(self) -> bool:
        """Verifica si el usuario tiene permisos de administrador."""
        return self.role == UserRole.ADMIN

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para respuestas JSON."""
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'role': self.role.value,
            'phone': self.phone,
            'avatar': self.avatar,
        }


@dataclass
class AuthUser:
    """Usuario tal como lo entrega el proveedor de autenticación."""
    id: str
    email: str
    user_metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AuthSession:
    """Sesión del proveedor de autenticación."""
    access_token: str
    user: AuthUser
    refresh_token: Optional[str] = None


# ==============================================================================
# ENTIDADES DERIVADAS
# ==============================================================================

@dataclass
class AnalyticsSnapshot:
    """
    Resumen calculado bajo demanda a partir de pedidos y productos.
    No se persiste.
    """
    total_revenue: float = 0.0
    total_orders: int = 0
    average_order_value: float = 0.0
    top_selling_product: Optional[Product] = None
    top_selling_quantity: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para respuestas JSON."""
        top = self.top_selling_product
        return {
            'total_revenue': round(self.total_revenue, 2),
            'total_orders': self.total_orders,
            'average_order_value': round(self.average_order_value, 2),
            'top_selling_product': product_to_dict(top) if top else None,
            'top_selling_quantity': self.top_selling_quantity,
        }


def product_to_dict(product: Product) -> Dict[str, Any]:
    """Convierte un producto (o línea de carrito) a diccionario JSON."""
    return {f.name: getattr(product, f.name) for f in fields(product)}
