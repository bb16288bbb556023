# ==============================================================================
# MAPEO ENTIDADES ↔ BACKEND
# ==============================================================================
# Única frontera de traducción de nombres:
#
#   Backend (snake_case)        Entidad
#   ─────────────────────       ─────────────────────
#   customer_name               Order.customer_name
#   payment_status              Order.payment_status
#   full_name                   User.name
#   nutrition_info              Product.nutrition_info
#   shipping_info               Product.shipping_info
#   related_product_ids         Product.related_product_ids
#
# Las líneas de carrito se guardan (carrito local e items JSONB de los
# pedidos) en camelCase: nutritionInfo, shippingInfo, relatedProductIds.
# ==============================================================================

from typing import Any, Dict, List, Optional, Union

from greta_store.models import (
    AuthSession,
    AuthUser,
    CartItem,
    Order,
    OrderStatus,
    PaymentStatus,
    Product,
    ProductDraft,
    UserRole,
    parse_enum,
)


# Columnas de producto que se envían al actualizar
PRODUCT_UPDATE_COLUMNS = (
    'name',
    'price',
    'category',
    'image',
    'description',
    'nutrition_info',
    'shipping_info',
    'related_product_ids',
)

# Campo de la línea de carrito (camelCase) → atributo de la entidad
_CART_JSON_FIELDS = {
    'id': 'id',
    'name': 'name',
    'price': 'price',
    'category': 'category',
    'image': 'image',
    'rating': 'rating',
    'sales': 'sales',
    'description': 'description',
    'nutritionInfo': 'nutrition_info',
    'shippingInfo': 'shipping_info',
    'relatedProductIds': 'related_product_ids',
    'quantity': 'quantity',
}


def _to_int_list(value: Any) -> Optional[List[int]]:
    if value is None:
        return None
    try:
        return [int(v) for v in value]
    except (TypeError, ValueError):
        return None


# ==============================================================================
# PRODUCTOS
# ==============================================================================

def product_from_row(row: Dict[str, Any]) -> Product:
    """Crea un Product desde una fila de la tabla products."""
    return Product(
        id=int(row.get('id')),
        name=str(row.get('name') or ''),
        price=float(row.get('price') or 0),
        category=str(row.get('category') or ''),
        image=row.get('image') or '',
        rating=float(row.get('rating') if row.get('rating') is not None else 5.0),
        sales=int(row.get('sales') or 0),
        description=row.get('description'),
        nutrition_info=row.get('nutrition_info'),
        shipping_info=row.get('shipping_info'),
        related_product_ids=_to_int_list(row.get('related_product_ids')),
    )


def product_to_row(product: Union[Product, ProductDraft]) -> Dict[str, Any]:
    """
    Convierte un producto (o borrador) a fila para insertar.
    Nunca incluye el id: lo asigna el backend.
    """
    row = {
        'name': product.name,
        'price': product.price,
        'category': product.category,
        'image': product.image,
        'description': product.description,
        'nutrition_info': product.nutrition_info,
        'shipping_info': product.shipping_info,
        'related_product_ids': product.related_product_ids,
    }
    if isinstance(product, Product):
        row['sales'] = product.sales
        row['rating'] = product.rating
    else:
        row['sales'] = 0
        row['rating'] = 5.0
    return row


def product_changes(product: Product) -> Dict[str, Any]:
    """Columnas que se envían al actualizar un producto existente."""
    row = product_to_row(product)
    return {col: row[col] for col in PRODUCT_UPDATE_COLUMNS}


# ==============================================================================
# LÍNEAS DE CARRITO (JSON camelCase)
# ==============================================================================

def cart_item_to_json(item: CartItem) -> Dict[str, Any]:
    """Serializa una línea de carrito al formato del almacenamiento local."""
    return {key: getattr(item, attr) for key, attr in _CART_JSON_FIELDS.items()}


def cart_item_from_json(data: Dict[str, Any]) -> CartItem:
    """
    Crea una línea de carrito desde JSON.
    Acepta tanto camelCase como snake_case (filas antiguas).
    """
    def pick(camel: str, snake: str, default=None):
        if camel in data:
            return data[camel]
        return data.get(snake, default)

    return CartItem(
        id=int(data.get('id')),
        name=data.get('name') or '',
        price=float(data.get('price') or 0),
        category=data.get('category') or '',
        image=data.get('image') or '',
        rating=float(data.get('rating') if data.get('rating') is not None else 5.0),
        sales=int(data.get('sales') or 0),
        description=data.get('description'),
        nutrition_info=pick('nutritionInfo', 'nutrition_info'),
        shipping_info=pick('shippingInfo', 'shipping_info'),
        related_product_ids=_to_int_list(pick('relatedProductIds', 'related_product_ids')),
        quantity=int(data.get('quantity') or 1),
    )


# ==============================================================================
# PEDIDOS
# ==============================================================================

def order_from_row(row: Dict[str, Any]) -> Order:
    """Crea un Order desde una fila de la tabla orders."""
    items = row.get('items') or []
    if not isinstance(items, list):
        items = []
    return Order(
        id=str(row.get('id')),
        customer_name=row.get('customer_name') or '',
        email=row.get('email') or '',
        items=[cart_item_from_json(i) for i in items],
        total=float(row.get('total') or 0),
        status=parse_enum(OrderStatus, row.get('status'), OrderStatus.PENDIENTE),
        payment_status=parse_enum(PaymentStatus, row.get('payment_status'), PaymentStatus.PENDIENTE),
        date=row.get('date') or '',
    )


def order_to_row(order: Order) -> Dict[str, Any]:
    """
    Convierte un pedido a fila para insertar.
    El id se omite cuando está vacío (lo asigna el backend).
    """
    row = {
        'customer_name': order.customer_name,
        'email': order.email,
        'items': [cart_item_to_json(i) for i in order.items],
        'total': order.total,
        'status': order.status.value,
        'payment_status': order.payment_status.value,
        'date': order.date,
    }
    if order.id:
        row['id'] = order.id
    return row


# ==============================================================================
# PERFILES
# ==============================================================================

def _text(value: Any) -> Optional[str]:
    """Texto no vacío o None (descarta números, listas y nulos)."""
    if isinstance(value, str) and value.strip():
        return value
    return None


def profile_from_row(row: Dict[str, Any]) -> Dict[str, Any]:
    """
    Extrae nombre, teléfono y rol de una fila de profiles.
    Los campos ausentes o con tipo inválido quedan en None.
    """
    role = _text(row.get('role'))
    return {
        'name': _text(row.get('full_name')),
        'phone': _text(row.get('phone')),
        'role': parse_enum(UserRole, role, None) if role else None,
    }


def profile_changes(name: str, phone: str) -> Dict[str, Any]:
    """Columnas de profiles (y metadata de auth) para nombre y teléfono."""
    return {'full_name': name, 'phone': phone}


# ==============================================================================
# SESIÓN (persistencia local del proveedor de auth)
# ==============================================================================

def session_to_json(session: AuthSession) -> Dict[str, Any]:
    """Serializa una sesión de auth."""
    return {
        'access_token': session.access_token,
        'refresh_token': session.refresh_token,
        'user': {
            'id': session.user.id,
            'email': session.user.email,
            'user_metadata': session.user.user_metadata,
        },
    }


def auth_user_from_json(data: Dict[str, Any]) -> AuthUser:
    """Crea un AuthUser desde la respuesta del proveedor de auth."""
    return AuthUser(
        id=str(data.get('id')),
        email=data.get('email') or '',
        user_metadata=dict(data.get('user_metadata') or {}),
    )


def session_from_json(data: Dict[str, Any]) -> Optional[AuthSession]:
    """Crea una AuthSession desde JSON, o None si faltan datos."""
    if not data or not data.get('access_token') or not data.get('user'):
        return None
    return AuthSession(
        access_token=data['access_token'],
        refresh_token=data.get('refresh_token'),
        user=auth_user_from_json(data['user']),
    )
