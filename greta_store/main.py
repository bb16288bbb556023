# ==============================================================================
# APLICACIÓN FLASK - API JSON de la tienda
# ==============================================================================
# Capa de presentación delgada: cada ruta llama una operación del Store y
# devuelve JSON. Toda la lógica vive en services/.
#
# El Store representa UN dispositivo cliente (carrito local + sesión del
# proveedor de auth), igual que la tienda web de una sola página: no hay sesiones
# por cookie de distintos usuarios dentro del mismo proceso.
#
# Las rutas de administración solo se protegen con admin_required, que
# mira el rol del usuario en sesión (sin verificación en el backend).
# ==============================================================================

import logging
import os
import time
from functools import wraps

from flask import Flask, request

from greta_store.app_container import AppContainer, get_container
from greta_store.models import ProductDraft, product_to_dict

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def to_int(v, default=None):
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


def to_float(v, default=None):
    try:
        return float(v)
    except (TypeError, ValueError):
        return default


def to_text(v, default=''):
    """
    Texto recortado desde un campo JSON.
    None o '' devuelven el default; otro tipo que no sea str devuelve None.
    """
    if v is None or v == '':
        return default
    if not isinstance(v, str):
        return None
    return v.strip()


def _status_for(result, error_status=400):
    """Código HTTP para un resultado {'ok': ...} de un servicio."""
    if result.get('ok'):
        return 200
    if result.get('forbidden'):
        return 403
    return error_status


def _order_result(result):
    """Serializa un resultado que puede traer un pedido."""
    body = {k: v for k, v in result.items() if k != 'order'}
    if result.get('order') is not None:
        body['order'] = result['order'].to_dict()
    return body


def _product_result(result):
    """Serializa un resultado que puede traer un producto."""
    body = {k: v for k, v in result.items() if k != 'product'}
    if result.get('product') is not None:
        body['product'] = product_to_dict(result['product'])
    return body


def create_app(container: AppContainer = None) -> Flask:
    """
    Construye la aplicación Flask.

    Args:
        container: Contenedor de dependencias (por defecto el global)

    Returns:
        Aplicación Flask lista para servir
    """
    container = container or get_container()
    settings = container.settings

    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)

    app = Flask(__name__)
    app.secret_key = settings.secret_key
    app.config.update(
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE='Lax',
    )

    store = container.store
    if not store.initialized:
        store.initialize()
    app.extensions['greta_store'] = store

    # ═══════════════════════════════════════════════════════════════════════
    # DECORADORES DE ACCESO
    # ═══════════════════════════════════════════════════════════════════════

    def login_required(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            if store.user is None:
                return {'ok': False, 'error': 'Debes iniciar sesión.'}, 401
            return f(*args, **kwargs)
        return wrapper

    def admin_required(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            if store.user is None:
                return {'ok': False, 'error': 'Debes iniciar sesión.'}, 401
            if not store.is_admin():
                return {'ok': False, 'error': 'Permiso denegado.'}, 403
            return f(*args, **kwargs)
        return wrapper

    def _json_body():
        return request.get_json(silent=True) or {}

    # ═══════════════════════════════════════════════════════════════════════
    # CATÁLOGO
    # ═══════════════════════════════════════════════════════════════════════

    @app.route('/api/productos', methods=['GET'])
    def api_productos():
        """Catálogo filtrado: ?categoria=Frutas&q=palta&orden=asc"""
        products = store.search(
            category=request.args.get('categoria', 'Todo'),
            query=request.args.get('q', ''),
            sort=request.args.get('orden', 'default'),
        )
        return {
            'ok': True,
            'productos': [product_to_dict(p) for p in products],
            'categorias': store.categories(),
            'loading': store.loading,
        }

    @app.route('/api/productos/<int:pid>', methods=['GET'])
    def api_producto(pid):
        """Detalle de producto con sus relacionados."""
        product = store.get_product(pid)
        if product is None:
            return {'ok': False, 'error': 'Producto no encontrado'}, 404
        return {
            'ok': True,
            'producto': product_to_dict(product),
            'relacionados': [product_to_dict(p) for p in store.related_products(product)],
        }

    # ═══════════════════════════════════════════════════════════════════════
    # CARRITO
    # ═══════════════════════════════════════════════════════════════════════

    def _cart_body():
        cart = store.cart_service.get_cart()
        return {
            'ok': True,
            'carrito': [product_to_dict(i) for i in cart['items']],
            'total_items': cart['total_items'],
            'total_monto': cart['total_monto'],
            'items_count': cart['items_count'],
            'envio_gratis': store.free_shipping_progress(),
            'sugeridos': [product_to_dict(p) for p in store.upsells()],
        }

    @app.route('/api/carrito/ver', methods=['GET'])
    def api_carrito_ver():
        """Ver contenido actual del carrito"""
        return _cart_body()

    @app.route('/api/carrito/agregar', methods=['POST'])
    def api_carrito_agregar():
        """
        Agregar producto al carrito.
        Espera JSON con: producto_id, cantidad (opcional, por defecto 1)
        """
        data = _json_body()
        producto_id = to_int(data.get('producto_id'))
        cantidad = to_int(data.get('cantidad', 1))

        if producto_id is None:
            return {'ok': False, 'error': 'ID de producto inválido'}, 400
        product = store.get_product(producto_id)
        if product is None:
            return {'ok': False, 'error': 'Producto no encontrado'}, 404
        if cantidad is None or cantidad <= 0:
            return {'ok': False, 'error': 'Cantidad debe ser mayor a 0'}, 400

        result = store.add_to_cart(product, cantidad)
        if not result['ok']:
            return result, 400
        return _cart_body()

    @app.route('/api/carrito/quitar', methods=['POST'])
    def api_carrito_quitar():
        """Restar una unidad de un producto del carrito"""
        producto_id = to_int(_json_body().get('producto_id'))
        if producto_id is None:
            return {'ok': False, 'error': 'ID de producto inválido'}, 400
        store.decrement_cart_item(producto_id)
        return _cart_body()

    @app.route('/api/carrito/eliminar', methods=['POST'])
    def api_carrito_eliminar():
        """Eliminar un item específico del carrito"""
        producto_id = to_int(_json_body().get('producto_id'))
        if producto_id is None:
            return {'ok': False, 'error': 'ID de producto inválido'}, 400
        store.remove_from_cart(producto_id)
        return _cart_body()

    @app.route('/api/carrito/limpiar', methods=['POST'])
    def api_carrito_limpiar():
        """Vaciar el carrito"""
        store.clear_cart()
        return {'ok': True, 'mensaje': 'Carrito vaciado'}

    @app.route('/api/carrito/confirmar', methods=['POST'])
    def api_carrito_confirmar():
        """
        Checkout simulado: espera el tiempo configurado y registra el pedido.
        Nombre y correo se toman del JSON o, si faltan, del usuario en sesión.
        """
        data = _json_body()
        user = store.user
        nombre = to_text(data.get('nombre'), user.name if user else '')
        email = to_text(data.get('email'), user.email if user else '')

        if nombre is None or email is None:
            return {'ok': False, 'error': 'Nombre y correo deben ser texto'}, 400
        if not nombre or not email:
            return {'ok': False, 'error': 'Nombre y correo son obligatorios'}, 400
        if not store.cart:
            return {'ok': False, 'error': 'El carrito está vacío'}, 400

        if settings.checkout_delay > 0:
            time.sleep(settings.checkout_delay)

        result = store.place_order(nombre, email)
        return _order_result(result), _status_for(result, 502)

    # ═══════════════════════════════════════════════════════════════════════
    # AUTENTICACIÓN Y PERFIL
    # ═══════════════════════════════════════════════════════════════════════

    def _session_body():
        user = store.user
        return {'ok': True, 'user': user.to_dict() if user else None}

    @app.route('/api/auth/sesion', methods=['GET'])
    def api_sesion():
        return _session_body()

    @app.route('/api/auth/login', methods=['POST'])
    def api_login():
        data = _json_body()
        result = store.login(data.get('email', ''), data.get('password', ''))
        if not result['ok']:
            return result, 401
        return _session_body()

    @app.route('/api/auth/registro', methods=['POST'])
    def api_registro():
        data = _json_body()
        result = store.signup(
            data.get('email', ''),
            data.get('password', ''),
            data.get('nombre', ''),
            data.get('telefono', ''),
        )
        if not result['ok']:
            return result, 400
        return _session_body()

    @app.route('/api/auth/logout', methods=['POST'])
    def api_logout():
        return store.logout()

    @app.route('/api/perfil', methods=['PUT'])
    @login_required
    def api_perfil():
        data = _json_body()
        nombre = (data.get('nombre') or '').strip()
        if not nombre:
            return {'ok': False, 'error': 'El nombre es obligatorio'}, 400
        result = store.update_user_profile(nombre, (data.get('telefono') or '').strip())
        body = {k: v for k, v in result.items() if k != 'user'}
        body['user'] = store.user.to_dict() if store.user else None
        return body, _status_for(result, 502)

    @app.route('/api/mis-pedidos', methods=['GET'])
    @login_required
    def api_mis_pedidos():
        """Historial de pedidos del usuario en sesión."""
        email = store.user.email.lower()
        pedidos = [o.to_dict() for o in store.orders if o.email.lower() == email]
        return {'ok': True, 'pedidos': pedidos}

    # ═══════════════════════════════════════════════════════════════════════
    # ADMINISTRACIÓN - PRODUCTOS
    # ═══════════════════════════════════════════════════════════════════════

    REQUIRED_TEXT_FIELDS = ('name', 'category')
    OPTIONAL_TEXT_FIELDS = ('image', 'description', 'nutrition_info', 'shipping_info')

    def _text_fields(data, names):
        """Campos de texto presentes en el JSON; None si alguno no es str."""
        textos = {}
        for field_name in names:
            if field_name not in data:
                continue
            value = to_text(data[field_name], None)
            if value is None and data[field_name] not in (None, ''):
                return None
            textos[field_name] = value
        return textos

    def _related_ids(value):
        if value is None:
            return None
        if not isinstance(value, list):
            return None
        ids = [to_int(v) for v in value]
        return [i for i in ids if i is not None]

    @app.route('/api/admin/productos', methods=['POST'])
    @admin_required
    def api_admin_producto_crear():
        data = _json_body()
        precio = to_float(data.get('price'))
        if precio is None or precio < 0:
            return {'ok': False, 'error': 'Precio inválido'}, 400
        textos = _text_fields(data, REQUIRED_TEXT_FIELDS + OPTIONAL_TEXT_FIELDS)
        if textos is None:
            return {'ok': False, 'error': 'Los campos de texto deben ser texto'}, 400
        draft = ProductDraft(
            name=textos.get('name') or '',
            price=precio,
            category=textos.get('category') or 'Verduras',
            image=textos.get('image') or '',
            description=textos.get('description'),
            nutrition_info=textos.get('nutrition_info'),
            shipping_info=textos.get('shipping_info'),
            related_product_ids=_related_ids(data.get('related_product_ids')),
        )
        result = store.add_product(draft)
        status = 201 if result['ok'] else (502 if result.get('product') else 400)
        return _product_result(result), status

    @app.route('/api/admin/productos/<int:pid>', methods=['PUT'])
    @admin_required
    def api_admin_producto_editar(pid):
        current = store.get_product(pid)
        if current is None:
            return {'ok': False, 'error': 'Producto no encontrado'}, 404

        data = _json_body()
        textos = _text_fields(data, REQUIRED_TEXT_FIELDS + OPTIONAL_TEXT_FIELDS)
        if textos is None:
            return {'ok': False, 'error': 'Los campos de texto deben ser texto'}, 400
        for field_name in REQUIRED_TEXT_FIELDS:
            if field_name in textos and not textos[field_name]:
                return {'ok': False, 'error': f'El campo {field_name} no puede quedar vacío'}, 400

        updated = current.copy()
        for field_name, value in textos.items():
            if field_name == 'image' and value is None:
                value = ''
            setattr(updated, field_name, value)
        if 'price' in data:
            precio = to_float(data.get('price'))
            if precio is None or precio < 0:
                return {'ok': False, 'error': 'Precio inválido'}, 400
            updated.price = precio
        if 'related_product_ids' in data:
            updated.related_product_ids = _related_ids(data['related_product_ids'])

        result = store.update_product(updated)
        body = _product_result(result)
        body['product'] = product_to_dict(updated)
        return body, _status_for(result, 502)

    @app.route('/api/admin/productos/<int:pid>', methods=['DELETE'])
    @admin_required
    def api_admin_producto_eliminar(pid):
        if store.get_product(pid) is None:
            return {'ok': False, 'error': 'Producto no encontrado'}, 404
        result = store.delete_product(pid)
        return result, _status_for(result, 502)

    # ═══════════════════════════════════════════════════════════════════════
    # ADMINISTRACIÓN - PEDIDOS
    # ═══════════════════════════════════════════════════════════════════════

    @app.route('/api/admin/pedidos', methods=['GET'])
    @admin_required
    def api_admin_pedidos():
        """Pedidos filtrados: ?estado=Pendiente&pago=Pagado"""
        orders = store.filter_orders(
            status=request.args.get('estado', 'All'),
            payment_status=request.args.get('pago', 'All'),
        )
        return {'ok': True, 'pedidos': [o.to_dict() for o in orders]}

    def _order_update(result):
        if not result['ok'] and result.get('error') == 'Pedido no encontrado':
            return _order_result(result), 404
        status = 200 if result['ok'] else (502 if result.get('order') else 400)
        return _order_result(result), status

    @app.route('/api/admin/pedidos/<order_id>/estado', methods=['POST'])
    @admin_required
    def api_admin_pedido_estado(order_id):
        return _order_update(store.update_order_status(order_id, _json_body().get('estado')))

    @app.route('/api/admin/pedidos/<order_id>/pago', methods=['POST'])
    @admin_required
    def api_admin_pedido_pago(order_id):
        return _order_update(store.update_payment_status(order_id, _json_body().get('estado_pago')))

    @app.route('/api/admin/pedidos/historicos', methods=['POST'])
    @admin_required
    def api_admin_historicos():
        """Genera pedidos de demostración de los últimos 365 días."""
        result = store.generate_historical_orders()
        body = {k: v for k, v in result.items() if k != 'orders'}
        return body, _status_for(result)

    # ═══════════════════════════════════════════════════════════════════════
    # ADMINISTRACIÓN - PANEL
    # ═══════════════════════════════════════════════════════════════════════

    @app.route('/api/admin/analitica', methods=['GET'])
    @admin_required
    def api_admin_analitica():
        """Resumen del panel más ventas por período (?periodo=weekly)."""
        periodo = request.args.get('periodo', 'weekly')
        try:
            ventas = store.sales_by_period(periodo)
        except ValueError as e:
            return {'ok': False, 'error': str(e)}, 400
        return {
            'ok': True,
            'resumen': store.get_analytics().to_dict(),
            'ventas': ventas,
        }

    @app.route('/api/admin/clientes', methods=['GET'])
    @admin_required
    def api_admin_clientes():
        clientes = []
        for summary in store.customer_summaries():
            row = {k: v for k, v in summary.items() if k != 'orders'}
            row['orders'] = [o.to_dict() for o in summary['orders']]
            clientes.append(row)
        return {'ok': True, 'clientes': clientes}

    @app.route('/api/admin/notificaciones', methods=['GET'])
    @admin_required
    def api_admin_notificaciones():
        return {'ok': True, 'notificaciones': store.dashboard_notifications()}

    @app.route('/api/admin/usuarios/<user_id>/rol', methods=['POST'])
    @admin_required
    def api_admin_usuario_rol(user_id):
        result = store.update_user_role(user_id, _json_body().get('rol'))
        return result, _status_for(result)

    return app


if __name__ == '__main__':
    # Configuración para desarrollo local
    # En producción usar WSGI (gunicorn, waitress, etc.)
    DEBUG = os.environ.get('FLASK_DEBUG', '0') == '1'
    HOST = os.environ.get('FLASK_HOST', '127.0.0.1')
    PORT = int(os.environ.get('FLASK_PORT', 5000))

    create_app().run(host=HOST, port=PORT, debug=DEBUG)
