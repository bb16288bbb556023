# ==============================================================================
# CATÁLOGO DE RESPALDO
# ==============================================================================
# Se usa cuando el backend no devuelve productos (vacío o caído), para que
# la tienda nunca se muestre vacía. También se intenta sembrar en el backend.
# ==============================================================================

from typing import List

from .entities import Product


_UNSPLASH = 'https://images.unsplash.com/{photo}?q=80&w=2000&auto=format&fit=crop'

FALLBACK_PRODUCTS = (
    Product(
        id=1,
        name='Atado de Espinaca',
        price=4.00,
        category='Verduras',
        rating=5.0,
        sales=120,
        image=_UNSPLASH.format(photo='photo-1576045057995-568f588f82fb'),
        description='Espinaca orgánica recién cosechada, rica en hierro y vitaminas. '
                    'Ideal para ensaladas o cocida.',
        nutrition_info='Calorías: 23\nHierro: 2.7mg\nVitamina A: 9377IU',
        shipping_info='Envío refrigerado disponible. Entrega en 24 horas.',
    ),
    Product(
        id=2,
        name='Tomates Rojos',
        price=3.50,
        category='Verduras',
        rating=4.9,
        sales=85,
        image=_UNSPLASH.format(photo='photo-1592924357228-91a4daadcfea'),
        description='Tomates jugosos y dulces, cultivados sin pesticidas sintéticos.',
        nutrition_info='Calorías: 18\nVitamina C: 13.7mg',
        shipping_info='Envío estándar en caja protectora.',
    ),
    Product(
        id=3,
        name='Zanahorias',
        price=2.99,
        category='Verduras',
        rating=4.8,
        sales=200,
        image=_UNSPLASH.format(photo='photo-1598170845058-32b9d6a5da37'),
        description='Zanahorias crujientes, perfectas para snacks saludables.',
        nutrition_info='Calorías: 41\nVitamina A: 334%',
        shipping_info='Envío estándar.',
    ),
    Product(
        id=4,
        name='Pimientos Verdes',
        price=1.80,
        category='Verduras',
        rating=4.7,
        sales=45,
        image=_UNSPLASH.format(photo='photo-1563514227149-5616d548e606'),
        description='Pimientos frescos con un toque crujiente y sabor suave.',
        nutrition_info='Calorías: 20\nVitamina C: 80.4mg',
        shipping_info='Envío estándar.',
    ),
    Product(
        id=5,
        name='Brócoli Orgánico',
        price=3.20,
        category='Verduras',
        rating=4.9,
        sales=90,
        image=_UNSPLASH.format(photo='photo-1459411621453-7b03977f4bfc'),
        description='Brócoli lleno de nutrientes, cosechado en su punto óptimo.',
        nutrition_info='Calorías: 34\nFibra: 2.6g',
        shipping_info='Envío refrigerado recomendado.',
    ),
    Product(
        id=6,
        name='Manojo de Albahaca',
        price=2.50,
        category='Hierbas',
        rating=5.0,
        sales=60,
        image=_UNSPLASH.format(photo='photo-1618160702438-9b02ab6515c9'),
        description='Albahaca aromática, esencial para la cocina italiana y pesto.',
        nutrition_info='Calorías: 22\nVitamina K: 415mcg',
        shipping_info='Envío delicado.',
    ),
    Product(
        id=7,
        name='Papas Nativas',
        price=5.50,
        category='Verduras',
        rating=4.8,
        sales=150,
        image=_UNSPLASH.format(photo='photo-1518977676601-b53f82aba655'),
        description='Variedad de papas nativas peruanas, texturas y colores únicos.',
        nutrition_info='Calorías: 77\nPotasio: 421mg',
        shipping_info='Envío en malla transpirable.',
    ),
    Product(
        id=8,
        name='Fresas Dulces',
        price=8.00,
        category='Frutas',
        rating=4.9,
        sales=300,
        image=_UNSPLASH.format(photo='photo-1464965911861-746a04b4b032'),
        description='Fresas rojas y dulces, perfectas para postres o comer solas.',
        nutrition_info='Calorías: 32\nVitamina C: 58.8mg',
        shipping_info='Envío refrigerado urgente.',
    ),
)


def fallback_products() -> List[Product]:
    """Retorna copias independientes del catálogo de respaldo."""
    return [p.copy() for p in FALLBACK_PRODUCTS]
