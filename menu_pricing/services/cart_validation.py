from __future__ import annotations

from typing import Optional, Tuple

from ..core.errors import ItemUnavailableError
from ..schemas.catalog import CatalogSnapshot, Product, ProductVariant
from ..schemas.pricing import CartValidation, ComputeItem, ComputeRequest


def check_line(line: ComputeItem, catalog: CatalogSnapshot) -> Tuple[Product, Optional[ProductVariant]]:
    """Producto y variante de una línea; ItemUnavailableError si no se puede vender."""
    ref = line.ref
    product = catalog.product(line.product_id)
    if product is None:
        raise ItemUnavailableError(f"Producto {line.product_id} no existe", reason="product_not_found", item_ref=ref)
    if not product.is_active:
        raise ItemUnavailableError(f"'{product.name}' ya no está disponible", reason="product_inactive", item_ref=ref)

    if line.variant_id is None:
        if catalog.has_variants(product.id):
            raise ItemUnavailableError(f"'{product.name}' requiere variante", reason="variant_required", item_ref=ref)
        return product, None

    variant = catalog.variant(line.variant_id)
    if variant is None:
        raise ItemUnavailableError(f"Variante {line.variant_id} no existe", reason="variant_not_found", item_ref=ref)
    if variant.product_id != product.id:
        raise ItemUnavailableError(
            f"La variante '{variant.name}' no pertenece a '{product.name}'", reason="variant_mismatch", item_ref=ref,
        )
    if not variant.is_active:
        raise ItemUnavailableError(f"'{variant.name}' ya no está disponible", reason="variant_inactive", item_ref=ref)
    return product, variant


def validate_cart(request: ComputeRequest, catalog: CatalogSnapshot) -> CartValidation:
    if not request.items:
        return CartValidation(valid=False, messages=["El carrito está vacío"])

    messages = []
    for line in request.items:
        try:
            check_line(line, catalog)
        except ItemUnavailableError as e:
            messages.append(e.message)
    return CartValidation(valid=not messages, messages=messages)
