"""
Resolución de precio unitario por celda zona x servicio.

- Variante primero; si la variante no tiene la celda se usa la del producto padre.
- Sub del Día: si el vendible es especial hoy (día ISO en su set) y tiene precio especial
  menor en la misma celda, se sustituye. No se consulta ninguna promoción.
- Los modificadores de opciones se suman por celda y por unidad; nunca llevan descuento.
"""
from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from ..core.errors import ItemUnavailableError, MissingPriceCellError
from ..schemas.catalog import CatalogSnapshot, PriceKind, Product, ProductVariant, Sellable
from ..schemas.pricing import ComputeItem, PricingWarning
from ..utils.money import ZERO, money
from .cart_validation import check_line

logger = logging.getLogger("menu_pricing.prices")


class ResolvedPrice(BaseModel):
    model_config = ConfigDict(frozen=True)

    unit_price: Decimal
    normal_unit_price: Decimal
    is_daily_special: bool = False


class CartItem(BaseModel):
    """Línea del carrito ya resuelta para una ejecución (no persiste)."""

    model_config = ConfigDict(frozen=True)

    ref: str
    position: int
    product: Product
    variant: Optional[ProductVariant] = None
    quantity: int
    option_ids: Tuple[int, ...] = ()
    unit_price: Decimal
    normal_unit_price: Decimal
    options_unit_total: Decimal = ZERO
    is_daily_special: bool = False

    @property
    def product_id(self) -> int:
        return self.product.id

    @property
    def variant_id(self) -> Optional[int]:
        return self.variant.id if self.variant else None

    @property
    def category_id(self) -> int:
        return self.product.category_id

    @property
    def sellable(self) -> Sellable:
        return self.variant or self.product

    @property
    def subtotal(self) -> Decimal:
        # precio base x cantidad, sin extras
        return money(self.unit_price * self.quantity)

    @property
    def normal_subtotal(self) -> Decimal:
        return money(self.normal_unit_price * self.quantity)

    @property
    def options_total(self) -> Decimal:
        return money(self.options_unit_total * self.quantity)


def _cell(sellable: Sellable, kind: PriceKind, fallback: Optional[Sellable] = None) -> Optional[Decimal]:
    price = sellable.prices.get(kind)
    if price is None and fallback is not None:
        price = fallback.prices.get(kind)
    return price


def resolve_price(
    sellable: Sellable,
    price_kind: PriceKind,
    now: datetime,
    *,
    fallback: Optional[Sellable] = None,
) -> ResolvedPrice:
    normal = _cell(sellable, price_kind, fallback)
    if normal is None:
        raise MissingPriceCellError(
            f"'{sellable.name}' no tiene precio para {price_kind.value}",
            price_kind=price_kind.value,
        )
    normal = money(normal)

    if sellable.is_daily_special_on(now):
        special = sellable.daily_special_prices.get(price_kind)
        if special is not None and money(special) < normal:
            return ResolvedPrice(unit_price=money(special), normal_unit_price=normal, is_daily_special=True)
        logger.debug("Sub del Día sin precio menor para %s en '%s'; se usa precio normal", price_kind.value, sellable.name)

    return ResolvedPrice(unit_price=normal, normal_unit_price=normal)


def resolve_options_total(
    option_ids: List[int],
    catalog: CatalogSnapshot,
    price_kind: PriceKind,
    *,
    item_ref: Optional[str] = None,
) -> Tuple[Decimal, List[PricingWarning]]:
    total = ZERO
    warnings: List[PricingWarning] = []
    for oid in option_ids:
        option = catalog.option(oid)
        if option is None:
            logger.warning("Opción %s no existe; se ignora (item %s)", oid, item_ref)
            warnings.append(PricingWarning(
                code="option_not_found", message=f"Opción {oid} no existe", item_ref=item_ref,
            ))
            continue
        total += option.price_modifiers.get(price_kind) or ZERO
    return money(total), warnings


def build_cart_item(
    line: ComputeItem,
    position: int,
    catalog: CatalogSnapshot,
    price_kind: PriceKind,
    now: datetime,
) -> Tuple[CartItem, List[PricingWarning]]:
    ref = line.ref or f"line-{position}"
    try:
        product, variant = check_line(line, catalog)
    except ItemUnavailableError as e:
        e.item_ref = ref
        raise

    try:
        if variant is not None:
            resolved = resolve_price(variant, price_kind, now, fallback=product)
        else:
            resolved = resolve_price(product, price_kind, now)
    except MissingPriceCellError as e:
        e.item_ref = ref
        raise

    options_unit, warnings = resolve_options_total(line.selected_option_ids, catalog, price_kind, item_ref=ref)
    item = CartItem(
        ref=ref,
        position=position,
        product=product,
        variant=variant,
        quantity=line.quantity,
        option_ids=tuple(line.selected_option_ids),
        unit_price=resolved.unit_price,
        normal_unit_price=resolved.normal_unit_price,
        options_unit_total=options_unit,
        is_daily_special=resolved.is_daily_special,
    )
    return item, warnings
