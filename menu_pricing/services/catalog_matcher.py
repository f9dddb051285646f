"""
Búsqueda de promociones que aplican a un item del carrito.

Una promoción aplica si alguna de sus entradas referencia la variante, el producto o la
categoría del item (OR, gana la primera que coincida) y tanto la promoción como esa entrada
están vigentes en `now`. Con varias elegibles gana la más reciente (id mayor).
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from ..core.errors import ConfigurationError
from ..schemas.catalog import CatalogSnapshot, Promotion, PromotionItem, PromotionType
from .price_resolver import CartItem

logger = logging.getLogger("menu_pricing.catalog")


class CatalogMatcher:
    def __init__(self, catalog: CatalogSnapshot):
        self._catalog = catalog

    @property
    def catalog(self) -> CatalogSnapshot:
        return self._catalog

    def matching_entry(self, item: CartItem, promotion: Promotion, now: datetime) -> Optional[PromotionItem]:
        for entry in promotion.items:
            if not entry.references(
                variant_id=item.variant_id, product_id=item.product_id, category_id=item.category_id,
            ):
                continue
            if entry.window.contains(now):
                return entry
        return None

    def references(self, item: CartItem, promotion: Promotion, now: datetime) -> bool:
        if self.matching_entry(item, promotion, now) is not None:
            return True
        if promotion.type == PromotionType.BUNDLE_SPECIAL:
            return any(
                b.references(variant_id=item.variant_id, product_id=item.product_id)
                for b in promotion.bundle_items
            )
        return False

    def match(
        self,
        item: CartItem,
        now: datetime,
        *,
        types: Optional[Iterable[PromotionType]] = None,
    ) -> List[Promotion]:
        wanted = {PromotionType(t) for t in types} if types is not None else None
        out = []
        # el snapshot ya viene ordenado por id desc
        for promotion in self._catalog.promotions:
            if wanted is not None and promotion.type not in wanted:
                continue
            if not promotion.is_eligible(now):
                continue
            if self.references(item, promotion, now):
                out.append(promotion)
        return out

    def best(self, item: CartItem, now: datetime, promotion_type: PromotionType) -> Optional[Promotion]:
        found = self.match(item, now, types=[promotion_type])
        return found[0] if found else None

    def check_configuration(self, promotion: Promotion) -> None:
        """Lanza ConfigurationError si la promoción referencia catálogo inexistente."""
        cat = self._catalog
        for entry in promotion.items:
            if entry.variant_id is None and entry.product_id is None and entry.category_id is None:
                raise ConfigurationError(
                    f"Promoción {promotion.id}: la entrada {entry.id} no referencia nada",
                    promotion_id=promotion.id,
                )
            if entry.variant_id is not None and cat.variant(entry.variant_id) is None:
                raise ConfigurationError(
                    f"Promoción {promotion.id}: la variante {entry.variant_id} ya no existe",
                    promotion_id=promotion.id,
                )
            if entry.product_id is not None and cat.product(entry.product_id) is None:
                raise ConfigurationError(
                    f"Promoción {promotion.id}: el producto {entry.product_id} ya no existe",
                    promotion_id=promotion.id,
                )
            if entry.category_id is not None and cat.category(entry.category_id) is None:
                raise ConfigurationError(
                    f"Promoción {promotion.id}: la categoría {entry.category_id} ya no existe",
                    promotion_id=promotion.id,
                )
        for slot in promotion.bundle_items:
            if cat.product(slot.product_id) is None or (
                slot.variant_id is not None and cat.variant(slot.variant_id) is None
            ):
                raise ConfigurationError(
                    f"Promoción {promotion.id}: el espacio {slot.id} del combinado referencia catálogo inexistente",
                    promotion_id=promotion.id,
                )
