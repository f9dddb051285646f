from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, Iterator, List, Optional, Sequence

from ...core.config import Settings, settings as default_settings
from ...core.errors import ConfigurationError
from ...schemas.catalog import CatalogSnapshot, PriceKind, Promotion, PromotionType, ServiceType, Zone
from ...schemas.pricing import AppliedPromotion, DiscountRecord, PricingWarning
from ...utils.money import format_percent, money
from ..catalog_matcher import CatalogMatcher
from ..price_resolver import CartItem

logger = logging.getLogger("menu_pricing.promotions")


class PricingContext:
    """Datos de solo lectura compartidos por todas las estrategias en una ejecución."""

    def __init__(
        self,
        *,
        now: datetime,
        zone: Zone,
        service_type: ServiceType,
        items: Sequence[CartItem],
        catalog: CatalogSnapshot,
        matcher: Optional[CatalogMatcher] = None,
        settings: Optional[Settings] = None,
    ):
        self.now = now
        self.zone = Zone(zone)
        self.service_type = ServiceType(service_type)
        self.price_kind = PriceKind.for_context(self.zone, self.service_type)
        self.items = tuple(items)
        self.catalog = catalog
        self.matcher = matcher or CatalogMatcher(catalog)
        self.settings = settings or default_settings


class DiscountLedger:
    """
    Acumulador que recorre el pipeline de estrategias.

    Un DiscountRecord por item, indexado por ref (no por posición), más los avisos
    acumulados. Cada estrategia recibe el ledger y lo devuelve.
    """

    def __init__(self, records: Iterable[DiscountRecord] = (), warnings: Iterable[PricingWarning] = ()):
        self._records: Dict[str, DiscountRecord] = {r.item_ref: r for r in records}
        self.warnings: List[PricingWarning] = list(warnings)

    @classmethod
    def open(cls, items: Iterable[CartItem]) -> "DiscountLedger":
        records = []
        for item in items:
            base = item.normal_subtotal + item.options_total
            rec = DiscountRecord(item_ref=item.ref)
            rec.set_prices(original=base, final=base)
            records.append(rec)
        return cls(records)

    def __getitem__(self, ref: str) -> DiscountRecord:
        return self._records[ref]

    def __contains__(self, ref: str) -> bool:
        return ref in self._records

    def __iter__(self) -> Iterator[DiscountRecord]:
        return iter(self._records.values())

    def __len__(self) -> int:
        return len(self._records)

    def warn(self, code: str, message: str, *, item_ref: Optional[str] = None, promotion_id: Optional[int] = None):
        self.warnings.append(PricingWarning(code=code, message=message, item_ref=item_ref, promotion_id=promotion_id))


class PromotionStrategy(ABC):
    promotion_type: PromotionType

    def can_handle(self, promotion_type: PromotionType) -> bool:
        return PromotionType(promotion_type) == self.promotion_type

    @abstractmethod
    def calculate(
        self,
        items: Sequence[CartItem],
        promotion: Optional[Promotion],
        ledger: DiscountLedger,
        context: PricingContext,
    ) -> DiscountLedger:
        raise NotImplementedError


def percentage_for(item: CartItem, promotion: Promotion, context: PricingContext) -> Optional[Decimal]:
    """% de la entrada que hizo match; si no trae, el de la promoción."""
    entry = context.matcher.matching_entry(item, promotion, context.now)
    if entry is not None and entry.discount_percentage is not None:
        return entry.discount_percentage
    return promotion.discount_percentage


def require_percentage(item: CartItem, promotion: Promotion, context: PricingContext) -> Decimal:
    pct = percentage_for(item, promotion, context)
    if pct is None or pct <= 0:
        raise ConfigurationError(
            f"Promoción {promotion.id} ('{promotion.name}') no tiene porcentaje configurado",
            promotion_id=promotion.id,
        )
    return pct


def percentage_discount(amount: Decimal, pct: Decimal) -> Decimal:
    return money(amount * pct / Decimal(100))


def percentage_applied(promotion: Promotion, pct: Decimal) -> AppliedPromotion:
    shown = format_percent(pct)
    return AppliedPromotion(
        id=promotion.id,
        name=promotion.name,
        display_label=f"{promotion.name} -{shown}%",
        type=PromotionType.PERCENTAGE_DISCOUNT,
        value=f"{shown}%",
    )
