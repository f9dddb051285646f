"""
Orden de precedencia de promociones.

    DailySpecial -> PercentageDiscount -> TwoForOne -> BundleSpecial

- Sub del Día corre primero sobre todo el carrito: el % lo consulta para no acumular.
- A cada item se le asigna una sola promoción no-combinado (la vigente de id mayor) y los
  items se agrupan por promoción; cada grupo va a su estrategia.
- El 2x1 corre después de ambos porque lee los datos del Sub del Día.
- Los combinados van al final y juntan sus items por su cuenta.

Una promoción mal configurada se omite con un aviso; nunca bloquea el cobro.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..core.errors import ConfigurationError
from ..schemas.catalog import Promotion, PromotionType
from .price_resolver import CartItem
from .promotions import DiscountLedger, PricingContext, PromotionStrategy, default_strategies

logger = logging.getLogger("menu_pricing.engine")

STAGES: Tuple[PromotionType, ...] = (
    PromotionType.DAILY_SPECIAL,
    PromotionType.PERCENTAGE_DISCOUNT,
    PromotionType.TWO_FOR_ONE,
    PromotionType.BUNDLE_SPECIAL,
)

# tipos que compiten por item (uno por item)
_PER_ITEM_TYPES = (PromotionType.PERCENTAGE_DISCOUNT, PromotionType.TWO_FOR_ONE)


class PromotionOrchestrator:
    def __init__(self, strategies: Optional[Sequence[PromotionStrategy]] = None):
        self._strategies = list(strategies) if strategies is not None else default_strategies()

    def strategy_for(self, promotion_type: PromotionType) -> Optional[PromotionStrategy]:
        return next((s for s in self._strategies if s.can_handle(promotion_type)), None)

    def assign_promotions(self, items: Sequence[CartItem], context: PricingContext) -> Dict[int, List[CartItem]]:
        """promotion_id -> items, usando la promoción vigente de id mayor para cada item."""
        groups: Dict[int, List[CartItem]] = {}
        for item in items:
            best = context.matcher.match(item, context.now, types=_PER_ITEM_TYPES)
            if best:
                groups.setdefault(best[0].id, []).append(item)
        return groups

    def bundle_groups(self, items: Sequence[CartItem], context: PricingContext) -> List[Tuple[Promotion, List[CartItem]]]:
        out = []
        for promotion in context.catalog.promotions:
            if promotion.type != PromotionType.BUNDLE_SPECIAL or not promotion.is_eligible(context.now):
                continue
            matched = [i for i in items if context.matcher.references(i, promotion, context.now)]
            if matched:
                out.append((promotion, matched))
        return out

    def run(self, items: Sequence[CartItem], context: PricingContext) -> DiscountLedger:
        ledger = DiscountLedger.open(items)
        if not items:
            return ledger

        groups = self.assign_promotions(items, context)
        for stage in STAGES:
            if stage == PromotionType.DAILY_SPECIAL:
                ledger = self._apply(stage, items, context.catalog.daily_special_promotion(context.now), ledger, context)
            elif stage == PromotionType.BUNDLE_SPECIAL:
                for promotion, matched in self.bundle_groups(items, context):
                    ledger = self._apply(stage, matched, promotion, ledger, context)
            else:
                for promotion_id in sorted(groups, reverse=True):
                    promotion = context.catalog.promotion(promotion_id)
                    if promotion.type == stage:
                        ledger = self._apply(stage, groups[promotion_id], promotion, ledger, context)
        return ledger

    def _apply(
        self,
        stage: PromotionType,
        items: Sequence[CartItem],
        promotion: Optional[Promotion],
        ledger: DiscountLedger,
        context: PricingContext,
    ) -> DiscountLedger:
        strategy = self.strategy_for(stage)
        if strategy is None:
            logger.debug("Sin estrategia para %s", stage.value)
            return ledger
        try:
            # el Sub del Día es precio del producto: la fila de promoción solo aporta su id
            if promotion is not None and stage != PromotionType.DAILY_SPECIAL:
                context.matcher.check_configuration(promotion)
            return strategy.calculate(items, promotion, ledger, context)
        except ConfigurationError as e:
            logger.warning("Promoción %s omitida: %s", e.promotion_id, e.message)
            ledger.warn(e.code.lower(), e.message, promotion_id=e.promotion_id)
            return ledger
