from __future__ import annotations

from typing import Optional, Sequence

from ...core.errors import ConfigurationError
from ...schemas.catalog import Promotion, PromotionType
from ..price_resolver import CartItem
from .base import (
    DiscountLedger,
    PricingContext,
    PromotionStrategy,
    logger,
    percentage_applied,
    percentage_discount,
    require_percentage,
)


class PercentageDiscountStrategy(PromotionStrategy):
    """Descuento % sobre el precio base; los extras se cobran completos."""

    promotion_type = PromotionType.PERCENTAGE_DISCOUNT

    def calculate(
        self,
        items: Sequence[CartItem],
        promotion: Optional[Promotion],
        ledger: DiscountLedger,
        context: PricingContext,
    ) -> DiscountLedger:
        if promotion is None:
            raise ConfigurationError("Descuento % sin promoción")

        # se valida todo antes de tocar el ledger
        pending = []
        for item in items:
            rec = ledger[item.ref]
            if rec.is_daily_special:
                # el Sub del Día gana siempre sobre el %
                logger.debug("Item %s es Sub del Día; se omite %s", item.ref, promotion.name)
                continue
            if rec.applied_promotion is not None:
                continue
            pending.append((item, rec, require_percentage(item, promotion, context)))

        for item, rec, pct in pending:
            base = item.normal_subtotal
            discount = percentage_discount(base, pct)
            rec.set_prices(
                original=base + item.options_total,
                final=base - discount + item.options_total,
            )
            rec.applied_promotion = percentage_applied(promotion, pct)
        return ledger
