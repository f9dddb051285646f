from __future__ import annotations

from typing import Optional, Sequence

from ...schemas.catalog import Promotion, PromotionType
from ...schemas.pricing import DailySpecialData
from ..price_resolver import CartItem
from .base import DiscountLedger, PricingContext, PromotionStrategy, logger


class DailySpecialStrategy(PromotionStrategy):
    """
    Sub del Día: precio especial por día de la semana guardado en el propio vendible.

    No es un registro de promoción aplicada (applied_promotion queda en None); es una
    sustitución de precio. Deja `daily_special` en el registro para que el 2x1 pueda
    cobrar las unidades sobrantes a precio especial.
    """

    promotion_type = PromotionType.DAILY_SPECIAL

    def calculate(
        self,
        items: Sequence[CartItem],
        promotion: Optional[Promotion],
        ledger: DiscountLedger,
        context: PricingContext,
    ) -> DiscountLedger:
        for item in items:
            if not item.is_daily_special:
                continue
            normal = item.normal_unit_price
            special = item.unit_price
            if special >= normal:
                continue

            rec = ledger[item.ref]
            if rec.applied_promotion is not None:
                continue

            rec.set_prices(
                original=normal * item.quantity + item.options_total,
                final=special * item.quantity + item.options_total,
            )
            rec.is_daily_special = True
            rec.daily_special = DailySpecialData(
                normal_unit_price=normal,
                special_unit_price=special,
                discount_per_unit=normal - special,
                promotion_id=promotion.id if promotion else None,
            )
            logger.debug("Sub del Día %s: %s -> %s x%s", item.ref, normal, special, item.quantity)
        return ledger
