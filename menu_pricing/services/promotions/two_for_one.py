from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence, Tuple

from ...core.errors import ConfigurationError
from ...schemas.catalog import Promotion, PromotionType
from ...schemas.pricing import AppliedPromotion, DiscountRecord
from ...utils.money import ZERO, format_percent
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


class TwoForOneStrategy(PromotionStrategy):
    """
    2x1 a nivel de carrito.

    Con N unidades elegibles hay floor(N/2) gratis y floor(N/2)*2 unidades entran al 2x1.
    Se recorren los items del más barato al más caro (precio normal): las primeras unidades
    del pool son las gratis. El 2x1 siempre usa el precio normal aunque el item sea Sub del Día.

    Unidad sobrante (fuera del pool, como máximo una):
      a) Sub del Día del item, si lo tiene  -> etiqueta combinada "2x1 + Sub del Día"
      b) descuento % vigente para ese item (el de id mayor)
      c) precio normal sin descuento
    """

    promotion_type = PromotionType.TWO_FOR_ONE

    def calculate(
        self,
        items: Sequence[CartItem],
        promotion: Optional[Promotion],
        ledger: DiscountLedger,
        context: PricingContext,
    ) -> DiscountLedger:
        if promotion is None:
            raise ConfigurationError("2x1 sin promoción")

        total_quantity = sum(i.quantity for i in items)
        if total_quantity < 2:
            logger.debug("2x1 %s: solo %s unidad(es), no aplica", promotion.id, total_quantity)
            return ledger

        free_units = total_quantity // 2
        units_in_promo = free_units * 2

        # estable: a igual precio se respeta el orden del carrito
        ordered = sorted(items, key=lambda i: (i.normal_unit_price, i.position))
        free_count = 0
        processed = 0

        for item in ordered:
            rec = ledger[item.ref]
            in_pool = min(item.quantity, units_in_promo - processed)
            leftover = item.quantity - in_pool
            normal = item.normal_unit_price
            original = normal * item.quantity + item.options_total

            if in_pool > 0:
                processed += in_pool
                free = min(in_pool, free_units - free_count)
                free_count += free

                pool_price = normal * in_pool - normal * free
                leftover_price, label, value = self._leftover_in_pool(item, rec, promotion, leftover, context)
                rec.set_prices(original=original, final=pool_price + leftover_price + item.options_total)
                rec.is_daily_special = False
                rec.applied_promotion = AppliedPromotion(
                    id=promotion.id,
                    name=promotion.name,
                    display_label=label,
                    type=PromotionType.TWO_FOR_ONE,
                    value=value,
                )
            else:
                self._leftover_item(item, rec, context)

        return ledger

    def _leftover_in_pool(
        self,
        item: CartItem,
        rec: DiscountRecord,
        promotion: Promotion,
        leftover: int,
        context: PricingContext,
    ) -> Tuple[Decimal, str, str]:
        """Precio de las unidades sobrantes de un item que también tiene unidades en el pool."""
        label = f"{promotion.name} 2x1"
        if leftover == 0:
            return ZERO, label, "2x1"

        normal_leftover = item.normal_unit_price * leftover
        ds = rec.daily_special
        if ds is not None:
            ds_label = context.settings.daily_special_label
            return ds.special_unit_price * leftover, f"{label} + {ds_label}", f"2x1 + {ds_label}"

        pct_promo, pct = self._leftover_percentage(item, context)
        if pct_promo is not None:
            shown = format_percent(pct)
            return (
                normal_leftover - percentage_discount(normal_leftover, pct),
                f"{label} + {pct_promo.name} -{shown}%",
                f"2x1 + {shown}%",
            )
        return normal_leftover, label, "2x1"

    def _leftover_item(self, item: CartItem, rec: DiscountRecord, context: PricingContext) -> None:
        """Item completo fuera del pool."""
        if rec.daily_special is not None:
            # conserva el Sub del Día ya registrado
            return

        base = item.normal_subtotal
        original = base + item.options_total
        pct_promo, pct = self._leftover_percentage(item, context)
        if pct_promo is not None:
            rec.set_prices(original=original, final=base - percentage_discount(base, pct) + item.options_total)
            rec.applied_promotion = percentage_applied(pct_promo, pct)
            return

        rec.set_prices(original=original, final=original)
        rec.applied_promotion = None

    @staticmethod
    def _leftover_percentage(
        item: CartItem, context: PricingContext,
    ) -> Tuple[Optional[Promotion], Optional[Decimal]]:
        """Descuento % vigente (id mayor) para unidades sobrantes; mal configurado = sin descuento."""
        pct_promo = context.matcher.best(item, context.now, PromotionType.PERCENTAGE_DISCOUNT)
        if pct_promo is None:
            return None, None
        try:
            context.matcher.check_configuration(pct_promo)
            return pct_promo, require_percentage(item, pct_promo, context)
        except ConfigurationError as e:
            logger.warning("Sobrante de %s sin %% por promoción %s mal configurada: %s", item.ref, pct_promo.id, e.message)
            return None, None
