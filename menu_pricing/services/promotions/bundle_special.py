from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Sequence

from ...core.errors import ConfigurationError
from ...schemas.catalog import Promotion, PromotionType
from ...schemas.pricing import AppliedPromotion
from ...utils.money import format_money, money
from ..price_resolver import CartItem
from .base import DiscountLedger, PricingContext, PromotionStrategy, logger


class BundleSpecialStrategy(PromotionStrategy):
    """
    Combinado: precio fijo por zona x servicio para un conjunto de items.

    El descuento total (suma normal - precio del combinado) se reparte proporcional al
    subtotal de cada item; cada parte se redondea por separado, así que la suma de las
    partes puede diferir del total en centavos. Nunca sube un precio.
    """

    promotion_type = PromotionType.BUNDLE_SPECIAL

    def calculate(
        self,
        items: Sequence[CartItem],
        promotion: Optional[Promotion],
        ledger: DiscountLedger,
        context: PricingContext,
    ) -> DiscountLedger:
        if promotion is None:
            raise ConfigurationError("Combinado sin promoción")

        candidates: List[CartItem] = []
        for item in items:
            if ledger[item.ref].is_discounted:
                logger.warning(
                    "Combinado %s se traslapa con item %s ya descontado; se excluye", promotion.id, item.ref,
                )
                ledger.warn(
                    "bundle_overlap",
                    f"'{promotion.name}' coincide con un item que ya tiene descuento",
                    item_ref=item.ref,
                    promotion_id=promotion.id,
                )
                continue
            candidates.append(item)

        if not candidates:
            return ledger
        if not self._slots_filled(candidates, promotion):
            logger.debug("Combinado %s: el carrito no completa todos los espacios", promotion.id)
            return ledger

        bundle_price = promotion.bundle_prices.get(context.price_kind)
        if bundle_price is None:
            raise ConfigurationError(
                f"Combinado {promotion.id} sin precio para {context.price_kind.value}",
                promotion_id=promotion.id,
                code="BUNDLE_PRICE_MISSING",
            )
        bundle_price = money(bundle_price)

        normal_total = sum((i.normal_subtotal for i in candidates), Decimal(0))
        if bundle_price >= normal_total:
            logger.debug("Combinado %s: precio %s >= normal %s, no aplica", promotion.id, bundle_price, normal_total)
            return ledger

        total_discount = normal_total - bundle_price
        applied = AppliedPromotion(
            id=promotion.id,
            name=promotion.name,
            display_label=promotion.name,
            type=PromotionType.BUNDLE_SPECIAL,
            value=format_money(bundle_price, context.settings.currency_symbol),
        )
        for item in candidates:
            share = money(total_discount * item.normal_subtotal / normal_total)
            rec = ledger[item.ref]
            rec.set_prices(
                original=item.normal_subtotal + item.options_total,
                final=item.normal_subtotal - share + item.options_total,
            )
            rec.applied_promotion = applied
        return ledger

    @staticmethod
    def _slots_filled(items: Sequence[CartItem], promotion: Promotion) -> bool:
        for slot in promotion.bundle_items:
            have = sum(
                i.quantity for i in items
                if slot.references(variant_id=i.variant_id, product_id=i.product_id)
            )
            if have < slot.quantity:
                return False
        return True
