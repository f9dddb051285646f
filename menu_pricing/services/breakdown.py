"""
Armado del resultado: desglose por item, totales del carrito y resumen de promociones.

Falla cerrado: un precio final negativo se deja en 0 (descuento = original) y se avisa.
"""
from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..core.config import Settings, settings as default_settings
from ..schemas.catalog import PromotionType
from ..schemas.pricing import (
    ComputeResult,
    DiscountRecord,
    ItemBreakdown,
    PricingWarning,
    PromotionSummary,
    UnavailableItem,
)
from ..utils.money import ZERO, money
from .price_resolver import CartItem
from .promotions import DiscountLedger

logger = logging.getLogger("menu_pricing.engine")


def clamp_negative(rec: DiscountRecord, ledger: DiscountLedger) -> None:
    if rec.final_price >= 0:
        return
    logger.warning("Precio final negativo en %s (%s); se cobra 0", rec.item_ref, rec.final_price)
    ledger.warn(
        "negative_price_clamped",
        f"Precio final {rec.final_price} < 0; se ajusta a 0",
        item_ref=rec.item_ref,
        promotion_id=rec.applied_promotion.id if rec.applied_promotion else None,
    )
    rec.set_prices(original=rec.original_price, final=ZERO)


def item_breakdown(item: CartItem, rec: DiscountRecord) -> ItemBreakdown:
    # el precio unitario mostrado es el especial sólo si el registro quedó como Sub del Día
    unit_price = item.unit_price if rec.is_daily_special else item.normal_unit_price
    return ItemBreakdown(
        item_ref=item.ref,
        product_id=item.product_id,
        variant_id=item.variant_id,
        quantity=item.quantity,
        unit_price=unit_price,
        subtotal=money(unit_price * item.quantity),
        options_total=item.options_total,
        original_price=rec.original_price,
        discount_amount=rec.discount_amount,
        final_price=rec.final_price,
        is_daily_special=rec.is_daily_special,
        applied_promotion=rec.applied_promotion,
    )


def summarize_promotions(records: Iterable[DiscountRecord], settings: Settings) -> List[PromotionSummary]:
    summaries: Dict[Tuple[str, Optional[int]], PromotionSummary] = {}
    for rec in records:
        if rec.discount_amount <= 0:
            continue
        if rec.applied_promotion is not None:
            ap = rec.applied_promotion
            key = (ap.type.value, ap.id)
            name, ptype = ap.name, ap.type
        elif rec.is_daily_special:
            pid = rec.daily_special.promotion_id if rec.daily_special else None
            key = (PromotionType.DAILY_SPECIAL.value, pid)
            name, ptype = settings.daily_special_label, PromotionType.DAILY_SPECIAL
        else:
            continue
        summary = summaries.get(key)
        if summary is None:
            summary = summaries[key] = PromotionSummary(
                promotion_id=key[1], name=name, type=ptype, discount_amount=ZERO,
            )
        summary.discount_amount = money(summary.discount_amount + rec.discount_amount)
        summary.item_refs.append(rec.item_ref)
    return list(summaries.values())


def build_breakdown(
    items: Sequence[CartItem],
    ledger: DiscountLedger,
    *,
    now: datetime,
    unavailable: Sequence[UnavailableItem] = (),
    warnings: Sequence[PricingWarning] = (),
    settings: Optional[Settings] = None,
) -> ComputeResult:
    settings = settings or default_settings
    lines: List[ItemBreakdown] = []
    for item in items:
        rec = ledger[item.ref]
        clamp_negative(rec, ledger)
        lines.append(item_breakdown(item, rec))

    records = [ledger[i.ref] for i in items]
    return ComputeResult(
        items=lines,
        subtotal=money(sum((l.original_price for l in lines), Decimal(0))),
        discount_total=money(sum((l.discount_amount for l in lines), Decimal(0))),
        cart_total=money(sum((l.final_price for l in lines), Decimal(0))),
        items_count=sum(l.quantity for l in lines),
        promotions_applied=summarize_promotions(records, settings),
        unavailable_items=list(unavailable),
        warnings=list(warnings) + list(ledger.warnings),
        computed_at=now,
    )
