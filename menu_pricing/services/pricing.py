"""
Punto de entrada del motor de precios.

compute(request) es función pura de (carrito, instantánea del catálogo, now): no hay estado
compartido entre llamadas, así que el mismo PricingEngine puede usarse desde varios hilos.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from ..core.clock import Clock, system_clock, to_local
from ..core.config import Settings, settings as default_settings
from ..core.errors import ItemUnavailableError
from ..schemas.catalog import CatalogSnapshot, Promotion, ServiceType, Zone
from ..schemas.pricing import CartValidation, ComputeRequest, ComputeResult, PricingWarning, UnavailableItem
from .breakdown import build_breakdown
from .cart_validation import validate_cart
from .catalog_matcher import CatalogMatcher
from .orchestrator import PromotionOrchestrator
from .price_resolver import CartItem, build_cart_item
from .promotions import PricingContext

logger = logging.getLogger("menu_pricing.engine")


def _as_request(request) -> ComputeRequest:
    if isinstance(request, ComputeRequest):
        return request
    return ComputeRequest.model_validate(request)


class PricingEngine:
    def __init__(
        self,
        catalog: CatalogSnapshot,
        clock: Clock = system_clock,
        settings: Optional[Settings] = None,
        orchestrator: Optional[PromotionOrchestrator] = None,
    ):
        self.catalog = catalog
        self.clock = clock
        self.settings = settings or default_settings
        self.matcher = CatalogMatcher(catalog)
        self.orchestrator = orchestrator or PromotionOrchestrator()

    def _context_for(self, request: ComputeRequest, items: List[CartItem]) -> PricingContext:
        return PricingContext(
            now=to_local(request.now or self.clock(), self.settings.timezone),
            zone=request.zone or Zone(self.settings.default_zone),
            service_type=request.service_type or ServiceType(self.settings.default_service_type),
            items=items,
            catalog=self.catalog,
            matcher=self.matcher,
            settings=self.settings,
        )

    def compute(self, request: ComputeRequest) -> ComputeResult:
        request = _as_request(request)
        ctx = self._context_for(request, [])
        items: List[CartItem] = []
        unavailable: List[UnavailableItem] = []
        warnings: List[PricingWarning] = []

        for position, line in enumerate(request.items):
            try:
                item, line_warnings = build_cart_item(line, position, self.catalog, ctx.price_kind, ctx.now)
            except ItemUnavailableError as e:
                logger.info("Item %s no disponible (%s): %s", e.item_ref, e.reason, e.message)
                unavailable.append(UnavailableItem(
                    item_ref=e.item_ref or line.ref,
                    product_id=line.product_id,
                    variant_id=line.variant_id,
                    reason=e.reason,
                    message=e.message,
                ))
                continue
            items.append(item)
            warnings.extend(line_warnings)

        ctx.items = tuple(items)
        ledger = self.orchestrator.run(items, ctx)
        result = build_breakdown(
            items, ledger, now=ctx.now, unavailable=unavailable, warnings=warnings, settings=self.settings,
        )
        logger.debug(
            "Carrito calculado: %s item(s), total %s, descuento %s",
            result.items_count, result.cart_total, result.discount_total,
        )
        return result

    def validate_cart(self, request: ComputeRequest) -> CartValidation:
        request = _as_request(request)
        return validate_cart(request, self.catalog)

    def applicable_promotions(self, request: ComputeRequest) -> List[Promotion]:
        """Promociones vigentes que aplican a algún item del carrito (id mayor primero)."""
        request = _as_request(request)
        ctx = self._context_for(request, [])
        found = {}
        for position, line in enumerate(request.items):
            try:
                item, _ = build_cart_item(line, position, self.catalog, ctx.price_kind, ctx.now)
            except ItemUnavailableError:
                continue
            for promotion in self.matcher.match(item, ctx.now):
                found[promotion.id] = promotion
        return [found[pid] for pid in sorted(found, reverse=True)]


def compute_prices(
    request: ComputeRequest,
    catalog: CatalogSnapshot,
    clock: Clock = system_clock,
    settings: Optional[Settings] = None,
) -> ComputeResult:
    return PricingEngine(catalog, clock=clock, settings=settings).compute(request)
