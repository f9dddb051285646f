"""Lectura del catálogo desde la base (SQLAlchemy) a una instantánea inmutable."""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session, selectinload

from ..models import catalog as m
from ..schemas.catalog import (
    ActivityWindow,
    BundleItem,
    CatalogSnapshot,
    Category,
    PriceMatrix,
    Product,
    ProductVariant,
    Promotion,
    PromotionItem,
    SectionOption,
)

logger = logging.getLogger("menu_pricing.catalog")


def _prices(row, prefix: str) -> PriceMatrix:
    return PriceMatrix.from_columns(
        capital_pickup=getattr(row, f"{prefix}capital_pickup"),
        capital_delivery=getattr(row, f"{prefix}capital_delivery"),
        interior_pickup=getattr(row, f"{prefix}interior_pickup"),
        interior_delivery=getattr(row, f"{prefix}interior_delivery"),
    )


def _window(row) -> ActivityWindow:
    return ActivityWindow(
        weekdays=row.weekdays or (),
        valid_from=row.valid_from,
        valid_until=row.valid_until,
        time_from=row.time_from,
        time_until=row.time_until,
    )


def _sellable_fields(row) -> dict:
    return dict(
        id=row.id,
        name=row.name,
        is_active=bool(row.is_active),
        prices=_prices(row, "price_"),
        is_daily_special=bool(row.is_daily_special),
        daily_special_days=row.daily_special_days or (),
        daily_special_prices=_prices(row, "daily_special_price_"),
    )


def to_promotion(row: m.Promotion) -> Promotion:
    return Promotion(
        id=row.id,
        name=row.name,
        type=row.type,
        is_active=bool(row.is_active),
        window=_window(row),
        discount_percentage=row.discount_percentage,
        items=tuple(
            PromotionItem(
                id=pi.id,
                product_id=pi.product_id,
                variant_id=pi.variant_id,
                category_id=pi.category_id,
                discount_percentage=pi.discount_percentage,
                window=_window(pi),
            )
            for pi in sorted(row.items, key=lambda x: x.id)
        ),
        bundle_items=tuple(
            BundleItem(id=b.id, product_id=b.product_id, variant_id=b.variant_id, quantity=b.quantity or 1)
            for b in sorted(row.bundle_items, key=lambda x: x.id)
        ),
        bundle_prices=_prices(row, "special_price_"),
    )


def load_catalog(db: Session) -> CatalogSnapshot:
    categories = [Category(id=c.id, name=c.name, is_active=bool(c.is_active)) for c in db.query(m.Category).all()]
    products = [
        Product(category_id=p.category_id, **_sellable_fields(p))
        for p in db.query(m.Product).all()
    ]
    variants = [
        ProductVariant(product_id=v.product_id, sku=v.sku, size=v.size, **_sellable_fields(v))
        for v in db.query(m.ProductVariant).all()
    ]
    options = [
        SectionOption(id=o.id, name=o.name, price_modifiers=_prices(o, "price_"))
        for o in db.query(m.SectionOption).all()
    ]
    promotions = [
        to_promotion(p)
        for p in db.query(m.Promotion).options(
            selectinload(m.Promotion.items), selectinload(m.Promotion.bundle_items),
        ).all()
    ]
    logger.info(
        "Catálogo cargado: %s productos, %s variantes, %s opciones, %s promociones",
        len(products), len(variants), len(options), len(promotions),
    )
    return CatalogSnapshot(
        categories=categories,
        products=products,
        variants=variants,
        options=options,
        promotions=promotions,
    )
