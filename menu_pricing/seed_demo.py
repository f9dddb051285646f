import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from .core.logging import configure_logging
from .db import Base, engine, get_db
from .models.catalog import BundleItem, Category, Product, ProductVariant, Promotion, PromotionItem, SectionOption

logger = logging.getLogger("menu_pricing.catalog")

D = Decimal

# (nombre, día ISO del Sub del Día)
SUBS = [
    ("Pollo Teriyaki", 1),
    ("Italiano", 2),
    ("Atún", 3),
    ("Pavo", 4),
    ("Jamón", 5),
    ("Albóndigas", 6),
    ("Vegetariano", 7),
]

# precio normal y especial por tamaño: (capital_pickup, capital_delivery, interior_pickup, interior_delivery)
SIZES = {
    "15cm": ((D("35"), D("38"), D("36"), D("40")), (D("22"), D("25"), D("23"), D("27"))),
    "30cm": ((D("60"), D("65"), D("62"), D("68")), (D("40"), D("45"), D("42"), D("48"))),
}


def get_or_create(session: Session, model, defaults=None, **kwargs):
    inst = session.query(model).filter_by(**kwargs).first()
    if inst:
        return inst, False
    params = dict(kwargs)
    if defaults:
        params.update(defaults)
    inst = model(**params)
    session.add(inst)
    session.commit()
    session.refresh(inst)
    return inst, True


def _price_cols(prefix, values):
    cp, cd, ip, idl = values
    return {
        f"{prefix}capital_pickup": cp,
        f"{prefix}capital_delivery": cd,
        f"{prefix}interior_pickup": ip,
        f"{prefix}interior_delivery": idl,
    }


def seed(db: Session) -> dict:
    subs_cat, _ = get_or_create(db, Category, name="Subs")
    drinks_cat, _ = get_or_create(db, Category, name="Bebidas")
    salads_cat, _ = get_or_create(db, Category, name="Ensaladas")

    italiano_15 = None
    for name, day in SUBS:
        prod, _ = get_or_create(
            db, Product, name=f"Sub {name}", category_id=subs_cat.id,
            defaults=_price_cols("price_", SIZES["15cm"][0]),
        )
        for size, (normal, special) in SIZES.items():
            cols = _price_cols("price_", normal)
            cols.update(_price_cols("daily_special_price_", special))
            cols.update(is_daily_special=True, daily_special_days=[day], size=size)
            sku = f"SUB-{prod.id:02d}-{size}"
            variant, _ = get_or_create(
                db, ProductVariant, sku=sku, product_id=prod.id, name=f"Sub {name} {size}", defaults=cols,
            )
            if name == "Italiano" and size == "15cm":
                italiano_15 = variant

    bebida, _ = get_or_create(
        db, Product, name="Bebida 16oz", category_id=drinks_cat.id,
        defaults=_price_cols("price_", (D("12"), D("12"), D("13"), D("13"))),
    )
    get_or_create(
        db, Product, name="Ensalada César", category_id=salads_cat.id,
        defaults=_price_cols("price_", (D("40"), D("44"), D("42"), D("46"))),
    )

    for name, extra in (("Extra queso", D("5")), ("Aguacate", D("8")), ("Doble carne", D("12"))):
        get_or_create(db, SectionOption, name=name, defaults=_price_cols("price_", (extra,) * 4))

    daily, _ = get_or_create(db, Promotion, name="Sub del Día", type="daily_special")

    two_for_one, created = get_or_create(db, Promotion, name="Promo Bebidas", type="two_for_one")
    if created:
        db.add(PromotionItem(promotion_id=two_for_one.id, category_id=drinks_cat.id))
        db.commit()

    salads, created = get_or_create(
        db, Promotion, name="Ensaladas", type="percentage_discount", defaults={"discount_percentage": D("15")},
    )
    if created:
        db.add(PromotionItem(promotion_id=salads.id, category_id=salads_cat.id))
        db.commit()

    combo, created = get_or_create(
        db, Promotion, name="Combo Italiano + Bebida", type="bundle_special",
        defaults=_price_cols("special_price_", (D("42"), D("46"), D("44"), D("48"))),
    )
    if created:
        db.add_all([
            BundleItem(promotion_id=combo.id, product_id=italiano_15.product_id, variant_id=italiano_15.id),
            BundleItem(promotion_id=combo.id, product_id=bebida.id),
        ])
        db.commit()

    out = {
        "daily_special_id": daily.id,
        "two_for_one_id": two_for_one.id,
        "percentage_id": salads.id,
        "bundle_id": combo.id,
    }
    logger.info("Seed OK | %s", out)
    return out


def main():
    configure_logging()
    Base.metadata.create_all(bind=engine)
    with get_db() as db:
        out = seed(db)
    print(f"Seed OK | promociones={out}")


if __name__ == "__main__":
    main()
