import datetime as dt
from decimal import Decimal

import pytest
from pydantic import ValidationError

from menu_pricing import ComputeRequest, compute_prices
from menu_pricing.core.clock import fixed_clock
from menu_pricing.core.config import Settings
from menu_pricing.schemas.catalog import PriceMatrix
from menu_pricing.services.pricing import PricingEngine

from factories import (
    BEBIDA,
    BEBIDAS,
    ENSALADA,
    ENSALADAS,
    FLAN,
    ITALIANO_15,
    MONDAY,
    PASTEL,
    PAY,
    POSTRES,
    SUB_ITALIANO,
    SUB_POLLO,
    SUBS,
    TUESDAY,
    bundle,
    entry,
    make_catalog,
    percentage,
    promo,
    two_for_one,
    window,
)

COMBO_SLOTS = [dict(product_id=SUB_ITALIANO, variant_id=ITALIANO_15), dict(product_id=BEBIDA)]


def _req(*lines, zone="capital", service_type="pickup", now=None):
    items = []
    for n, ln in enumerate(lines):
        ln = dict(ln)
        ln.setdefault("ref", f"i{n}")
        items.append(ln)
    return ComputeRequest(items=items, zone=zone, service_type=service_type, now=now)


def _by_ref(result):
    return {i.item_ref: i for i in result.items}


def _assert_invariants(result):
    for i in result.items:
        assert i.final_price >= 0
        assert abs(i.final_price + i.discount_amount - i.original_price) <= Decimal("0.01")
    assert result.cart_total == sum((i.final_price for i in result.items), Decimal("0"))


# --- escenarios base ---

def test_daily_special_is_price_substitution(engine_for):
    res = engine_for(make_catalog(), MONDAY).compute(_req({"product_id": SUB_POLLO}))
    line = res.items[0]
    assert line.unit_price == Decimal("22.00") and line.is_daily_special is True
    assert line.applied_promotion is None
    assert line.original_price == Decimal("35.00") and line.final_price == Decimal("22.00")
    assert res.promotions_applied[0].type == "daily_special" and res.promotions_applied[0].name == "Sub del Día"


def test_percentage_twenty_on_fifty(engine_for):
    catalog = make_catalog(percentage(2, 20, category_id=ENSALADAS))
    res = engine_for(catalog).compute(_req({"product_id": ENSALADA}))
    line = res.items[0]
    assert line.discount_amount == Decimal("10.00") and line.final_price == Decimal("40.00")
    assert line.applied_promotion.type == "percentage_discount"


def test_two_for_one_twenty_twentyfive_thirty(engine_for):
    catalog = make_catalog(two_for_one(3, category_id=POSTRES))
    res = engine_for(catalog).compute(_req({"product_id": FLAN}, {"product_id": PASTEL}, {"product_id": PAY}))
    assert res.subtotal == Decimal("75.00")
    assert res.discount_total == Decimal("20.00")
    assert res.cart_total == Decimal("55.00")
    _assert_invariants(res)


def test_bundle_at_or_above_normal_is_noop(engine_for):
    catalog = make_catalog(bundle(4, 42, COMBO_SLOTS))
    res = engine_for(catalog).compute(_req(
        {"product_id": SUB_ITALIANO, "variant_id": ITALIANO_15}, {"product_id": BEBIDA},
    ))
    assert res.cart_total == Decimal("42.00") and res.discount_total == 0


def test_bundle_applied_and_summarized(engine_for):
    catalog = make_catalog(bundle(4, 36, COMBO_SLOTS, name="Combo Italiano"))
    res = engine_for(catalog).compute(_req(
        {"product_id": SUB_ITALIANO, "variant_id": ITALIANO_15}, {"product_id": BEBIDA},
    ))
    assert res.cart_total == Decimal("36.00")
    [summary] = res.promotions_applied
    assert summary.promotion_id == 4 and summary.discount_amount == Decimal("6.00")
    assert summary.item_refs == ["i0", "i1"]
    _assert_invariants(res)


# --- precedencia ---

def test_daily_special_beats_percentage(engine_for):
    catalog = make_catalog(percentage(9, 20, category_id=SUBS))
    monday = engine_for(catalog, MONDAY).compute(_req({"product_id": SUB_POLLO}))
    assert monday.items[0].is_daily_special and monday.items[0].applied_promotion is None
    assert monday.items[0].final_price == Decimal("22.00")

    tuesday = engine_for(catalog, TUESDAY).compute(_req({"product_id": SUB_POLLO}))
    assert tuesday.items[0].final_price == Decimal("28.00")
    assert tuesday.items[0].applied_promotion.type == "percentage_discount"


def test_stale_daily_special_promotion_row_does_not_drop_the_special(engine_for):
    stale = promo(1, "daily_special", name="Sub del Día", items=[entry(10, product_id=999)])
    catalog = make_catalog(stale, percentage(9, 20, category_id=SUBS))
    res = engine_for(catalog, MONDAY).compute(_req({"product_id": SUB_POLLO}))
    line = res.items[0]
    assert line.unit_price == Decimal("22.00") and line.is_daily_special is True
    assert line.applied_promotion is None and line.final_price == Decimal("22.00")
    assert res.warnings == [] and res.promotions_applied[0].promotion_id == 1


def test_one_promotion_per_item_highest_id(engine_for):
    catalog = make_catalog(percentage(3, 10, category_id=ENSALADAS), two_for_one(8, category_id=ENSALADAS))
    res = engine_for(catalog).compute(_req({"product_id": ENSALADA, "quantity": 2}))
    assert res.items[0].applied_promotion.type == "two_for_one" and res.cart_total == Decimal("50.00")

    catalog = make_catalog(percentage(9, 10, category_id=ENSALADAS), two_for_one(8, category_id=ENSALADAS))
    res = engine_for(catalog).compute(_req({"product_id": ENSALADA, "quantity": 2}))
    assert res.items[0].applied_promotion.type == "percentage_discount" and res.cart_total == Decimal("90.00")


def test_two_for_one_leftover_with_daily_special_in_cart(engine_for):
    catalog = make_catalog(two_for_one(3, category_id=SUBS))
    res = engine_for(catalog, MONDAY).compute(_req({"product_id": SUB_POLLO, "quantity": 3}))
    line = res.items[0]
    assert line.final_price == Decimal("57.00")
    assert line.applied_promotion.display_label == "Promo 2x1 + Sub del Día"
    _assert_invariants(res)


# --- errores recuperables ---

def test_misconfigured_promotion_skipped_with_warning(engine_for):
    broken = promo(5, "percentage_discount", discount_percentage=10, items=[
        entry(50, category_id=ENSALADAS), entry(51, product_id=999),
    ])
    res = engine_for(make_catalog(broken)).compute(_req({"product_id": ENSALADA}, {"product_id": BEBIDA}))
    assert res.cart_total == Decimal("62.00")
    assert [(w.code, w.promotion_id) for w in res.warnings] == [("promotion_misconfigured", 5)]


def test_percentage_without_value_skipped(engine_for):
    catalog = make_catalog(percentage(5, None, category_id=ENSALADAS))
    res = engine_for(catalog).compute(_req({"product_id": ENSALADA}))
    assert res.items[0].final_price == Decimal("50.00") and res.warnings[0].code == "promotion_misconfigured"


def test_bundle_without_cell_price_warns(engine_for):
    combo = bundle(4, PriceMatrix.from_columns(capital_pickup=36), COMBO_SLOTS)
    res = engine_for(make_catalog(combo)).compute(_req(
        {"product_id": SUB_ITALIANO, "variant_id": ITALIANO_15}, {"product_id": BEBIDA}, service_type="delivery",
    ))
    assert res.cart_total == Decimal("42.00")
    assert res.warnings[0].code == "bundle_price_missing"


def test_bundle_overlap_leaves_discounted_items_alone(engine_for):
    catalog = make_catalog(two_for_one(3, product_id=BEBIDA), bundle(4, 30, COMBO_SLOTS))
    res = engine_for(catalog).compute(_req(
        {"product_id": SUB_ITALIANO, "variant_id": ITALIANO_15}, {"product_id": BEBIDA, "quantity": 2},
    ))
    lines = _by_ref(res)
    assert lines["i1"].final_price == Decimal("12.00") and lines["i1"].applied_promotion.type == "two_for_one"
    assert lines["i0"].final_price == Decimal("30.00") and lines["i0"].applied_promotion is None
    assert [(w.code, w.item_ref) for w in res.warnings] == [("bundle_overlap", "i1")]


def test_negative_final_price_clamped(engine_for):
    catalog = make_catalog(percentage(2, 150, category_id=ENSALADAS))
    res = engine_for(catalog).compute(_req({"product_id": ENSALADA}))
    line = res.items[0]
    assert line.final_price == Decimal("0.00") and line.discount_amount == Decimal("50.00")
    assert res.warnings[0].code == "negative_price_clamped"
    _assert_invariants(res)


def test_missing_cell_reported_rest_of_cart_priced(engine_for):
    res = engine_for(make_catalog(), MONDAY).compute(_req(
        {"product_id": SUB_POLLO}, {"product_id": BEBIDA}, {"product_id": 999},
        zone="interior", service_type="delivery",
    ))
    assert [i.item_ref for i in res.items] == ["i1"]
    assert [(u.item_ref, u.reason) for u in res.unavailable_items] == [
        ("i0", "missing_price_cell"), ("i2", "product_not_found"),
    ]
    assert res.cart_total == Decimal("12.00")


def test_unknown_option_ignored(engine_for):
    res = engine_for(make_catalog()).compute(_req({"product_id": BEBIDA, "selected_option_ids": [12345]}))
    assert res.cart_total == Decimal("12.00") and res.warnings[0].code == "option_not_found"


# --- contrato ---

def test_deterministic_output(engine_for):
    catalog = make_catalog(
        percentage(2, 20, category_id=ENSALADAS), two_for_one(3, category_id=BEBIDAS), bundle(4, 36, COMBO_SLOTS),
    )
    req = _req(
        {"product_id": ENSALADA, "selected_option_ids": [100]},
        {"product_id": BEBIDA, "quantity": 3},
        {"product_id": SUB_POLLO, "quantity": 2},
        now=MONDAY,
    )
    a = engine_for(catalog).compute(req).model_dump(mode="json")
    b = engine_for(catalog).compute(req).model_dump(mode="json")
    assert a == b
    assert "daily_special" not in a["items"][0]


def test_clock_used_when_now_missing(engine_for):
    res = engine_for(make_catalog(), MONDAY).compute(_req({"product_id": SUB_POLLO}))
    assert res.computed_at == MONDAY and res.items[0].is_daily_special


def test_request_now_overrides_clock(engine_for):
    res = engine_for(make_catalog(), TUESDAY).compute(_req({"product_id": SUB_POLLO}, now=MONDAY))
    assert res.computed_at == MONDAY and res.items[0].unit_price == Decimal("22.00")


def test_plain_dict_request_and_normalized_enums():
    res = compute_prices(
        {"items": [{"product_id": BEBIDA, "quantity": 2}], "zone": "CAPITAL", "service_type": " Pickup "},
        make_catalog(),
        clock=fixed_clock(TUESDAY),
    )
    assert res.items[0].item_ref == "line-0" and res.items_count == 2 and res.cart_total == Decimal("24.00")


def test_duplicate_refs_rejected():
    with pytest.raises(ValidationError):
        ComputeRequest(items=[{"ref": "a", "product_id": 1}, {"ref": "a", "product_id": 2}])


def test_quantity_must_be_positive():
    with pytest.raises(ValidationError):
        ComputeRequest(items=[{"product_id": 1, "quantity": 0}])


def test_empty_cart(engine_for):
    res = engine_for(make_catalog()).compute(_req())
    assert res.items == [] and res.cart_total == 0 and res.items_count == 0


# --- operaciones auxiliares ---

def test_applicable_promotions(engine_for):
    catalog = make_catalog(
        percentage(2, 10, category_id=ENSALADAS),
        two_for_one(5, category_id=BEBIDAS),
        percentage(7, 10, category_id=SUBS),
        percentage(8, 10, category_id=ENSALADAS, is_active=False),
    )
    found = engine_for(catalog).applicable_promotions(_req({"product_id": ENSALADA}, {"product_id": BEBIDA}))
    assert [p.id for p in found] == [5, 2]


def test_validate_cart(engine_for):
    engine = engine_for(make_catalog())
    empty = engine.validate_cart(_req())
    assert empty.valid is False and empty.messages == ["El carrito está vacío"]

    bad = engine.validate_cart(_req({"product_id": 999}, {"product_id": SUB_ITALIANO}))
    assert bad.valid is False and len(bad.messages) == 2

    ok = engine.validate_cart(_req({"product_id": SUB_ITALIANO, "variant_id": ITALIANO_15}))
    assert ok.valid is True and ok.messages == []


# --- zona horaria ---

def _guatemala_engine(catalog):
    return PricingEngine(catalog, clock=fixed_clock(TUESDAY), settings=Settings(timezone="America/Guatemala"))


def test_aware_utc_now_uses_local_weekday():
    # 02:00 UTC del martes = lunes 20:00 en Guatemala (UTC-6)
    at = dt.datetime(2025, 8, 26, 2, 0, tzinfo=dt.timezone.utc)
    res = _guatemala_engine(make_catalog()).compute(_req({"product_id": SUB_POLLO}, now=at))
    assert res.items[0].unit_price == Decimal("22.00") and res.items[0].is_daily_special
    assert res.computed_at.isoweekday() == 1 and res.computed_at.hour == 20
    assert res.computed_at == at


def test_aware_utc_now_before_local_midnight():
    # 05:00 UTC del lunes = domingo 23:00 en Guatemala: todavía no es lunes
    at = dt.datetime(2025, 8, 25, 5, 0, tzinfo=dt.timezone.utc)
    res = _guatemala_engine(make_catalog()).compute(_req({"product_id": SUB_POLLO}, now=at))
    assert res.items[0].unit_price == Decimal("35.00") and res.items[0].is_daily_special is False


def test_aware_now_time_window_checked_in_local_time():
    # promo 11:00-15:00 hora local; 18:30 UTC = 12:30 en Guatemala
    catalog = make_catalog(percentage(
        2, 20, category_id=ENSALADAS, window=window(time_from=dt.time(11, 0), time_until=dt.time(15, 0)),
    ))
    inside = dt.datetime(2025, 8, 26, 18, 30, tzinfo=dt.timezone.utc)
    outside = dt.datetime(2025, 8, 26, 22, 0, tzinfo=dt.timezone.utc)
    engine = _guatemala_engine(catalog)
    assert engine.compute(_req({"product_id": ENSALADA}, now=inside)).cart_total == Decimal("40.00")
    assert engine.compute(_req({"product_id": ENSALADA}, now=outside)).cart_total == Decimal("50.00")
