from decimal import Decimal

import pytest

from menu_pricing.core.errors import ItemUnavailableError, MissingPriceCellError
from menu_pricing.schemas.catalog import PriceKind, PriceMatrix, Product
from menu_pricing.schemas.pricing import ComputeItem
from menu_pricing.services.price_resolver import build_cart_item, resolve_options_total, resolve_price

from factories import (
    AGUACATE,
    EXTRA_QUESO,
    ITALIANO_15,
    ITALIANO_30,
    MONDAY,
    SUB_ITALIANO,
    SUB_POLLO,
    SUB_VIEJO,
    TUESDAY,
    cart_item,
)


def test_daily_special_substitutes_same_cell(catalog):
    pollo = catalog.product(SUB_POLLO)
    r = resolve_price(pollo, PriceKind.CAPITAL_PICKUP, MONDAY)
    assert r.unit_price == Decimal("22.00") and r.normal_unit_price == Decimal("35.00") and r.is_daily_special

    r = resolve_price(pollo, PriceKind.CAPITAL_DELIVERY, MONDAY)
    assert r.unit_price == Decimal("25.00") and r.normal_unit_price == Decimal("38.00")


def test_not_daily_special_other_weekday(catalog):
    r = resolve_price(catalog.product(SUB_POLLO), PriceKind.CAPITAL_PICKUP, TUESDAY)
    assert r.unit_price == Decimal("35.00") and r.is_daily_special is False


def test_special_not_lower_keeps_normal_price():
    p = Product(
        id=1, name="Raro", category_id=1, prices=PriceMatrix.flat(35),
        is_daily_special=True, daily_special_days={1}, daily_special_prices=PriceMatrix.flat(40),
    )
    r = resolve_price(p, PriceKind.CAPITAL_PICKUP, MONDAY)
    assert r.unit_price == Decimal("35.00") and r.is_daily_special is False


def test_missing_cell_raises(catalog):
    with pytest.raises(MissingPriceCellError) as exc:
        resolve_price(catalog.product(SUB_POLLO), PriceKind.INTERIOR_DELIVERY, MONDAY)
    assert exc.value.reason == "missing_price_cell" and exc.value.price_kind == "interior_delivery"


def test_variant_falls_back_to_product_cell(catalog):
    item = cart_item(catalog, SUB_ITALIANO, ITALIANO_30, kind=PriceKind.CAPITAL_DELIVERY)
    assert item.unit_price == Decimal("50.00")
    item = cart_item(catalog, SUB_ITALIANO, ITALIANO_30, kind=PriceKind.CAPITAL_PICKUP)
    assert item.unit_price == Decimal("55.00")


def test_options_summed_per_cell_and_unknown_ignored(catalog):
    total, warnings = resolve_options_total([EXTRA_QUESO, AGUACATE, 999], catalog, PriceKind.CAPITAL_PICKUP, item_ref="a")
    assert total == Decimal("13.00")
    assert [w.code for w in warnings] == ["option_not_found"] and warnings[0].item_ref == "a"


def test_cart_item_totals(catalog):
    item = cart_item(catalog, SUB_POLLO, quantity=2, options=[EXTRA_QUESO], at=MONDAY)
    assert item.subtotal == Decimal("44.00")
    assert item.normal_subtotal == Decimal("70.00")
    assert item.options_total == Decimal("10.00")
    assert item.ref == "line-0"


@pytest.mark.parametrize(
    "product_id,variant_id,reason",
    [
        (999, None, "product_not_found"),
        (SUB_VIEJO, None, "product_inactive"),
        (SUB_ITALIANO, None, "variant_required"),
        (SUB_ITALIANO, 999, "variant_not_found"),
        (SUB_POLLO, ITALIANO_15, "variant_mismatch"),
    ],
)
def test_unavailable_lines(catalog, product_id, variant_id, reason):
    line = ComputeItem(ref="x", product_id=product_id, variant_id=variant_id)
    with pytest.raises(ItemUnavailableError) as exc:
        build_cart_item(line, 0, catalog, PriceKind.CAPITAL_PICKUP, TUESDAY)
    assert exc.value.reason == reason and exc.value.item_ref == "x"


def test_missing_cell_carries_item_ref(catalog):
    line = ComputeItem(product_id=SUB_POLLO)
    with pytest.raises(MissingPriceCellError) as exc:
        build_cart_item(line, 3, catalog, PriceKind.INTERIOR_DELIVERY, TUESDAY)
    assert exc.value.item_ref == "line-3"
