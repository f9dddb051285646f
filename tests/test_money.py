from decimal import Decimal

from menu_pricing.utils.money import format_money, format_percent, money


def test_money_rounds_half_up():
    assert money("1.005") == Decimal("1.01")
    assert money(2.675) == Decimal("2.68")
    assert money(10) == Decimal("10.00")


def test_format():
    assert format_money(Decimal("1234.5")) == "Q1,234.50"
    assert format_money(36, symbol="$") == "$36.00"
    assert format_percent(Decimal("20.00")) == "20"
    assert format_percent(Decimal("12.50")) == "12.5"
