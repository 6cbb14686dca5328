from __future__ import annotations

from decimal import Decimal

from order_pricing.domain.orders import (
    max_discount_amount,
    select_tax_code,
    select_wht_code,
    set_discount_amount,
    set_discount_percentage,
    set_quantity,
    set_tax_percentage,
    set_unit_price,
    toggle_discount_mode,
)
from order_pricing.domain.orders.editing import (
    AMOUNT_ADJUSTED_FOR_PRICE,
    AMOUNT_ADJUSTED_FOR_QUANTITY,
    AMOUNT_EXCEEDED,
    PERCENTAGE_EXCEEDED,
)
from order_pricing.domain.pricing import DiscountMode, LineItem


def _line(**overrides) -> LineItem:
    base = {"product_id": "P1", "quantity": Decimal("2"), "unit_price": Decimal("100")}
    base.update(overrides)
    return LineItem(**base)


def test_percentage_above_hundred_is_clamped():
    result = set_discount_percentage(_line(discount_mode=DiscountMode.PERCENTAGE), "150")
    assert result.line.discount_percentage == Decimal("100")
    assert result.message == PERCENTAGE_EXCEEDED


def test_negative_percentage_becomes_zero():
    result = set_discount_percentage(_line(), "-3")
    assert result.line.discount_percentage == 0
    assert result.message is None


def test_amount_above_line_subtotal_is_clamped():
    result = set_discount_amount(_line(), "500")
    assert result.line.discount_amount == Decimal("200")
    assert result.message == AMOUNT_EXCEEDED

    ok = set_discount_amount(_line(), "50")
    assert ok.line.discount_amount == Decimal("50")
    assert ok.message is None


def test_quantity_change_reclamps_amount_discount():
    line = _line(discount_amount=Decimal("150"))
    result = set_quantity(line, "1")

    assert result.line.quantity == Decimal("1")
    assert result.line.discount_amount == Decimal("100")
    assert result.message == AMOUNT_ADJUSTED_FOR_QUANTITY


def test_quantity_change_leaves_percentage_lines_alone():
    line = _line(discount_mode=DiscountMode.PERCENTAGE, discount_amount=Decimal("150"))
    result = set_quantity(line, "1")

    assert result.line.discount_amount == Decimal("150")
    assert result.message is None


def test_invalid_quantity_falls_back_to_one():
    assert set_quantity(_line(), "0").line.quantity == Decimal("1")
    assert set_quantity(_line(), "abc").line.quantity == Decimal("1")
    assert set_quantity(_line(), "2.5").line.quantity == Decimal("2.5")


def test_unit_price_change_reclamps_amount_discount():
    result = set_unit_price(_line(discount_amount=Decimal("150")), "50")

    assert result.line.unit_price == Decimal("50")
    assert result.line.discount_amount == Decimal("100")
    assert result.message == AMOUNT_ADJUSTED_FOR_PRICE
    assert max_discount_amount(result.line) == Decimal("100")


def test_toggle_preserves_both_discount_values():
    line = _line(discount_percentage=Decimal("10"), discount_amount=Decimal("30"))
    toggled = toggle_discount_mode(line).line

    assert toggled.discount_mode == DiscountMode.PERCENTAGE
    assert toggled.discount_percentage == Decimal("10")
    assert toggled.discount_amount == Decimal("30")
    assert toggle_discount_mode(toggled).line.discount_mode == DiscountMode.AMOUNT


def test_tax_selection_and_manual_percentage():
    line = select_tax_code(_line(), "T18").line
    assert line.tax_code_id == "T18"
    assert select_tax_code(line, "").line.tax_code_id is None

    assert select_wht_code(line, "W5").line.wht_tax_code_id == "W5"
    assert set_tax_percentage(line, "120").line.tax_percentage == Decimal("100")
    assert set_tax_percentage(line, "-2").line.tax_percentage == 0


def test_price_edit_caps_against_at_least_one_unit():
    line = _line(quantity=Decimal("0.5"), discount_amount=Decimal("80"))
    result = set_unit_price(line, "100")

    assert result.line.discount_amount == Decimal("80")
    assert result.message is None

    lowered = set_unit_price(line, "60")
    assert lowered.line.discount_amount == Decimal("60")
    assert lowered.message == AMOUNT_ADJUSTED_FOR_PRICE
