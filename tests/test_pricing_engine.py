from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

from order_pricing.domain.pricing import (
    DiscountMode,
    LineItem,
    OrderContext,
    compute_line_totals,
    compute_totals,
)
from order_pricing.domain.orders import toggle_discount_mode


def _line(**overrides) -> LineItem:
    base = {
        "product_id": "P1",
        "quantity": Decimal("2"),
        "unit_price": Decimal("100"),
        "discount_mode": DiscountMode.PERCENTAGE,
        "discount_percentage": Decimal("10"),
        "tax_code_id": "T18",
    }
    base.update(overrides)
    return LineItem(**base)


def test_percentage_discount_with_vat(tax_codes, wht_codes):
    derived = compute_line_totals(_line(), tax_codes, wht_codes)

    assert derived.line_subtotal == Decimal("200")
    assert derived.line_discount == Decimal("20")
    assert derived.amount_after_discount == Decimal("180")
    assert derived.vat_amount_per_unit == Decimal("16.2")
    assert derived.line_tax == Decimal("32.4")
    assert derived.line_wht == 0
    assert derived.line_total == Decimal("212.4")


def test_amount_discount_spreads_per_unit(tax_codes, wht_codes):
    line = _line(discount_mode=DiscountMode.AMOUNT, discount_amount=Decimal("50"))
    derived = compute_line_totals(line, tax_codes, wht_codes)

    assert derived.line_discount == Decimal("50")
    assert derived.amount_after_discount == Decimal("150")
    assert derived.amount_after_discount_per_unit == Decimal("75")
    assert derived.vat_amount_per_unit == Decimal("13.5")
    assert derived.line_tax == Decimal("27")
    assert derived.line_total == Decimal("177")


def test_withholding_reduces_total_but_not_vat(tax_codes, wht_codes):
    derived = compute_line_totals(_line(wht_tax_code_id="W5"), tax_codes, wht_codes)

    assert derived.wht_rate == Decimal("5")
    assert derived.line_wht == Decimal("9")
    assert derived.amount_after_wht == Decimal("171")
    assert derived.line_tax == Decimal("32.4")
    assert derived.line_total == Decimal("203.4")


def test_full_amount_discount_zeroes_line(tax_codes, wht_codes):
    line = _line(discount_mode=DiscountMode.AMOUNT, discount_amount=Decimal("200"))
    derived = compute_line_totals(line, tax_codes, wht_codes)

    assert derived.amount_after_discount == 0
    assert derived.line_tax == 0
    assert derived.line_total == 0


def test_amount_discount_above_subtotal_is_capped(tax_codes):
    line = _line(discount_mode=DiscountMode.AMOUNT, discount_amount=Decimal("500"))
    derived = compute_line_totals(line, tax_codes)

    assert derived.line_discount == derived.line_subtotal
    assert derived.amount_after_discount == 0


def test_empty_order_totals_are_zero():
    result = compute_totals(OrderContext(), [])

    assert result.lines == ()
    assert result.totals.subtotal == 0
    assert result.totals.total == 0
    assert result.totals.effective_vat_percent == 0
    assert result.totals.equivalent_total == 0


def test_tax_rate_falls_back_to_line_percentage():
    line = _line(tax_code_id="missing", tax_percentage=Decimal("10"))
    derived = compute_line_totals(line, {})

    assert derived.tax_rate == Decimal("10")
    assert derived.line_tax == Decimal("18")


def test_unknown_wht_code_means_no_withholding(tax_codes):
    derived = compute_line_totals(_line(wht_tax_code_id="gone"), tax_codes, {})
    assert derived.wht_rate == 0
    assert derived.line_wht == 0


def test_garbage_inputs_are_coerced_not_raised(tax_codes):
    line = _line(quantity="abc", unit_price=None, discount_percentage="NaN")
    derived = compute_line_totals(line, tax_codes)

    assert derived.line_subtotal == 0
    assert derived.line_total == 0


def test_zero_quantity_amount_mode_does_not_divide_by_zero(tax_codes):
    line = _line(quantity=Decimal("0"), discount_mode=DiscountMode.AMOUNT, discount_amount=Decimal("5"))
    derived = compute_line_totals(line, tax_codes)

    assert derived.line_subtotal == 0
    assert derived.line_discount == 0
    assert derived.line_total == 0


def test_equivalent_amounts_use_exchange_rate(tax_codes):
    result = compute_totals(OrderContext(currency_id="USD", exchange_rate_value=Decimal("2500")), [_line()], tax_codes)

    assert result.lines[0].equivalent_amount == Decimal("531000")
    assert result.totals.equivalent_total == Decimal("531000")


def test_non_positive_exchange_rate_treated_as_one(tax_codes):
    result = compute_totals(OrderContext(exchange_rate_value=Decimal("0")), [_line()], tax_codes)
    assert result.totals.equivalent_total == result.totals.total


def test_discount_never_exceeds_subtotal(tax_codes):
    lines = [
        _line(discount_percentage=Decimal("100")),
        _line(discount_percentage=Decimal("250")),
        _line(discount_mode=DiscountMode.AMOUNT, discount_amount=Decimal("1000")),
        _line(discount_mode=DiscountMode.AMOUNT, discount_amount=Decimal("-4")),
    ]
    for line in lines:
        derived = compute_line_totals(line, tax_codes)
        assert derived.line_discount <= derived.line_subtotal
        assert derived.amount_after_discount >= 0


def test_total_is_exact_sum_of_line_totals(tax_codes, wht_codes):
    lines = [
        _line(),
        _line(discount_mode=DiscountMode.AMOUNT, discount_amount=Decimal("33.33"), wht_tax_code_id="W5"),
        _line(quantity=Decimal("3"), unit_price=Decimal("19.99"), tax_code_id="T0"),
    ]
    result = compute_totals(OrderContext(), lines, tax_codes, wht_codes)

    assert result.totals.total == sum((line.line_total for line in result.lines), Decimal("0"))
    assert result.totals.subtotal == sum((line.line_subtotal for line in result.lines), Decimal("0"))
    assert result.totals.amount_after_wht == result.totals.amount_after_discount - result.totals.total_wht


def test_effective_vat_percent(tax_codes):
    result = compute_totals(OrderContext(), [_line()], tax_codes)
    assert result.totals.effective_vat_percent == Decimal("18")

    zeroed = compute_totals(OrderContext(), [_line(discount_percentage=Decimal("100"))], tax_codes)
    assert zeroed.totals.amount_after_discount == 0
    assert zeroed.totals.effective_vat_percent == 0


def test_toggle_mode_keeps_result_when_equivalent(tax_codes):
    line = _line(discount_percentage=Decimal("25"), discount_amount=Decimal("50"))
    before = compute_line_totals(line, tax_codes)
    after = compute_line_totals(toggle_discount_mode(line).line, tax_codes)
    assert before.line_discount == after.line_discount

    differing = replace(line, discount_amount=Decimal("10"))
    assert compute_line_totals(toggle_discount_mode(differing).line, tax_codes).line_discount == Decimal("10")


def test_compute_is_idempotent(tax_codes, wht_codes):
    lines = [_line(wht_tax_code_id="W5"), _line(discount_mode=DiscountMode.AMOUNT, discount_amount=Decimal("7"))]
    context = OrderContext(exchange_rate_value=Decimal("3"))

    assert compute_totals(context, lines, tax_codes, wht_codes) == compute_totals(context, lines, tax_codes, wht_codes)


def test_out_of_range_numbers_do_not_overflow(tax_codes):
    line = _line(quantity="1e999999", unit_price="1e999999", discount_mode=DiscountMode.AMOUNT, discount_amount="1e999999")
    result = compute_totals(OrderContext(exchange_rate_value="1e999999"), [line], tax_codes)

    assert result.lines[0].line_subtotal == 0
    assert result.totals.total == 0
    assert result.totals.equivalent_total == 0


def test_largest_double_sized_inputs_stay_finite(tax_codes):
    line = _line(quantity=Decimal("1e308"), unit_price=Decimal("1e308"), tax_percentage=Decimal("1e308"), tax_code_id=None)
    result = compute_totals(OrderContext(exchange_rate_value=Decimal("1e308")), [line], tax_codes)

    assert result.totals.total.is_finite()
    assert result.totals.equivalent_total > result.totals.total
