from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable

from order_pricing.core.numeric import (
    HUNDRED,
    ONE,
    ZERO,
    clamp,
    non_negative,
    percent_of,
    positive_or,
)
from order_pricing.domain.pricing.models import (
    DerivedLineTotals,
    DerivedOrderTotals,
    DiscountMode,
    LineItem,
    OrderContext,
    PricingResult,
    TaxCodeTable,
)


def resolve_tax_rate(line: LineItem, tax_codes: TaxCodeTable | None) -> Decimal:
    if line.tax_code_id and tax_codes:
        code = tax_codes.get(line.tax_code_id)
        if code is not None:
            return non_negative(code.rate)
    return non_negative(line.tax_percentage)


def resolve_wht_rate(line: LineItem, wht_codes: TaxCodeTable | None) -> Decimal:
    if line.wht_tax_code_id and wht_codes:
        code = wht_codes.get(line.wht_tax_code_id)
        if code is not None:
            return non_negative(code.rate)
    return ZERO


def compute_line_totals(
    line: LineItem,
    tax_codes: TaxCodeTable | None = None,
    wht_codes: TaxCodeTable | None = None,
    exchange_rate: Any = ONE,
) -> DerivedLineTotals:
    quantity = non_negative(line.quantity)
    unit_price = non_negative(line.unit_price)
    line_subtotal = quantity * unit_price

    if line.discount_mode == DiscountMode.AMOUNT:
        line_discount = min(non_negative(line.discount_amount), line_subtotal)
        # zero or negative quantity only reaches here mid-edit
        per_unit_discount = line_discount / positive_or(quantity, ONE)
        after_discount_per_unit = max(ZERO, unit_price - per_unit_discount)
    else:
        percentage = clamp(line.discount_percentage, ZERO, HUNDRED)
        line_discount = percent_of(line_subtotal, percentage)
        after_discount_per_unit = unit_price * (ONE - percentage / HUNDRED)

    amount_after_discount = line_subtotal - line_discount

    tax_rate = resolve_tax_rate(line, tax_codes)
    vat_per_unit = percent_of(after_discount_per_unit, tax_rate)
    line_tax = vat_per_unit * quantity

    wht_rate = resolve_wht_rate(line, wht_codes)
    line_wht = percent_of(amount_after_discount, wht_rate)
    amount_after_wht = amount_after_discount - line_wht

    line_total = amount_after_wht + line_tax

    return DerivedLineTotals(
        line_subtotal=line_subtotal,
        line_discount=line_discount,
        amount_after_discount=amount_after_discount,
        amount_after_discount_per_unit=after_discount_per_unit,
        vat_amount_per_unit=vat_per_unit,
        amount_after_vat_per_unit=after_discount_per_unit + vat_per_unit,
        tax_code_id=line.tax_code_id,
        tax_rate=tax_rate,
        wht_tax_code_id=line.wht_tax_code_id,
        wht_rate=wht_rate,
        line_tax=line_tax,
        line_wht=line_wht,
        amount_after_wht=amount_after_wht,
        line_total=line_total,
        equivalent_amount=line_total * positive_or(exchange_rate, ONE),
    )


def aggregate_totals(lines: Iterable[DerivedLineTotals], exchange_rate: Any = ONE) -> DerivedOrderTotals:
    line_list = list(lines)
    subtotal = sum((line.line_subtotal for line in line_list), ZERO)
    total_discount = sum((line.line_discount for line in line_list), ZERO)
    total_tax = sum((line.line_tax for line in line_list), ZERO)
    total_wht = sum((line.line_wht for line in line_list), ZERO)
    total = sum((line.line_total for line in line_list), ZERO)

    amount_after_discount = subtotal - total_discount
    amount_after_wht = amount_after_discount - total_wht
    if amount_after_discount > 0:
        effective_vat_percent = total_tax / amount_after_discount * HUNDRED
    else:
        effective_vat_percent = ZERO

    return DerivedOrderTotals(
        subtotal=subtotal,
        total_discount=total_discount,
        total_tax=total_tax,
        total_wht=total_wht,
        amount_after_discount=amount_after_discount,
        amount_after_wht=amount_after_wht,
        total=total,
        effective_vat_percent=effective_vat_percent,
        equivalent_total=total * positive_or(exchange_rate, ONE),
    )


def compute_totals(
    order: OrderContext,
    lines: Iterable[LineItem],
    tax_codes: TaxCodeTable | None = None,
    wht_codes: TaxCodeTable | None = None,
) -> PricingResult:
    exchange_rate = positive_or(order.exchange_rate_value, ONE)
    derived = tuple(compute_line_totals(line, tax_codes, wht_codes, exchange_rate) for line in lines)
    return PricingResult(lines=derived, totals=aggregate_totals(derived, exchange_rate))
