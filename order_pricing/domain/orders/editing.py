from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any

from order_pricing.core.numeric import HUNDRED, ONE, ZERO, non_negative, positive_or, to_decimal
from order_pricing.domain.pricing.models import DiscountMode, LineItem

PERCENTAGE_EXCEEDED = "Discount percentage cannot exceed 100%"
AMOUNT_EXCEEDED = "Discount amount cannot exceed the unit amount total"
AMOUNT_ADJUSTED_FOR_QUANTITY = "Discount amount adjusted to match the new quantity"
AMOUNT_ADJUSTED_FOR_PRICE = "Discount amount adjusted to match the new unit price"


@dataclass(frozen=True)
class EditResult:
    line: LineItem
    message: str | None = None


def max_discount_amount(line: LineItem) -> Decimal:
    return non_negative(line.quantity) * non_negative(line.unit_price)


def set_discount_percentage(line: LineItem, value: Any) -> EditResult:
    percentage = non_negative(value)
    if percentage > HUNDRED:
        return EditResult(replace(line, discount_percentage=HUNDRED), PERCENTAGE_EXCEEDED)
    return EditResult(replace(line, discount_percentage=percentage))


def set_discount_amount(line: LineItem, value: Any) -> EditResult:
    amount = non_negative(value)
    ceiling = max_discount_amount(line)
    if amount > ceiling:
        return EditResult(replace(line, discount_amount=ceiling), AMOUNT_EXCEEDED)
    return EditResult(replace(line, discount_amount=amount))


def _reclamp_amount(line: LineItem, message: str, ceiling: Decimal) -> EditResult:
    if line.discount_mode != DiscountMode.AMOUNT:
        return EditResult(line)
    if non_negative(line.discount_amount) > ceiling:
        return EditResult(replace(line, discount_amount=ceiling), message)
    return EditResult(line)


def set_quantity(line: LineItem, value: Any) -> EditResult:
    edited = replace(line, quantity=positive_or(value, ONE))
    return _reclamp_amount(edited, AMOUNT_ADJUSTED_FOR_QUANTITY, max_discount_amount(edited))


def set_unit_price(line: LineItem, value: Any) -> EditResult:
    edited = replace(line, unit_price=non_negative(value))
    # a price edit caps against at least one unit, even mid-edit
    ceiling = max(ONE, to_decimal(edited.quantity)) * edited.unit_price
    return _reclamp_amount(edited, AMOUNT_ADJUSTED_FOR_PRICE, ceiling)


def toggle_discount_mode(line: LineItem) -> EditResult:
    if line.discount_mode == DiscountMode.AMOUNT:
        return EditResult(replace(line, discount_mode=DiscountMode.PERCENTAGE))
    return EditResult(replace(line, discount_mode=DiscountMode.AMOUNT))


def select_tax_code(line: LineItem, tax_code_id: str | None) -> EditResult:
    return EditResult(replace(line, tax_code_id=tax_code_id or None))


def select_wht_code(line: LineItem, wht_tax_code_id: str | None) -> EditResult:
    return EditResult(replace(line, wht_tax_code_id=wht_tax_code_id or None))


def set_tax_percentage(line: LineItem, value: Any) -> EditResult:
    return EditResult(replace(line, tax_percentage=min(HUNDRED, max(ZERO, to_decimal(value)))))
