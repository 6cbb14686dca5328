from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Mapping

from order_pricing.core.numeric import ONE, ZERO


class DiscountMode(str, Enum):
    PERCENTAGE = "percentage"
    AMOUNT = "amount"


class OrderKind(str, Enum):
    SALES = "sales"
    PURCHASING = "purchasing"


@dataclass(frozen=True)
class TaxCode:
    id: str
    rate: Decimal
    code: str = ""
    name: str = ""
    is_wht: bool = False
    is_active: bool = True


TaxCodeTable = Mapping[str, TaxCode]


@dataclass(frozen=True)
class LineItem:
    product_id: str
    quantity: Decimal = ONE
    unit_price: Decimal = ZERO
    discount_mode: DiscountMode = DiscountMode.AMOUNT
    discount_percentage: Decimal = ZERO
    discount_amount: Decimal = ZERO
    tax_code_id: str | None = None
    wht_tax_code_id: str | None = None
    tax_percentage: Decimal = ZERO
    price_tax_inclusive: bool = False
    serial_numbers: tuple[str, ...] = ()
    batch_number: str = ""
    expiry_date: str = ""
    notes: str = ""


@dataclass(frozen=True)
class OrderContext:
    currency_id: str | None = None
    exchange_rate_value: Decimal = ONE
    price_category_id: str | None = None


@dataclass(frozen=True)
class DerivedLineTotals:
    line_subtotal: Decimal
    line_discount: Decimal
    amount_after_discount: Decimal
    amount_after_discount_per_unit: Decimal
    vat_amount_per_unit: Decimal
    amount_after_vat_per_unit: Decimal
    tax_code_id: str | None
    tax_rate: Decimal
    wht_tax_code_id: str | None
    wht_rate: Decimal
    line_tax: Decimal
    line_wht: Decimal
    amount_after_wht: Decimal
    line_total: Decimal
    equivalent_amount: Decimal


@dataclass(frozen=True)
class DerivedOrderTotals:
    subtotal: Decimal = ZERO
    total_discount: Decimal = ZERO
    total_tax: Decimal = ZERO
    total_wht: Decimal = ZERO
    amount_after_discount: Decimal = ZERO
    amount_after_wht: Decimal = ZERO
    total: Decimal = ZERO
    effective_vat_percent: Decimal = ZERO
    equivalent_total: Decimal = ZERO


@dataclass(frozen=True)
class PricingResult:
    lines: tuple[DerivedLineTotals, ...] = ()
    totals: DerivedOrderTotals = field(default_factory=DerivedOrderTotals)
