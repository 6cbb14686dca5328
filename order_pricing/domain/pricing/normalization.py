from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping

from order_pricing.core.numeric import HUNDRED, ONE, ZERO, non_negative, to_decimal
from order_pricing.domain.pricing.models import DiscountMode, LineItem


@dataclass(frozen=True)
class ProductRecord:
    id: str
    selling_price: Decimal | None = None
    average_cost: Decimal | None = None
    price_tax_inclusive: bool = False
    tax_code_id: str | None = None
    tax_rate: Decimal = ZERO
    category_prices: Mapping[str, Any] = field(default_factory=dict)


def _category_price(product: ProductRecord, price_category_id: str | None) -> Decimal | None:
    if not price_category_id or not product.category_prices:
        return None
    wanted = str(price_category_id).strip()
    for category_id, calculated in product.category_prices.items():
        if str(category_id).strip() != wanted or calculated is None:
            continue
        price = to_decimal(calculated)
        return price if price != 0 else None
    return None


def candidate_price(product: ProductRecord, price_category_id: str | None = None) -> Decimal:
    price = to_decimal(product.selling_price) or to_decimal(product.average_cost)
    category_price = _category_price(product, price_category_id)
    if category_price is not None:
        price = category_price
    return non_negative(price)


def normalize_unit_price(product: ProductRecord, price_category_id: str | None = None) -> Decimal:
    price = candidate_price(product, price_category_id)
    rate = non_negative(product.tax_rate)
    if product.price_tax_inclusive and rate > 0:
        return price / (ONE + rate / HUNDRED)
    return price


def line_from_product(product: ProductRecord, price_category_id: str | None = None) -> LineItem:
    return LineItem(
        product_id=product.id,
        quantity=ONE,
        unit_price=normalize_unit_price(product, price_category_id),
        discount_mode=DiscountMode.AMOUNT,
        tax_code_id=product.tax_code_id,
        tax_percentage=non_negative(product.tax_rate),
        price_tax_inclusive=bool(product.price_tax_inclusive),
    )
