from __future__ import annotations

import logging
from typing import Any, Mapping

from order_pricing.core.numeric import ZERO
from order_pricing.domain.pricing.engine import compute_totals
from order_pricing.domain.pricing.models import DiscountMode, OrderKind, TaxCodeTable
from order_pricing.schemas.orders import (
    FULL_STEP,
    LineItemForm,
    OrderHeaderForm,
    PurchasingOrderForm,
    SalesOrderForm,
    require_valid,
)

logger = logging.getLogger(__name__)

TAX_ID_KEYS = {
    OrderKind.SALES: "sales_tax_id",
    OrderKind.PURCHASING: "purchases_tax_id",
}


def _clean_serials(values: list[str | None]) -> list[str]:
    return [value.strip() for value in values if isinstance(value, str) and value.strip()]


def _trimmed(value: str | None) -> str:
    return (value or "").strip()


def _header_fields(form: OrderHeaderForm) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "reference_number": form.reference_number,
        "store_id": form.store_id,
        "currency_id": form.currency_id,
        "price_category_id": form.price_category_id or None,
        "valid_until": form.valid_until,
        "shipping_address": form.shipping_address,
        "notes": form.notes,
        "terms_conditions": form.terms_conditions,
    }
    if isinstance(form, SalesOrderForm):
        fields.update(
            sales_order_date=form.sales_order_date,
            customer_id=form.customer_id,
            delivery_date=form.delivery_date,
        )
    elif isinstance(form, PurchasingOrderForm):
        fields.update(
            purchasing_order_date=form.purchasing_order_date,
            vendor_id=form.vendor_id,
            expected_delivery_date=form.expected_delivery_date,
        )
    return fields


def build_submission_payload(
    kind: OrderKind | str,
    data: Mapping[str, Any],
    tax_codes: TaxCodeTable | None = None,
    wht_codes: TaxCodeTable | None = None,
    exchange_rate_id: str | None = None,
    system_default_currency_id: str | None = None,
) -> dict[str, Any]:
    kind = OrderKind(kind)
    form = require_valid(data, kind, FULL_STEP)
    items: list[LineItemForm] = form.items  # type: ignore[attr-defined]

    context = form.to_context()
    lines = [item.to_line_item() for item in items]
    result = compute_totals(context, lines, tax_codes, wht_codes)
    tax_id_key = TAX_ID_KEYS[kind]

    payload_items = []
    for item, line, derived in zip(items, lines, result.lines):
        payload_items.append(
            {
                "product_id": line.product_id,
                "quantity": line.quantity,
                "unit_price": line.unit_price,
                "discount_mode": line.discount_mode.value,
                "discount_percentage": ZERO if line.discount_mode == DiscountMode.AMOUNT else line.discount_percentage,
                "discount_amount": derived.line_discount,
                "tax_percentage": derived.tax_rate,
                "tax_amount": derived.line_tax,
                tax_id_key: line.tax_code_id,
                "wht_tax_id": line.wht_tax_code_id,
                "wht_amount": derived.line_wht,
                "currency_id": context.currency_id,
                "exchange_rate": context.exchange_rate_value,
                "equivalent_amount": derived.equivalent_amount,
                "line_total": derived.line_total,
                "price_tax_inclusive": line.price_tax_inclusive,
                "notes": line.notes,
                "serial_numbers": _clean_serials(item.serial_numbers),
                "batch_number": _trimmed(item.batch_number),
                "expiry_date": _trimmed(item.expiry_date),
            }
        )

    payload = {
        **_header_fields(form),
        "exchange_rate_value": context.exchange_rate_value,
        "exchange_rate_id": exchange_rate_id,
        "system_default_currency_id": system_default_currency_id,
        "items": payload_items,
        "totals": result.totals,
    }
    logger.info(
        "assembled %s order payload: items=%s total=%s currency=%s",
        kind.value,
        len(payload_items),
        result.totals.total,
        context.currency_id,
    )
    return payload
