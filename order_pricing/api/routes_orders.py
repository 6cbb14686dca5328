from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel

from order_pricing.core.serialization import to_jsonable
from order_pricing.domain.orders.payload import build_submission_payload
from order_pricing.domain.pricing.engine import compute_totals
from order_pricing.domain.pricing.models import OrderKind
from order_pricing.domain.pricing.normalization import line_from_product
from order_pricing.domain.pricing.reports import summarize_by_tax_code
from order_pricing.persistence.catalog import ReferenceCatalog
from order_pricing.persistence.pg import get_catalog
from order_pricing.schemas.orders import FULL_STEP, HEADER_STEP, OrderInput, validate_order

router = APIRouter(prefix="/orders", tags=["orders"])


class AddLineRequest(BaseModel):
    product_id: str
    price_category_id: str | None = None


def _with_resolved_rate(order: OrderInput, catalog: ReferenceCatalog) -> OrderInput:
    rate, _ = catalog.order_rate(order.currency_id, order.exchange_rate_value)
    return order.model_copy(update={"exchange_rate_value": rate})


@router.post("/{kind}/quote")
def quote_order(kind: OrderKind, order: OrderInput, catalog: ReferenceCatalog = Depends(get_catalog)):
    tables = catalog.tax_tables()
    order = _with_resolved_rate(order, catalog)
    result = compute_totals(order.to_context(), order.to_lines(), tables.tax_codes, tables.wht_codes)
    return {"kind": kind.value, "lines": to_jsonable(result.lines), "totals": to_jsonable(result.totals)}


@router.post("/{kind}/tax-summary")
def tax_summary(kind: OrderKind, order: OrderInput, catalog: ReferenceCatalog = Depends(get_catalog)):
    tables = catalog.tax_tables()
    result = compute_totals(order.to_context(), order.to_lines(), tables.tax_codes, tables.wht_codes)
    return {"kind": kind.value, "groups": to_jsonable(summarize_by_tax_code(result.lines))}


@router.post("/{kind}/lines")
def add_line(kind: OrderKind, request: AddLineRequest, catalog: ReferenceCatalog = Depends(get_catalog)):
    product = catalog.product(request.product_id, kind)
    return {"kind": kind.value, "line": to_jsonable(line_from_product(product, request.price_category_id))}


@router.post("/{kind}/validate")
def validate(
    kind: OrderKind,
    data: dict[str, Any] = Body(...),
    step: str = Query(default=FULL_STEP, pattern=f"^({HEADER_STEP}|{FULL_STEP})$"),
):
    report = validate_order(data, kind, step)
    return {"kind": kind.value, "step": step, **to_jsonable(report)}


@router.post("/{kind}/payload")
def submission_payload(
    kind: OrderKind,
    data: dict[str, Any] = Body(...),
    catalog: ReferenceCatalog = Depends(get_catalog),
):
    tables = catalog.tax_tables()
    rate, currency = catalog.order_rate(data.get("currency_id"), data.get("exchange_rate_value"))
    data = {**data, "exchange_rate_value": rate}
    payload = build_submission_payload(
        kind,
        data,
        tables.tax_codes,
        tables.wht_codes,
        exchange_rate_id=currency.resolution.exchange_rate_id,
        system_default_currency_id=currency.default_currency_id,
    )
    return to_jsonable(payload)
