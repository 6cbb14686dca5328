from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from order_pricing.core.serialization import to_jsonable
from order_pricing.persistence.catalog import ReferenceCatalog
from order_pricing.persistence.pg import get_catalog

router = APIRouter(prefix="/reference", tags=["reference"])


@router.get("/tax-codes")
def list_tax_codes(catalog: ReferenceCatalog = Depends(get_catalog)):
    tables = catalog.tax_tables()
    return {
        "tax_codes": to_jsonable(list(tables.tax_codes.values())),
        "wht_codes": to_jsonable(list(tables.wht_codes.values())),
    }


@router.get("/exchange-rate")
def get_exchange_rate(
    currency_id: str = Query(..., min_length=1),
    catalog: ReferenceCatalog = Depends(get_catalog),
):
    currency = catalog.order_currency(currency_id)
    return {
        "currency_id": currency_id,
        "default_currency_id": currency.default_currency_id,
        "rate": to_jsonable(currency.resolution.rate),
        "exchange_rate_id": currency.resolution.exchange_rate_id,
    }


@router.get("/products")
def search_products(
    search: str | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=500),
    catalog: ReferenceCatalog = Depends(get_catalog),
):
    rows = catalog.search_products(search, limit)
    return {"count": len(rows), "products": to_jsonable(rows)}
