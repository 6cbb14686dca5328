from __future__ import annotations

import json
import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from order_pricing.api.routes_orders import router as orders_router
from order_pricing.api.routes_reference import router as reference_router
from order_pricing.core.config import get_settings
from order_pricing.core.logging import configure_logging
from order_pricing.core.serialization import to_jsonable
from order_pricing.persistence.catalog import ProductNotFoundError
from order_pricing.persistence.pg import catalog_scope, init_db
from order_pricing.schemas.orders import OrderValidationError

configure_logging()
logger = logging.getLogger(__name__)
settings = get_settings()

SEED_FILE = Path(__file__).resolve().parent / "reference_seed.json"

app = FastAPI(title=settings.app_name)


@app.on_event("startup")
def on_startup() -> None:
    init_db()
    if settings.seed_reference_on_startup:
        with catalog_scope() as catalog:
            counts = catalog.load_reference(json.loads(SEED_FILE.read_text()))
        logger.info("reference seed ready: %s", counts)


@app.exception_handler(OrderValidationError)
async def order_validation_handler(_: Request, exc: OrderValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "detail": str(exc),
            "error": "order_validation",
            "errors": to_jsonable(exc.errors),
        },
    )


@app.exception_handler(ProductNotFoundError)
async def product_not_found_handler(_: Request, exc: ProductNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc), "error": "product_not_found"})


@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


app.include_router(orders_router)
app.include_router(reference_router)
