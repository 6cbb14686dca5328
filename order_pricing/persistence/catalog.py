from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, TypeVar

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from order_pricing.core.config import get_settings
from order_pricing.core.numeric import ZERO, to_decimal
from order_pricing.domain.currency import (
    Currency,
    ExchangeRateRecord,
    ExchangeRateResolution,
    default_currency,
    exchange_rate_missing,
    resolve_exchange_rate,
)
from order_pricing.domain.pricing.models import OrderKind, TaxCode
from order_pricing.domain.pricing.normalization import ProductRecord
from order_pricing.persistence.models import (
    CurrencyModel,
    ExchangeRateModel,
    PriceCategoryModel,
    ProductModel,
    ProductPriceCategoryModel,
    TaxCodeModel,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ProductNotFoundError(LookupError):
    pass


@dataclass(frozen=True)
class TaxTables:
    tax_codes: dict[str, TaxCode] = field(default_factory=dict)
    wht_codes: dict[str, TaxCode] = field(default_factory=dict)


@dataclass(frozen=True)
class OrderCurrency:
    default_currency_id: str | None
    resolution: ExchangeRateResolution


def _tax_code(row: TaxCodeModel) -> TaxCode:
    return TaxCode(
        id=row.id,
        code=row.code,
        name=row.name,
        rate=to_decimal(row.rate),
        is_wht=row.is_wht,
        is_active=row.is_active,
    )


NUMERIC_FIELDS = ("rate", "selling_price", "average_cost", "calculated_price")


def _coerce_numeric(row: Mapping[str, Any]) -> dict[str, Any]:
    coerced = dict(row)
    for key in NUMERIC_FIELDS:
        if coerced.get(key) is not None:
            coerced[key] = to_decimal(coerced[key])
    return coerced


class ReferenceCatalog:
    def __init__(self, session: Session):
        self.session = session

    def _degrade(self, what: str, loader: Callable[[], T], fallback: T) -> T:
        try:
            return loader()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.warning("%s unavailable, continuing with empty lookup: %s", what, exc)
            return fallback

    def tax_tables(self) -> TaxTables:
        def load() -> TaxTables:
            rows = self.session.scalars(select(TaxCodeModel).where(TaxCodeModel.is_active.is_(True))).all()
            return TaxTables(
                tax_codes={row.id: _tax_code(row) for row in rows if not row.is_wht},
                wht_codes={row.id: _tax_code(row) for row in rows if row.is_wht},
            )

        return self._degrade("tax codes", load, TaxTables())

    def currencies(self) -> list[Currency]:
        def load() -> list[Currency]:
            rows = self.session.scalars(select(CurrencyModel).order_by(CurrencyModel.code.asc())).all()
            return [Currency(id=row.id, code=row.code, name=row.name, is_default=row.is_default) for row in rows]

        return self._degrade("currencies", load, [])

    def exchange_rates(self) -> list[ExchangeRateRecord]:
        def load() -> list[ExchangeRateRecord]:
            rows = self.session.scalars(
                select(ExchangeRateModel)
                .where(ExchangeRateModel.is_active.is_(True))
                .order_by(ExchangeRateModel.id.asc())
            ).all()
            return [
                ExchangeRateRecord(
                    id=row.id,
                    from_currency_id=row.from_currency_id,
                    to_currency_id=row.to_currency_id,
                    rate=row.rate,
                )
                for row in rows
            ]

        return self._degrade("exchange rates", load, [])

    def order_currency(self, currency_id: str | None) -> OrderCurrency:
        default = default_currency(self.currencies())
        default_id = default.id if default else get_settings().default_currency_id
        return OrderCurrency(
            default_currency_id=default_id,
            resolution=resolve_exchange_rate(currency_id, default_id, self.exchange_rates()),
        )

    def order_rate(self, currency_id: str | None, exchange_rate_value: Any = None) -> tuple[Any, OrderCurrency]:
        currency = self.order_currency(currency_id)
        if exchange_rate_missing(exchange_rate_value):
            return currency.resolution.rate, currency
        return exchange_rate_value, currency

    def product(self, product_id: str, kind: OrderKind | str = OrderKind.SALES) -> ProductRecord:
        row = self.session.get(ProductModel, product_id)
        if row is None:
            raise ProductNotFoundError(f"product not found: {product_id}")

        tax_code_id = row.sales_tax_id if OrderKind(kind) == OrderKind.SALES else row.purchases_tax_id
        tax_rate = ZERO
        if tax_code_id:
            tax_row = self.session.get(TaxCodeModel, tax_code_id)
            if tax_row is not None:
                tax_rate = to_decimal(tax_row.rate)

        category_rows = self.session.scalars(
            select(ProductPriceCategoryModel).where(ProductPriceCategoryModel.product_id == product_id)
        ).all()
        return ProductRecord(
            id=row.id,
            selling_price=row.selling_price,
            average_cost=row.average_cost,
            price_tax_inclusive=row.price_tax_inclusive,
            tax_code_id=tax_code_id,
            tax_rate=tax_rate,
            category_prices={item.price_category_id: item.calculated_price for item in category_rows},
        )

    def search_products(self, term: str | None = None, limit: int = 50) -> list[dict[str, Any]]:
        stmt = select(ProductModel).where(ProductModel.is_active.is_(True))
        if term and term.strip():
            pattern = f"%{term.strip()}%"
            stmt = stmt.where(or_(ProductModel.name.ilike(pattern), ProductModel.code.ilike(pattern)))
        stmt = stmt.order_by(ProductModel.name.asc()).limit(limit)
        return [
            {
                "id": row.id,
                "code": row.code,
                "name": row.name,
                "selling_price": row.selling_price,
                "average_cost": row.average_cost,
                "price_tax_inclusive": row.price_tax_inclusive,
            }
            for row in self.session.scalars(stmt).all()
        ]

    def load_reference(self, data: Mapping[str, Any]) -> dict[str, int]:
        counts: dict[str, int] = {}
        for key, model in (
            ("currencies", CurrencyModel),
            ("exchange_rates", ExchangeRateModel),
            ("tax_codes", TaxCodeModel),
            ("price_categories", PriceCategoryModel),
            ("products", ProductModel),
        ):
            rows = list(data.get(key, []))
            for row in rows:
                self.session.merge(model(**_coerce_numeric(row)))
            counts[key] = len(rows)
            self.session.flush()

        category_prices = list(data.get("product_price_categories", []))
        for row in category_prices:
            existing = self.session.scalar(
                select(ProductPriceCategoryModel)
                .where(ProductPriceCategoryModel.product_id == row["product_id"])
                .where(ProductPriceCategoryModel.price_category_id == row["price_category_id"])
            )
            if existing is None:
                self.session.add(ProductPriceCategoryModel(**_coerce_numeric(row)))
            else:
                existing.calculated_price = _coerce_numeric(row).get("calculated_price")
        counts["product_price_categories"] = len(category_prices)
        self.session.flush()

        logger.info("reference data loaded: %s", counts)
        return counts
