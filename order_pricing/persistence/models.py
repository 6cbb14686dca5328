from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _money():
    return Numeric(precision=20, scale=6, asdecimal=True)


class Base(DeclarativeBase):
    pass


class CurrencyModel(Base):
    __tablename__ = "currencies"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    code: Mapped[str] = mapped_column(String(16), nullable=False)
    name: Mapped[str] = mapped_column(String(128), default="", nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class ExchangeRateModel(Base):
    __tablename__ = "exchange_rates"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    from_currency_id: Mapped[str] = mapped_column(String(64), ForeignKey("currencies.id"), nullable=False)
    to_currency_id: Mapped[str] = mapped_column(String(64), ForeignKey("currencies.id"), nullable=False)
    rate: Mapped[Decimal] = mapped_column(_money(), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class TaxCodeModel(Base):
    __tablename__ = "tax_codes"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    code: Mapped[str] = mapped_column(String(32), nullable=False)
    name: Mapped[str] = mapped_column(String(128), default="", nullable=False)
    rate: Mapped[Decimal] = mapped_column(_money(), nullable=False)
    is_wht: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class PriceCategoryModel(Base):
    __tablename__ = "price_categories"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    code: Mapped[str] = mapped_column(String(32), nullable=False)
    name: Mapped[str] = mapped_column(String(128), default="", nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class ProductModel(Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    code: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    selling_price: Mapped[Optional[Decimal]] = mapped_column(_money(), nullable=True)
    average_cost: Mapped[Optional[Decimal]] = mapped_column(_money(), nullable=True)
    price_tax_inclusive: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    sales_tax_id: Mapped[Optional[str]] = mapped_column(String(64), ForeignKey("tax_codes.id"), nullable=True)
    purchases_tax_id: Mapped[Optional[str]] = mapped_column(String(64), ForeignKey("tax_codes.id"), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class ProductPriceCategoryModel(Base):
    __tablename__ = "product_price_categories"
    __table_args__ = (
        UniqueConstraint("product_id", "price_category_id", name="uq_product_price_category"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    product_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )
    price_category_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("price_categories.id", ondelete="CASCADE"),
        nullable=False,
    )
    calculated_price: Mapped[Optional[Decimal]] = mapped_column(_money(), nullable=True)


Index("ix_products_code", ProductModel.code)
Index("ix_exchange_rates_pair", ExchangeRateModel.from_currency_id, ExchangeRateModel.to_currency_id)
