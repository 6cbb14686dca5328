from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Sequence

from order_pricing.core.numeric import ONE, to_decimal


@dataclass(frozen=True)
class Currency:
    id: str
    code: str = ""
    name: str = ""
    is_default: bool = False


@dataclass(frozen=True)
class ExchangeRateRecord:
    id: str
    from_currency_id: str
    to_currency_id: str
    rate: Any


@dataclass(frozen=True)
class ExchangeRateResolution:
    rate: Decimal = ONE
    exchange_rate_id: str | None = None


def exchange_rate_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def default_currency(currencies: Sequence[Currency]) -> Currency | None:
    for currency in currencies:
        if currency.is_default:
            return currency
    return currencies[0] if currencies else None


def resolve_exchange_rate(
    currency_id: str | None,
    default_currency_id: str | None,
    rates: Iterable[ExchangeRateRecord],
) -> ExchangeRateResolution:
    if not currency_id or not default_currency_id or currency_id == default_currency_id:
        return ExchangeRateResolution()

    for record in rates:
        if record.from_currency_id != currency_id or record.to_currency_id != default_currency_id:
            continue
        parsed = to_decimal(record.rate)
        if parsed > 0:
            return ExchangeRateResolution(rate=parsed, exchange_rate_id=record.id)
        # the first matching record decides, even when its rate is unusable
        break
    return ExchangeRateResolution()
