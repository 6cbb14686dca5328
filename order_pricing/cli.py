from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

from order_pricing.core.logging import configure_logging
from order_pricing.core.serialization import to_jsonable
from order_pricing.domain.orders.payload import build_submission_payload
from order_pricing.domain.pricing.engine import compute_totals
from order_pricing.domain.pricing.models import OrderKind
from order_pricing.persistence.pg import catalog_scope, init_db
from order_pricing.schemas.orders import FULL_STEP, HEADER_STEP, OrderInput, OrderValidationError, validate_order


def _read_json(path: str) -> dict[str, Any]:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _emit(data: Any) -> None:
    print(json.dumps(to_jsonable(data), ensure_ascii=False, indent=2))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Order pricing CLI")
    top = parser.add_subparsers(dest="command", required=True)

    quote = top.add_parser("quote", help="Compute line and order totals for an order file")
    quote.add_argument("order_file")
    quote.add_argument("--kind", choices=[k.value for k in OrderKind], default=OrderKind.SALES.value)

    payload = top.add_parser("payload", help="Validate an order file and print its submission payload")
    payload.add_argument("order_file")
    payload.add_argument("--kind", choices=[k.value for k in OrderKind], default=OrderKind.SALES.value)

    validate = top.add_parser("validate", help="Run form validation on an order file")
    validate.add_argument("order_file")
    validate.add_argument("--kind", choices=[k.value for k in OrderKind], default=OrderKind.SALES.value)
    validate.add_argument("--step", choices=[HEADER_STEP, FULL_STEP], default=FULL_STEP)

    seed = top.add_parser("seed-reference", help="Load currencies, tax codes and products from a JSON file")
    seed.add_argument("reference_file")

    return parser


def _quote(args: argparse.Namespace) -> int:
    order = OrderInput.model_validate(_read_json(args.order_file))
    with catalog_scope() as catalog:
        tables = catalog.tax_tables()
        rate, _ = catalog.order_rate(order.currency_id, order.exchange_rate_value)
    order = order.model_copy(update={"exchange_rate_value": rate})
    result = compute_totals(order.to_context(), order.to_lines(), tables.tax_codes, tables.wht_codes)
    _emit({"kind": args.kind, "lines": result.lines, "totals": result.totals})
    return 0


def _payload(args: argparse.Namespace) -> int:
    data = _read_json(args.order_file)
    with catalog_scope() as catalog:
        tables = catalog.tax_tables()
        rate, currency = catalog.order_rate(data.get("currency_id"), data.get("exchange_rate_value"))
    data = {**data, "exchange_rate_value": rate}
    try:
        payload = build_submission_payload(
            args.kind,
            data,
            tables.tax_codes,
            tables.wht_codes,
            exchange_rate_id=currency.resolution.exchange_rate_id,
            system_default_currency_id=currency.default_currency_id,
        )
    except OrderValidationError as exc:
        _emit({"valid": False, "errors": exc.errors})
        return 1
    _emit(payload)
    return 0


def _validate(args: argparse.Namespace) -> int:
    report = validate_order(_read_json(args.order_file), args.kind, args.step)
    _emit(report)
    return 0 if report.valid else 1


def _seed(args: argparse.Namespace) -> int:
    with catalog_scope() as catalog:
        counts = catalog.load_reference(_read_json(args.reference_file))
    _emit(counts)
    return 0


COMMANDS = {
    "quote": _quote,
    "payload": _payload,
    "validate": _validate,
    "seed-reference": _seed,
}


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    parser = _build_parser()
    args = parser.parse_args(argv)

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.error("unsupported command")
        return 2
    init_db()
    return handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
