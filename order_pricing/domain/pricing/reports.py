from __future__ import annotations

from decimal import Decimal
from typing import Iterable

import pandas as pd

from order_pricing.core.numeric import ZERO
from order_pricing.domain.pricing.models import DerivedLineTotals

SUMMED_COLUMNS = ("taxable_amount", "tax_amount", "wht_amount", "line_total")


def _line_rows(lines: Iterable[DerivedLineTotals]) -> list[dict]:
    return [
        {
            "tax_code_id": line.tax_code_id or "",
            "tax_rate": line.tax_rate,
            "taxable_amount": line.amount_after_discount,
            "tax_amount": line.line_tax,
            "wht_amount": line.line_wht,
            "line_total": line.line_total,
        }
        for line in lines
    ]


def summarize_by_tax_code(lines: Iterable[DerivedLineTotals]) -> list[dict]:
    rows = _line_rows(lines)
    if not rows:
        return []

    df = pd.DataFrame(rows)
    out: list[dict] = []
    # Decimal columns stay object dtype, so sums are taken in Python
    for (tax_code_id, tax_rate), group in df.groupby(["tax_code_id", "tax_rate"], sort=True):
        entry = {"tax_code_id": tax_code_id or None, "tax_rate": Decimal(tax_rate)}
        for column in SUMMED_COLUMNS:
            entry[column] = sum(group[column], ZERO)
        entry["line_count"] = len(group)
        out.append(entry)
    return out
