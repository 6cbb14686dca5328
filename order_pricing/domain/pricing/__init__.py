from order_pricing.domain.pricing.engine import (
    aggregate_totals,
    compute_line_totals,
    compute_totals,
    resolve_tax_rate,
    resolve_wht_rate,
)
from order_pricing.domain.pricing.models import (
    DerivedLineTotals,
    DerivedOrderTotals,
    DiscountMode,
    LineItem,
    OrderContext,
    OrderKind,
    PricingResult,
    TaxCode,
    TaxCodeTable,
)
from order_pricing.domain.pricing.normalization import (
    ProductRecord,
    candidate_price,
    line_from_product,
    normalize_unit_price,
)

__all__ = [
    "DerivedLineTotals",
    "DerivedOrderTotals",
    "DiscountMode",
    "LineItem",
    "OrderContext",
    "OrderKind",
    "PricingResult",
    "ProductRecord",
    "TaxCode",
    "TaxCodeTable",
    "aggregate_totals",
    "candidate_price",
    "compute_line_totals",
    "compute_totals",
    "line_from_product",
    "normalize_unit_price",
    "resolve_tax_rate",
    "resolve_wht_rate",
]
