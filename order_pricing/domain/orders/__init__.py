from order_pricing.domain.orders.editing import (
    EditResult,
    max_discount_amount,
    select_tax_code,
    select_wht_code,
    set_discount_amount,
    set_discount_percentage,
    set_quantity,
    set_tax_percentage,
    set_unit_price,
    toggle_discount_mode,
)
from order_pricing.domain.orders.payload import build_submission_payload

__all__ = [
    "EditResult",
    "build_submission_payload",
    "max_discount_amount",
    "select_tax_code",
    "select_wht_code",
    "set_discount_amount",
    "set_discount_percentage",
    "set_quantity",
    "set_tax_percentage",
    "set_unit_price",
    "toggle_discount_mode",
]
