from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Annotated, Any, Callable, Mapping

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from order_pricing.core.config import get_settings
from order_pricing.core.numeric import ONE, ZERO, is_representable, non_negative, positive_or, to_decimal
from order_pricing.domain.pricing.models import DiscountMode, LineItem, OrderContext, OrderKind

_settings = get_settings()

HEADER_STEP = "header"
FULL_STEP = "full"


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


@dataclass(frozen=True)
class ValidationReport:
    valid: bool
    errors: list[FieldError]


class OrderValidationError(ValueError):
    def __init__(self, errors: list[FieldError]):
        self.errors = errors
        super().__init__(", ".join(error.message for error in errors) or "invalid order")


def _required(message: str) -> Callable[[Any], Any]:
    def check(value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError(message)
        return value

    return check


def _max_length(limit: int, message: str) -> Callable[[str | None], str | None]:
    def check(value: str | None) -> str | None:
        if value is not None and len(value) > limit:
            raise ValueError(message)
        return value

    return check


def _required_str(message: str):
    return Annotated[str | None, AfterValidator(_required(message)), Field(validate_default=True)]


def _bounded_str(limit: int, message: str):
    return Annotated[str | None, AfterValidator(_max_length(limit, message))]


ShippingAddress = _bounded_str(
    _settings.shipping_address_max_length,
    f"Shipping address must not exceed {_settings.shipping_address_max_length} characters",
)
OrderNotes = _bounded_str(
    _settings.notes_max_length,
    f"Order description must not exceed {_settings.notes_max_length} characters",
)
TermsConditions = _bounded_str(
    _settings.terms_max_length,
    f"Terms & conditions must not exceed {_settings.terms_max_length} characters",
)
ItemNotes = _bounded_str(
    _settings.item_notes_max_length,
    f"Item notes must not exceed {_settings.item_notes_max_length} characters",
)

ProductId = _required_str("Product is required")
StoreId = _required_str("Store is required")
CurrencyId = _required_str("Currency is required")
SalesOrderDate = _required_str("Sales order date is required")
CustomerId = _required_str("Customer is required")
PurchasingOrderDate = _required_str("Purchasing order date is required")
VendorId = _required_str("Vendor is required")

# Messages for pydantic's own type errors, keyed by the last element of the error location.
TYPE_MESSAGES = {
    "quantity": "Quantity must be a valid number",
    "unit_price": "Unit price must be a valid number",
    "discount_percentage": "Discount percentage must be a valid number",
    "discount_amount": "Discount amount must be a valid number",
    "tax_percentage": "Tax percentage must be a valid number",
    "exchange_rate_value": "Exchange rate must be a valid number",
}


def _readable_number(value: Decimal | None, info: ValidationInfo) -> Decimal | None:
    if value is not None and not is_representable(value):
        raise ValueError(TYPE_MESSAGES.get(info.field_name, "Value must be a valid number"))
    return value


FormNumber = Annotated[Decimal | None, AfterValidator(_readable_number)]


class LineItemForm(BaseModel):
    model_config = ConfigDict(extra="ignore")

    product_id: ProductId = None
    quantity: FormNumber = Field(default=None, validate_default=True)
    unit_price: FormNumber = Field(default=None, validate_default=True)
    discount_mode: DiscountMode = DiscountMode.AMOUNT
    discount_percentage: FormNumber = None
    discount_amount: FormNumber = None
    tax_code_id: str | None = None
    wht_tax_code_id: str | None = None
    tax_percentage: FormNumber = None
    price_tax_inclusive: bool = False
    notes: ItemNotes = None
    serial_numbers: list[str | None] = Field(default_factory=list)
    batch_number: str | None = None
    expiry_date: str | None = None

    @field_validator("quantity")
    @classmethod
    def _quantity(cls, value: Decimal | None) -> Decimal:
        if value is None:
            raise ValueError("Quantity is required")
        if value < _settings.quantity_floor:
            raise ValueError("Quantity must be greater than 0")
        return value

    @field_validator("unit_price")
    @classmethod
    def _unit_price(cls, value: Decimal | None) -> Decimal:
        if value is None:
            raise ValueError("Unit price is required")
        if value < 0:
            raise ValueError("Unit price must be greater than or equal to 0")
        return value

    @field_validator("discount_percentage")
    @classmethod
    def _discount_percentage(cls, value: Decimal | None) -> Decimal | None:
        if value is None:
            return value
        if value < 0:
            raise ValueError("Discount percentage must be greater than or equal to 0")
        if value > 100:
            raise ValueError("Discount percentage cannot exceed 100%")
        return value

    @field_validator("discount_amount")
    @classmethod
    def _discount_amount(cls, value: Decimal | None, info: ValidationInfo) -> Decimal | None:
        if value is None:
            return value
        if value < 0:
            raise ValueError("Discount amount must be greater than or equal to 0")
        if info.data.get("discount_mode") != DiscountMode.AMOUNT:
            return value
        quantity = info.data.get("quantity")
        unit_price = info.data.get("unit_price")
        if quantity is None or unit_price is None:
            return value
        ceiling = quantity * unit_price
        if value > ceiling:
            raise ValueError(f"Discount cannot exceed {ceiling:.2f}")
        return value

    @field_validator("tax_percentage")
    @classmethod
    def _tax_percentage(cls, value: Decimal | None) -> Decimal | None:
        if value is None:
            return value
        if value < 0:
            raise ValueError("Tax percentage must be greater than or equal to 0")
        if value > 100:
            raise ValueError("Tax percentage must be less than or equal to 100")
        return value

    def to_line_item(self) -> LineItem:
        return LineItem(
            product_id=self.product_id or "",
            quantity=self.quantity or ZERO,
            unit_price=self.unit_price or ZERO,
            discount_mode=self.discount_mode,
            discount_percentage=self.discount_percentage or ZERO,
            discount_amount=self.discount_amount or ZERO,
            tax_code_id=self.tax_code_id or None,
            wht_tax_code_id=self.wht_tax_code_id or None,
            tax_percentage=self.tax_percentage or ZERO,
            price_tax_inclusive=self.price_tax_inclusive,
            serial_numbers=tuple(s for s in self.serial_numbers if s is not None),
            batch_number=self.batch_number or "",
            expiry_date=self.expiry_date or "",
            notes=self.notes or "",
        )


class OrderHeaderForm(BaseModel):
    model_config = ConfigDict(extra="ignore")

    reference_number: str | None = None
    store_id: StoreId = None
    currency_id: CurrencyId = None
    exchange_rate_value: FormNumber = None
    price_category_id: str | None = None
    valid_until: str | None = None
    shipping_address: ShippingAddress = None
    notes: OrderNotes = None
    terms_conditions: TermsConditions = None

    @field_validator("exchange_rate_value")
    @classmethod
    def _exchange_rate(cls, value: Decimal | None) -> Decimal | None:
        if value is not None and value <= 0:
            raise ValueError("Exchange rate must be greater than 0")
        return value

    def to_context(self) -> OrderContext:
        return OrderContext(
            currency_id=self.currency_id,
            exchange_rate_value=positive_or(self.exchange_rate_value, ONE),
            price_category_id=self.price_category_id or None,
        )


class SalesOrderHeaderForm(OrderHeaderForm):
    sales_order_date: SalesOrderDate = None
    customer_id: CustomerId = None
    delivery_date: str | None = None


class PurchasingOrderHeaderForm(OrderHeaderForm):
    purchasing_order_date: PurchasingOrderDate = None
    vendor_id: VendorId = None
    expected_delivery_date: str | None = None


def _at_least_one(items: list[LineItemForm]) -> list[LineItemForm]:
    if not items:
        raise ValueError("At least one item is required")
    return items


ItemList = Annotated[
    list[LineItemForm],
    AfterValidator(_at_least_one),
    Field(default_factory=list, validate_default=True),
]


class SalesOrderForm(SalesOrderHeaderForm):
    items: ItemList


class PurchasingOrderForm(PurchasingOrderHeaderForm):
    items: ItemList


FORM_MODELS: dict[tuple[OrderKind, str], type[OrderHeaderForm]] = {
    (OrderKind.SALES, HEADER_STEP): SalesOrderHeaderForm,
    (OrderKind.SALES, FULL_STEP): SalesOrderForm,
    (OrderKind.PURCHASING, HEADER_STEP): PurchasingOrderHeaderForm,
    (OrderKind.PURCHASING, FULL_STEP): PurchasingOrderForm,
}


def _field_errors(exc: ValidationError) -> list[FieldError]:
    errors: list[FieldError] = []
    for err in exc.errors():
        loc = err.get("loc", ())
        path = ".".join(str(part) for part in loc)
        ctx = err.get("ctx") or {}
        if err.get("type") == "value_error" and "error" in ctx:
            message = str(ctx["error"])
        else:
            last = next((part for part in reversed(loc) if isinstance(part, str)), "")
            message = TYPE_MESSAGES.get(last, err.get("msg", "invalid value"))
        errors.append(FieldError(field=path, message=message))
    return errors


def _form_model(kind: OrderKind | str, step: str) -> type[OrderHeaderForm]:
    key = (OrderKind(kind), step)
    if key not in FORM_MODELS:
        raise ValueError(f"unsupported validation step: {step}")
    return FORM_MODELS[key]


def validate_order(data: Mapping[str, Any], kind: OrderKind | str, step: str = FULL_STEP) -> ValidationReport:
    model = _form_model(kind, step)
    try:
        model.model_validate(dict(data))
    except ValidationError as exc:
        return ValidationReport(valid=False, errors=_field_errors(exc))
    return ValidationReport(valid=True, errors=[])


def require_valid(data: Mapping[str, Any], kind: OrderKind | str, step: str = FULL_STEP) -> OrderHeaderForm:
    model = _form_model(kind, step)
    try:
        return model.model_validate(dict(data))
    except ValidationError as exc:
        raise OrderValidationError(_field_errors(exc)) from exc


class LineItemInput(BaseModel):
    """Lenient line shape used while an order is being edited.

    Numeric fields accept anything; the pricing engine coerces what it
    cannot read to zero instead of rejecting the request.
    """

    model_config = ConfigDict(extra="ignore")

    product_id: str = ""
    quantity: Any = ONE
    unit_price: Any = ZERO
    discount_mode: DiscountMode = DiscountMode.AMOUNT
    discount_percentage: Any = ZERO
    discount_amount: Any = ZERO
    tax_code_id: str | None = None
    wht_tax_code_id: str | None = None
    tax_percentage: Any = ZERO
    price_tax_inclusive: bool = False
    notes: str | None = None
    serial_numbers: list[str | None] = Field(default_factory=list)
    batch_number: str | None = None
    expiry_date: str | None = None

    def to_line_item(self) -> LineItem:
        return LineItem(
            product_id=self.product_id,
            quantity=to_decimal(self.quantity),
            unit_price=non_negative(self.unit_price),
            discount_mode=self.discount_mode,
            discount_percentage=to_decimal(self.discount_percentage),
            discount_amount=to_decimal(self.discount_amount),
            tax_code_id=self.tax_code_id or None,
            wht_tax_code_id=self.wht_tax_code_id or None,
            tax_percentage=non_negative(self.tax_percentage),
            price_tax_inclusive=self.price_tax_inclusive,
            serial_numbers=tuple(s for s in self.serial_numbers if s is not None),
            batch_number=self.batch_number or "",
            expiry_date=self.expiry_date or "",
            notes=self.notes or "",
        )


class OrderInput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    currency_id: str | None = None
    exchange_rate_value: Any = None
    price_category_id: str | None = None
    items: list[LineItemInput] = Field(default_factory=list)

    def to_context(self) -> OrderContext:
        return OrderContext(
            currency_id=self.currency_id,
            exchange_rate_value=positive_or(self.exchange_rate_value, ONE),
            price_category_id=self.price_category_id or None,
        )

    def to_lines(self) -> list[LineItem]:
        return [item.to_line_item() for item in self.items]
