from __future__ import annotations

from decimal import Decimal
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="OP_", extra="ignore")

    app_name: str = "Order Pricing Service"
    env: str = "dev"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"

    database_url: str = "sqlite+pysqlite:///./order_pricing.db"
    database_echo: bool = False
    seed_reference_on_startup: bool = False

    default_currency_id: str | None = Field(
        default=None,
        description="Currency id used when the catalog has no currency flagged as default",
    )

    quantity_floor: Decimal = Decimal("0.001")
    item_notes_max_length: int = 200
    notes_max_length: int = 500
    shipping_address_max_length: int = 500
    terms_max_length: int = 1000

    def model_post_init(self, __context) -> None:
        if self.quantity_floor <= 0:
            raise ValueError("OP_QUANTITY_FLOOR must be greater than zero")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
