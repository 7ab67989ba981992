"""
Gold star-schema row models.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class DimCustomer(BaseModel):
    """Customer dimension row with its surrogate key."""

    model_config = ConfigDict(frozen=True)

    customer_key: int = Field(..., ge=1)
    customer_id: str
    customer_number: str | None = None
    customer_first_name: str | None = None
    customer_last_name: str | None = None
    customer_country: str | None = None
    customer_marital_status: str
    customer_gender: str
    customer_birthdate: date | None = None
    customer_create_date: date | None = None


class DimProduct(BaseModel):
    """Product dimension row (current product versions only)."""

    model_config = ConfigDict(frozen=True)

    product_key: int = Field(..., ge=1)
    product_id: str | None = None
    product_number: str
    product_name: str | None = None
    category_id: str
    category_name: str | None = None
    subcategory_name: str | None = None
    product_maintenance: str | None = None
    product_cost: int
    product_line: str
    product_start_date: date | None = None


class FactSales(BaseModel):
    """
    Sales fact row.

    Surrogate keys are NULL when the sales line references a product or
    customer that has no dimension row.
    """

    model_config = ConfigDict(frozen=True)

    sales_order_number: str | None = None
    sales_product_key: int | None = None
    sales_customer_key: int | None = None
    sales_order_date: date | None = None
    sales_ship_date: date | None = None
    sales_due_date: date | None = None
    sales_sold_price: Decimal | None = None
    sales_quantity: int | None = None
    sales_original_price: Decimal | None = None
