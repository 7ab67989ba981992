"""
Gold layer: customer and product dimensions plus the sales fact.

The builders are pure functions over silver rows. Surrogate keys are
sequence numbers assigned in a deterministic order, so rebuilding from the
same silver snapshot yields the same keys.
"""

from datetime import date
from typing import Any, Iterable

from ..core.catalog import (
    GOLD_DIM_CUSTOMERS,
    GOLD_DIM_PRODUCTS,
    GOLD_FACT_SALES,
    SILVER_CRM_CUST_INFO,
    SILVER_CRM_PRD_INFO,
    SILVER_CRM_SALES_DETAILS,
    SILVER_ERP_CUST_AZ12,
    SILVER_ERP_LOC_A101,
    SILVER_ERP_PX_CAT_G1V2,
)
from ..core.models.cleansed import (
    NOT_AVAILABLE,
    CustomerInfo,
    ErpCategory,
    ErpCustomer,
    ErpLocation,
    ProductInfo,
    SalesDetail,
)
from ..core.models.dimensional import DimCustomer, DimProduct, FactSales
from ..warehouse.reload import ReloadJob
from ..warehouse.store import LayerStore


def _first_by(rows: Iterable[Any], attribute: str) -> dict[Any, Any]:
    # Lookup keeping the first row per key
    index: dict[Any, Any] = {}
    for row in rows:
        index.setdefault(getattr(row, attribute), row)
    return index


def _date_key(value: date | None) -> tuple[bool, date]:
    # NULL dates sort first
    return (value is not None, value or date.min)


def _id_key(value: str) -> tuple[int, int, str]:
    # Numeric ids compare as numbers, anything else after them as text
    if value.isdigit():
        return (0, int(value), "")
    return (1, 0, value)


def build_dim_customers(
    customers: Iterable[CustomerInfo],
    erp_customers: Iterable[ErpCustomer],
    erp_locations: Iterable[ErpLocation],
) -> list[DimCustomer]:
    """
    Join CRM profiles with ERP demographics and locations.

    Keys are numbered by create date, ties broken by customer id. The CRM
    gender wins unless it is N/A, in which case the ERP gender is used.
    """
    demographics = _first_by(erp_customers, "cid")
    locations = _first_by(erp_locations, "cid")

    ordered = sorted(customers, key=lambda c: (_date_key(c.cst_create_date), _id_key(c.cst_id)))

    dimension = []
    for key, customer in enumerate(ordered, start=1):
        erp = demographics.get(customer.cst_key)
        location = locations.get(customer.cst_key)

        gender = customer.cst_gndr
        if gender == NOT_AVAILABLE:
            gender = erp.gen if erp is not None else NOT_AVAILABLE

        dimension.append(
            DimCustomer(
                customer_key=key,
                customer_id=customer.cst_id,
                customer_number=customer.cst_key,
                customer_first_name=customer.cst_firstname,
                customer_last_name=customer.cst_lastname,
                customer_country=location.cntry if location is not None else None,
                customer_marital_status=customer.cst_marital_status,
                customer_gender=gender,
                customer_birthdate=erp.bdate if erp is not None else None,
                customer_create_date=customer.cst_create_date,
            )
        )
    return dimension


def build_dim_products(
    products: Iterable[ProductInfo],
    categories: Iterable[ErpCategory],
) -> list[DimProduct]:
    """
    Current product versions joined with their category.

    Only versions without an end date are kept. Keys are numbered by start
    date, then product number.
    """
    category_index = _first_by(categories, "id")
    current = [product for product in products if product.prd_end_dt is None]
    ordered = sorted(current, key=lambda p: (_date_key(p.prd_start_dt), p.prd_key))

    dimension = []
    for key, product in enumerate(ordered, start=1):
        category = category_index.get(product.cat_id)
        dimension.append(
            DimProduct(
                product_key=key,
                product_id=product.prd_id,
                product_number=product.prd_key,
                product_name=product.prd_nm,
                category_id=product.cat_id,
                category_name=category.cat if category is not None else None,
                subcategory_name=category.subcat if category is not None else None,
                product_maintenance=category.maintenance if category is not None else None,
                product_cost=product.prd_cost,
                product_line=product.prd_line,
                product_start_date=product.prd_start_dt,
            )
        )
    return dimension


def build_fact_sales(
    sales: Iterable[SalesDetail],
    dim_products: Iterable[DimProduct],
    dim_customers: Iterable[DimCustomer],
) -> list[FactSales]:
    """
    Resolve sales lines to dimension surrogate keys.

    Lines whose product or customer has no dimension row keep a NULL key.
    """
    product_index = _first_by(dim_products, "product_number")
    customer_index = _first_by(dim_customers, "customer_id")

    fact = []
    for line in sales:
        product = product_index.get(line.sls_prd_key)
        customer = customer_index.get(line.sls_cust_id)
        fact.append(
            FactSales(
                sales_order_number=line.sls_ord_num,
                sales_product_key=product.product_key if product is not None else None,
                sales_customer_key=customer.customer_key if customer is not None else None,
                sales_order_date=line.sls_order_dt,
                sales_ship_date=line.sls_ship_dt,
                sales_due_date=line.sls_due_dt,
                sales_sold_price=line.sls_sales,
                sales_quantity=line.sls_quantity,
                sales_original_price=line.sls_price,
            )
        )
    return fact


class GoldLoader:
    """
    Builds the gold reload jobs.

    The fact job reads the dimensions written earlier in the same batch.
    """

    def __init__(self, store: LayerStore):
        self.store = store

    def _read(self, table, model) -> list[Any]:
        return [model(**row) for row in self.store.fetch_rows(table)]

    def populate_dim_customers(self) -> list[dict[str, Any]]:
        rows = build_dim_customers(
            self._read(SILVER_CRM_CUST_INFO, CustomerInfo),
            self._read(SILVER_ERP_CUST_AZ12, ErpCustomer),
            self._read(SILVER_ERP_LOC_A101, ErpLocation),
        )
        return [row.model_dump() for row in rows]

    def populate_dim_products(self) -> list[dict[str, Any]]:
        rows = build_dim_products(
            self._read(SILVER_CRM_PRD_INFO, ProductInfo),
            self._read(SILVER_ERP_PX_CAT_G1V2, ErpCategory),
        )
        return [row.model_dump() for row in rows]

    def populate_fact_sales(self) -> list[dict[str, Any]]:
        rows = build_fact_sales(
            self._read(SILVER_CRM_SALES_DETAILS, SalesDetail),
            self.store_dimension(GOLD_DIM_PRODUCTS, DimProduct),
            self.store_dimension(GOLD_DIM_CUSTOMERS, DimCustomer),
        )
        return [row.model_dump() for row in rows]

    def store_dimension(self, table, model) -> list[Any]:
        """Dimension rows in surrogate key order."""
        key = table.columns[0].name
        return [model(**row) for row in self.store.fetch_rows(table, order_by=[key])]

    def jobs(self) -> list[ReloadJob]:
        return [
            ReloadJob(GOLD_DIM_CUSTOMERS, self.populate_dim_customers),
            ReloadJob(GOLD_DIM_PRODUCTS, self.populate_dim_products),
            ReloadJob(GOLD_FACT_SALES, self.populate_fact_sales),
        ]
