"""
Silver transforms: one pure function per source entity.

Each transform takes the full raw snapshot of one bronze table and returns
the complete cleansed rowset for the matching silver table. Window-style
logic (latest row per key, next version start) is written as explicit
group, sort and scan passes.
"""

from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable

from ..models.cleansed import (
    CustomerInfo,
    ErpCategory,
    ErpCustomer,
    ErpLocation,
    ProductInfo,
    SalesDetail,
)
from ..models.raw import (
    CustomerInfoRaw,
    ErpCategoryRaw,
    ErpCustomerRaw,
    ErpLocationRaw,
    ProductInfoRaw,
    SalesDetailRaw,
)
from .rules import (
    CRM_GENDER_CODES,
    ERP_GENDER_CODES,
    MARITAL_STATUS_CODES,
    PRODUCT_LINE_CODES,
    coerce_int_or_default,
    expand_code,
    normalize_country,
    parse_fixed_width_date,
    parse_iso_date,
    reconcile_price,
    reconcile_sales,
    remove_separator,
    split_product_key,
    strip_prefix,
    trim_text,
)


def _is_more_recent(candidate: date | None, current: date | None) -> bool:
    # NULL create dates rank below every real date; equal dates never win.
    if candidate is None:
        return False
    return current is None or candidate > current


def cleanse_customers(rows: Iterable[CustomerInfoRaw]) -> list[CustomerInfo]:
    """
    Deduplicate customer profiles by recency.

    Rows without a customer id are dropped. For every id the row with the
    most recent create date is kept; when several rows share that date, or
    none has one, the first of them in input order wins. Output follows the
    order in which ids were first seen.
    """
    latest: dict[int, tuple[CustomerInfoRaw, date | None]] = {}
    for row in rows:
        if row.cst_id is None:
            continue
        created = parse_iso_date(row.cst_create_date, field_name="cst_create_date")
        kept = latest.get(row.cst_id)
        if kept is None or _is_more_recent(created, kept[1]):
            latest[row.cst_id] = (row, created)

    return [
        CustomerInfo(
            cst_id=str(row.cst_id),
            cst_key=trim_text(row.cst_key),
            cst_firstname=trim_text(row.cst_firstname),
            cst_lastname=trim_text(row.cst_lastname),
            cst_marital_status=expand_code(row.cst_marital_status, MARITAL_STATUS_CODES),
            cst_gndr=expand_code(row.cst_gndr, CRM_GENDER_CODES),
            cst_create_date=created,
        )
        for row, created in latest.values()
    ]


def _start_sort_key(row: ProductInfoRaw) -> tuple[bool, date]:
    # NULL start dates sort first.
    if row.prd_start_dt is None:
        return (False, date.min)
    return (True, row.prd_start_dt)


def cleanse_products(rows: Iterable[ProductInfoRaw]) -> list[ProductInfo]:
    """
    Split product keys and derive validity intervals.

    Versions are grouped by product number and ordered by start date (NULL
    first, equal dates in arrival order). Each version ends the day before
    the next one starts; the last version of a product stays open (NULL).
    """
    versions: dict[str, list[tuple[ProductInfoRaw, str]]] = defaultdict(list)
    for row in rows:
        category_id, product_number = split_product_key(row.prd_key)
        versions[product_number].append((row, category_id))

    cleansed = []
    for product_number, group in versions.items():
        ordered = sorted(group, key=lambda pair: _start_sort_key(pair[0]))
        for position, (row, category_id) in enumerate(ordered):
            end_date = None
            if position + 1 < len(ordered):
                next_start = ordered[position + 1][0].prd_start_dt
                if next_start is not None:
                    end_date = next_start - timedelta(days=1)
            cleansed.append(
                ProductInfo(
                    prd_id=str(row.prd_id) if row.prd_id is not None else None,
                    cat_id=category_id,
                    prd_key=product_number,
                    prd_nm=trim_text(row.prd_nm),
                    prd_cost=coerce_int_or_default(row.prd_cost),
                    prd_line=expand_code(row.prd_line, PRODUCT_LINE_CODES),
                    prd_start_dt=row.prd_start_dt,
                    prd_end_dt=end_date,
                )
            )
    return cleansed


def cleanse_sales(rows: Iterable[SalesDetailRaw]) -> list[SalesDetail]:
    """Parse YYYYMMDD dates and reconcile sales against quantity and price."""
    cleansed = []
    for row in rows:
        cleansed.append(
            SalesDetail(
                sls_ord_num=trim_text(row.sls_ord_num),
                sls_prd_key=trim_text(row.sls_prd_key),
                sls_cust_id=trim_text(row.sls_cust_id),
                sls_order_dt=parse_fixed_width_date(row.sls_order_dt, field_name="sls_order_dt"),
                sls_ship_dt=parse_fixed_width_date(row.sls_ship_dt, field_name="sls_ship_dt"),
                sls_due_dt=parse_fixed_width_date(row.sls_due_dt, field_name="sls_due_dt"),
                sls_sales=reconcile_sales(row.sls_sales, row.sls_quantity, row.sls_price),
                sls_quantity=row.sls_quantity,
                sls_price=reconcile_price(row.sls_price, row.sls_sales, row.sls_quantity),
            )
        )
    return cleansed


def cleanse_erp_customers(rows: Iterable[ErpCustomerRaw], as_of: date) -> list[ErpCustomer]:
    """
    Normalize ERP customer demographics.

    Args:
        rows: Raw ERP customer rows
        as_of: Reference date; birthdates after it are treated as unknown

    Returns:
        Cleansed rows with the NAS prefix stripped and gender labels expanded
    """
    return [
        ErpCustomer(
            cid=strip_prefix(row.cid),
            bdate=row.bdate if row.bdate is None or row.bdate <= as_of else None,
            gen=expand_code(row.gen, ERP_GENDER_CODES),
        )
        for row in rows
    ]


def cleanse_erp_locations(rows: Iterable[ErpLocationRaw]) -> list[ErpLocation]:
    return [
        ErpLocation(cid=remove_separator(row.cid), cntry=normalize_country(row.cntry))
        for row in rows
    ]


def cleanse_erp_categories(rows: Iterable[ErpCategoryRaw]) -> list[ErpCategory]:
    return [
        ErpCategory(
            id=trim_text(row.id),
            cat=trim_text(row.cat),
            subcat=trim_text(row.subcat),
            maintenance=trim_text(row.maintenance),
        )
        for row in rows
    ]
