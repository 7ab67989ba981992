"""
Field-level cleansing rules.

Every rule is a plain function of one (or a few) raw values. Rules are total
over their documented input: the only way a rule fails is by raising
CleansingError, which aborts the surrounding batch.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from ..models.cleansed import NOT_AVAILABLE


class CleansingError(Exception):
    """Raised when a value cannot be cleansed by its rule."""

    def __init__(self, rule_name: str, field_name: str, message: str):
        self.rule_name = rule_name
        self.field_name = field_name
        self.message = message
        super().__init__(f"[{rule_name}] {field_name}: {message}")


MARITAL_STATUS_CODES = {"M": "Married", "S": "Single"}
CRM_GENDER_CODES = {"M": "Male", "F": "Female"}
ERP_GENDER_CODES = {"M": "Male", "F": "Female", "MALE": "Male", "FEMALE": "Female"}
PRODUCT_LINE_CODES = {"M": "Mountain", "R": "Road", "S": "Other Sales", "T": "Touring"}
COUNTRY_CODES = {"DE": "Germany", "US": "United States", "USA": "United States"}

ERP_CUSTOMER_PREFIX = "NAS"
LOCATION_ID_SEPARATOR = "-"

CATEGORY_ID_LENGTH = 5
PRODUCT_NUMBER_OFFSET = 6
FIXED_WIDTH_DATE_LENGTH = 8
CENTS = Decimal("0.01")


def trim_text(value: str | None) -> str | None:
    """Strip surrounding whitespace. None stays None."""
    if value is None:
        return None
    return value.strip()


def expand_code(value: str | None, mapping: dict[str, str]) -> str:
    """
    Expand a short code into its label.

    Lookup is case-insensitive on the trimmed value. Unknown codes, blanks
    and NULLs all map to N/A, so the result is never None.
    """
    if value is None:
        return NOT_AVAILABLE
    return mapping.get(value.strip().upper(), NOT_AVAILABLE)


def normalize_country(value: str | None) -> str:
    """Spell out known country codes; other values pass through trimmed."""
    code = trim_text(value)
    if not code:
        return NOT_AVAILABLE
    return COUNTRY_CODES.get(code.upper(), code)


def parse_fixed_width_date(value: Any, field_name: str = "date") -> date | None:
    """
    Parse a YYYYMMDD value.

    Anything whose trimmed text is not exactly eight characters long is
    treated as missing and becomes None (this covers blanks and the 0
    placeholder). An eight-character value that is not a calendar date
    raises CleansingError.
    """
    if value is None:
        return None
    text = str(value).strip()
    if len(text) != FIXED_WIDTH_DATE_LENGTH:
        return None
    try:
        return datetime.strptime(text, "%Y%m%d").date()
    except ValueError as e:
        raise CleansingError(
            rule_name="fixed_width_date",
            field_name=field_name,
            message=f"Cannot parse '{text}' as YYYYMMDD: {e}",
        ) from e


def parse_iso_date(value: str | None, field_name: str = "date") -> date | None:
    """Parse a YYYY-MM-DD value. Blank becomes None."""
    text = trim_text(value)
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError as e:
        raise CleansingError(
            rule_name="iso_date",
            field_name=field_name,
            message=f"Cannot parse '{text}' as YYYY-MM-DD: {e}",
        ) from e


def coerce_int_or_default(value: Any, default: int = 0) -> int:
    """
    Coerce a numeric text to int, truncating any fraction.

    Values that are not numeric (including NULL and blanks) yield the default.
    """
    if value is None:
        return default
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return default
    if not number.is_finite():
        return default
    return int(number)


def split_product_key(value: str | None) -> tuple[str, str]:
    """
    Split a composite product key into (category id, product number).

    "CO-RF-FR-R92B-58" -> ("CO_RF", "FR-R92B-58"). The category id is the
    first five characters with '-' rewritten to '_' so it matches the ERP
    category lookup; the product number starts at the seventh character.
    """
    key = trim_text(value)
    if key is None or len(key) <= PRODUCT_NUMBER_OFFSET:
        raise CleansingError(
            rule_name="product_key",
            field_name="prd_key",
            message=f"Key {value!r} is too short to hold a category and a product number",
        )
    category_id = key[:CATEGORY_ID_LENGTH].replace("-", "_")
    product_number = key[PRODUCT_NUMBER_OFFSET:]
    return category_id, product_number


def strip_prefix(value: str | None, prefix: str = ERP_CUSTOMER_PREFIX) -> str | None:
    """Remove a leading prefix (case-insensitive) from a trimmed id."""
    text = trim_text(value)
    if text is None:
        return None
    if text.upper().startswith(prefix.upper()):
        return text[len(prefix):]
    return text


def remove_separator(value: str | None, separator: str = LOCATION_ID_SEPARATOR) -> str | None:
    """Drop every separator character from a trimmed id."""
    text = trim_text(value)
    if text is None:
        return None
    return text.replace(separator, "")


def reconcile_sales(sales: int | None, quantity: int | None, price: int | None) -> int | None:
    """
    Repair the sales amount.

    When quantity and price are both known the expected amount is
    quantity * |price|. Sales that are NULL, not positive, or disagree with
    the expected amount are replaced by it. If the expected amount cannot be
    computed, a positive sales value is kept and anything else becomes None.
    """
    expected = quantity * abs(price) if quantity is not None and price is not None else None
    if sales is None or sales <= 0 or (expected is not None and sales != expected):
        return expected
    return sales


def reconcile_price(price: int | None, original_sales: int | None,
                    quantity: int | None) -> Decimal | None:
    """
    Repair the unit price from the original (pre-repair) sales amount.

    A NULL or non-positive price becomes sales / quantity rounded half-up to
    cents; any other price is made absolute. A quantity of zero during repair
    raises CleansingError.
    """
    if price is not None and price > 0:
        return Decimal(price)
    if original_sales is None or quantity is None:
        return None
    if quantity == 0:
        raise CleansingError(
            rule_name="reconcile_price",
            field_name="sls_price",
            message=f"Cannot derive price from sales {original_sales} with quantity 0",
        )
    return (Decimal(original_sales) / Decimal(quantity)).quantize(CENTS, rounding=ROUND_HALF_UP)
