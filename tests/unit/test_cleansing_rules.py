"""
Unit tests for field-level cleansing rules.

Includes property-based testing with hypothesis for the total rules.
"""

from datetime import date
from decimal import Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from medallion_dwh.core.cleansing.rules import (
    COUNTRY_CODES,
    CRM_GENDER_CODES,
    ERP_GENDER_CODES,
    MARITAL_STATUS_CODES,
    PRODUCT_LINE_CODES,
    CleansingError,
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


pytestmark = pytest.mark.unit


class TestTrimText:
    """Tests for trim_text"""

    def test_strips_surrounding_whitespace(self):
        """Test leading and trailing whitespace is removed"""
        assert trim_text("  Jon ") == "Jon"
        assert trim_text("\tYang\n") == "Yang"

    def test_keeps_inner_whitespace(self):
        """Test whitespace inside the value is untouched"""
        assert trim_text(" HL Road Frame ") == "HL Road Frame"

    def test_none_stays_none(self):
        """Test NULL passes through"""
        assert trim_text(None) is None


class TestExpandCode:
    """Tests for expand_code"""

    def test_known_codes(self):
        """Test each mapping expands its codes"""
        assert expand_code("M", MARITAL_STATUS_CODES) == "Married"
        assert expand_code("S", MARITAL_STATUS_CODES) == "Single"
        assert expand_code("F", CRM_GENDER_CODES) == "Female"
        assert expand_code("T", PRODUCT_LINE_CODES) == "Touring"
        assert expand_code("S", PRODUCT_LINE_CODES) == "Other Sales"

    def test_case_insensitive_and_trimmed(self):
        """Test lookup ignores case and padding"""
        assert expand_code(" m ", MARITAL_STATUS_CODES) == "Married"
        assert expand_code("r ", PRODUCT_LINE_CODES) == "Road"
        assert expand_code("female", ERP_GENDER_CODES) == "Female"

    def test_unknown_blank_and_null_map_to_na(self):
        """Test anything outside the mapping becomes N/A"""
        assert expand_code("X", MARITAL_STATUS_CODES) == "N/A"
        assert expand_code("", CRM_GENDER_CODES) == "N/A"
        assert expand_code("   ", CRM_GENDER_CODES) == "N/A"
        assert expand_code(None, PRODUCT_LINE_CODES) == "N/A"

    def test_crm_gender_does_not_accept_full_words(self):
        """Test the CRM mapping only knows the single-letter codes"""
        assert expand_code("Male", CRM_GENDER_CODES) == "N/A"

    @given(st.one_of(st.none(), st.text()))
    def test_property_mapping_is_total(self, value):
        """Property test: every input maps to a label, never to None"""
        for mapping in (MARITAL_STATUS_CODES, CRM_GENDER_CODES, ERP_GENDER_CODES, PRODUCT_LINE_CODES):
            result = expand_code(value, mapping)
            assert result is not None
            assert result in set(mapping.values()) | {"N/A"}


class TestNormalizeCountry:
    """Tests for normalize_country"""

    def test_codes_are_spelled_out(self):
        """Test DE, US and USA expand"""
        assert normalize_country("DE") == "Germany"
        assert normalize_country("US") == "United States"
        assert normalize_country(" usa ") == "United States"

    def test_blank_and_null_are_na(self):
        """Test missing countries become N/A"""
        assert normalize_country("") == "N/A"
        assert normalize_country("  ") == "N/A"
        assert normalize_country(None) == "N/A"

    def test_other_values_pass_through_trimmed(self):
        """Test unknown values keep their text"""
        assert normalize_country(" Australia ") == "Australia"
        assert normalize_country("France") == "France"

    @given(st.one_of(st.none(), st.text()))
    def test_property_never_none(self, value):
        """Property test: country normalization is total"""
        result = normalize_country(value)
        assert result is not None
        assert result != ""
        if result not in set(COUNTRY_CODES.values()) | {"N/A"}:
            assert result == value.strip()


class TestParseFixedWidthDate:
    """Tests for parse_fixed_width_date"""

    def test_valid_yyyymmdd(self):
        """Test an 8-character date parses"""
        assert parse_fixed_width_date("20101229") == date(2010, 12, 29)
        assert parse_fixed_width_date(" 20110105 ") == date(2011, 1, 5)

    def test_integer_values_are_accepted(self):
        """Test dates that arrive as integers"""
        assert parse_fixed_width_date(20101229) == date(2010, 12, 29)

    def test_wrong_length_is_null(self):
        """Test the length heuristic rejects short and long values"""
        assert parse_fixed_width_date("0") is None
        assert parse_fixed_width_date(0) is None
        assert parse_fixed_width_date("") is None
        assert parse_fixed_width_date("5489") is None
        assert parse_fixed_width_date("3250910100") is None
        assert parse_fixed_width_date(None) is None

    def test_eight_characters_that_are_not_a_date_raise(self):
        """Test an impossible calendar date is a cleansing error"""
        with pytest.raises(CleansingError) as exc_info:
            parse_fixed_width_date("20101340", field_name="sls_order_dt")

        assert exc_info.value.field_name == "sls_order_dt"
        assert "20101340" in str(exc_info.value)

    @given(st.text().filter(lambda s: len(s.strip()) != 8))
    def test_property_other_lengths_are_null(self, value):
        """Property test: anything not 8 characters long is NULL"""
        assert parse_fixed_width_date(value) is None


class TestParseIsoDate:
    """Tests for parse_iso_date"""

    def test_valid_date(self):
        """Test YYYY-MM-DD parses"""
        assert parse_iso_date("2025-10-06") == date(2025, 10, 6)
        assert parse_iso_date(" 2025-10-06 ") == date(2025, 10, 6)

    def test_blank_is_null(self):
        """Test missing dates"""
        assert parse_iso_date(None) is None
        assert parse_iso_date("") is None
        assert parse_iso_date("   ") is None

    def test_garbage_raises(self):
        """Test unparsable text is a cleansing error"""
        with pytest.raises(CleansingError) as exc_info:
            parse_iso_date("06/10/2025", field_name="cst_create_date")

        assert exc_info.value.rule_name == "iso_date"
        assert "cst_create_date" in str(exc_info.value)


class TestCoerceIntOrDefault:
    """Tests for coerce_int_or_default"""

    def test_numeric_text(self):
        """Test numeric text is coerced"""
        assert coerce_int_or_default("12") == 12
        assert coerce_int_or_default(" 348 ") == 348

    def test_fractions_are_truncated(self):
        """Test decimal text keeps its integer part"""
        assert coerce_int_or_default("12.75") == 12
        assert coerce_int_or_default("-3.9") == -3

    def test_non_numeric_defaults_to_zero(self):
        """Test failures fall back to 0"""
        assert coerce_int_or_default(None) == 0
        assert coerce_int_or_default("") == 0
        assert coerce_int_or_default("n/a") == 0
        assert coerce_int_or_default("NaN") == 0
        assert coerce_int_or_default("Infinity") == 0

    def test_custom_default(self):
        """Test the default can be overridden"""
        assert coerce_int_or_default("abc", default=-1) == -1

    @given(st.integers(min_value=-10**9, max_value=10**9))
    def test_property_integer_text_round_trips(self, value):
        """Property test: the text of any integer coerces back to it"""
        assert coerce_int_or_default(str(value)) == value


class TestSplitProductKey:
    """Tests for split_product_key"""

    def test_splits_category_and_product_number(self):
        """Test the documented example"""
        assert split_product_key("CO-RF-FR-R92B-58") == ("CO_RF", "FR-R92B-58")
        assert split_product_key("AC-HE-HL-U509-R") == ("AC_HE", "HL-U509-R")

    def test_key_is_trimmed_first(self):
        """Test padding does not shift the positions"""
        assert split_product_key("  BI-RB-BK-R93R-62 ") == ("BI_RB", "BK-R93R-62")

    def test_shortest_valid_key(self):
        """Test a 7-character key yields a 1-character product number"""
        assert split_product_key("AB-CD-E") == ("AB_CD", "E")

    def test_short_key_raises(self):
        """Test keys without a product number part"""
        with pytest.raises(CleansingError):
            split_product_key("AB-CD-")

        with pytest.raises(CleansingError):
            split_product_key("AB")

    def test_null_key_raises(self):
        """Test a NULL key cannot be split"""
        with pytest.raises(CleansingError) as exc_info:
            split_product_key(None)

        assert exc_info.value.field_name == "prd_key"


class TestIdRules:
    """Tests for strip_prefix and remove_separator"""

    def test_strip_prefix(self):
        """Test the NAS prefix is removed"""
        assert strip_prefix("NASAW00011000") == "AW00011000"
        assert strip_prefix("nasAW00011000") == "AW00011000"

    def test_strip_prefix_pass_through(self):
        """Test ids without the prefix are unchanged"""
        assert strip_prefix("AW00011000") == "AW00011000"
        assert strip_prefix(None) is None

    def test_remove_separator(self):
        """Test hyphens are dropped so the id matches the CRM key"""
        assert remove_separator("AW-00011000") == "AW00011000"
        assert remove_separator(" AW00011000 ") == "AW00011000"
        assert remove_separator(None) is None


class TestReconcileSales:
    """Tests for reconcile_sales"""

    def test_null_sales_is_recomputed(self):
        """Test (sales=NULL, qty=3, price=10) -> 30"""
        assert reconcile_sales(None, 3, 10) == 30

    def test_non_positive_sales_is_recomputed(self):
        """Test zero and negative amounts"""
        assert reconcile_sales(0, 2, 5) == 10
        assert reconcile_sales(-10, 2, 5) == 10

    def test_inconsistent_sales_is_recomputed(self):
        """Test amounts that disagree with quantity * |price|"""
        assert reconcile_sales(35, 3, 10) == 30
        assert reconcile_sales(35, 3, -10) == 30

    def test_consistent_sales_is_kept(self):
        """Test a correct amount is untouched"""
        assert reconcile_sales(3578, 1, 3578) == 3578
        assert reconcile_sales(20, 2, -10) == 20

    def test_unknown_price_keeps_positive_sales(self):
        """Test (sales=100, qty=4, price=NULL) keeps 100"""
        assert reconcile_sales(100, 4, None) == 100
        assert reconcile_sales(-1, 4, None) is None


class TestReconcilePrice:
    """Tests for reconcile_price"""

    def test_null_price_is_derived(self):
        """Test (sales=100, qty=4, price=NULL) -> 25"""
        assert reconcile_price(None, 100, 4) == Decimal("25.00")

    def test_non_positive_price_is_derived_from_original_sales(self):
        """Test the repair uses the source sales amount"""
        assert reconcile_price(-10, 20, 2) == Decimal("10.00")
        assert reconcile_price(0, 30, 3) == Decimal("10.00")

    def test_derived_price_rounds_half_up_to_cents(self):
        """Test rounding of repeating fractions"""
        assert reconcile_price(None, 10, 3) == Decimal("3.33")
        assert reconcile_price(None, 5, 8) == Decimal("0.63")

    def test_positive_price_is_kept(self):
        """Test a valid price is untouched"""
        assert reconcile_price(10, 35, 3) == Decimal(10)

    def test_missing_inputs_give_null(self):
        """Test repair without sales or quantity"""
        assert reconcile_price(None, None, 4) is None
        assert reconcile_price(None, 100, None) is None

    def test_zero_quantity_raises(self):
        """Test price repair with quantity 0 is a cleansing error"""
        with pytest.raises(CleansingError) as exc_info:
            reconcile_price(None, 100, 0)

        assert exc_info.value.rule_name == "reconcile_price"

    def test_non_positive_price_can_disagree_with_repaired_sales(self):
        """Test sales and price are repaired independently when price <= 0"""
        assert (reconcile_sales(50, 5, 0), reconcile_price(0, 50, 5)) == (0, Decimal("10.00"))
        assert (reconcile_sales(35, 3, -10), reconcile_price(-10, 35, 3)) == (30, Decimal("11.67"))

    @given(
        sales=st.one_of(st.none(), st.integers(min_value=-1000, max_value=100000)),
        quantity=st.integers(min_value=1, max_value=500),
        price=st.integers(min_value=-5000, max_value=5000) | st.none(),
    )
    def test_property_sales_matches_quantity_times_price(self, sales, quantity, price):
        """Property test: reconciled sales equals quantity * price up to rounding"""
        new_sales = reconcile_sales(sales, quantity, price)
        new_price = reconcile_price(price, sales, quantity)

        if price is not None and price <= 0:
            # Sales follows |price|, price follows the source sales amount
            assert new_sales == quantity * abs(price)
            if sales is None:
                assert new_price is None
            else:
                assert abs(quantity * new_price - sales) <= quantity * Decimal("0.005")
        elif new_sales is not None and new_price is not None:
            assert abs(Decimal(new_sales) - quantity * new_price) <= quantity * Decimal("0.005")
