"""Tests for dialect date and amount parsing."""

from datetime import date
from decimal import Decimal

import pytest

from batimport.ingestion.stream_format import StreamFormat


class TestDates:
    """Date parsing with a strptime pattern or day-first fallback."""

    def test_pattern(self):
        fmt = StreamFormat(date_format="%d.%m.%Y")
        assert fmt.parse_date("04.01.2016") == date(2016, 1, 4)
        assert fmt.normalize_date(" 04.01.2016 ") == "2016-01-04"

    def test_invalid_date_is_none(self):
        fmt = StreamFormat(date_format="%d/%m/%Y")
        assert fmt.parse_date("31/02/2015") is None
        assert fmt.normalize_date("not a date") is None

    def test_empty_date_normalizes_to_empty(self):
        assert StreamFormat().normalize_date("") == ""
        assert StreamFormat().normalize_date(None) == ""

    def test_day_first_fallback(self):
        fmt = StreamFormat(date_format=None)
        assert fmt.parse_date("03/04/2015") == date(2015, 4, 3)


class TestAmounts:
    """Amounts with vendor thousands and decimal separators."""

    def test_dot_thousands_comma_decimal(self):
        fmt = StreamFormat(decimal_sep=",", thousand_sep=".")
        assert fmt.parse_amount("1.000,00") == Decimal("1000.00")
        assert fmt.normalize_amount("-1.234,56") == "-1234.56"

    def test_space_thousands(self):
        fmt = StreamFormat(decimal_sep=",", thousand_sep=" ")
        assert fmt.normalize_amount("1 787,70") == "1787.70"

    def test_zero_padded_export(self):
        fmt = StreamFormat(decimal_sep=",")
        assert fmt.normalize_amount("-00000000001,50") == "-1.50"

    def test_double_sign_from_debit_column(self):
        fmt = StreamFormat(decimal_sep=",")
        assert fmt.normalize_amount("--5,00") == "5.00"

    def test_invalid_amount(self):
        fmt = StreamFormat(decimal_sep=",")
        assert fmt.parse_amount("abc") is None
        assert fmt.normalize_amount("12,3,4") is None
        assert fmt.normalize_amount("") == ""


class TestFormatObject:
    def test_immutable_replace(self):
        fmt = StreamFormat(field_sep=";")
        other = fmt.replace(field_sep="\t", headers_count=2)
        assert fmt.field_sep == ";"
        assert other.field_sep == "\t"
        assert other.headers_count == 2

    def test_rejects_negative_headers(self):
        with pytest.raises(ValueError):
            StreamFormat(headers_count=-1)

    def test_rejects_multi_char_separator(self):
        with pytest.raises(ValueError):
            StreamFormat(field_sep=";;")
