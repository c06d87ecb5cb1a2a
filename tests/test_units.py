"""Tests for base-unit conversion helpers."""

from decimal import Decimal

import pytest

from klingex.units import to_human, to_raw


class TestToHuman:
    def test_basic(self):
        assert to_human("150000000", 8) == "1.5"

    def test_integer_input(self):
        assert to_human(100000000, 8) == "1"

    def test_zero(self):
        assert to_human("0", 18) == "0"

    def test_small_amount(self):
        assert to_human("1", 8) == "0.00000001"

    def test_no_decimals(self):
        assert to_human("100", 0) == "100"

    def test_large_precision(self):
        assert to_human("1234567890123456789", 18) == "1.234567890123456789"

    @pytest.mark.parametrize("bad", ["abc", "", "NaN", "inf"])
    def test_invalid(self, bad):
        with pytest.raises(ValueError):
            to_human(bad, 8)

    def test_negative_decimals(self):
        with pytest.raises(ValueError):
            to_human("1", -1)


class TestToRaw:
    def test_basic(self):
        assert to_raw("1.5", 8) == "150000000"

    def test_decimal_input(self):
        assert to_raw(Decimal("0.25"), 2) == "25"

    def test_truncates_extra_precision(self):
        assert to_raw("0.123456789", 8) == "12345678"

    def test_truncates_toward_zero(self):
        assert to_raw("-1.55", 1) == "-15"

    def test_whole_number(self):
        assert to_raw("2", 6) == "2000000"

    def test_invalid(self):
        with pytest.raises(ValueError):
            to_raw("1.2.3", 8)
