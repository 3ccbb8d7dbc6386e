from decimal import Decimal

import pytest

from leverage_paths.planner.slippage import (
    SlippageInput,
    bps_to_percent_string,
    parse_slippage,
    percent_of_balance,
)


class TestParseSlippage:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("0.5", 50),
            ("1.234", 123),
            ("1", 100),
            ("100", 10_000),
            ("0", 0),
            ("  2.5 ", 250),
        ],
    )
    def test_valid_percents(self, text, expected):
        assert parse_slippage(text, fallback_bps=50).value_bps == expected

    @pytest.mark.parametrize(("text", "expected"), [("0.125", 13), ("0.005", 1), ("0.004", 0)])
    def test_rounds_half_up(self, text, expected):
        assert parse_slippage(text, fallback_bps=50).value_bps == expected

    @pytest.mark.parametrize("text", ["150.0", "100.01", "1e6"])
    def test_clamps_above_hundred(self, text):
        assert parse_slippage(text, fallback_bps=50).value_bps == 10_000

    @pytest.mark.parametrize("text", ["-1", "-0.5", "abc", "1.2.3", "nan", "inf", "0x10"])
    def test_invalid_falls_back(self, text):
        result = parse_slippage(text, fallback_bps=75)
        assert result.value_bps == 75
        assert result.display == text

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_is_zero(self, text):
        assert parse_slippage(text, fallback_bps=75).value_bps == 0

    def test_default_fallback_from_config(self):
        assert parse_slippage("oops").value_bps == 50

    def test_always_within_bounds(self):
        for text in ["0", "0.001", "3.3333", "99.999", "100", "101", "-5", "x"]:
            assert 0 <= parse_slippage(text).value_bps <= 10_000

    def test_percent_property(self):
        assert SlippageInput(display="0.5", value_bps=50).percent == Decimal("0.5")


def test_bps_to_percent_string():
    assert bps_to_percent_string(50) == "0.5"
    assert bps_to_percent_string(100) == "1"
    assert bps_to_percent_string(10_000) == "100"
    assert bps_to_percent_string(1) == "0.01"


class TestPercentOfBalance:
    def test_full_balance_is_exact(self):
        balance = "1.000000000000000001"
        assert percent_of_balance(100, balance, 18) == balance
        assert percent_of_balance("150", balance, 18) == balance

    def test_half_floors_without_drift(self):
        assert percent_of_balance(50, "1.000000000000000001", 18) == "0.5"

    def test_floors_in_base_units(self):
        assert percent_of_balance(33, "0.000001", 6) == "0"
        assert percent_of_balance(25, "10", 6) == "2.5"
        assert percent_of_balance("12.5", "1", 8) == "0.125"

    def test_never_exceeds_balance(self):
        balance = "123.456789"
        for pct in (1, 10, 33, 66, 99, "99.99"):
            result = Decimal(percent_of_balance(pct, balance, 6))
            assert result <= Decimal(balance)

    def test_negative_clamps_to_zero(self):
        assert percent_of_balance(-10, "5", 18) == "0"

    def test_large_balance_keeps_precision(self):
        balance = "1000000000000.000000000000000003"
        assert percent_of_balance(50, balance, 18) == "500000000000.000000000000000001"

    def test_invalid_percent(self):
        with pytest.raises(ValueError):
            percent_of_balance("abc", "1", 18)
