"""Tests for pricing.py: display-price parsing and structured amounts."""

from __future__ import annotations

from decimal import Decimal

import pytest

import pricing
from models import PriceInfo


# =====================================================================
# parse(): amount + currency from display text
# =====================================================================


class TestParse:

    @pytest.mark.parametrize("text,amount,currency", [
        ("$12.34", 1234, "USD"),
        ("£1,290", 129000, "GBP"),
        ("€45,50", 4550, "EUR"),
        ("1.234,56 €", 123456, "EUR"),
        ("$1,234.56", 123456, "USD"),
        ("12.345 €", 1234500, "EUR"),
        ("1 290,50 €", 129050, "EUR"),
        ("RRP: RUB 166,777 (-50%) RUB 83,389", 8338900, "RUB"),
        ("CHF 250.00", 25000, "CHF"),
        ("₹ 2,499", 249900, "INR"),
    ])
    def test_examples(self, text, amount, currency):
        assert pricing.parse(text) == PriceInfo(amount, currency)

    @pytest.mark.parametrize("text,currency", [
        ("HK$100", "HKD"),
        ("A$50", "AUD"),
        ("AU$50", "AUD"),
        ("CA$ 99", "CAD"),
        ("C$99", "CAD"),
        ("NZ$80", "NZD"),
        ("S$15", "SGD"),
        ("US$ 20", "USD"),
        ("$20", "USD"),
    ])
    def test_dollar_regional_codes_win_over_bare_dollar(self, text, currency):
        assert pricing.parse(text).currency_code == currency

    def test_yen_and_yuan(self):
        assert pricing.parse("¥1200") == PriceInfo(120000, "JPY")
        assert pricing.parse("CN¥88").currency_code == "CNY"
        assert pricing.parse("RMB 88").currency_code == "CNY"

    def test_unmarked_text_uses_default_currency(self):
        assert pricing.parse("12.50") == PriceInfo(1250, "USD")
        assert pricing.parse("12.50", default_currency="EUR") == PriceInfo(1250, "EUR")

    # ── Which number is the price ──────────────────────────────────

    def test_last_number_by_default(self):
        assert pricing.parse("$60 $45").amount_minor_units == 4500

    def test_sale_keyword_beats_last_number(self):
        assert pricing.parse("Now $40 (was $60)").amount_minor_units == 4000

    def test_percent_marker_selects_following_number(self):
        assert pricing.parse("€200 (-30%) €140 incl. 2 items").amount_minor_units == 14000

    def test_percentages_are_never_prices(self):
        assert pricing.parse("Save 20%") is None

    def test_long_digit_strings_are_exact(self):
        result = pricing.parse("$" + "9" * 40 + ".99")
        assert result == PriceInfo(int("9" * 42), "USD")

    # ── Total function ─────────────────────────────────────────────

    @pytest.mark.parametrize("value", [
        "", "   ", "Free", "$", "...", ",,,", "Price on request", None, 12, 12.5, [], {},
    ])
    def test_non_price_input_is_none(self, value):
        assert pricing.parse(value) is None

    @pytest.mark.parametrize("value", [
        "9" * 400,
        "1,2,3,4.5.6",
        "€ . , €",
        "  ",
        "NaN",
        "Infinity $",
        "-$5",
        "$0",
    ])
    def test_never_raises(self, value):
        result = pricing.parse(value)
        assert result is None or isinstance(result, PriceInfo)


# =====================================================================
# Building blocks
# =====================================================================


class TestNormalizeNumber:

    @pytest.mark.parametrize("token,expected", [
        ("12.34", Decimal("12.34")),
        ("12,34", Decimal("12.34")),
        ("1,290", Decimal("1290")),
        ("1.290", Decimal("1290")),
        ("1.234.567", Decimal("1234567")),
        ("1,234,567.8", Decimal("1234567.8")),
        ("1.234.567,8", Decimal("1234567.8")),
        ("1 290", Decimal("1290")),
        ("45.", Decimal("45")),
    ])
    def test_separators(self, token, expected):
        assert pricing.normalize_number(token) == expected

    def test_empty_after_strip(self):
        assert pricing.normalize_number(".,") is None


class TestSelectPriceToken:

    def test_no_numbers(self):
        assert pricing.select_price_token("sold out") is None

    def test_sale_before_percent_marker(self):
        text = "(-50%) 100 Sale 40 then 30"
        assert pricing.select_price_token(text) == "40"


class TestCurrencyCode:

    @pytest.mark.parametrize("value,expected", [
        ("eur", "EUR"),
        ("GBP", "GBP"),
        ("€", "EUR"),
        ("$", "USD"),
        ("£", "GBP"),
        (" usd ", "USD"),
        ("HK$", "HKD"),
        ("", "USD"),
        (None, "USD"),
        (42, "USD"),
    ])
    def test_codes_and_symbols(self, value, expected):
        assert pricing.currency_code(value) == expected

    def test_detect_currency_without_default(self):
        assert pricing.detect_currency("plain text", default=None) is None


# =====================================================================
# from_amount(): structured-data amounts
# =====================================================================


class TestFromAmount:

    def test_float_amount(self):
        assert pricing.from_amount(45.5, "EUR") == PriceInfo(4550, "EUR")

    def test_string_amount(self):
        assert pricing.from_amount("45.50", "gbp") == PriceInfo(4550, "GBP")

    def test_integer_amount(self):
        assert pricing.from_amount(120, "USD") == PriceInfo(12000, "USD")

    def test_minor_units_source(self):
        assert pricing.from_amount(4550, "USD", minor_units=True) == PriceInfo(4550, "USD")

    def test_large_amounts_are_exact(self):
        assert pricing.from_amount(1e20, "USD") == PriceInfo(10 ** 22, "USD")
        assert pricing.from_amount("1" * 35, "USD", minor_units=True) == PriceInfo(int("1" * 35), "USD")

    def test_missing_currency_defaults(self):
        assert pricing.from_amount(10) == PriceInfo(1000, "USD")

    def test_rounds_half_up(self):
        assert pricing.from_amount(0.125, "USD").amount_minor_units == 13

    @pytest.mark.parametrize("value", [
        None, True, False, "abc", "", float("nan"), float("inf"), [], {"amount": 1},
    ])
    def test_unusable_amounts(self, value):
        assert pricing.from_amount(value, "USD") is None
