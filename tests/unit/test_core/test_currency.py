#!/usr/bin/env python3
"""Tests for currency lookup and USD-pivot conversion."""

import pytest

from bookkeeping.core.currency import (
    SUPPORTED_CURRENCIES,
    CurrencyConverter,
    convert,
    currency_info,
    currency_label,
    exchange_rate_for,
    is_supported,
    name_for,
    suggested_currency_info,
    symbol_for,
    to_usd,
)
from bookkeeping.core.decimal_value import DecimalValue
from bookkeeping.core.models import Currency


class TestCurrencyLookup:
    """Test symbol/name lookup."""

    @pytest.mark.currency
    def test_predefined_currencies(self):
        """Test built-in currency table lookups."""
        assert symbol_for("USD") == "$"
        assert symbol_for("eur") == "€"
        assert name_for("GBP") == "British Pound"
        assert is_supported("JPY")
        assert len({info.code for info in SUPPORTED_CURRENCIES}) == len(SUPPORTED_CURRENCIES)

    @pytest.mark.currency
    def test_unknown_currency_falls_back_to_code(self):
        """Test unknown codes use the code as symbol and name."""
        assert currency_info("XYZ") is None
        assert symbol_for("XYZ") == "XYZ"
        assert name_for("XYZ") == "XYZ"
        assert not is_supported("XYZ")
        assert currency_label("XYZ") == "XYZ"

    @pytest.mark.currency
    def test_user_currency_takes_precedence(self):
        """Test user-defined currencies override the built-in table."""
        custom = [Currency(code="EUR", symbol="EUR€", name="My Euro", exchange_rate=DecimalValue.parse("1.2"))]
        assert symbol_for("EUR", custom) == "EUR€"
        assert name_for("eur", custom) == "My Euro"
        assert currency_label("EUR", custom) == "EUR - My Euro"

    @pytest.mark.currency
    def test_currency_label(self):
        assert currency_label("USD") == "USD - US Dollar"

    @pytest.mark.currency
    def test_suggested_currency_info(self):
        """Test suggestions for statement currencies."""
        assert suggested_currency_info("EUR").symbol == "€"
        unknown = suggested_currency_info("xyz")
        assert (unknown.code, unknown.symbol, unknown.name) == ("XYZ", "XYZ", "XYZ")


class TestConversion:
    """Test USD-pivot conversion."""

    @pytest.mark.currency
    def test_exchange_rate_defaults_to_one(self, euro):
        """Test only user currencies carry rates."""
        assert exchange_rate_for("GBP") == "1"
        assert exchange_rate_for("EUR", [euro]) == "1.10"

    @pytest.mark.currency
    def test_same_currency_is_identity(self, euro):
        """Test converting to the same currency returns the amount unchanged."""
        result = convert("123.456", "EUR", "eur", [euro])
        assert result.to_plain_string() == "123.456"

    @pytest.mark.currency
    def test_convert_to_usd(self, euro):
        """Test amount * rate(from) / rate(to) with USD at rate 1."""
        assert convert("100", "EUR", "USD", [euro]) == "110"
        assert to_usd("100", "EUR", [euro]) == "110"

    @pytest.mark.currency
    def test_convert_from_usd(self, euro):
        assert convert("110", "USD", "EUR", [euro]) == "100"

    @pytest.mark.currency
    def test_convert_between_two_user_currencies(self, euro):
        """Test cross-rate conversion through the pivot."""
        pound = Currency(code="GBP", symbol="£", name="British Pound", exchange_rate=DecimalValue.parse("1.25"))
        # 110 EUR -> 121 USD -> 96.8 GBP
        assert convert("110", "EUR", "GBP", [euro, pound]) == "96.8"

    @pytest.mark.currency
    def test_zero_target_rate_gives_zero(self, caplog):
        """Test a zero target rate degrades to zero instead of raising."""
        broken = Currency(code="ZZZ", symbol="Z", name="Broken", exchange_rate=DecimalValue.parse("0"))
        assert convert("100", "USD", "ZZZ", [broken]).is_zero()
        assert "Exchange rate for ZZZ is zero" in caplog.text

    @pytest.mark.currency
    def test_converter_binds_user_currencies(self, euro):
        """Test CurrencyConverter delegates with its currency list."""
        converter = CurrencyConverter([euro])
        assert converter.convert("100", "EUR", "USD") == "110"
        assert converter.to_usd("10", "EUR") == "11"
        assert converter.symbol_for("EUR") == "€"
        assert converter.name_for("EUR") == "Euro"
        assert converter.exchange_rate_for("USD") == "1"
        assert converter.info("XYZ") is None

    @pytest.mark.currency
    def test_user_currencies_may_be_a_generator(self, euro):
        """Test both rate lookups see a one-shot iterable of currencies."""
        assert convert("110", "USD", "EUR", (c for c in [euro])) == "100"


class TestConversionRoundTrip:
    """Test converting there and back returns the amount at display precision."""

    @pytest.mark.currency
    @pytest.mark.parametrize("rate", ["3", "1.1", "0.7", "151.37"])
    @pytest.mark.parametrize("amount", ["100.00", "0.01", "-12345.67", "999999.99"])
    def test_round_trip_through_user_currency(self, rate, amount):
        """Test convert(convert(X, A, B), B, A) equals X after to_fixed(2)."""
        other = Currency(code="XTS", symbol="T", name="Test", exchange_rate=DecimalValue.parse(rate))
        there = convert(amount, "USD", "XTS", [other])
        back = convert(there, "XTS", "USD", [other])
        assert back.to_fixed(2) == DecimalValue.parse(amount).to_fixed(2)

    @pytest.mark.currency
    def test_round_trip_between_two_user_currencies(self, euro):
        thirds = Currency(code="XTS", symbol="T", name="Test", exchange_rate=DecimalValue.parse("3"))
        there = convert("100", "EUR", "XTS", [euro, thirds])
        back = convert(there, "XTS", "EUR", [euro, thirds])
        assert there.to_fixed(2) == "36.67"
        assert back.to_fixed(2) == "100.00"
