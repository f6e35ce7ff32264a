#!/usr/bin/env python3
"""
Currency Lookup and Conversion Utilities

Multi-currency handling for the bookkeeping engine. User-defined currencies
(with user-supplied, static exchange rates) take precedence over a built-in
table of common currencies.

Conversion Strategy (USD pivot):
- Every currency carries one rate relative to USD
- convert(amount, A, B) = amount * rate(A) / rate(B)
- Same-currency conversion is an identity, never a computation
- Unknown currencies use the code itself as symbol/name and a rate of 1
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .decimal_value import DecimalInput, DecimalValue, divide, multiply
from .models import Currency

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "USD"


@dataclass(frozen=True)
class CurrencyInfo:
    """Display information for a currency."""

    code: str
    symbol: str
    name: str


SUPPORTED_CURRENCIES: tuple[CurrencyInfo, ...] = (
    CurrencyInfo("USD", "$", "US Dollar"),
    CurrencyInfo("EUR", "€", "Euro"),
    CurrencyInfo("GBP", "£", "British Pound"),
    CurrencyInfo("JPY", "¥", "Japanese Yen"),
    CurrencyInfo("CHF", "CHF", "Swiss Franc"),
    CurrencyInfo("CAD", "CA$", "Canadian Dollar"),
    CurrencyInfo("AUD", "A$", "Australian Dollar"),
    CurrencyInfo("NZD", "NZ$", "New Zealand Dollar"),
    CurrencyInfo("CNY", "¥", "Chinese Yuan"),
    CurrencyInfo("HKD", "HK$", "Hong Kong Dollar"),
    CurrencyInfo("SGD", "S$", "Singapore Dollar"),
    CurrencyInfo("SEK", "kr", "Swedish Krona"),
    CurrencyInfo("NOK", "kr", "Norwegian Krone"),
    CurrencyInfo("DKK", "kr", "Danish Krone"),
    CurrencyInfo("INR", "₹", "Indian Rupee"),
    CurrencyInfo("BRL", "R$", "Brazilian Real"),
    CurrencyInfo("MXN", "MX$", "Mexican Peso"),
    CurrencyInfo("ZAR", "R", "South African Rand"),
    CurrencyInfo("KRW", "₩", "South Korean Won"),
    CurrencyInfo("PLN", "zł", "Polish Zloty"),
    CurrencyInfo("TRY", "₺", "Turkish Lira"),
    CurrencyInfo("RUB", "₽", "Russian Ruble"),
    CurrencyInfo("AED", "د.إ", "UAE Dirham"),
    CurrencyInfo("SAR", "﷼", "Saudi Riyal"),
    CurrencyInfo("THB", "฿", "Thai Baht"),
    CurrencyInfo("PHP", "₱", "Philippine Peso"),
    CurrencyInfo("IDR", "Rp", "Indonesian Rupiah"),
    CurrencyInfo("MYR", "RM", "Malaysian Ringgit"),
    CurrencyInfo("VND", "₫", "Vietnamese Dong"),
    CurrencyInfo("CZK", "Kč", "Czech Koruna"),
    CurrencyInfo("HUF", "Ft", "Hungarian Forint"),
    CurrencyInfo("ILS", "₪", "Israeli Shekel"),
    CurrencyInfo("CLP", "CLP$", "Chilean Peso"),
    CurrencyInfo("COP", "COL$", "Colombian Peso"),
    CurrencyInfo("ARS", "AR$", "Argentine Peso"),
    CurrencyInfo("PEN", "S/", "Peruvian Sol"),
    CurrencyInfo("TWD", "NT$", "Taiwan Dollar"),
    # Caribbean guilder/florin statements use the ƒ symbol
    CurrencyInfo("AWG", "ƒ", "Aruban Florin"),
    CurrencyInfo("ANG", "ƒ", "Netherlands Antillean Guilder"),
)

_PREDEFINED: dict[str, CurrencyInfo] = {info.code: info for info in SUPPORTED_CURRENCIES}

UserCurrencies = Iterable[Currency] | None


def _find_user_currency(code: str, user_currencies: UserCurrencies) -> Currency | None:
    if not user_currencies:
        return None
    upper_code = code.upper()
    for currency in user_currencies:
        if currency.code.upper() == upper_code:
            return currency
    return None


def currency_info(code: str, user_currencies: UserCurrencies = None) -> CurrencyInfo | None:
    """
    Get currency info by code.

    Checks user-defined currencies first, then the built-in table.

    Args:
        code: ISO 4217 currency code (case-insensitive)
        user_currencies: Optional user-defined currencies

    Returns:
        CurrencyInfo, or None if the code is unknown
    """
    user_currency = _find_user_currency(code, user_currencies)
    if user_currency is not None:
        return CurrencyInfo(user_currency.code, user_currency.symbol, user_currency.name)
    return _PREDEFINED.get(code.upper())


def symbol_for(code: str, user_currencies: UserCurrencies = None) -> str:
    """Currency symbol, falling back to the code itself."""
    info = currency_info(code, user_currencies)
    return info.symbol if info else code


def name_for(code: str, user_currencies: UserCurrencies = None) -> str:
    """Currency name, falling back to the code itself."""
    info = currency_info(code, user_currencies)
    return info.name if info else code


def is_supported(code: str, user_currencies: UserCurrencies = None) -> bool:
    """Check if a currency code is user-defined or built in."""
    return currency_info(code, user_currencies) is not None


def currency_label(code: str, user_currencies: UserCurrencies = None) -> str:
    """Display label like "USD - US Dollar" (the bare code when unknown)."""
    info = currency_info(code, user_currencies)
    if info:
        return f"{info.code} - {info.name}"
    return code


def suggested_currency_info(code: str, user_currencies: UserCurrencies = None) -> CurrencyInfo:
    """
    Suggest display info for a currency seen in an imported statement.

    Unknown codes use the code as both symbol and name.
    """
    info = currency_info(code, user_currencies)
    if info:
        return info
    upper_code = code.upper()
    return CurrencyInfo(upper_code, upper_code, upper_code)


def exchange_rate_for(code: str, user_currencies: UserCurrencies = None) -> DecimalValue:
    """
    Get the exchange rate for a currency.

    Only user-defined currencies carry rates; everything else is 1.
    """
    currency = _find_user_currency(code, user_currencies)
    if currency is None:
        return DecimalValue.parse("1")
    return currency.exchange_rate


def convert(
    amount: DecimalInput, from_code: str, to_code: str, user_currencies: UserCurrencies = None
) -> DecimalValue:
    """
    Convert an amount between currencies through the USD pivot.

    Args:
        amount: Amount in the source currency
        from_code: Source currency code
        to_code: Target currency code
        user_currencies: User-defined currencies with exchange rates

    Returns:
        Amount in the target currency at full working precision
    """
    value = DecimalValue.parse(amount)
    if from_code.upper() == to_code.upper():
        return value

    # Searched once per rate; a generator would be exhausted by the first
    user_currencies = tuple(user_currencies or ())
    from_rate = exchange_rate_for(from_code, user_currencies)
    to_rate = exchange_rate_for(to_code, user_currencies)
    if to_rate.is_zero():
        logger.warning(f"Exchange rate for {to_code} is zero")
    return divide(multiply(value, from_rate), to_rate)


def to_usd(amount: DecimalInput, code: str, user_currencies: UserCurrencies = None) -> DecimalValue:
    """Convert an amount to USD: amount * rate(code)."""
    return multiply(amount, exchange_rate_for(code, user_currencies))


class CurrencyConverter:
    """
    Currency converter bound to a list of user-defined currencies.

    Example:
        >>> converter = CurrencyConverter([Currency("EUR", "€", "Euro", DecimalValue.parse("0.9"))])
        >>> converter.convert("100", "USD", "USD").to_string()
        '100'
    """

    def __init__(self, user_currencies: Iterable[Currency] | None = None):
        self.user_currencies: tuple[Currency, ...] = tuple(user_currencies or ())

    def info(self, code: str) -> CurrencyInfo | None:
        return currency_info(code, self.user_currencies)

    def symbol_for(self, code: str) -> str:
        return symbol_for(code, self.user_currencies)

    def name_for(self, code: str) -> str:
        return name_for(code, self.user_currencies)

    def exchange_rate_for(self, code: str) -> DecimalValue:
        return exchange_rate_for(code, self.user_currencies)

    def convert(self, amount: DecimalInput, from_code: str, to_code: str) -> DecimalValue:
        return convert(amount, from_code, to_code, self.user_currencies)

    def to_usd(self, amount: DecimalInput, code: str) -> DecimalValue:
        return to_usd(amount, code, self.user_currencies)
