"""Display formatters for amounts, percentages, ratios, and multiples."""

from __future__ import annotations


CURRENCY_SYMBOLS = {"CAD": "$", "USD": "$", "EUR": "€", "GBP": "£"}


def format_currency(amount: float, currency: str = "CAD", decimals: int = 2) -> str:
    symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    value = float(amount)
    if value < 0:
        return f"-{symbol}{abs(value):,.{decimals}f}"
    return f"{symbol}{value:,.{decimals}f}"


def format_percentage(value: float) -> str:
    """Format a value already expressed in percent (12.5 -> '12.50%')."""
    return f"{float(value):.2f}%"


def format_ratio(value: float) -> str:
    return f"{float(value):.2f}"


def format_multiple(value: float) -> str:
    return f"{float(value):.2f}x"
