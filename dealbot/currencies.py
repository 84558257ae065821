"""Supported conversion currencies and their display symbols."""
from __future__ import annotations

from typing import List, Tuple

CURRENCY_SYMBOLS = {
    "AUD": "A$",
    "BRL": "R$",
    "CAD": "CA$",
    "CNY": "CNY",
    "CZK": "Kč",
    "DKK": "kr",
    "EUR": "€",
    "HKD": "HK$",
    "HUF": "Ft",
    "ILS": "₪",
    "JPY": "¥",
    "MYR": "RM",
    "MXN": "MX$",
    "TWD": "NT$",
    "NZD": "NZ$",
    "NOK": "kr",
    "PHP": "₱",
    "PLN": "zł",
    "GBP": "£",
    "RUB": "₽",
    "SGD": "S$",
    "SEK": "kr",
    "CHF": "CHF",
    "THB": "฿",
    "USD": "$",
}


def is_supported(code: str) -> bool:
    return code.upper() in CURRENCY_SYMBOLS


def symbol_for(code: str) -> str:
    # Unknown codes fall back to the code itself
    return CURRENCY_SYMBOLS.get(code.upper(), code.upper())


def split_currency_codes(text: str) -> Tuple[List[str], List[str]]:
    """Split a ``/currency`` argument into supported and unsupported codes.

    Codes are uppercased and keep the order they were given in.

    Returns:
        (supported, unsupported)
    """
    supported: List[str] = []
    unsupported: List[str] = []
    for raw in text.split():
        code = raw.upper()
        if is_supported(code):
            supported.append(code)
        else:
            unsupported.append(raw)
    return supported, unsupported
