"""
Minor-unit money helpers.

Records hold Decimal major units; every computation runs on integers in
the currency's minor unit. Conversion happens once, at the edge.
"""

from decimal import ROUND_HALF_EVEN, Decimal
from typing import Union

# ISO 4217 exponents that differ from 2
_EXPONENTS = {
    "BIF": 0, "CLP": 0, "DJF": 0, "GNF": 0, "ISK": 0, "JPY": 0, "KMF": 0,
    "KRW": 0, "PYG": 0, "RWF": 0, "UGX": 0, "VND": 0, "VUV": 0, "XAF": 0,
    "XOF": 0, "XPF": 0,
    "BHD": 3, "IQD": 3, "JOD": 3, "KWD": 3, "LYD": 3, "OMR": 3, "TND": 3,
}

Number = Union[Decimal, int, str, float]


def currency_exponent(currency: str) -> int:
    """Number of minor-unit digits for a currency (2 unless listed)."""
    return _EXPONENTS.get(currency.upper(), 2)


def minor_factor(currency: str) -> int:
    return 10 ** currency_exponent(currency)


def to_minor(amount: Number, currency: str = "USD") -> int:
    """
    Convert a major-unit amount to integer minor units.

    Sub-minor precision is rounded half-to-even.
    """
    scaled = Decimal(str(amount)) * minor_factor(currency)
    return int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_EVEN))


def to_major(amount: int, currency: str = "USD") -> Decimal:
    """Convert integer minor units back to a Decimal in major units."""
    exponent = currency_exponent(currency)
    return (Decimal(amount) / minor_factor(currency)).quantize(Decimal(1).scaleb(-exponent))


def format_amount(amount: int, currency: str = "USD") -> str:
    """Plain '12.34 USD' rendering, for log lines and error messages."""
    return f"{to_major(amount, currency)} {currency.upper()}"
