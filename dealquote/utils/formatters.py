"""
Display formatting helpers for quotes, PDFs and CLI output.
Display only: nothing here feeds back into calculations.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from datetime import date, datetime
from typing import Union, Optional

Number = Union[int, float, Decimal, str, None]


def _to_decimal(value: Number) -> Optional[Decimal]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        num = Decimal(str(value).replace(",", ""))
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not num.is_finite():
        return None
    return num


def _group_thousands(integer_part: str) -> str:
    reversed_int = integer_part[::-1]
    groups = [reversed_int[i:i+3] for i in range(0, len(reversed_int), 3)]
    return ','.join(groups)[::-1]


def format_currency(value: Number, symbol: str = "$", decimals: int = 2) -> str:
    """
    Format a monetary amount with thousands separators and a fixed number of
    decimals.

    Args:
        value: Amount to format
        symbol: Currency symbol placed before the amount
        decimals: Number of decimals (0 drops the fraction)

    Returns:
        Formatted string, or "-" when the value is missing or invalid

    Examples:
        format_currency(1500) -> "$1,500.00"
        format_currency(Decimal('-1234.5')) -> "-$1,234.50"
        format_currency(99.995, decimals=0) -> "$100"
        format_currency(None) -> "-"
    """
    num = _to_decimal(value)
    if num is None:
        return "-"

    num = num.quantize(Decimal(10) ** -decimals, rounding=ROUND_HALF_UP)
    sign = "-" if num < 0 else ""
    text = f"{abs(num):.{decimals}f}"

    if '.' in text:
        integer_part, decimal_part = text.split('.')
        return f"{sign}{symbol}{_group_thousands(integer_part)}.{decimal_part}"
    return f"{sign}{symbol}{_group_thousands(text)}"


def format_percentage(value: Number, decimals: int = 2) -> str:
    """
    Format a percentage value (already in percent units).

    Examples:
        format_percentage(12.5) -> "12.50%"
        format_percentage(Decimal('33.333'), decimals=1) -> "33.3%"
        format_percentage(None) -> "N/A"
    """
    num = _to_decimal(value)
    if num is None:
        return "N/A"
    return f"{num.quantize(Decimal(10) ** -decimals, rounding=ROUND_HALF_UP):.{decimals}f}%"


def format_date(value: Union[date, datetime, str, None]) -> str:
    """
    Format a date as YYYY-MM-DD. ISO strings are accepted as-is.

    Examples:
        format_date(date(2024, 1, 8)) -> "2024-01-08"
        format_date(None) -> "-"
    """
    if value is None:
        return "-"

    if isinstance(value, str):
        try:
            value = date.fromisoformat(value[:10])
        except ValueError:
            return "-"

    if isinstance(value, datetime):
        value = value.date()

    if not isinstance(value, date):
        return "-"

    return value.strftime("%Y-%m-%d")
