from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import List, Optional, Tuple, Union
import re

from app.core.errors import InvalidArgument

CENTS = Decimal("0.01")

MoneyInput = Union[str, int, float, Decimal, None]


def parse_money(value: MoneyInput) -> Tuple[Decimal, List[str]]:
    """Parse a user-provided monetary value into a two-place Decimal.

    Accepts numbers and strings in formats like:
      - "1234.56"
      - "1,234.56"
      - "1.234,56" (comma as decimal separator)
      - "$ 1,234.56"
      - "(1,234.56)" -> negative

    Returns (amount, warnings). Raises InvalidArgument on clearly invalid input.
    """
    warnings: List[str] = []
    if value is None:
        raise InvalidArgument("Amount is required")

    if isinstance(value, bool):
        raise InvalidArgument("Invalid balance amount")

    if isinstance(value, (int, float, Decimal)):
        return _quantize(Decimal(str(value)), value, warnings), warnings

    s = str(value).strip()
    if s == "":
        raise InvalidArgument("Amount is required")

    # remove currency symbols and surrounding whitespace
    s = re.sub(r"[R$€£¥ ]", "", s)

    negative = False
    if s.startswith("(") and s.endswith(")"):
        negative = True
        s = s[1:-1]
    if s.startswith("-"):
        negative = True
        s = s[1:]

    s = _normalize_separators(s)

    if s == "" or not re.fullmatch(r"\d*\.?\d*", s) or s == ".":
        raise InvalidArgument("Invalid balance amount")

    try:
        amount = Decimal(s)
    except InvalidOperation:
        raise InvalidArgument(f"Could not parse amount '{value}'") from None

    if negative:
        amount = -amount

    return _quantize(amount, value, warnings), warnings


def _quantize(amount: Decimal, raw: MoneyInput, warnings: List[str]) -> Decimal:
    if not amount.is_finite():
        raise InvalidArgument("Invalid balance amount")
    try:
        quantized = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidArgument("Invalid balance amount") from None
    if quantized != amount:
        warnings.append(f"Amount '{raw}' rounded to {quantized}")
    return quantized


def normalize_choice(value: Optional[str], choices: Tuple[str, ...], label: str) -> str:
    """Return the upper-cased choice matching value or raise InvalidArgument."""
    normalized = (value or "").strip().upper()
    if normalized not in choices:
        raise InvalidArgument(f"Invalid {label}: {value!r}")
    return normalized


def _is_grouped(whole: str, separator: str) -> bool:
    """True when whole has no separator or uses it between groups of three digits."""
    if separator not in whole:
        return True
    return re.fullmatch(rf"\d{{1,3}}(?:{re.escape(separator)}\d{{3}})+", whole) is not None


def _normalize_separators(s: str) -> str:
    """Rewrite thousands/decimal separators so Decimal can read the value.

    With both '.' and ',' present the last one is the decimal separator. A
    lone comma followed by one or two digits is a decimal comma; commas
    between groups of three digits are thousands separators. Anything else
    is ambiguous and rejected.
    """
    comma_count = s.count(',')
    dot_count = s.count('.')

    if comma_count and dot_count:
        decimal_sep = ',' if s.rfind(',') > s.rfind('.') else '.'
        thousands_sep = '.' if decimal_sep == ',' else ','
        whole, _, fraction = s.rpartition(decimal_sep)
        if decimal_sep in whole or not _is_grouped(whole, thousands_sep):
            raise InvalidArgument("Invalid balance amount")
        return f"{whole.replace(thousands_sep, '')}.{fraction}"

    if comma_count:
        whole, _, fraction = s.rpartition(',')
        if comma_count == 1 and len(fraction) in (1, 2):
            return f"{whole}.{fraction}"
        if _is_grouped(s, ','):
            return s.replace(',', '')
        raise InvalidArgument("Invalid balance amount")

    return s
