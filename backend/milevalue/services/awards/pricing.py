"""Price and mileage parsing for inconsistently formatted provider values.

Parsing never raises. Anything that cannot be read becomes 0, which callers
treat as "no price data".
"""

import math
import re
from typing import Any

from milevalue.data.currency import BASE_CURRENCY, CURRENCY_SYMBOL_MARKERS, EXCHANGE_RATES_TO_USD

_NON_NUMERIC = re.compile(r"[^0-9.]")
_CURRENCY_CODE = re.compile(r"(?<![A-Z])([A-Z]{3})(?![A-Z])")


def detect_currency(raw: str) -> str:
    """Currency of a price string, from a three-letter code or a symbol prefix. Defaults to USD."""
    for match in _CURRENCY_CODE.finditer(raw.upper()):
        code = match.group(1)
        if code in EXCHANGE_RATES_TO_USD:
            return code
    for marker, code in CURRENCY_SYMBOL_MARKERS:
        if marker in raw:
            return code
    return BASE_CURRENCY


def _magnitude(raw: str) -> float:
    cleaned = _NON_NUMERIC.sub("", raw)
    if not cleaned:
        return 0.0
    try:
        value = float(cleaned)
    except ValueError:
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return value


def parse_price(raw: Any) -> float:
    """Parse a number, a currency-marked string ("AUD 123.45", "CA$326") or nothing into USD.

    Foreign amounts are converted with the fixed rates in
    milevalue.data.currency. The result is always a non-negative float.
    """
    if raw is None or isinstance(raw, bool):
        return 0.0

    if isinstance(raw, (int, float)):
        value = float(raw)
        if not math.isfinite(value) or value < 0:
            return 0.0
        return value

    if not isinstance(raw, str):
        return 0.0

    amount = _magnitude(raw)
    if amount == 0:
        return 0.0

    currency = detect_currency(raw)
    if currency != BASE_CURRENCY:
        amount = round(amount * EXCHANGE_RATES_TO_USD[currency], 2)
    return amount


def parse_miles(raw: Any) -> int:
    """Parse a mileage value ("60,000", 60000, 60000.0) into a non-negative int; 0 when unreadable."""
    if raw is None or isinstance(raw, bool):
        return 0
    if isinstance(raw, (int, float)):
        if not math.isfinite(raw) or raw < 0:
            return 0
        return int(raw)
    if isinstance(raw, str):
        return int(_magnitude(raw))
    return 0
